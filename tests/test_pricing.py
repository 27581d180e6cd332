"""Unit tests for line-item pricing and order summaries."""

import itertools
from decimal import Decimal

import pytest

from billing.pricing import (
    LineInput,
    LinePrice,
    clean_amount,
    clean_money,
    clean_quantity,
    format_money,
    price_line_item,
    summarize,
    summarize_priced,
    to_decimal,
)


@pytest.fixture
def two_lines() -> list:
    """The two-line order from the front desk example."""
    return [
        LineInput(quantity=1, unit_price=Decimal("2500"), tax_rate=Decimal("12")),
        LineInput(quantity=3, unit_price=Decimal("100"), tax_rate=Decimal("5")),
    ]


def test_price_line_item_room_nights() -> None:
    """2 x 500 at 12% -> 1000 + 120 = 1120."""
    priced = price_line_item(2, Decimal("500"), Decimal("12"))

    assert priced.subtotal == Decimal("1000")
    assert priced.tax_amount == Decimal("120")
    assert priced.total == Decimal("1120")


@pytest.mark.parametrize(
    "quantity,unit_price,tax_rate",
    [
        (1, "0", "0"),
        (1, "19.99", "18"),
        (7, "123.45", "12.5"),
        (250, "0.01", "5"),
        (3, "1000", "0"),
    ],
)
def test_total_is_subtotal_plus_tax(quantity: int, unit_price: str, tax_rate: str) -> None:
    """Total always equals subtotal + tax, with no rounding applied."""
    priced = price_line_item(quantity, Decimal(unit_price), Decimal(tax_rate))

    assert priced.total == priced.subtotal + priced.tax_amount
    assert priced.subtotal == quantity * Decimal(unit_price)
    assert priced.tax_amount == priced.subtotal * Decimal(tax_rate) / 100


def test_price_line_item_is_exact() -> None:
    """Fractional tax is kept exactly until the line is rounded."""
    priced = price_line_item(1, Decimal("0.10"), Decimal("12.5"))

    assert priced.tax_amount == Decimal("0.0125")
    assert priced.rounded().tax_amount == Decimal("0.01")


def test_floats_go_through_str() -> None:
    """Float inputs do not leak binary representation error."""
    priced = price_line_item(3, 0.1, 10)

    assert priced.subtotal == Decimal("0.3")
    assert to_decimal(0.1) == Decimal("0.1")


def test_rounded_keeps_total_consistent() -> None:
    """Rounding to cents still satisfies total == subtotal + tax."""
    priced = price_line_item(3, Decimal("33.33"), Decimal("12.5")).rounded()

    assert priced.subtotal == Decimal("99.99")
    assert priced.tax_amount == Decimal("12.50")
    assert priced.total == priced.subtotal + priced.tax_amount


def test_summarize_two_lines(two_lines: list) -> None:
    """2500 @12% + 3 x 100 @5% -> 2800 + 315 = 3115."""
    summary = summarize(two_lines)

    assert summary.subtotal == Decimal("2800")
    assert summary.total_tax == Decimal("315")
    assert summary.discounts == Decimal("0")
    assert summary.total_amount == Decimal("3115")


def test_summarize_is_order_independent(two_lines: list) -> None:
    """Every permutation of the lines gives the same summary."""
    lines = two_lines + [LineInput(quantity=4, unit_price=Decimal("75.50"), tax_rate=Decimal("18"))]
    expected = summarize(lines)

    for permutation in itertools.permutations(lines):
        assert summarize(permutation) == expected


def test_summarize_matches_per_line_pricing(two_lines: list) -> None:
    """Summary equals the sum of independently priced lines minus discount."""
    priced = [price_line_item(l.quantity, l.unit_price, l.tax_rate) for l in two_lines]
    summary = summarize(two_lines, discounts=Decimal("15"))

    assert summary.subtotal == sum(p.subtotal for p in priced)
    assert summary.total_tax == sum(p.tax_amount for p in priced)
    assert summary.total_amount == sum(p.total for p in priced) - Decimal("15")
    assert summarize_priced(priced, discounts=Decimal("15")) == summary


def test_summarize_empty() -> None:
    """No lines -> all-zero summary."""
    summary = summarize([])

    assert summary.subtotal == 0
    assert summary.total_tax == 0
    assert summary.total_amount == 0


def test_summarize_accepts_dicts() -> None:
    """Cart entries given as dicts are summarised the same way."""
    summary = summarize([{"quantity": 2, "unit_price": "500", "tax_rate": "12"}])

    assert summary.total_amount == Decimal("1120")


@pytest.mark.parametrize(
    "raw,expected",
    [(3, 3), ("4", 4), (0, 1), (-2, 1), ("abc", 1), (None, 1)],
)
def test_clean_quantity(raw, expected: int) -> None:
    """Bad quantities fall back to 1."""
    assert clean_quantity(raw) == expected


@pytest.mark.parametrize(
    "raw,expected",
    [("12.5", Decimal("12.5")), (0, Decimal("0")), (-1, Decimal("0")), ("x", Decimal("0")), (float("nan"), Decimal("0"))],
)
def test_clean_amount(raw, expected: Decimal) -> None:
    """Bad prices and tax rates fall back to 0."""
    assert clean_amount(raw) == expected


@pytest.mark.parametrize(
    "raw,expected",
    [("10.005", "10.01"), ("12.345", "12.35"), (5, "5.00"), ("0.004", "0.00"), ("x", "0.00")],
)
def test_clean_money(raw, expected: str) -> None:
    """Prices and rates are rounded to cents, half up."""
    assert clean_money(raw) == Decimal(expected)
    assert str(clean_money(raw)) == expected


def test_clean_money_keeps_rejection_default() -> None:
    """A None default survives so callers can reject bad input."""
    assert clean_money(-1, default=None) is None


def test_format_money() -> None:
    """Display formatting rounds half up to two places."""
    assert format_money(Decimal("0.125")) == "0.13"
    assert format_money(1120) == "1120.00"


def test_line_price_as_dict() -> None:
    """Priced lines serialise with their three derived fields."""
    data = LinePrice(Decimal("1"), Decimal("0.05"), Decimal("1.05")).as_dict()

    assert set(data) == {"subtotal", "tax_amount", "total"}
