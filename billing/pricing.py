"""
Line-item pricing for invoices and the POS cart.

All amounts are ``Decimal``. Nothing here rounds: quantizing to cents is done
by ``LinePrice.rounded()`` when a line is written to the database, and display
formatting by ``format_money``.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENTS = Decimal("0.01")


def to_decimal(value):
    """Convert ints, floats and strings to Decimal (floats go through str())."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value):
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(value):
    return f"{quantize_money(value):.2f}"


def clean_quantity(value, default=1):
    """Form-side clamp: anything non-numeric or below 1 becomes ``default``."""
    try:
        qty = int(value)
    except (TypeError, ValueError):
        return default
    return qty if qty >= 1 else default


def clean_amount(value, default=ZERO):
    """Form-side clamp for prices and tax rates: non-numeric or negative -> 0."""
    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError):
        return default
    if not amount.is_finite() or amount < 0:
        return default
    return amount


def clean_money(value, default=ZERO):
    """``clean_amount`` rounded to cents, the scale of every price and rate column."""
    amount = clean_amount(value, default=default)
    if amount is None:
        return None
    return quantize_money(amount)


@dataclass(frozen=True)
class LinePrice:
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal

    def rounded(self):
        # total is rebuilt from the rounded parts so it still equals subtotal + tax
        subtotal = quantize_money(self.subtotal)
        tax_amount = quantize_money(self.tax_amount)
        return LinePrice(subtotal=subtotal, tax_amount=tax_amount, total=subtotal + tax_amount)

    def as_dict(self):
        return {
            "subtotal": self.subtotal,
            "tax_amount": self.tax_amount,
            "total": self.total,
        }


@dataclass(frozen=True)
class LineInput:
    quantity: int
    unit_price: Decimal
    tax_rate: Decimal


@dataclass(frozen=True)
class Summary:
    subtotal: Decimal
    total_tax: Decimal
    discounts: Decimal
    total_amount: Decimal

    def as_dict(self):
        return {
            "subtotal": self.subtotal,
            "total_tax": self.total_tax,
            "discounts": self.discounts,
            "total_amount": self.total_amount,
        }


def price_line_item(quantity, unit_price, tax_rate_percent):
    """
    Price one line: subtotal = qty x price, tax = subtotal x rate / 100,
    total = subtotal + tax. Inputs are assumed already cleaned.
    """
    subtotal = to_decimal(quantity) * to_decimal(unit_price)
    tax_amount = subtotal * to_decimal(tax_rate_percent) / HUNDRED
    return LinePrice(subtotal=subtotal, tax_amount=tax_amount, total=subtotal + tax_amount)


def _line_values(item):
    if isinstance(item, dict):
        return item["quantity"], item["unit_price"], item.get("tax_rate", ZERO)
    return item.quantity, item.unit_price, item.tax_rate


def summarize(line_items, discounts=ZERO):
    """
    Aggregate lines into subtotal / total tax / total amount.

    ``line_items`` may hold ORM rows, ``LineInput`` objects or dicts with
    ``quantity``, ``unit_price`` and ``tax_rate``. POS carts pass no discount.
    """
    subtotal = ZERO
    total_tax = ZERO
    for item in line_items:
        priced = price_line_item(*_line_values(item))
        subtotal += priced.subtotal
        total_tax += priced.tax_amount
    discounts = to_decimal(discounts)
    return Summary(
        subtotal=subtotal,
        total_tax=total_tax,
        discounts=discounts,
        total_amount=subtotal + total_tax - discounts,
    )


def summarize_priced(priced_lines, discounts=ZERO):
    """Same as ``summarize`` but over already priced ``LinePrice`` values."""
    subtotal = sum((p.subtotal for p in priced_lines), ZERO)
    total_tax = sum((p.tax_amount for p in priced_lines), ZERO)
    discounts = to_decimal(discounts)
    return Summary(
        subtotal=subtotal,
        total_tax=total_tax,
        discounts=discounts,
        total_amount=subtotal + total_tax - discounts,
    )
