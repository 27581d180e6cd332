"""Tests for revenue, receivables and POS reports."""

from datetime import datetime, timedelta

import pytest
from flask.testing import FlaskClient

from guests.guest import Guest
from invoices.invoice_service import InvoiceService
from reports.report_service import ReportService


@pytest.fixture
def activity(client: FlaskClient, guest: Guest, room_line: dict) -> dict:
    """One partly paid invoice, one unpaid invoice and a cash POS order."""
    paid = client.post("/invoices/", json={"guest_id": guest.id, "items": [room_line]}).get_json()
    client.post("/payments/", json={"invoice_id": paid["id"], "amount": 500, "method": "cash"})
    unpaid = client.post("/invoices/", json={"guest_id": guest.id, "items": [room_line]}).get_json()

    coffee = client.post("/pos/items", json={"name": "Coffee", "category": "food", "price": 100, "tax_rate": 5}).get_json()
    client.post("/pos/orders", json={"cart": [{"item_id": coffee["id"], "quantity": 2}], "payment_method": "card"})
    return {"paid": paid, "unpaid": unpaid}


def test_revenue_by_day(client: FlaskClient, activity: dict) -> None:
    """Today's revenue counts collected invoice money plus counter sales."""
    report = client.get("/reports/revenue?days=7").get_json()

    assert report["period"]["days"] == 7
    assert len(report["daily"]) == 7
    today = report["daily"][-1]
    assert today["date"] == datetime.utcnow().date().isoformat()
    assert today["invoice_revenue"] == "500.00"
    assert today["pos_revenue"] == "210.00"
    assert today["total_revenue"] == "710.00"
    assert report["total_revenue"] == "710.00"
    assert all(day["total_revenue"] == "0.00" for day in report["daily"][:-1])


def test_revenue_on_empty_database(app) -> None:
    """No activity gives a zero-filled window."""
    report = ReportService.revenue_by_day(days=3)

    assert [d["total_revenue"] for d in report["daily"]] == ["0.00", "0.00", "0.00"]


def test_receivables_summary(client: FlaskClient, activity: dict) -> None:
    """Outstanding money is grouped by status."""
    report = client.get("/reports/receivables").get_json()["by_currency"]

    assert list(report) == ["INR"]
    inr = report["INR"]
    assert inr["by_status"]["partially_paid"]["count"] == 1
    assert inr["by_status"]["partially_paid"]["outstanding"] == "620.00"
    assert inr["by_status"]["pending"]["outstanding"] == "1120.00"
    assert inr["total_outstanding"] == "1740.00"
    assert inr["overdue_outstanding"] == "0.00"
    assert inr["total_excess"] == "0.00"


def test_pos_sales_by_category(client: FlaskClient, activity: dict) -> None:
    """POS lines are rolled up per category."""
    report = client.get("/reports/pos-sales").get_json()

    assert report == [{"currency": "INR", "category": "food", "units_sold": 2, "revenue": "210.00"}]


def test_revenue_export(client: FlaskClient, activity: dict) -> None:
    """Revenue exports as CSV or Excel."""
    csv_response = client.get("/reports/revenue/export?format=csv&days=3")
    assert csv_response.status_code == 200
    lines = csv_response.data.decode("utf-8").strip().splitlines()
    assert lines[0] == "date,invoice_revenue,pos_revenue,total_revenue"
    assert len(lines) == 4

    excel_response = client.get("/reports/revenue/export?format=excel")
    assert excel_response.status_code == 200
    assert excel_response.data[:2] == b"PK"

    assert client.get("/reports/revenue/export?format=pdf").status_code == 400


def test_revenue_keeps_money_collected_on_overdue_invoices(app, activity: dict) -> None:
    """A partly paid invoice that turns overdue still counts what was collected."""
    before = ReportService.revenue_by_day(days=1)
    InvoiceService.refresh_overdue(now=datetime.utcnow() + timedelta(days=30))

    assert InvoiceService.get_invoice(activity["paid"]["id"]).status == "overdue"
    after = ReportService.revenue_by_day(days=1)
    assert after["daily"][-1]["invoice_revenue"] == before["daily"][-1]["invoice_revenue"] == "500.00"


def test_reports_keep_currencies_apart(client: FlaskClient, guest: Guest, room_line: dict, activity: dict) -> None:
    """USD money never lands in INR totals."""
    usd = client.post("/invoices/", json={"guest_id": guest.id, "items": [room_line], "currency": "USD"}).get_json()
    client.post("/payments/", json={"invoice_id": usd["id"], "amount": 100, "method": "card"})
    bourbon = client.post("/pos/items", json={
        "name": "Bourbon", "category": "alcohol", "price": 10, "tax_rate": 0, "currency": "USD",
    }).get_json()
    client.post("/pos/orders", json={"cart": [{"item_id": bourbon["id"]}], "payment_method": "cash"})

    inr = client.get("/reports/revenue?days=1").get_json()
    assert inr["currency"] == "INR"
    assert inr["total_revenue"] == "710.00"
    usd_revenue = client.get("/reports/revenue?days=1&currency=USD").get_json()
    assert usd_revenue["daily"][-1]["invoice_revenue"] == "100.00"
    assert usd_revenue["daily"][-1]["pos_revenue"] == "10.00"
    assert client.get("/reports/revenue?currency=JPY").status_code == 400

    receivables = client.get("/reports/receivables").get_json()["by_currency"]
    assert receivables["INR"]["total_outstanding"] == "1740.00"
    assert receivables["USD"]["total_outstanding"] == "1020.00"

    sales = client.get("/reports/pos-sales").get_json()
    assert {(s["currency"], s["category"]) for s in sales} == {("INR", "food"), ("USD", "alcohol")}
