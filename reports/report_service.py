from datetime import datetime, timedelta
from decimal import Decimal
from flask import current_app
from sqlalchemy import func
from src.extensions import db
from billing.pricing import ZERO, to_decimal, format_money
from billing.ledger import InvoiceStatus
from invoices.invoice import Invoice
from pos.pos_order import POSOrder, POSOrderItem


def _empty_receivables():
    return {s.value: {"count": 0, "total_amount": ZERO, "outstanding": ZERO} for s in InvoiceStatus}


class ReportService:
    @staticmethod
    def revenue_by_day(days=7, now=None, currency=None):
        """Collected invoice revenue plus counter POS sales per day in one currency, zero-filled."""
        now = now or datetime.utcnow()
        currency = currency or current_app.config.get("DEFAULT_CURRENCY", "INR")
        days = max(1, int(days))
        first_day = now.date() - timedelta(days=days - 1)
        start = datetime.combine(first_day, datetime.min.time())
        end = datetime.combine(now.date() + timedelta(days=1), datetime.min.time())

        buckets = {}
        for offset in range(days):
            day = (first_day + timedelta(days=offset)).isoformat()
            buckets[day] = {"date": day, "invoice_revenue": ZERO, "pos_revenue": ZERO}

        invoices = Invoice.query.filter(
            Invoice.invoice_date >= start,
            Invoice.invoice_date < end,
            Invoice.currency == currency,
            Invoice.status != InvoiceStatus.CANCELLED.value,
            Invoice.total_paid > 0,
        ).all()
        for invoice in invoices:
            day = invoice.invoice_date.date().isoformat()
            buckets[day]["invoice_revenue"] += to_decimal(invoice.total_paid)

        # room-charge orders are already counted through the invoice they were posted to
        orders = POSOrder.query.filter(
            POSOrder.created_at >= start,
            POSOrder.created_at < end,
            POSOrder.payment_status == "paid",
            POSOrder.currency == currency,
        ).all()
        for order in orders:
            day = order.created_at.date().isoformat()
            buckets[day]["pos_revenue"] += to_decimal(order.total_amount)

        rows = []
        total = ZERO
        for day in sorted(buckets):
            bucket = buckets[day]
            day_total = bucket["invoice_revenue"] + bucket["pos_revenue"]
            total += day_total
            rows.append({
                "date": day,
                "invoice_revenue": format_money(bucket["invoice_revenue"]),
                "pos_revenue": format_money(bucket["pos_revenue"]),
                "total_revenue": format_money(day_total),
            })
        return {
            "currency": currency,
            "period": {"from": first_day.isoformat(), "to": now.date().isoformat(), "days": days},
            "total_revenue": format_money(total),
            "daily": rows,
        }

    @staticmethod
    def receivables_summary():
        """Count, billed and outstanding amounts per status, kept apart per currency."""
        by_currency = {}
        for invoice in Invoice.query.order_by(Invoice.currency).all():
            group = by_currency.setdefault(invoice.currency, {
                "by_status": _empty_receivables(), "total_outstanding": ZERO, "total_excess": ZERO,
            })
            entry = group["by_status"].setdefault(invoice.status, {"count": 0, "total_amount": ZERO, "outstanding": ZERO})
            outstanding = to_decimal(invoice.outstanding_balance)
            entry["count"] += 1
            entry["total_amount"] += to_decimal(invoice.total_amount)
            if invoice.status == InvoiceStatus.CANCELLED.value:
                continue
            if outstanding > 0:
                entry["outstanding"] += outstanding
                group["total_outstanding"] += outstanding
            else:
                group["total_excess"] += -outstanding

        return {
            "by_currency": {
                currency: {
                    "by_status": {
                        status: {
                            "count": entry["count"],
                            "total_amount": format_money(entry["total_amount"]),
                            "outstanding": format_money(entry["outstanding"]),
                        }
                        for status, entry in group["by_status"].items()
                    },
                    "overdue_outstanding": format_money(group["by_status"][InvoiceStatus.OVERDUE.value]["outstanding"]),
                    "total_outstanding": format_money(group["total_outstanding"]),
                    "total_excess": format_money(group["total_excess"]),
                }
                for currency, group in by_currency.items()
            },
        }

    @staticmethod
    def pos_sales_by_category():
        rows = db.session.query(
            POSOrder.currency,
            POSOrderItem.category,
            func.sum(POSOrderItem.quantity),
            func.sum(POSOrderItem.total),
        ).join(POSOrder, POSOrderItem.order_id == POSOrder.id).group_by(
            POSOrder.currency, POSOrderItem.category,
        ).order_by(POSOrder.currency, POSOrderItem.category).all()
        return [
            {
                "currency": currency,
                "category": category,
                "units_sold": int(units or 0),
                "revenue": format_money(Decimal(str(revenue or 0))),
            }
            for currency, category, units, revenue in rows
        ]
