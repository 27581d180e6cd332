"""
Invoice payment ledger.

The paid / outstanding figures are always rederived from the full list of
payments, so there is no running total to drift out of sync.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from billing.pricing import ZERO, to_decimal


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    ROOM_CHARGE = "room_charge"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"
    ONLINE = "online"

    @classmethod
    def values(cls):
        return [m.value for m in cls]


@dataclass(frozen=True)
class LedgerPayment:
    amount: Decimal
    method: str
    received_at: datetime
    reference: str = None


@dataclass(frozen=True)
class PaymentStatus:
    total_paid: Decimal
    outstanding_balance: Decimal
    last_payment_date: datetime = None

    @property
    def balance_due(self):
        return max(ZERO, self.outstanding_balance)

    @property
    def excess_amount(self):
        # overpayment, owed back to the guest
        return max(ZERO, -self.outstanding_balance)

    def as_dict(self):
        return {
            "total_paid": self.total_paid,
            "outstanding_balance": self.outstanding_balance,
            "excess_amount": self.excess_amount,
            "last_payment_date": self.last_payment_date,
        }


def record_payment(existing_payments, new_payment):
    """Return a new list with ``new_payment`` appended. No overpayment check."""
    return list(existing_payments) + [new_payment]


def compute_payment_status(total_amount, payments):
    total_paid = sum((to_decimal(p.amount) for p in payments), ZERO)
    dates = [p.received_at for p in payments if p.received_at is not None]
    return PaymentStatus(
        total_paid=total_paid,
        outstanding_balance=to_decimal(total_amount) - total_paid,
        last_payment_date=max(dates) if dates else None,
    )


def classify_status(outstanding_balance, total_amount, due_date=None, now=None):
    """
    paid            balance <= 0 (overpayment included)
    overdue         balance > 0 and now is past the due date
    partially_paid  0 < balance < total
    pending         nothing paid yet
    """
    outstanding_balance = to_decimal(outstanding_balance)
    if outstanding_balance <= 0:
        return InvoiceStatus.PAID
    now = now or datetime.utcnow()
    if due_date is not None and now > due_date:
        return InvoiceStatus.OVERDUE
    if outstanding_balance < to_decimal(total_amount):
        return InvoiceStatus.PARTIALLY_PAID
    return InvoiceStatus.PENDING
