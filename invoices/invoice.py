from datetime import datetime
from src.extensions import db
from sqlalchemy.orm import relationship

CURRENCIES = ("INR", "USD", "EUR", "GBP")


class Invoice(db.Model):
    __tablename__ = "invoices"

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(100), unique=True, nullable=True)
    guest_id = db.Column(db.Integer, db.ForeignKey("guests.id"), nullable=False)
    booking_reference = db.Column(db.String(100), nullable=True)
    invoice_date = db.Column(db.DateTime, default=datetime.utcnow)
    due_date = db.Column(db.DateTime, nullable=True)
    currency = db.Column(db.String(10), default="INR")

    # Summary, rederived from the line items
    subtotal = db.Column(db.Numeric(14, 2), default=0)
    total_tax = db.Column(db.Numeric(14, 2), default=0)
    discounts = db.Column(db.Numeric(14, 2), default=0)
    total_amount = db.Column(db.Numeric(14, 2), default=0)

    # Payment status, rederived from the payments
    total_paid = db.Column(db.Numeric(14, 2), default=0)
    outstanding_balance = db.Column(db.Numeric(14, 2), default=0)
    last_payment_date = db.Column(db.DateTime, nullable=True)

    status = db.Column(db.String(50), default="pending")  # pending / partially_paid / paid / overdue / cancelled
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    items = relationship("InvoiceItem", back_populates="invoice", cascade="all, delete-orphan", order_by="InvoiceItem.id")
    payments = relationship("Payment", back_populates="invoice", order_by="Payment.received_at")

    def summary_dict(self):
        return {
            "subtotal": str(self.subtotal),
            "total_tax": str(self.total_tax),
            "discounts": str(self.discounts),
            "total_amount": str(self.total_amount),
            "currency": self.currency,
        }

    def payment_status_dict(self):
        return {
            "total_paid": str(self.total_paid),
            "outstanding_balance": str(self.outstanding_balance),
            "last_payment_date": self.last_payment_date.isoformat() if self.last_payment_date else None,
        }

    def to_dict(self, include_items=True):
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "guest_id": self.guest_id,
            "guest_name": self.guest.full_name if self.guest else None,
            "booking_reference": self.booking_reference,
            "invoice_date": self.invoice_date.isoformat() if self.invoice_date else None,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "status": self.status,
            "summary": self.summary_dict(),
            "payment_status": self.payment_status_dict(),
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_items:
            data["line_items"] = [item.to_dict() for item in self.items]
            data["payments"] = [p.to_dict() for p in self.payments]
        return data
