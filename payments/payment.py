from datetime import datetime
from src.extensions import db


class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False)
    amount = db.Column(db.Numeric(14, 2), nullable=False)
    method = db.Column(
        db.String(50), nullable=False
    )  # cash / card / upi / room_charge / bank_transfer / cheque / online
    reference = db.Column(db.String(255), nullable=True)
    received_at = db.Column(db.DateTime, default=datetime.utcnow)
    notes = db.Column(db.Text, nullable=True)

    invoice = db.relationship("Invoice", back_populates="payments")

    def to_dict(self):
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "amount": str(self.amount),
            "method": self.method,
            "reference": self.reference,
            "received_at": self.received_at.isoformat() if self.received_at else None,
            "notes": self.notes,
        }
