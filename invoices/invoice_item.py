from datetime import datetime
from src.extensions import db
from sqlalchemy.orm import relationship

LINE_CATEGORIES = ("room", "food", "beverage", "laundry", "telephone", "internet", "spa", "other")


class InvoiceItem(db.Model):
    __tablename__ = "invoice_items"

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False)
    category = db.Column(db.String(20), nullable=False, default="other")
    description = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    tax_rate = db.Column(db.Numeric(5, 2), default=0)  # percentage

    # Derived from quantity / unit_price / tax_rate, never set directly
    subtotal = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    tax_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    added_at = db.Column(db.DateTime, default=datetime.utcnow)
    notes = db.Column(db.Text, nullable=True)

    invoice = relationship("Invoice", back_populates="items")

    def apply_price(self, priced):
        self.subtotal = priced.subtotal
        self.tax_amount = priced.tax_amount
        self.total = priced.total

    def to_dict(self):
        return {
            "id": self.id,
            "category": self.category,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "tax_rate": str(self.tax_rate),
            "subtotal": str(self.subtotal),
            "tax_amount": str(self.tax_amount),
            "total": str(self.total),
            "added_at": self.added_at.isoformat() if self.added_at else None,
            "notes": self.notes,
        }
