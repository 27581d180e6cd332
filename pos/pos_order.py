from datetime import datetime
from src.extensions import db
from sqlalchemy.orm import relationship


class POSOrder(db.Model):
    __tablename__ = "pos_orders"

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(100), unique=True, nullable=True)
    guest_id = db.Column(db.Integer, db.ForeignKey("guests.id"), nullable=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=True)
    payment_method = db.Column(db.String(50), nullable=False)
    payment_status = db.Column(db.String(50), default="paid")  # paid / charged_to_room
    currency = db.Column(db.String(10), nullable=False, default="INR")
    subtotal = db.Column(db.Numeric(14, 2), default=0)
    tax_amount = db.Column(db.Numeric(14, 2), default=0)
    total_amount = db.Column(db.Numeric(14, 2), default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    items = relationship("POSOrderItem", back_populates="order", cascade="all, delete-orphan", order_by="POSOrderItem.id")

    def to_dict(self):
        return {
            "id": self.id,
            "order_number": self.order_number,
            "guest_id": self.guest_id,
            "invoice_id": self.invoice_id,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "currency": self.currency,
            "subtotal": str(self.subtotal),
            "tax_amount": str(self.tax_amount),
            "total_amount": str(self.total_amount),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "items": [item.to_dict() for item in self.items],
        }


class POSOrderItem(db.Model):
    __tablename__ = "pos_order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("pos_orders.id"), nullable=False)
    pos_item_id = db.Column(db.Integer, db.ForeignKey("pos_items.id"), nullable=False)

    # Snapshot of the item at sale time
    name = db.Column(db.String(100), nullable=False)
    category = db.Column(db.String(20), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    tax_rate = db.Column(db.Numeric(5, 2), default=0)

    subtotal = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    tax_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    order = relationship("POSOrder", back_populates="items")

    def to_dict(self):
        return {
            "id": self.id,
            "pos_item_id": self.pos_item_id,
            "name": self.name,
            "category": self.category,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "tax_rate": str(self.tax_rate),
            "subtotal": str(self.subtotal),
            "tax_amount": str(self.tax_amount),
            "total": str(self.total),
        }
