from datetime import datetime
from decimal import Decimal
from src.extensions import db

POS_CATEGORIES = ("food", "beverage", "alcohol", "spa", "laundry", "telephone", "internet", "other")
POS_UNITS = ("piece", "kg", "gram", "liter", "ml", "hour", "service")
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class POSItem(db.Model):
    __tablename__ = "pos_items"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500), nullable=True)
    category = db.Column(db.String(20), nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(10), default="INR")
    tax_rate = db.Column(db.Numeric(5, 2), default=5)  # 5% GST for food items
    unit = db.Column(db.String(20), default="piece")
    is_available = db.Column(db.Boolean, default=True)
    is_active = db.Column(db.Boolean, default=True)

    # Daily serving window (HH:MM, inclusive) and serving days; no days means every day
    available_from = db.Column(db.String(5), nullable=False, default="00:00")
    available_to = db.Column(db.String(5), nullable=False, default="23:59")
    available_days = db.Column(db.String(100), nullable=False, default="")

    # Sales statistics
    total_sold = db.Column(db.Integer, default=0)
    total_revenue = db.Column(db.Numeric(14, 2), default=0)
    last_sold_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    def price_with_tax(self):
        price = Decimal(self.price)
        return price + price * Decimal(self.tax_rate or 0) / Decimal("100")

    def day_list(self):
        return [d for d in (self.available_days or "").split(",") if d]

    def is_currently_available(self, now=None):
        if not self.is_available or not self.is_active:
            return False
        now = now or datetime.now()
        days = self.day_list()
        if days and WEEKDAYS[now.weekday()] not in days:
            return False
        current_time = now.strftime("%H:%M")
        return (self.available_from or "00:00") <= current_time <= (self.available_to or "23:59")

    def record_sale(self, quantity, revenue):
        self.total_sold = (self.total_sold or 0) + quantity
        self.total_revenue = Decimal(self.total_revenue or 0) + revenue
        self.last_sold_at = datetime.utcnow()

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "price": str(self.price),
            "currency": self.currency,
            "tax_rate": str(self.tax_rate),
            "price_with_tax": f"{self.price_with_tax():.2f}",
            "unit": self.unit,
            "is_available": self.is_available,
            "is_active": self.is_active,
            "availability": {
                "available_from": self.available_from,
                "available_to": self.available_to,
                "available_days": self.day_list(),
            },
            "statistics": {
                "total_sold": self.total_sold or 0,
                "total_revenue": str(self.total_revenue or 0),
                "last_sold_at": self.last_sold_at.isoformat() if self.last_sold_at else None,
            },
        }
