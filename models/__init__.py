from src.extensions import db

# Import all models so migrations can detect them
from guests.guest import Guest
from invoices.invoice import Invoice
from invoices.invoice_item import InvoiceItem
from payments.payment import Payment
from pos.pos_item import POSItem
from pos.pos_order import POSOrder, POSOrderItem


__all__ = [
    "db",
    "Guest",
    "Invoice",
    "InvoiceItem",
    "Payment",
    "POSItem",
    "POSOrder",
    "POSOrderItem",
]
