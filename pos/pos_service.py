import logging
from datetime import datetime
from src.extensions import db
from src.exceptions import ResourceNotFoundException
from billing.pricing import price_line_item, summarize_priced, clean_quantity, clean_money, format_money
from billing.ledger import PaymentMethod
from invoices.invoice import CURRENCIES
from invoices.invoice_item import InvoiceItem
from invoices.invoice_service import InvoiceService
from pos.pos_item import POSItem, POS_CATEGORIES, POS_UNITS, WEEKDAYS
from pos.pos_order import POSOrder, POSOrderItem

logger = logging.getLogger(__name__)

# POS categories that have no folio category of their own
FOLIO_CATEGORY = {"alcohol": "beverage"}


def _clean_time(value, field):
    try:
        return datetime.strptime(value, "%H:%M").strftime("%H:%M")
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be a time in HH:MM format")


def _clean_availability(availability, item=None):
    """
    availability: {available_from, available_to, available_days}, any subset.
    Returns the (from, to, days) to store, falling back to the item's current values.
    """
    if not isinstance(availability, dict):
        raise ValueError("availability must be an object")
    available_from = item.available_from if item else "00:00"
    available_to = item.available_to if item else "23:59"
    available_days = item.available_days if item else ""

    if "available_from" in availability:
        available_from = _clean_time(availability["available_from"], "available_from")
    if "available_to" in availability:
        available_to = _clean_time(availability["available_to"], "available_to")
    if available_from > available_to:
        raise ValueError("available_from must not be after available_to")

    if "available_days" in availability:
        days = availability["available_days"] or []
        if not isinstance(days, list):
            raise ValueError("available_days must be a list of weekdays")
        days = [str(d).lower() for d in days]
        unknown = [d for d in days if d not in WEEKDAYS]
        if unknown:
            raise ValueError(f"Invalid available_days: {', '.join(unknown)}")
        available_days = ",".join(d for d in WEEKDAYS if d in days)

    return available_from, available_to, available_days


class POSService:
    @staticmethod
    def create_item(data):
        name = (data.get("name") or "").strip()
        if not name:
            raise ValueError("Item name is required")
        if len(name) > 100:
            raise ValueError("Item name cannot exceed 100 characters")
        category = data.get("category")
        if category not in POS_CATEGORIES:
            raise ValueError(f"Invalid category: {category}")
        unit = data.get("unit", "piece")
        if unit not in POS_UNITS:
            raise ValueError(f"Invalid unit: {unit}")
        price = clean_money(data.get("price"), default=None)
        if price is None:
            raise ValueError("price must be a non-negative number")
        tax_rate = clean_money(data.get("tax_rate", 5), default=None)
        if tax_rate is None:
            raise ValueError("tax_rate must be a non-negative number")
        currency = data.get("currency", "INR")
        if currency not in CURRENCIES:
            raise ValueError(f"Unsupported currency: {currency}")
        available_from, available_to, available_days = _clean_availability(data.get("availability") or {})

        item = POSItem(
            name=name,
            description=data.get("description"),
            category=category,
            price=price,
            currency=currency,
            tax_rate=tax_rate,
            unit=unit,
            is_available=bool(data.get("is_available", True)),
            is_active=True,
            available_from=available_from,
            available_to=available_to,
            available_days=available_days,
        )
        db.session.add(item)
        db.session.commit()
        logger.info("Created POS item %s (%s)", item.name, item.category)
        return item

    @staticmethod
    def update_item(item_id, data):
        item = db.session.get(POSItem, item_id)
        if not item:
            raise ResourceNotFoundException(f"POS item {item_id} not found")

        name = (data.get("name") or "").strip()
        if "name" in data and not name:
            raise ValueError("Item name is required")
        if "category" in data and data["category"] not in POS_CATEGORIES:
            raise ValueError(f"Invalid category: {data['category']}")
        price = clean_money(data.get("price"), default=None)
        if "price" in data and price is None:
            raise ValueError("price must be a non-negative number")
        tax_rate = clean_money(data.get("tax_rate"), default=None)
        if "tax_rate" in data and tax_rate is None:
            raise ValueError("tax_rate must be a non-negative number")
        window = _clean_availability(data["availability"], item) if "availability" in data else None

        if "name" in data:
            item.name = name
        if "description" in data:
            item.description = data["description"]
        if "category" in data:
            item.category = data["category"]
        if "price" in data:
            item.price = price
        if "tax_rate" in data:
            item.tax_rate = tax_rate
        if window is not None:
            item.available_from, item.available_to, item.available_days = window
        for flag in ("is_available", "is_active"):
            if flag in data:
                setattr(item, flag, bool(data[flag]))
        db.session.commit()
        return item

    @staticmethod
    def list_items(category=None, available_only=False):
        query = POSItem.query.filter_by(is_active=True)
        if category:
            query = query.filter_by(category=category)
        if available_only:
            query = query.filter_by(is_available=True)
        return query.order_by(POSItem.category, POSItem.name).all()

    @staticmethod
    def _resolve_cart(cart, now=None):
        """Returns (currency, [(item, qty, priced)]). A cart is priced in a single currency."""
        if not cart or not isinstance(cart, list):
            raise ValueError("cart must be a non-empty list")
        lines = []
        for entry in cart:
            if not isinstance(entry, dict) or "item_id" not in entry:
                raise ValueError(f"Invalid cart entry: {entry}")
            item = db.session.get(POSItem, entry["item_id"])
            if not item:
                raise ValueError(f"POS item {entry['item_id']} not found")
            if not item.is_currently_available(now):
                raise ValueError(f"{item.name} is not available")
            qty = clean_quantity(entry.get("quantity", 1))
            priced = price_line_item(qty, item.price, item.tax_rate).rounded()
            lines.append((item, qty, priced))

        currencies = sorted({item.currency for item, _, _ in lines})
        if len(currencies) > 1:
            raise ValueError(f"Cart mixes currencies: {', '.join(currencies)}")
        return currencies[0], lines

    @staticmethod
    def price_cart(cart, now=None):
        """Price a cart without saving anything. POS carts carry no discount."""
        currency, lines = POSService._resolve_cart(cart, now=now)
        summary = summarize_priced([priced for _, _, priced in lines])
        return {
            "lines": [
                {
                    "item_id": item.id,
                    "name": item.name,
                    "quantity": qty,
                    "unit_price": format_money(item.price),
                    "tax_rate": str(item.tax_rate),
                    "subtotal": format_money(priced.subtotal),
                    "tax_amount": format_money(priced.tax_amount),
                    "total": format_money(priced.total),
                }
                for item, qty, priced in lines
            ],
            "currency": currency,
            "item_count": sum(qty for _, qty, _ in lines),
            "subtotal": format_money(summary.subtotal),
            "tax_amount": format_money(summary.total_tax),
            "total_amount": format_money(summary.total_amount),
        }

    @staticmethod
    def checkout(cart, payment_method, guest_id=None, invoice_id=None, now=None):
        """
        Turn a cart into an order. room_charge orders are posted to the guest's
        open invoice as folio lines instead of being paid at the counter.
        """
        if payment_method not in PaymentMethod.values():
            raise ValueError(f"Invalid payment method: {payment_method}")
        currency, lines = POSService._resolve_cart(cart, now=now)
        summary = summarize_priced([priced for _, _, priced in lines])

        invoice = None
        if payment_method == PaymentMethod.ROOM_CHARGE.value:
            if not invoice_id:
                raise ValueError("invoice_id is required for room_charge")
            invoice = InvoiceService.get_invoice(invoice_id)
            InvoiceService.ensure_open(invoice)
            if currency != invoice.currency:
                raise ValueError(f"Cart is priced in {currency}, invoice is in {invoice.currency}")
            if guest_id and guest_id != invoice.guest_id:
                raise ValueError(f"Invoice {invoice.invoice_number} belongs to another guest")
            guest_id = invoice.guest_id

        order = POSOrder(
            guest_id=guest_id,
            invoice_id=invoice.id if invoice else None,
            payment_method=payment_method,
            payment_status="charged_to_room" if invoice else "paid",
            currency=currency,
            subtotal=summary.subtotal,
            tax_amount=summary.total_tax,
            total_amount=summary.total_amount,
        )
        for item, qty, priced in lines:
            order.items.append(POSOrderItem(
                pos_item_id=item.id,
                name=item.name,
                category=item.category,
                quantity=qty,
                unit_price=item.price,
                tax_rate=item.tax_rate,
                subtotal=priced.subtotal,
                tax_amount=priced.tax_amount,
                total=priced.total,
            ))
            item.record_sale(qty, priced.total)
            if invoice is not None:
                folio_line = InvoiceItem(
                    category=FOLIO_CATEGORY.get(item.category, item.category),
                    description=item.name,
                    quantity=qty,
                    unit_price=item.price,
                    tax_rate=item.tax_rate,
                )
                folio_line.apply_price(priced)
                invoice.items.append(folio_line)

        if invoice is not None:
            InvoiceService.recalculate(invoice)

        db.session.add(order)
        db.session.flush()
        order.order_number = f"POS-{datetime.utcnow().strftime('%Y%m%d')}-{order.id}"
        db.session.commit()

        logger.info("POS order %s total=%s %s via %s",
                    order.order_number, order.total_amount, order.currency, payment_method)
        return order

    @staticmethod
    def list_orders(guest_id=None, invoice_id=None):
        query = POSOrder.query
        if guest_id:
            query = query.filter_by(guest_id=guest_id)
        if invoice_id:
            query = query.filter_by(invoice_id=invoice_id)
        return query.order_by(POSOrder.created_at.desc(), POSOrder.id.desc()).all()
