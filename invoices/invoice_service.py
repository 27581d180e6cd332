import logging
from datetime import datetime, timedelta
from flask import current_app
from src.extensions import db
from src.exceptions import ResourceNotFoundException, InvoiceStateError
from billing.pricing import (
    LinePrice, price_line_item, summarize_priced, clean_quantity, clean_money, to_decimal,
)
from billing.ledger import InvoiceStatus, compute_payment_status, classify_status
from guests.guest import Guest
from invoices.invoice import Invoice, CURRENCIES
from invoices.invoice_item import InvoiceItem, LINE_CATEGORIES

logger = logging.getLogger(__name__)

PRICING_FIELDS = ("quantity", "unit_price", "tax_rate")


class InvoiceService:
    @staticmethod
    def _generate_invoice_number(invoice_id):
        # Format: INV-YYYY-MM-ID
        now = datetime.utcnow()
        return f"INV-{now.strftime('%Y')}-{now.strftime('%m')}-{invoice_id}"

    @staticmethod
    def get_invoice(invoice_id):
        invoice = db.session.get(Invoice, invoice_id)
        if not invoice:
            raise ResourceNotFoundException(f"Invoice {invoice_id} not found")
        return invoice

    @staticmethod
    def ensure_open(invoice):
        if invoice.status == InvoiceStatus.CANCELLED.value:
            raise InvoiceStateError(f"Invoice {invoice.invoice_number} is cancelled")

    @staticmethod
    def _price_item(item):
        priced = price_line_item(item.quantity, item.unit_price, item.tax_rate).rounded()
        item.apply_price(priced)
        return priced

    @staticmethod
    def build_line_item(data):
        """
        data: {category, description, quantity, unit_price, tax_rate, notes(optional)}
        Quantity, price and tax rate are clamped the way the billing form does it.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Invalid item format: {data}")
        description = (data.get("description") or "").strip()
        if not description:
            raise ValueError("Line item description is required")
        category = data.get("category", "other")
        if category not in LINE_CATEGORIES:
            raise ValueError(f"Invalid line item category: {category}")

        item = InvoiceItem(
            category=category,
            description=description,
            quantity=clean_quantity(data.get("quantity", 1)),
            unit_price=clean_money(data.get("unit_price", 0)),
            tax_rate=clean_money(data.get("tax_rate", 0)),
            notes=data.get("notes"),
        )
        InvoiceService._price_item(item)
        return item

    @staticmethod
    def recalculate(invoice, now=None):
        """Rederive summary, payment status and status from the rows."""
        priced = [LinePrice(to_decimal(i.subtotal), to_decimal(i.tax_amount), to_decimal(i.total)) for i in invoice.items]
        summary = summarize_priced(priced, discounts=invoice.discounts or 0)
        invoice.subtotal = summary.subtotal
        invoice.total_tax = summary.total_tax
        invoice.discounts = summary.discounts
        invoice.total_amount = summary.total_amount

        ledger = compute_payment_status(summary.total_amount, invoice.payments)
        invoice.total_paid = ledger.total_paid
        invoice.outstanding_balance = ledger.outstanding_balance
        invoice.last_payment_date = ledger.last_payment_date

        if invoice.status == InvoiceStatus.CANCELLED.value:
            return ledger

        new_status = classify_status(
            ledger.outstanding_balance, summary.total_amount, due_date=invoice.due_date, now=now
        ).value
        if new_status != invoice.status:
            logger.info("Invoice %s status %s -> %s", invoice.invoice_number, invoice.status, new_status)
            invoice.status = new_status
        return ledger

    @staticmethod
    def _ensure_non_negative_total(invoice):
        if invoice.total_amount < 0:
            raise ValueError("discounts cannot exceed the invoice subtotal plus tax")

    @staticmethod
    def create_invoice(guest_id, items, due_date=None, currency=None, discounts=0, booking_reference=None, notes=None):
        """
        items: list of dicts [{category, description, quantity, unit_price, tax_rate}]
        This function:
         - creates invoice header
         - creates priced invoice items
         - calculates summary and payment status
        """
        guest = db.session.get(Guest, guest_id) if guest_id is not None else None
        if not guest:
            raise ResourceNotFoundException(f"Guest {guest_id} not found")
        if not items or not isinstance(items, list):
            raise ValueError("items list is required")

        currency = currency or current_app.config.get("DEFAULT_CURRENCY", "INR")
        if currency not in CURRENCIES:
            raise ValueError(f"Unsupported currency: {currency}")

        discounts = clean_money(discounts, default=None)
        if discounts is None:
            raise ValueError("discounts must be a non-negative number")

        invoice_date = datetime.utcnow()
        if due_date is None:
            due_date = invoice_date + timedelta(days=current_app.config.get("INVOICE_DUE_DAYS", 7))

        invoice = Invoice(
            guest_id=guest.id,
            booking_reference=booking_reference,
            invoice_date=invoice_date,
            due_date=due_date,
            currency=currency,
            discounts=discounts,
            status=InvoiceStatus.PENDING.value,
            notes=notes,
        )
        for data in items:
            invoice.items.append(InvoiceService.build_line_item(data))

        InvoiceService.recalculate(invoice)
        InvoiceService._ensure_non_negative_total(invoice)

        db.session.add(invoice)
        db.session.flush()
        invoice.invoice_number = InvoiceService._generate_invoice_number(invoice.id)
        db.session.commit()

        logger.info("Created invoice %s for guest %s total=%s %s",
                    invoice.invoice_number, guest.id, invoice.total_amount, invoice.currency)
        return invoice

    @staticmethod
    def add_line_item(invoice_id, data):
        invoice = InvoiceService.get_invoice(invoice_id)
        InvoiceService.ensure_open(invoice)
        item = InvoiceService.build_line_item(data)
        invoice.items.append(item)
        InvoiceService.recalculate(invoice)
        db.session.commit()
        logger.info("Added %s line to invoice %s", item.category, invoice.invoice_number)
        return item

    @staticmethod
    def _get_item(invoice, item_id):
        for item in invoice.items:
            if item.id == item_id:
                return item
        raise ResourceNotFoundException(f"Line item {item_id} not found on invoice {invoice.id}")

    @staticmethod
    def update_line_item(invoice_id, item_id, changes):
        invoice = InvoiceService.get_invoice(invoice_id)
        InvoiceService.ensure_open(invoice)
        item = InvoiceService._get_item(invoice, item_id)

        description = (changes.get("description") or "").strip()
        if "description" in changes and not description:
            raise ValueError("Line item description is required")
        if "category" in changes and changes["category"] not in LINE_CATEGORIES:
            raise ValueError(f"Invalid line item category: {changes['category']}")

        if "description" in changes:
            item.description = description
        if "category" in changes:
            item.category = changes["category"]
        if "notes" in changes:
            item.notes = changes["notes"]
        if "quantity" in changes:
            item.quantity = clean_quantity(changes["quantity"])
        if "unit_price" in changes:
            item.unit_price = clean_money(changes["unit_price"])
        if "tax_rate" in changes:
            item.tax_rate = clean_money(changes["tax_rate"])

        if any(field in changes for field in PRICING_FIELDS):
            InvoiceService._price_item(item)
            InvoiceService.recalculate(invoice)
            InvoiceService._ensure_non_negative_total(invoice)
        db.session.commit()
        return item

    @staticmethod
    def remove_line_item(invoice_id, item_id):
        invoice = InvoiceService.get_invoice(invoice_id)
        InvoiceService.ensure_open(invoice)
        item = InvoiceService._get_item(invoice, item_id)
        invoice.items.remove(item)
        InvoiceService.recalculate(invoice)
        InvoiceService._ensure_non_negative_total(invoice)
        db.session.commit()
        logger.info("Removed line %s from invoice %s", item_id, invoice.invoice_number)
        return invoice

    @staticmethod
    def set_discounts(invoice_id, discounts):
        invoice = InvoiceService.get_invoice(invoice_id)
        InvoiceService.ensure_open(invoice)
        discounts = clean_money(discounts, default=None)
        if discounts is None:
            raise ValueError("discounts must be a non-negative number")
        gross = to_decimal(invoice.subtotal) + to_decimal(invoice.total_tax)
        if discounts > gross:
            raise ValueError("discounts cannot exceed the invoice subtotal plus tax")
        invoice.discounts = discounts
        InvoiceService.recalculate(invoice)
        db.session.commit()
        return invoice

    @staticmethod
    def cancel_invoice(invoice_id):
        invoice = InvoiceService.get_invoice(invoice_id)
        InvoiceService.ensure_open(invoice)
        if invoice.payments:
            raise InvoiceStateError("Cannot cancel an invoice with recorded payments")
        invoice.status = InvoiceStatus.CANCELLED.value
        db.session.commit()
        logger.info("Cancelled invoice %s", invoice.invoice_number)
        return invoice

    @staticmethod
    def refresh_overdue(now=None):
        """Mark unpaid invoices past their due date as overdue. Returns how many changed."""
        now = now or datetime.utcnow()
        candidates = Invoice.query.filter(
            Invoice.status.in_([InvoiceStatus.PENDING.value, InvoiceStatus.PARTIALLY_PAID.value]),
            Invoice.due_date.isnot(None),
            Invoice.due_date < now,
        ).all()
        changed = 0
        for invoice in candidates:
            InvoiceService.recalculate(invoice, now=now)
            if invoice.status == InvoiceStatus.OVERDUE.value:
                changed += 1
        db.session.commit()
        if changed:
            logger.info("Marked %d invoice(s) overdue", changed)
        return changed

    @staticmethod
    def list_invoices(status=None, guest_id=None, date_from=None, date_to=None):
        query = Invoice.query
        if status:
            query = query.filter(Invoice.status == status)
        if guest_id:
            query = query.filter(Invoice.guest_id == guest_id)
        if date_from:
            query = query.filter(Invoice.invoice_date >= date_from)
        if date_to:
            query = query.filter(Invoice.invoice_date <= date_to)
        return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()
