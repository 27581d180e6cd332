import logging
from datetime import datetime
from decimal import InvalidOperation
from src.extensions import db
from src.exceptions import ResourceNotFoundException
from billing.pricing import to_decimal, quantize_money, format_money
from billing.ledger import PaymentMethod, compute_payment_status
from invoices.invoice_service import InvoiceService
from payments.payment import Payment

logger = logging.getLogger(__name__)


def _ledger_dict(ledger):
    return {
        "total_paid": format_money(ledger.total_paid),
        "outstanding_balance": format_money(ledger.outstanding_balance),
        "balance_due": format_money(ledger.balance_due),
        "excess_amount": format_money(ledger.excess_amount),
        "last_payment_date": ledger.last_payment_date.isoformat() if ledger.last_payment_date else None,
    }


class PaymentService:
    @staticmethod
    def _clean_amount(amount):
        try:
            value = to_decimal(amount)
        except (InvalidOperation, ValueError):
            raise ValueError("amount must be a number")
        if not value.is_finite():
            raise ValueError("amount must be a number")
        # amounts are stored to the cent
        value = quantize_money(value)
        if value <= 0:
            raise ValueError("amount must be at least 0.01")
        return value

    @staticmethod
    def record_payment(invoice_id, amount, method, reference=None, received_at=None, notes=None):
        """
        Record a payment against an invoice and rederive its ledger and status.
        Overpayment is accepted and reported as excess_amount.
        """
        amount = PaymentService._clean_amount(amount)
        if method not in PaymentMethod.values():
            raise ValueError(f"Invalid payment method: {method}")

        invoice = InvoiceService.get_invoice(invoice_id)
        InvoiceService.ensure_open(invoice)

        payment = Payment(
            amount=amount,
            method=method,
            reference=reference,
            received_at=received_at or datetime.utcnow(),
            notes=notes,
        )
        invoice.payments.append(payment)
        ledger = InvoiceService.recalculate(invoice)
        db.session.commit()

        logger.info("Recorded %s payment of %s on invoice %s (outstanding %s)",
                    method, amount, invoice.invoice_number, ledger.outstanding_balance)
        if ledger.excess_amount > 0:
            logger.warning("Invoice %s overpaid by %s", invoice.invoice_number, ledger.excess_amount)

        return {
            "payment": payment.to_dict(),
            "invoice_id": invoice.id,
            "invoice_number": invoice.invoice_number,
            "ledger": _ledger_dict(ledger),
            "invoice_status": invoice.status,
        }

    @staticmethod
    def get_payment(payment_id):
        payment = db.session.get(Payment, payment_id)
        if not payment:
            raise ResourceNotFoundException(f"Payment {payment_id} not found")
        return payment

    @staticmethod
    def list_payments(invoice_id=None):
        query = Payment.query
        if invoice_id:
            query = query.filter_by(invoice_id=invoice_id)
        return query.order_by(Payment.received_at.desc(), Payment.id.desc()).all()

    @staticmethod
    def get_payment_status(invoice_id):
        """Recompute an invoice's ledger from its payments without writing anything."""
        invoice = InvoiceService.get_invoice(invoice_id)
        ledger = compute_payment_status(invoice.total_amount, invoice.payments)
        return {
            "invoice_id": invoice.id,
            "invoice_number": invoice.invoice_number,
            "total_amount": format_money(invoice.total_amount),
            "currency": invoice.currency,
            "payment_count": len(invoice.payments),
            "ledger": _ledger_dict(ledger),
            "invoice_status": invoice.status,
        }
