import logging
from datetime import datetime, timezone
from flask import Blueprint, request, jsonify
from payments.payment_service import PaymentService
from src.extensions import db
from src.exceptions import ResourceNotFoundException, InvoiceStateError

bp = Blueprint("payments", __name__)
logger = logging.getLogger(__name__)


def _parse_timestamp(value):
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        # stored as naive UTC
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@bp.route("/", methods=["POST"])
def create_payment():
    payload = request.get_json() or {}
    invoice_id = payload.get("invoice_id")
    amount = payload.get("amount")
    method = payload.get("method")

    if not invoice_id or amount is None or not method:
        return jsonify({"error": "invoice_id, amount, method required"}), 400

    try:
        result = PaymentService.record_payment(
            invoice_id=invoice_id,
            amount=amount,
            method=method,
            reference=payload.get("reference"),
            received_at=_parse_timestamp(payload.get("received_at")),
            notes=payload.get("notes"),
        )
        return jsonify(result), 201
    except ResourceNotFoundException as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except InvoiceStateError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 409
    except ValueError as e:
        db.session.rollback()
        logger.warning("Rejected payment for invoice %s: %s", invoice_id, e)
        return jsonify({"error": str(e)}), 400


@bp.route("/", methods=["GET"])
def list_payments():
    payments = PaymentService.list_payments(invoice_id=request.args.get("invoice_id", type=int))
    return jsonify([p.to_dict() for p in payments]), 200


@bp.route("/<int:payment_id>", methods=["GET"])
def get_payment(payment_id):
    try:
        payment = PaymentService.get_payment(payment_id)
    except ResourceNotFoundException as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(payment.to_dict()), 200


@bp.route("/invoice/<int:invoice_id>/status", methods=["GET"])
def get_payment_status(invoice_id):
    try:
        return jsonify(PaymentService.get_payment_status(invoice_id)), 200
    except ResourceNotFoundException as e:
        return jsonify({"error": str(e)}), 404
