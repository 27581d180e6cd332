import io
import logging
from datetime import datetime
from flask import Blueprint, request, jsonify, send_file
import pandas as pd
from invoices.invoice_service import InvoiceService
from src.extensions import db
from billing.ledger import InvoiceStatus
from src.exceptions import ResourceNotFoundException, InvoiceStateError

bp = Blueprint("invoices", __name__)
logger = logging.getLogger(__name__)


def _parse_date(value):
    return datetime.strptime(value, "%Y-%m-%d") if value else None


def _error_response(e):
    db.session.rollback()
    if isinstance(e, ResourceNotFoundException):
        return jsonify({"error": str(e)}), 404
    if isinstance(e, InvoiceStateError):
        return jsonify({"error": str(e)}), 409
    logger.warning("Rejected invoice request: %s", e)
    return jsonify({"error": str(e)}), 400


@bp.route("/", methods=["POST"])
def create_invoice():
    payload = request.get_json() or {}
    guest_id = payload.get("guest_id")
    items = payload.get("items")  # list of {category, description, quantity, unit_price, tax_rate}
    if not guest_id:
        return jsonify({"error": "guest_id is required"}), 400
    if not items or not isinstance(items, list):
        return jsonify({"error": "items list is required"}), 400
    try:
        invoice = InvoiceService.create_invoice(
            guest_id=guest_id,
            items=items,
            due_date=_parse_date(payload.get("due_date")),
            currency=payload.get("currency"),
            discounts=payload.get("discounts", 0),
            booking_reference=payload.get("booking_reference"),
            notes=payload.get("notes"),
        )
        return jsonify(invoice.to_dict()), 201
    except (ValueError, ResourceNotFoundException) as e:
        return _error_response(e)


@bp.route("/", methods=["GET"])
def list_invoices():
    try:
        invoices = InvoiceService.list_invoices(
            status=request.args.get("status"),
            guest_id=request.args.get("guest_id", type=int),
            date_from=_parse_date(request.args.get("date_from")),
            date_to=_parse_date(request.args.get("date_to")),
        )
    except ValueError as e:
        return _error_response(e)
    return jsonify([i.to_dict(include_items=False) for i in invoices]), 200


@bp.route("/<int:invoice_id>", methods=["GET"])
def get_invoice(invoice_id):
    try:
        invoice = InvoiceService.get_invoice(invoice_id)
    except ResourceNotFoundException as e:
        return _error_response(e)
    return jsonify(invoice.to_dict()), 200


@bp.route("/<int:invoice_id>/items", methods=["POST"])
def add_line_item(invoice_id):
    payload = request.get_json() or {}
    try:
        item = InvoiceService.add_line_item(invoice_id, payload)
        invoice = InvoiceService.get_invoice(invoice_id)
        return jsonify({"item": item.to_dict(), "invoice": invoice.to_dict(include_items=False)}), 201
    except (ValueError, ResourceNotFoundException, InvoiceStateError) as e:
        return _error_response(e)


@bp.route("/<int:invoice_id>/items/<int:item_id>", methods=["PUT"])
def update_line_item(invoice_id, item_id):
    payload = request.get_json() or {}
    try:
        item = InvoiceService.update_line_item(invoice_id, item_id, payload)
        invoice = InvoiceService.get_invoice(invoice_id)
        return jsonify({"item": item.to_dict(), "invoice": invoice.to_dict(include_items=False)}), 200
    except (ValueError, ResourceNotFoundException, InvoiceStateError) as e:
        return _error_response(e)


@bp.route("/<int:invoice_id>/items/<int:item_id>", methods=["DELETE"])
def remove_line_item(invoice_id, item_id):
    try:
        invoice = InvoiceService.remove_line_item(invoice_id, item_id)
        return jsonify(invoice.to_dict()), 200
    except (ResourceNotFoundException, InvoiceStateError) as e:
        return _error_response(e)


@bp.route("/<int:invoice_id>/discounts", methods=["PUT"])
def set_discounts(invoice_id):
    payload = request.get_json() or {}
    if "discounts" not in payload:
        return jsonify({"error": "discounts is required"}), 400
    try:
        invoice = InvoiceService.set_discounts(invoice_id, payload["discounts"])
        return jsonify(invoice.to_dict(include_items=False)), 200
    except (ValueError, ResourceNotFoundException, InvoiceStateError) as e:
        return _error_response(e)


@bp.route("/<int:invoice_id>/cancel", methods=["POST"])
def cancel_invoice(invoice_id):
    try:
        invoice = InvoiceService.cancel_invoice(invoice_id)
        return jsonify(invoice.to_dict(include_items=False)), 200
    except (ResourceNotFoundException, InvoiceStateError) as e:
        return _error_response(e)


@bp.route("/refresh-overdue", methods=["POST"])
def refresh_overdue():
    changed = InvoiceService.refresh_overdue()
    return jsonify({"marked_overdue": changed}), 200


@bp.route("/export", methods=["GET"])
def export_invoices():
    format_type = request.args.get('format', 'csv').lower()
    if format_type not in ('csv', 'excel'):
        return jsonify({"error": "format must be csv or excel"}), 400

    rows = []
    for invoice in InvoiceService.list_invoices():
        rows.append({
            'invoice_id': invoice.id,
            'invoice_number': invoice.invoice_number,
            'guest_name': invoice.guest.full_name if invoice.guest else '',
            'invoice_date': invoice.invoice_date.strftime('%Y-%m-%d'),
            'due_date': invoice.due_date.strftime('%Y-%m-%d') if invoice.due_date else '',
            'currency': invoice.currency,
            'subtotal': float(invoice.subtotal),
            'total_tax': float(invoice.total_tax),
            'discounts': float(invoice.discounts),
            'total_amount': float(invoice.total_amount),
            'total_paid': float(invoice.total_paid),
            'outstanding_balance': float(invoice.outstanding_balance),
            'status': invoice.status,
        })

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    output = io.BytesIO()
    if format_type == 'excel':
        with pd.ExcelWriter(output, engine='openpyxl') as writer:
            pd.DataFrame(rows).to_excel(writer, sheet_name='All', index=False)
            for status in InvoiceStatus:
                status_rows = [r for r in rows if r['status'] == status.value]
                if status_rows:
                    pd.DataFrame(status_rows).to_excel(writer, sheet_name=status.value, index=False)
        output.seek(0)
        return send_file(
            output,
            mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
            as_attachment=True,
            download_name=f'invoices_{timestamp}.xlsx',
        )

    df = pd.DataFrame(rows)
    output.write(df.to_csv(index=False).encode('utf-8'))
    output.seek(0)
    return send_file(
        output,
        mimetype='text/csv',
        as_attachment=True,
        download_name=f'invoices_{timestamp}.csv',
    )
