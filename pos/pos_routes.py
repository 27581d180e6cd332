import logging
from flask import Blueprint, request, jsonify
from pos.pos_service import POSService
from src.extensions import db
from src.exceptions import ResourceNotFoundException, InvoiceStateError

bp = Blueprint("pos", __name__)
logger = logging.getLogger(__name__)


@bp.route("/items", methods=["POST"])
def create_item():
    try:
        item = POSService.create_item(request.get_json() or {})
        return jsonify(item.to_dict()), 201
    except ValueError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400


@bp.route("/items", methods=["GET"])
def list_items():
    available = request.args.get("available", "").lower() in ("1", "true", "yes")
    items = POSService.list_items(category=request.args.get("category"), available_only=available)
    return jsonify([i.to_dict() for i in items]), 200


@bp.route("/items/<int:item_id>", methods=["PUT"])
def update_item(item_id):
    try:
        item = POSService.update_item(item_id, request.get_json() or {})
        return jsonify(item.to_dict()), 200
    except ResourceNotFoundException as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400


@bp.route("/cart/quote", methods=["POST"])
def quote_cart():
    payload = request.get_json() or {}
    try:
        return jsonify(POSService.price_cart(payload.get("cart"))), 200
    except ValueError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400


@bp.route("/orders", methods=["POST"])
def create_order():
    payload = request.get_json() or {}
    payment_method = payload.get("payment_method")
    if not payload.get("cart") or not payment_method:
        return jsonify({"error": "cart, payment_method required"}), 400
    try:
        order = POSService.checkout(
            cart=payload["cart"],
            payment_method=payment_method,
            guest_id=payload.get("guest_id"),
            invoice_id=payload.get("invoice_id"),
        )
        return jsonify(order.to_dict()), 201
    except ResourceNotFoundException as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except InvoiceStateError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 409
    except ValueError as e:
        db.session.rollback()
        logger.warning("Rejected POS order: %s", e)
        return jsonify({"error": str(e)}), 400


@bp.route("/orders", methods=["GET"])
def list_orders():
    orders = POSService.list_orders(
        guest_id=request.args.get("guest_id", type=int),
        invoice_id=request.args.get("invoice_id", type=int),
    )
    return jsonify([o.to_dict() for o in orders]), 200
