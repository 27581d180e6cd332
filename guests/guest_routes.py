from flask import Blueprint, request, jsonify
from src.extensions import db
from guests.guest import Guest

bp = Blueprint("guests", __name__)


@bp.route("/", methods=["POST"])
def create_guest():
    data = request.get_json() or {}
    required = ["first_name", "last_name", "phone"]
    missing = [f for f in required if not data.get(f)]
    if missing:
        return jsonify({"error": f"Missing required fields: {', '.join(missing)}"}), 400

    phone = str(data["phone"]).strip()
    if Guest.query.filter_by(phone=phone).first():
        return jsonify({"error": "Phone number already exists"}), 400

    guest = Guest(
        first_name=data["first_name"].strip(),
        last_name=data["last_name"].strip(),
        email=data.get("email"),
        phone=phone,
    )
    db.session.add(guest)
    db.session.commit()
    return jsonify(guest.to_dict()), 201


@bp.route("/", methods=["GET"])
def list_guests():
    guests = Guest.query.order_by(Guest.last_name, Guest.first_name).all()
    return jsonify([g.to_dict() for g in guests]), 200


@bp.route("/<int:guest_id>", methods=["GET"])
def get_guest(guest_id):
    guest = db.session.get(Guest, guest_id)
    if not guest:
        return jsonify({"error": "Guest not found"}), 404
    data = guest.to_dict()
    data["invoice_count"] = len(guest.invoices)
    return jsonify(data), 200
