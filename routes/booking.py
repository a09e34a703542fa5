from decimal import Decimal, InvalidOperation

from flask import Blueprint, request, jsonify

from scheduling.booking import CustomerInfo, LineItem, book
from utils.parsing import parse_date, parse_time, parse_optional_str

booking_bp = Blueprint("booking", __name__, url_prefix="/locations/<int:location_id>/bookings")


def _parse_line_items(raw):
    if not isinstance(raw, list):
        raise ValueError("services must be a list")
    items = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValueError("each service must be an object")
        price = entry.get("price")
        if isinstance(price, bool) or not isinstance(price, (int, float, str)):
            raise ValueError("price must be a number")
        items.append(LineItem(
            service_id=int(entry.get("service_id")),
            price=Decimal(str(price)),
        ))
    return items


def _parse_customer(raw) -> CustomerInfo:
    if not isinstance(raw, dict):
        raise ValueError("customer must be an object")
    return CustomerInfo(
        name=parse_optional_str(raw.get("name"), "name") or "",
        phone=parse_optional_str(raw.get("phone"), "phone") or "",
        email=parse_optional_str(raw.get("email"), "email"),
        notes=parse_optional_str(raw.get("notes"), "notes"),
    )


# ---------- CUSTOMERS: book a slot (DOUBLE-BOOKING SAFE) ----------
@booking_bp.post("")
def create_booking(location_id: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify(error="Request body must be a JSON object"), 400

    try:
        day = parse_date(data.get("date"))
        slot_time = parse_time(data.get("time"))
    except (TypeError, ValueError):
        return jsonify(error="date (YYYY-MM-DD) and time (HH:MM) are required"), 400

    try:
        info = _parse_customer(data.get("customer") or {})
        notes = parse_optional_str(data.get("notes"), "notes")
    except ValueError as exc:
        return jsonify(error=str(exc)), 400

    try:
        line_items = _parse_line_items(data.get("services"))
    except (TypeError, ValueError, InvalidOperation):
        return jsonify(error="services must be a list of {service_id, price}"), 400

    result = book(location_id, day, slot_time, info, line_items, notes=notes)
    return jsonify(result.to_dict()), 201
