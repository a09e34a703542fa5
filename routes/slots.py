from flask import Blueprint, request, jsonify

from scheduling.provisioning import provision
from scheduling.slot_admin import block_slot, unblock_slot, list_slots
from scheduling.working_hours import DaySchedule
from utils.parsing import parse_date, parse_time, parse_optional_time, parse_optional_str

slots_bp = Blueprint("slots", __name__, url_prefix="/locations/<int:location_id>/slots")


def _parse_range(data):
    return parse_date(data.get("start_date")), parse_date(data.get("end_date"))


# ---------- ADMIN: generate slots with an explicit schedule ----------
@slots_bp.post("/generate")
def generate_slots_for_period(location_id: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify(error="Request body must be a JSON object"), 400

    try:
        start_date, end_date = _parse_range(data)
        schedule = DaySchedule(
            open_time=parse_time(data.get("open_time")),
            close_time=parse_time(data.get("close_time")),
            slot_duration_minutes=int(data.get("slot_duration")),
            break_start=parse_optional_time(data.get("break_start")),
            break_end=parse_optional_time(data.get("break_end")),
        )
    except (TypeError, ValueError):
        return jsonify(
            error="start_date, end_date (YYYY-MM-DD), open_time, close_time (HH:MM) and slot_duration are required"
        ), 400

    result = provision(location_id, start_date, end_date, schedule_override=schedule)
    return jsonify(result.to_dict()), 200


# ---------- ADMIN: generate slots from configured working hours ----------
@slots_bp.post("/provision")
def provision_from_working_hours(location_id: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify(error="Request body must be a JSON object"), 400
    try:
        start_date, end_date = _parse_range(data)
    except (TypeError, ValueError):
        return jsonify(error="start_date and end_date are required (YYYY-MM-DD)"), 400

    result = provision(location_id, start_date, end_date)
    return jsonify(result.to_dict()), 200


# ---------- view a day's slots ----------
@slots_bp.get("")
def get_slots(location_id: int):
    try:
        day = parse_date(request.args.get("date"))
    except ValueError:
        return jsonify(error="Invalid date. Use YYYY-MM-DD"), 400

    status = (request.args.get("status") or "").strip().lower() or None
    return jsonify(list_slots(location_id, day, status=status)), 200


# ---------- ADMIN: block / unblock ----------
@slots_bp.post("/block")
def block(location_id: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify(error="Request body must be a JSON object"), 400
    try:
        day = parse_date(data.get("date"))
        slot_time = parse_time(data.get("time"))
        reason = parse_optional_str(data.get("reason"), "reason")
    except (TypeError, ValueError):
        return jsonify(error="date (YYYY-MM-DD) and time (HH:MM) are required, reason must be a string"), 400

    block_slot(location_id, day, slot_time, reason=reason)
    return jsonify(message="Slot blocked"), 200


@slots_bp.post("/unblock")
def unblock(location_id: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify(error="Request body must be a JSON object"), 400
    try:
        day = parse_date(data.get("date"))
        slot_time = parse_time(data.get("time"))
    except (TypeError, ValueError):
        return jsonify(error="date (YYYY-MM-DD) and time (HH:MM) are required"), 400

    unblock_slot(location_id, day, slot_time)
    return jsonify(message="Slot unblocked"), 200
