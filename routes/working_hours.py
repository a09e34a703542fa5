from flask import Blueprint, request, jsonify

from scheduling.working_hours import DaySchedule, describe_week, set_working_hours, clear_working_hours
from utils.parsing import parse_time, parse_optional_time

working_hours_bp = Blueprint("working_hours", __name__, url_prefix="/locations/<int:location_id>/working-hours")


@working_hours_bp.get("")
def get_week(location_id: int):
    return jsonify(describe_week(location_id)), 200


# ---------- ADMIN: configure one day of the week ----------
@working_hours_bp.put("/<int:day_of_week>")
def put_day(location_id: int, day_of_week: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify(error="Request body must be a JSON object"), 400

    is_open = data.get("is_open", True)
    if not isinstance(is_open, bool):
        return jsonify(error="is_open must be true or false"), 400

    schedule = None
    if is_open:
        try:
            schedule = DaySchedule(
                open_time=parse_time(data.get("open_time")),
                close_time=parse_time(data.get("close_time")),
                slot_duration_minutes=int(data.get("slot_duration_minutes")),
                break_start=parse_optional_time(data.get("break_start")),
                break_end=parse_optional_time(data.get("break_end")),
            )
        except (TypeError, ValueError):
            return jsonify(error="open_time, close_time (HH:MM) and slot_duration_minutes are required"), 400

    set_working_hours(location_id, day_of_week, is_open, schedule)
    return jsonify(message="Working hours saved"), 200


@working_hours_bp.delete("/<int:day_of_week>")
def delete_day(location_id: int, day_of_week: int):
    existed = clear_working_hours(location_id, day_of_week)
    return jsonify(message="Working hours reset to default", existed=existed), 200
