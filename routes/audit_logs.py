from flask import Blueprint, jsonify, request
from models.audit_log import AuditLog
from scheduling.working_hours import get_location_or_raise

audit_bp = Blueprint("audit", __name__, url_prefix="/locations/<int:location_id>")


# ---------- ADMIN: recent scheduling activity for one location ----------
@audit_bp.get("/audit-logs")
def list_audit_logs(location_id: int):
    get_location_or_raise(location_id)

    limit = request.args.get("limit", type=int) or 200
    limit = max(1, min(limit, 500))

    q = AuditLog.query.filter(AuditLog.location_id == location_id)
    action = (request.args.get("action") or "").strip().upper()
    if action:
        q = q.filter(AuditLog.action == action)

    rows = q.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit).all()
    return jsonify([r.to_dict() for r in rows]), 200
