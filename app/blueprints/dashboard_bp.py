"""
Dashboard blueprint.

Endpoints:
    GET /api/v1/dashboard/admin      phase, status counts, reviewer progress
    GET /api/v1/dashboard/reviewer   caller's assignment progress
"""

from flask import Blueprint, g, jsonify

from app.middleware.permission_required import require_role
from app.services import dashboard_service as svc
from app.utils.errors import register_error_handlers

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/v1/dashboard")
register_error_handlers(dashboard_bp)


@dashboard_bp.route("/admin", methods=["GET"])
@require_role("admin")
def admin_dashboard():
    return jsonify(svc.get_admin_dashboard()), 200


@dashboard_bp.route("/reviewer", methods=["GET"])
@require_role("reviewer")
def reviewer_dashboard():
    return jsonify(svc.get_reviewer_dashboard(g.jwt_user_id)), 200
