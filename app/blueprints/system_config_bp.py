"""
System config blueprint: phase toggles.

Endpoints:
    GET /api/v1/system-config/toggles          all three toggle states + phase
    GET /api/v1/system-config/toggles/<key>    one toggle
    PUT /api/v1/system-config/toggles/<key>    flip a toggle (admin), cascades statuses
"""

import logging

from flask import Blueprint, g, jsonify, request

from app.middleware.permission_required import require_role
from app.services import system_config_service as svc
from app.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

system_config_bp = Blueprint("system_config", __name__, url_prefix="/api/v1/system-config")
register_error_handlers(system_config_bp)


@system_config_bp.route("/toggles", methods=["GET"])
@require_role()
def get_toggles():
    toggles = svc.get_all_toggles()
    return jsonify({"toggles": toggles, "phase": svc.current_phase(toggles)}), 200


@system_config_bp.route("/toggles/<key>", methods=["GET"])
@require_role()
def get_toggle(key):
    return jsonify(svc.get_toggle(key)), 200


@system_config_bp.route("/toggles/<key>", methods=["PUT"])
@require_role("admin")
def set_toggle(key):
    """Body: {"enabled": bool}. Returns all three states after the cascade."""
    data = request.get_json(silent=True) or {}
    toggles = svc.set_toggle(key, data.get("enabled"), g.jwt_user_id)
    return jsonify({"toggles": toggles, "phase": svc.current_phase(toggles)}), 200
