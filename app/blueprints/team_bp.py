"""
Team blueprint.

Endpoints:
    POST /api/v1/teams                      create team + both proposals (student becomes ketua)
    POST /api/v1/teams/<id>/members         add a student (admin)
    GET  /api/v1/teams/<id>/proposals       original + revised proposals (admin)
"""

from flask import Blueprint, g, jsonify, request

from app.middleware.permission_required import require_role
from app.services import proposal_service
from app.services import team_service as svc
from app.utils.errors import E, api_error, register_error_handlers

team_bp = Blueprint("team", __name__, url_prefix="/api/v1/teams")
register_error_handlers(team_bp)


@team_bp.route("", methods=["POST"])
@require_role("mahasiswa")
def create_team():
    return jsonify(svc.create_team(request.get_json(silent=True) or {}, g.jwt_user_id)), 201


@team_bp.route("/<int:team_id>/members", methods=["POST"])
@require_role("admin")
def add_member(team_id):
    """Body: {"mahasiswa_id": int}"""
    data = request.get_json(silent=True) or {}
    if data.get("mahasiswa_id") is None:
        return api_error(E.VALIDATION_REQUIRED, "mahasiswa_id wajib diisi")
    return jsonify(svc.add_member(team_id, data["mahasiswa_id"])), 201


@team_bp.route("/<int:team_id>/proposals", methods=["GET"])
@require_role("admin")
def list_proposals(team_id):
    return jsonify(proposal_service.list_by_team(team_id)), 200
