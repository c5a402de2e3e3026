"""
Proposal blueprint: student lifecycle actions and the admin override.

Endpoints:
    GET   /api/v1/proposals/<id>           detail (team member or admin)
    POST  /api/v1/proposals/<id>/submit    draft → submitted (team member)
    POST  /api/v1/proposals/<id>/files     record an uploaded PDF (team member)
    PATCH /api/v1/proposals/<id>/status    force a status (admin)

File binaries live in external storage; the upload endpoint receives
metadata only: {file_path, file_name, file_size, mime_type}.
"""

from flask import Blueprint, g, jsonify, request

from app.middleware.permission_required import current_viewer, require_role
from app.services import proposal_service as svc
from app.utils.errors import E, api_error, register_error_handlers

proposal_bp = Blueprint("proposal", __name__, url_prefix="/api/v1/proposals")
register_error_handlers(proposal_bp)


@proposal_bp.route("/<int:proposal_id>", methods=["GET"])
@require_role("admin", "mahasiswa")
def get_proposal(proposal_id):
    viewer = current_viewer()
    user_id = None if viewer.is_admin else viewer.user_id
    return jsonify(svc.get_proposal(proposal_id, user_id)), 200


@proposal_bp.route("/<int:proposal_id>/submit", methods=["POST"])
@require_role("mahasiswa")
def submit_proposal(proposal_id):
    return jsonify(svc.submit_proposal(proposal_id, g.jwt_user_id)), 200


@proposal_bp.route("/<int:proposal_id>/files", methods=["POST"])
@require_role("mahasiswa")
def upload_file(proposal_id):
    result = svc.upload_file(proposal_id, request.get_json(silent=True) or {}, g.jwt_user_id)
    return jsonify(result), 201


@proposal_bp.route("/<int:proposal_id>/status", methods=["PATCH"])
@require_role("admin")
def override_status(proposal_id):
    """Body: {"status": str}"""
    data = request.get_json(silent=True) or {}
    if not data.get("status"):
        return api_error(E.VALIDATION_REQUIRED, "status wajib diisi")
    return jsonify(svc.override_status(proposal_id, data["status"], g.jwt_user_id)), 200
