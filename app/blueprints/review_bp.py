"""
Review blueprint: assessments and aggregated results.

Endpoints:
    POST/PUT/GET /api/v1/reviews/<assignment_id>/administrasi
    POST/PUT/GET /api/v1/reviews/<assignment_id>/substansi
    GET          /api/v1/reviews/proposal/<id>/errors     error union
    GET          /api/v1/reviews/proposal/<id>/summary    blind-review filtered breakdown

Writes are reviewer-only; ownership and the review toggle are checked in
the services. Reads pass the caller as a Viewer.
"""

import logging

from flask import Blueprint, g, jsonify, request

from app.middleware.permission_required import current_viewer, require_role
from app.services import penilaian_administrasi_service as adm_svc
from app.services import penilaian_substansi_service as sub_svc
from app.services import review_result_service as result_svc
from app.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

review_bp = Blueprint("review", __name__, url_prefix="/api/v1/reviews")
register_error_handlers(review_bp)


def _not_submitted(assignment_id):
    return {"reviewer_assignment_id": assignment_id, "submitted": False}


# ═══════════════════════════════════════════════════════════════
# Administrative assessment
# ═══════════════════════════════════════════════════════════════

@review_bp.route("/<int:assignment_id>/administrasi", methods=["POST"])
@require_role("reviewer")
def submit_administrasi(assignment_id):
    result = adm_svc.submit(assignment_id, request.get_json(silent=True) or {}, g.jwt_user_id)
    return jsonify(result), 201


@review_bp.route("/<int:assignment_id>/administrasi", methods=["PUT"])
@require_role("reviewer")
def update_administrasi(assignment_id):
    result = adm_svc.update(assignment_id, request.get_json(silent=True) or {}, g.jwt_user_id)
    return jsonify(result), 200


@review_bp.route("/<int:assignment_id>/administrasi", methods=["GET"])
@require_role("admin", "reviewer")
def get_administrasi(assignment_id):
    result = adm_svc.get_by_assignment(assignment_id, current_viewer())
    return jsonify(result or _not_submitted(assignment_id)), 200


# ═══════════════════════════════════════════════════════════════
# Substantive assessment
# ═══════════════════════════════════════════════════════════════

@review_bp.route("/<int:assignment_id>/substansi", methods=["POST"])
@require_role("reviewer")
def submit_substansi(assignment_id):
    result = sub_svc.submit(assignment_id, request.get_json(silent=True) or {}, g.jwt_user_id)
    return jsonify(result), 201


@review_bp.route("/<int:assignment_id>/substansi", methods=["PUT"])
@require_role("reviewer")
def update_substansi(assignment_id):
    result = sub_svc.update(assignment_id, request.get_json(silent=True) or {}, g.jwt_user_id)
    return jsonify(result), 200


@review_bp.route("/<int:assignment_id>/substansi", methods=["GET"])
@require_role("admin", "reviewer")
def get_substansi(assignment_id):
    result = sub_svc.get_by_assignment(assignment_id, current_viewer())
    return jsonify(result or _not_submitted(assignment_id)), 200


# ═══════════════════════════════════════════════════════════════
# Aggregated results
# ═══════════════════════════════════════════════════════════════

@review_bp.route("/proposal/<int:proposal_id>/errors", methods=["GET"])
@require_role()
def error_union(proposal_id):
    return jsonify(result_svc.get_error_union(proposal_id, current_viewer())), 200


@review_bp.route("/proposal/<int:proposal_id>/summary", methods=["GET"])
@require_role()
def review_summary(proposal_id):
    return jsonify(result_svc.get_review_summary(proposal_id, current_viewer())), 200
