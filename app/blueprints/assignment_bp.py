"""
Reviewer assignment blueprint.

Endpoints:
    POST   /api/v1/reviewer-assignments                   assign two reviewers (admin)
    POST   /api/v1/reviewer-assignments/bulk              per-item bulk assign (admin)
    GET    /api/v1/reviewer-assignments/proposal/<id>     assignments of a proposal (admin)
    GET    /api/v1/reviewer-assignments/mine              caller's assignments (reviewer)
    DELETE /api/v1/reviewer-assignments/<id>              unassign (admin)
"""

import logging

from flask import Blueprint, g, jsonify, request

from app.middleware.permission_required import require_role
from app.services import assignment_service as svc
from app.utils.errors import E, api_error, register_error_handlers

logger = logging.getLogger(__name__)

assignment_bp = Blueprint("assignment", __name__, url_prefix="/api/v1/reviewer-assignments")
register_error_handlers(assignment_bp)


@assignment_bp.route("", methods=["POST"])
@require_role("admin")
def assign():
    """Body: {"proposal_id": int, "reviewer_ids": [int, int]}"""
    data = request.get_json(silent=True) or {}
    if data.get("proposal_id") is None:
        return api_error(E.VALIDATION_REQUIRED, "proposal_id wajib diisi")
    assignments = svc.assign_reviewers(data["proposal_id"], data.get("reviewer_ids"), g.jwt_user_id)
    return jsonify(assignments), 201


@assignment_bp.route("/bulk", methods=["POST"])
@require_role("admin")
def bulk_assign():
    """Body: {"assignments": [{"proposal_id", "reviewer_ids"}, ...]}"""
    data = request.get_json(silent=True) or {}
    items = data.get("assignments")
    if not isinstance(items, list) or not items:
        return api_error(E.VALIDATION_REQUIRED, "assignments wajib berupa list dan tidak kosong")
    results = svc.bulk_assign(items, g.jwt_user_id)
    succeeded = sum(1 for r in results if r["status"] == "success")
    return jsonify({
        "results": results,
        "succeeded": succeeded,
        "failed": len(results) - succeeded,
    }), 200


@assignment_bp.route("/proposal/<int:proposal_id>", methods=["GET"])
@require_role("admin")
def list_by_proposal(proposal_id):
    return jsonify(svc.list_by_proposal(proposal_id)), 200


@assignment_bp.route("/mine", methods=["GET"])
@require_role("reviewer")
def my_assignments():
    return jsonify(svc.list_my_assignments(g.jwt_user_id)), 200


@assignment_bp.route("/<int:assignment_id>", methods=["DELETE"])
@require_role("admin")
def unassign(assignment_id):
    svc.unassign(assignment_id, g.jwt_user_id)
    return jsonify({"message": "Assignment dihapus"}), 200
