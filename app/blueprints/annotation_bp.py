"""
PDF annotation blueprint.

Endpoints:
    POST   /api/v1/pdf-annotations                 create (owning reviewer, review open)
    GET    /api/v1/pdf-annotations/file/<file_id>  blind-review filtered list
    DELETE /api/v1/pdf-annotations/<id>            delete (owning reviewer, review open)
"""

from flask import Blueprint, g, jsonify, request

from app.middleware.permission_required import current_viewer, require_role
from app.services import annotation_service as svc
from app.utils.errors import register_error_handlers

annotation_bp = Blueprint("annotation", __name__, url_prefix="/api/v1/pdf-annotations")
register_error_handlers(annotation_bp)


@annotation_bp.route("", methods=["POST"])
@require_role("reviewer")
def create_annotation():
    result = svc.create_annotation(request.get_json(silent=True) or {}, g.jwt_user_id)
    return jsonify(result), 201


@annotation_bp.route("/file/<int:file_id>", methods=["GET"])
@require_role("admin", "reviewer")
def list_by_file(file_id):
    return jsonify(svc.find_by_file(file_id, current_viewer())), 200


@annotation_bp.route("/<int:annotation_id>", methods=["DELETE"])
@require_role("reviewer")
def delete_annotation(annotation_id):
    svc.delete_annotation(annotation_id, g.jwt_user_id)
    return jsonify({"message": "Anotasi dihapus"}), 200
