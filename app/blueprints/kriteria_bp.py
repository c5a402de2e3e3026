"""
Criteria blueprint: administrative and substantive criteria per grant type.

Endpoints:
    GET   /api/v1/kriteria/administrasi?jenis_pkm_id=<id>   list (any authenticated)
    POST  /api/v1/kriteria/administrasi                     create (admin)
    GET   /api/v1/kriteria/substansi?jenis_pkm_id=<id>      list (any authenticated)
    POST  /api/v1/kriteria/substansi                        create (admin, weight cap checked)
    PUT   /api/v1/kriteria/substansi/<id>                   update (admin, weight cap checked)
"""

from flask import Blueprint, g, jsonify, request

from app.middleware.permission_required import require_role
from app.services import kriteria_service as svc
from app.utils.errors import E, api_error, register_error_handlers

kriteria_bp = Blueprint("kriteria", __name__, url_prefix="/api/v1/kriteria")
register_error_handlers(kriteria_bp)


def _jenis_pkm_arg():
    return request.args.get("jenis_pkm_id", type=int)


@kriteria_bp.route("/administrasi", methods=["GET"])
@require_role()
def list_administrasi():
    jenis_pkm_id = _jenis_pkm_arg()
    if jenis_pkm_id is None:
        return api_error(E.VALIDATION_REQUIRED, "jenis_pkm_id wajib diisi")
    return jsonify(svc.list_kriteria_administrasi(jenis_pkm_id)), 200


@kriteria_bp.route("/administrasi", methods=["POST"])
@require_role("admin")
def create_administrasi():
    result = svc.create_kriteria_administrasi(request.get_json(silent=True) or {}, g.jwt_user_id)
    return jsonify(result), 201


@kriteria_bp.route("/substansi", methods=["GET"])
@require_role()
def list_substansi():
    jenis_pkm_id = _jenis_pkm_arg()
    if jenis_pkm_id is None:
        return api_error(E.VALIDATION_REQUIRED, "jenis_pkm_id wajib diisi")
    return jsonify(svc.list_kriteria_substansi(jenis_pkm_id)), 200


@kriteria_bp.route("/substansi", methods=["POST"])
@require_role("admin")
def create_substansi():
    result = svc.create_kriteria_substansi(request.get_json(silent=True) or {}, g.jwt_user_id)
    return jsonify(result), 201


@kriteria_bp.route("/substansi/<int:kriteria_id>", methods=["PUT"])
@require_role("admin")
def update_substansi(kriteria_id):
    result = svc.update_kriteria_substansi(kriteria_id, request.get_json(silent=True) or {}, g.jwt_user_id)
    return jsonify(result), 200
