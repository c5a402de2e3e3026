"""
Criteria definitions per grant type.

Weight invariant: Σ bobot of the substantive criteria of one grant type
never exceeds MAX_SUBSTANSI_BOBOT_TOTAL (100). Checked on create and
update, so the calculator's maximum total stays within 100 × skor_max.
"""

from __future__ import annotations

import logging

from flask import current_app
from sqlalchemy import func, select

from app.core.exceptions import NotFoundError, ValidationError
from app.models import db
from app.models.master_data import JenisPkm, KriteriaAdministrasi, KriteriaSubstansi

logger = logging.getLogger(__name__)


def _require_jenis_pkm(jenis_pkm_id) -> JenisPkm:
    jenis = db.session.get(JenisPkm, jenis_pkm_id) if jenis_pkm_id is not None else None
    if jenis is None:
        raise NotFoundError(resource="JenisPkm", resource_id=jenis_pkm_id)
    return jenis


def _int_field(data: dict, key: str, default=None) -> int:
    value = data.get(key, default)
    if isinstance(value, bool):
        raise ValidationError(f"{key} harus berupa bilangan bulat", details={key: value})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} harus berupa bilangan bulat", details={key: value})


def _bobot_sum(jenis_pkm_id: int, exclude_id: int | None = None) -> int:
    stmt = select(func.coalesce(func.sum(KriteriaSubstansi.bobot), 0)).where(
        KriteriaSubstansi.jenis_pkm_id == jenis_pkm_id
    )
    if exclude_id is not None:
        stmt = stmt.where(KriteriaSubstansi.id != exclude_id)
    return int(db.session.execute(stmt).scalar() or 0)


def _check_substansi_fields(skor_min: int, skor_max: int, bobot: int) -> None:
    if skor_min > skor_max:
        raise ValidationError(
            "skor_min tidak boleh lebih besar dari skor_max",
            details={"skor_min": skor_min, "skor_max": skor_max},
        )
    if bobot < 0:
        raise ValidationError("bobot tidak boleh negatif", details={"bobot": bobot})


def _check_bobot_total(jenis_pkm_id: int, bobot: int, exclude_id: int | None = None) -> None:
    limit = current_app.config.get("MAX_SUBSTANSI_BOBOT_TOTAL", 100)
    projected = _bobot_sum(jenis_pkm_id, exclude_id) + bobot
    if projected > limit:
        raise ValidationError(
            f"Total bobot kriteria substansi melebihi {limit}",
            details={"jenis_pkm_id": jenis_pkm_id, "total_bobot": projected},
        )


# ── Administrative ─────────────────────────────────────────────────────────────


def create_kriteria_administrasi(data: dict, user_id: str | None = None) -> dict:
    data = data or {}
    jenis = _require_jenis_pkm(data.get("jenis_pkm_id"))
    deskripsi = (data.get("deskripsi") or "").strip()
    if not deskripsi:
        raise ValidationError("deskripsi wajib diisi")

    kriteria = KriteriaAdministrasi(
        jenis_pkm_id=jenis.id,
        deskripsi=deskripsi,
        urutan=_int_field(data, "urutan", 0),
        created_by=user_id,
    )
    try:
        db.session.add(kriteria)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Create kriteria administrasi failed jenis_pkm_id=%s", jenis.id)
        raise
    return kriteria.to_dict()


def list_kriteria_administrasi(jenis_pkm_id: int) -> list[dict]:
    _require_jenis_pkm(jenis_pkm_id)
    rows = db.session.execute(
        select(KriteriaAdministrasi)
        .where(KriteriaAdministrasi.jenis_pkm_id == jenis_pkm_id)
        .order_by(KriteriaAdministrasi.urutan, KriteriaAdministrasi.id)
    ).scalars().all()
    return [k.to_dict() for k in rows]


# ── Substantive ────────────────────────────────────────────────────────────────


def create_kriteria_substansi(data: dict, user_id: str | None = None) -> dict:
    """
    Raises:
        NotFoundError:   grant type missing.
        ValidationError: bad numbers, or the weight sum would exceed the cap.
    """
    data = data or {}
    jenis = _require_jenis_pkm(data.get("jenis_pkm_id"))
    nama = (data.get("nama") or "").strip()
    if not nama:
        raise ValidationError("nama wajib diisi")

    skor_min = _int_field(data, "skor_min", 1)
    skor_max = _int_field(data, "skor_max", 7)
    bobot = _int_field(data, "bobot")
    _check_substansi_fields(skor_min, skor_max, bobot)
    _check_bobot_total(jenis.id, bobot)

    kriteria = KriteriaSubstansi(
        jenis_pkm_id=jenis.id,
        nama=nama,
        deskripsi=data.get("deskripsi") or "",
        skor_min=skor_min,
        skor_max=skor_max,
        bobot=bobot,
        urutan=_int_field(data, "urutan", 0),
        created_by=user_id,
    )
    try:
        db.session.add(kriteria)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Create kriteria substansi failed jenis_pkm_id=%s", jenis.id)
        raise

    logger.info("Kriteria substansi %s created bobot=%s", kriteria.id, bobot)
    return kriteria.to_dict()


def update_kriteria_substansi(kriteria_id: int, data: dict, user_id: str | None = None) -> dict:
    kriteria = db.session.get(KriteriaSubstansi, kriteria_id)
    if kriteria is None:
        raise NotFoundError(resource="KriteriaSubstansi", resource_id=kriteria_id)
    data = data or {}

    skor_min = _int_field(data, "skor_min", kriteria.skor_min)
    skor_max = _int_field(data, "skor_max", kriteria.skor_max)
    bobot = _int_field(data, "bobot", kriteria.bobot)
    _check_substansi_fields(skor_min, skor_max, bobot)
    _check_bobot_total(kriteria.jenis_pkm_id, bobot, exclude_id=kriteria.id)

    nama = (data.get("nama") or "").strip() if "nama" in data else kriteria.nama
    if not nama:
        raise ValidationError("nama wajib diisi")
    urutan = _int_field(data, "urutan", kriteria.urutan)

    try:
        kriteria.nama = nama
        if "deskripsi" in data:
            kriteria.deskripsi = data.get("deskripsi") or ""
        kriteria.urutan = urutan
        kriteria.skor_min = skor_min
        kriteria.skor_max = skor_max
        kriteria.bobot = bobot
        kriteria.updated_by = user_id
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Update kriteria substansi failed id=%s", kriteria_id)
        raise
    return kriteria.to_dict()


def list_kriteria_substansi(jenis_pkm_id: int) -> list[dict]:
    _require_jenis_pkm(jenis_pkm_id)
    rows = db.session.execute(
        select(KriteriaSubstansi)
        .where(KriteriaSubstansi.jenis_pkm_id == jenis_pkm_id)
        .order_by(KriteriaSubstansi.urutan, KriteriaSubstansi.id)
    ).scalars().all()
    return [k.to_dict() for k in rows]
