"""
Review Submission Manager: administrative assessment.

One PenilaianAdministrasi per assignment holding a checklist of per-criterion
``ada_kesalahan`` flags. Criteria of the proposal's grant type that are left
out of a submission are stored as "no error".

Preconditions (checked in this order, before any write):
    1. assignment exists                        NotFoundError
    2. caller owns the assignment               ForbiddenError
    3. reviewEnabled is on                      ValidationError
    4. submit: no prior assessment              ValidationError
       update: prior assessment exists          NotFoundError
    5. checklist refers only to known criteria  ValidationError
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import selectinload

from app.core.exceptions import NotFoundError, ValidationError
from app.models import db
from app.models.master_data import KriteriaAdministrasi
from app.models.penilaian import DetailPenilaianAdministrasi, PenilaianAdministrasi
from app.services import system_config_service
from app.services.helpers.review_access import (
    Viewer,
    assert_can_read_assignment,
    load_assignment,
    load_owned_assignment,
)
from app.services.scoring import compute_total_kesalahan

logger = logging.getLogger(__name__)


# ── Private helpers ────────────────────────────────────────────────────────────


def _find_existing(assignment_id: int) -> PenilaianAdministrasi | None:
    return db.session.execute(
        select(PenilaianAdministrasi).where(
            PenilaianAdministrasi.reviewer_assignment_id == assignment_id
        )
    ).scalar_one_or_none()


def _kriteria_for(assignment) -> list[KriteriaAdministrasi]:
    jenis_pkm_id = assignment.proposal.team.jenis_pkm_id
    return db.session.execute(
        select(KriteriaAdministrasi)
        .where(KriteriaAdministrasi.jenis_pkm_id == jenis_pkm_id)
        .order_by(KriteriaAdministrasi.urutan, KriteriaAdministrasi.id)
    ).scalars().all()


def _build_checklist(items, kriteria_list) -> dict[int, bool]:
    """
    Validate request items and expand them to the full criteria set.

    Returns ``{kriteria_administrasi_id: ada_kesalahan}`` covering every
    criterion of the grant type.
    """
    if not isinstance(items, list):
        raise ValidationError("checklist harus berupa list", details={"checklist": items})

    known = {k.id for k in kriteria_list}
    checklist = {kid: False for kid in known}
    seen: set[int] = set()

    for item in items:
        if not isinstance(item, dict):
            raise ValidationError("Item checklist tidak valid", details={"item": item})
        try:
            kid = int(item.get("kriteria_administrasi_id"))
        except (TypeError, ValueError):
            raise ValidationError(
                "kriteria_administrasi_id wajib diisi",
                details={"item": item},
            )
        flag = item.get("ada_kesalahan")
        if not isinstance(flag, bool):
            raise ValidationError(
                "ada_kesalahan harus berupa boolean",
                details={"kriteria_administrasi_id": kid},
            )
        if kid not in known:
            raise ValidationError(
                f"Kriteria administrasi {kid} tidak ditemukan",
                details={"kriteria_administrasi_id": kid},
            )
        if kid in seen:
            raise ValidationError(
                f"Kriteria administrasi {kid} dinilai lebih dari sekali",
                details={"kriteria_administrasi_id": kid},
            )
        seen.add(kid)
        checklist[kid] = flag

    return checklist


def _detail_rows(penilaian_id: int, checklist: dict[int, bool]) -> list[DetailPenilaianAdministrasi]:
    return [
        DetailPenilaianAdministrasi(
            penilaian_administrasi_id=penilaian_id,
            kriteria_administrasi_id=kid,
            ada_kesalahan=flag,
        )
        for kid, flag in sorted(checklist.items())
    ]


def _prepare(assignment_id: int, user_id: str | None):
    assignment = load_owned_assignment(assignment_id, user_id)
    system_config_service.require_enabled(
        system_config_service.REVIEW, "Review sedang tidak aktif",
    )
    return assignment


# ── Public API ─────────────────────────────────────────────────────────────────


def submit(assignment_id: int, data: dict, user_id: str | None) -> dict:
    """
    First submission of the administrative checklist.

    Args:
        assignment_id: ReviewerAssignment PK.
        data:          {"checklist": [{kriteria_administrasi_id, ada_kesalahan}], "catatan"?}
        user_id:       calling reviewer's user id.

    Returns:
        Serialized assessment with ordered detail rows.
    """
    assignment = _prepare(assignment_id, user_id)
    data = data or {}
    if _find_existing(assignment_id) is not None:
        raise ValidationError(
            "Penilaian administrasi sudah disubmit. Gunakan PUT untuk update.",
            details={"assignment_id": assignment_id},
        )
    checklist = _build_checklist(data.get("checklist"), _kriteria_for(assignment))

    try:
        penilaian = PenilaianAdministrasi(
            reviewer_assignment_id=assignment_id,
            total_kesalahan=compute_total_kesalahan(checklist),
            catatan=data.get("catatan"),
            is_complete=True,
        )
        db.session.add(penilaian)
        db.session.flush()
        db.session.add_all(_detail_rows(penilaian.id, checklist))
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Administrative submit failed assignment_id=%s", assignment_id)
        raise

    logger.info(
        "Penilaian administrasi submitted assignment_id=%s total_kesalahan=%s",
        assignment_id, penilaian.total_kesalahan,
        extra={"assignment_id": assignment_id, "user_id": user_id},
    )
    return get_by_assignment(assignment_id)


def update(assignment_id: int, data: dict, user_id: str | None) -> dict:
    """Replace a submitted checklist: header updated, detail rows swapped atomically."""
    assignment = _prepare(assignment_id, user_id)
    data = data or {}
    existing = _find_existing(assignment_id)
    if existing is None:
        raise NotFoundError(resource="PenilaianAdministrasi", resource_id=assignment_id)
    checklist = _build_checklist(data.get("checklist"), _kriteria_for(assignment))

    try:
        existing.total_kesalahan = compute_total_kesalahan(checklist)
        existing.catatan = data.get("catatan")
        existing.is_complete = True
        db.session.execute(
            delete(DetailPenilaianAdministrasi).where(
                DetailPenilaianAdministrasi.penilaian_administrasi_id == existing.id
            )
        )
        db.session.add_all(_detail_rows(existing.id, checklist))
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Administrative update failed assignment_id=%s", assignment_id)
        raise

    logger.info(
        "Penilaian administrasi updated assignment_id=%s total_kesalahan=%s",
        assignment_id, existing.total_kesalahan,
        extra={"assignment_id": assignment_id, "user_id": user_id},
    )
    return get_by_assignment(assignment_id)


def get_by_assignment(assignment_id: int, viewer: Viewer | None = None) -> dict | None:
    """
    Header + ordered detail rows, or None when not yet submitted.

    ``viewer`` applies the blind-review read rule; internal callers pass None.
    """
    assignment = load_assignment(assignment_id)
    assert_can_read_assignment(assignment, viewer)

    penilaian = db.session.execute(
        select(PenilaianAdministrasi)
        .where(PenilaianAdministrasi.reviewer_assignment_id == assignment_id)
        .options(
            selectinload(PenilaianAdministrasi.details)
            .selectinload(DetailPenilaianAdministrasi.kriteria)
        )
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    return penilaian.to_dict() if penilaian else None
