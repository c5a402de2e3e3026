"""
Review Submission Manager: substantive assessment.

One PenilaianSubstansi per assignment. Every substantive criterion of the
proposal's grant type must be scored exactly once; ``nilai = skor × bobot``
is stored per detail row and ``total_skor`` is their sum.

Score guards live in app.services.scoring (range first, then the skipped
value 4).
"""

from __future__ import annotations

import logging
from decimal import Decimal

from flask import current_app
from sqlalchemy import delete, select
from sqlalchemy.orm import selectinload

from app.core.exceptions import NotFoundError, ValidationError
from app.models import db
from app.models.master_data import KriteriaSubstansi
from app.models.penilaian import DetailPenilaianSubstansi, PenilaianSubstansi
from app.services import system_config_service
from app.services.helpers.review_access import (
    Viewer,
    assert_can_read_assignment,
    load_assignment,
    load_owned_assignment,
)
from app.services.scoring import (
    SKIPPED_SCORE,
    compute_substantive_total,
    missing_kriteria_ids,
    to_decimal,
)

logger = logging.getLogger(__name__)


# ── Private helpers ────────────────────────────────────────────────────────────


def _find_existing(assignment_id: int) -> PenilaianSubstansi | None:
    return db.session.execute(
        select(PenilaianSubstansi).where(
            PenilaianSubstansi.reviewer_assignment_id == assignment_id
        )
    ).scalar_one_or_none()


def _kriteria_for(assignment) -> list[KriteriaSubstansi]:
    jenis_pkm_id = assignment.proposal.team.jenis_pkm_id
    return db.session.execute(
        select(KriteriaSubstansi)
        .where(KriteriaSubstansi.jenis_pkm_id == jenis_pkm_id)
        .order_by(KriteriaSubstansi.urutan, KriteriaSubstansi.id)
    ).scalars().all()


def _skipped_score() -> Decimal:
    return Decimal(str(current_app.config.get("SKIPPED_SCORE", SKIPPED_SCORE)))


def _parse_scores(items) -> list[tuple[int, object]]:
    if not isinstance(items, list):
        raise ValidationError("scores harus berupa list", details={"scores": items})
    pairs = []
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError("Item skor tidak valid", details={"item": item})
        try:
            kid = int(item.get("kriteria_substansi_id"))
        except (TypeError, ValueError):
            raise ValidationError("kriteria_substansi_id wajib diisi", details={"item": item})
        pairs.append((kid, item.get("skor")))
    return pairs


def _score(data: dict, kriteria_list) -> tuple[Decimal, list[tuple[int, Decimal, Decimal]]]:
    """
    Validate a payload and compute totals.

    Returns ``(total_skor, [(kriteria_id, skor, nilai), ...])``.
    An empty ``scores`` list passes only when the grant type has no criteria.
    """
    pairs = _parse_scores(data.get("scores"))
    total = compute_substantive_total(pairs, kriteria_list, skipped_score=_skipped_score())

    missing = missing_kriteria_ids((kid for kid, _ in pairs), kriteria_list)
    if missing:
        raise ValidationError(
            "Semua kriteria substansi wajib dinilai",
            details={"missing_kriteria_ids": missing},
        )

    by_id = {k.id: k for k in kriteria_list}
    rows = []
    for kid, raw in pairs:
        skor = to_decimal(raw)
        rows.append((kid, skor, skor * Decimal(by_id[kid].bobot)))
    return total, rows


def _detail_rows(penilaian_id: int, rows) -> list[DetailPenilaianSubstansi]:
    return [
        DetailPenilaianSubstansi(
            penilaian_substansi_id=penilaian_id,
            kriteria_substansi_id=kid,
            skor=skor,
            nilai=nilai,
        )
        for kid, skor, nilai in sorted(rows, key=lambda r: r[0])
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
    First submission of the substantive scores.

    Args:
        assignment_id: ReviewerAssignment PK.
        data:          {"scores": [{kriteria_substansi_id, skor}], "catatan"?}
        user_id:       calling reviewer's user id.
    """
    assignment = _prepare(assignment_id, user_id)
    data = data or {}
    if _find_existing(assignment_id) is not None:
        raise ValidationError(
            "Penilaian substansi sudah disubmit. Gunakan PUT untuk update.",
            details={"assignment_id": assignment_id},
        )
    total, rows = _score(data, _kriteria_for(assignment))

    try:
        penilaian = PenilaianSubstansi(
            reviewer_assignment_id=assignment_id,
            total_skor=total,
            catatan=data.get("catatan"),
            is_complete=True,
        )
        db.session.add(penilaian)
        db.session.flush()
        db.session.add_all(_detail_rows(penilaian.id, rows))
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Substantive submit failed assignment_id=%s", assignment_id)
        raise

    logger.info(
        "Penilaian substansi submitted assignment_id=%s total_skor=%s",
        assignment_id, total,
        extra={"assignment_id": assignment_id, "user_id": user_id},
    )
    return get_by_assignment(assignment_id)


def update(assignment_id: int, data: dict, user_id: str | None) -> dict:
    """Recompute and replace a submitted score sheet."""
    assignment = _prepare(assignment_id, user_id)
    data = data or {}
    existing = _find_existing(assignment_id)
    if existing is None:
        raise NotFoundError(resource="PenilaianSubstansi", resource_id=assignment_id)
    total, rows = _score(data, _kriteria_for(assignment))

    try:
        existing.total_skor = total
        existing.catatan = data.get("catatan")
        existing.is_complete = True
        db.session.execute(
            delete(DetailPenilaianSubstansi).where(
                DetailPenilaianSubstansi.penilaian_substansi_id == existing.id
            )
        )
        db.session.add_all(_detail_rows(existing.id, rows))
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Substantive update failed assignment_id=%s", assignment_id)
        raise

    logger.info(
        "Penilaian substansi updated assignment_id=%s total_skor=%s",
        assignment_id, total,
        extra={"assignment_id": assignment_id, "user_id": user_id},
    )
    return get_by_assignment(assignment_id)


def get_by_assignment(assignment_id: int, viewer: Viewer | None = None) -> dict | None:
    assignment = load_assignment(assignment_id)
    assert_can_read_assignment(assignment, viewer)

    penilaian = db.session.execute(
        select(PenilaianSubstansi)
        .where(PenilaianSubstansi.reviewer_assignment_id == assignment_id)
        .options(
            selectinload(PenilaianSubstansi.details)
            .selectinload(DetailPenilaianSubstansi.kriteria)
        )
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    return penilaian.to_dict() if penilaian else None
