"""
Aggregated review results for one proposal.

    get_error_union     OR of administrative error flags across reviewers
    get_review_summary  per-reviewer breakdown, filtered by blind-review rules

Visibility:
    admin      → everything, reviewer identities included
    reviewer   → own entry only, never the union
    mahasiswa  → team members only, de-identified ("Reviewer 1/2"), and only
                 once the proposal has left draft / submitted / under_review
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.core.exceptions import ForbiddenError, NotFoundError
from app.models import db
from app.models.master_data import KriteriaAdministrasi
from app.models.penilaian import (
    DetailPenilaianAdministrasi,
    DetailPenilaianSubstansi,
    PenilaianAdministrasi,
    PenilaianSubstansi,
)
from app.models.proposal import Proposal
from app.models.reviewer import ReviewerAssignment
from app.models.team import Team, TeamMember
from app.services.helpers.review_access import Viewer
from app.services.scoring import compute_error_union

logger = logging.getLogger(__name__)

# Statuses in which results are still hidden from students.
UNRELEASED_STATUSES = frozenset({"draft", "submitted", "under_review"})


# ── Private helpers ────────────────────────────────────────────────────────────


def _decimal_str(value):
    return str(value) if value is not None else None


def _load_proposal(proposal_id: int) -> Proposal:
    proposal = db.session.execute(
        select(Proposal)
        .where(Proposal.id == proposal_id)
        .options(
            selectinload(Proposal.team)
            .selectinload(Team.members)
            .selectinload(TeamMember.mahasiswa),
            selectinload(Proposal.reviewer_assignments)
            .selectinload(ReviewerAssignment.reviewer_user),
            selectinload(Proposal.reviewer_assignments)
            .selectinload(ReviewerAssignment.penilaian_administrasi)
            .selectinload(PenilaianAdministrasi.details)
            .selectinload(DetailPenilaianAdministrasi.kriteria),
            selectinload(Proposal.reviewer_assignments)
            .selectinload(ReviewerAssignment.penilaian_substansi)
            .selectinload(PenilaianSubstansi.details)
            .selectinload(DetailPenilaianSubstansi.kriteria),
        )
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if proposal is None:
        raise NotFoundError(resource="Proposal", resource_id=proposal_id)
    return proposal


def _is_released(proposal: Proposal) -> bool:
    return proposal.status not in UNRELEASED_STATUSES


def _assert_student_access(proposal: Proposal, viewer: Viewer) -> None:
    if proposal.team is None or not proposal.team.has_member(viewer.user_id):
        raise ForbiddenError("Anda bukan anggota tim proposal ini")


def _union_for(proposal: Proposal) -> dict:
    checklists = [
        {d.kriteria_administrasi_id: d.ada_kesalahan for d in a.penilaian_administrasi.details}
        for a in proposal.reviewer_assignments
        if a.penilaian_administrasi is not None and a.penilaian_administrasi.is_complete
    ]
    union = compute_error_union(checklists)

    kriteria = {}
    if union.errors:
        ids = [e.kriteria_administrasi_id for e in union.errors]
        kriteria = {
            k.id: k
            for k in db.session.execute(
                select(KriteriaAdministrasi).where(KriteriaAdministrasi.id.in_(ids))
            ).scalars()
        }

    errors = []
    for item in union.errors:
        row = item.to_dict()
        k = kriteria.get(item.kriteria_administrasi_id)
        row["deskripsi"] = k.deskripsi if k else None
        row["urutan"] = k.urutan if k else None
        errors.append(row)
    errors.sort(key=lambda e: (e["urutan"] or 0, e["kriteria_administrasi_id"]))

    return {
        "proposal_id": proposal.id,
        "total": union.total,
        "reviewer_count": len(checklists),
        "errors": errors,
    }


def _scores(proposal: Proposal) -> dict:
    return {
        "administratif_score": _decimal_str(proposal.administratif_score),
        "substantif_score": _decimal_str(proposal.substantif_score),
    }


def _reviewer_entry(assignment: ReviewerAssignment, *, identified: bool) -> dict:
    adm = assignment.penilaian_administrasi
    sub = assignment.penilaian_substansi
    entry = {
        "reviewer_number": assignment.reviewer_number,
        "label": f"Reviewer {assignment.reviewer_number}",
        "administrasi": adm.to_dict() if adm else None,
        "substansi": sub.to_dict() if sub else None,
        "is_complete": assignment.is_complete,
    }
    if not identified:
        for part in (entry["administrasi"], entry["substansi"]):
            if part:
                part.pop("reviewer_assignment_id", None)
    else:
        entry["assignment_id"] = assignment.id
        entry["reviewer_user_id"] = assignment.reviewer_user_id
        entry["reviewer_nama"] = assignment.reviewer_user.nama if assignment.reviewer_user else None
    return entry


# ── Public API ─────────────────────────────────────────────────────────────────


def get_error_union(proposal_id: int, viewer: Viewer | None = None) -> dict:
    """
    Criteria flagged by at least one reviewer with a complete checklist.

    Zero completed checklists yields ``total=0`` and no errors.

    Raises:
        NotFoundError:  proposal does not exist.
        ForbiddenError: reviewer caller, non-member student, or a student
                        asking before results are released.
    """
    proposal = _load_proposal(proposal_id)
    if viewer is not None and not viewer.is_admin:
        if not viewer.is_mahasiswa:
            raise ForbiddenError("Anda tidak memiliki akses ke rekap kesalahan")
        _assert_student_access(proposal, viewer)
        if not _is_released(proposal):
            raise ForbiddenError("Hasil review belum dirilis")
    return _union_for(proposal)


def get_review_summary(proposal_id: int, viewer: Viewer) -> dict:
    """
    Per-reviewer breakdown of one proposal, filtered for the caller.

    Returns:
        {"proposal_id", "status", "released", "administratif_score",
         "substantif_score", "error_union", "reviews": [...]}
    """
    proposal = _load_proposal(proposal_id)
    released = _is_released(proposal)
    result = {
        "proposal_id": proposal.id,
        "status": proposal.status,
        "released": released,
        "administratif_score": None,
        "substantif_score": None,
        "error_union": None,
        "reviews": [],
    }

    if viewer.is_admin:
        result.update(
            **_scores(proposal),
            error_union=_union_for(proposal),
            reviews=[_reviewer_entry(a, identified=True) for a in proposal.reviewer_assignments],
        )
        return result

    if viewer.is_reviewer:
        own = [a for a in proposal.reviewer_assignments if a.is_owned_by(viewer.user_id)]
        if not own:
            raise ForbiddenError("Anda tidak ditugaskan pada proposal ini")
        result["reviews"] = [_reviewer_entry(a, identified=True) for a in own]
        return result

    if viewer.is_mahasiswa:
        _assert_student_access(proposal, viewer)
        if not released:
            return result
        result.update(
            **_scores(proposal),
            error_union=_union_for(proposal),
            reviews=[
                _reviewer_entry(a, identified=False)
                for a in proposal.reviewer_assignments
                if a.is_complete
            ],
        )
        logger.info(
            "Review summary released to student proposal_id=%s",
            proposal.id,
            extra={"proposal_id": proposal.id, "user_id": viewer.user_id},
        )
        return result

    raise ForbiddenError("Akses ditolak")
