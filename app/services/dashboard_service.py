"""
Dashboard metrics for admins and reviewers.

Aggregates:
  - Phase toggle states and the current phase
  - Original-proposal counts per status
  - Reviewer progress (complete = both assessments complete, the same rule
    the review close cascade uses)
"""

import logging

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from app.models import db
from app.models.proposal import PROPOSAL_STATUSES, Proposal
from app.models.reviewer import ReviewerAssignment
from app.services import system_config_service
from app.services.assignment_service import get_reviewer_by_user

logger = logging.getLogger(__name__)


def get_proposal_status_counts():
    """Original proposals per status, zero-filled."""
    rows = (
        db.session.query(Proposal.status, func.count(Proposal.id))
        .filter(Proposal.type == "original")
        .group_by(Proposal.status)
        .all()
    )
    counts = {status: 0 for status in PROPOSAL_STATUSES}
    counts.update({status: n for status, n in rows})
    return counts


def _progress(assignments):
    total = len(assignments)
    completed = sum(1 for a in assignments if a.is_complete)
    return {
        "total": total,
        "completed": completed,
        "pending": total - completed,
        "percent": round(completed * 100 / total, 1) if total else 0.0,
    }


def _assignments_query():
    return ReviewerAssignment.query.options(
        selectinload(ReviewerAssignment.penilaian_administrasi),
        selectinload(ReviewerAssignment.penilaian_substansi),
    )


def get_admin_dashboard():
    toggles = system_config_service.get_all_toggles()
    counts = get_proposal_status_counts()
    assignments = _assignments_query().all()

    assigned_proposals = {a.proposal_id for a in assignments}
    fully_reviewed = 0
    by_proposal = {}
    for a in assignments:
        by_proposal.setdefault(a.proposal_id, []).append(a)
    for rows in by_proposal.values():
        if system_config_service.is_fully_reviewed(rows):
            fully_reviewed += 1

    return {
        "toggles": toggles,
        "phase": system_config_service.current_phase(toggles),
        "proposals": {
            "total": sum(counts.values()),
            "by_status": counts,
            "assigned": len(assigned_proposals),
            "fully_reviewed": fully_reviewed,
        },
        "reviewer_progress": _progress(assignments),
    }


def get_reviewer_dashboard(user_id):
    reviewer = get_reviewer_by_user(user_id)
    assignments = _assignments_query().filter(
        ReviewerAssignment.reviewer_user_id == reviewer.id
    ).all()
    return {
        "reviewer": reviewer.to_dict(),
        "phase": system_config_service.current_phase(),
        "review_enabled": system_config_service.is_enabled(system_config_service.REVIEW),
        "assignments": _progress(assignments),
        "administrasi_done": sum(
            1 for a in assignments
            if a.penilaian_administrasi and a.penilaian_administrasi.is_complete
        ),
        "substansi_done": sum(
            1 for a in assignments
            if a.penilaian_substansi and a.penilaian_substansi.is_complete
        ),
    }
