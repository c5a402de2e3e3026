"""
Assignment Manager: reviewer ↔ proposal links.

Every proposal gets exactly two distinct reviewers (slots 1 and 2), created
together. Assignments can be removed only before any scoring exists and
while the review phase is closed.

Rules:
  - All validation runs before the first write.
  - db.session.commit() happens only in this file.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models import db
from app.models.audit import write_audit
from app.models.proposal import Proposal
from app.models.reviewer import ReviewerAssignment, ReviewerUser
from app.services import system_config_service
from app.utils.errors import E, error_code_for

logger = logging.getLogger(__name__)

# Upper bound of the Integer primary keys.
MAX_ID = 2**31 - 1


# ── Private helpers ────────────────────────────────────────────────────────────


def _parse_id(value, field: str, details: dict) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} tidak valid", details=details)
    if isinstance(value, bool) or not 1 <= parsed <= MAX_ID:
        raise ValidationError(f"{field} tidak valid", details=details)
    return parsed


def _parse_reviewer_ids(reviewer_ids) -> tuple[int, int]:
    if not isinstance(reviewer_ids, (list, tuple)) or len(reviewer_ids) != 2:
        raise ValidationError(
            "reviewer_ids harus berisi tepat 2 reviewer",
            details={"reviewer_ids": reviewer_ids},
        )
    details = {"reviewer_ids": reviewer_ids}
    first, second = (_parse_id(r, "reviewer_ids", details) for r in reviewer_ids)
    return first, second


def _assignment_with_scoring(assignment_id: int) -> ReviewerAssignment | None:
    return db.session.execute(
        select(ReviewerAssignment)
        .where(ReviewerAssignment.id == assignment_id)
        .options(
            selectinload(ReviewerAssignment.penilaian_administrasi),
            selectinload(ReviewerAssignment.penilaian_substansi),
        )
    ).scalar_one_or_none()


# ── Public API ─────────────────────────────────────────────────────────────────


def assign_reviewers(proposal_id: int, reviewer_ids, actor_id: str | None) -> list[dict]:
    """
    Assign two distinct reviewers to a proposal in one transaction.

    Args:
        proposal_id:  target proposal.
        reviewer_ids: exactly two ReviewerUser ids; the first becomes
                      reviewer 1, the second reviewer 2.
        actor_id:     admin performing the assignment.

    Returns:
        The two serialized assignments, ordered by reviewer number.

    Raises:
        ValidationError: not exactly two ids, or both ids identical.
        NotFoundError:   proposal or a reviewer does not exist.
        ConflictError:   the proposal already has an assignment.
    """
    proposal_id = _parse_id(proposal_id, "proposal_id", {"proposal_id": proposal_id})

    reviewer_id_1, reviewer_id_2 = _parse_reviewer_ids(reviewer_ids)
    if reviewer_id_1 == reviewer_id_2:
        raise ValidationError(
            "Kedua reviewer harus berbeda",
            details={"reviewer_ids": [reviewer_id_1, reviewer_id_2]},
        )

    proposal = db.session.get(Proposal, proposal_id)
    if proposal is None:
        raise NotFoundError(resource="Proposal", resource_id=proposal_id)

    for reviewer_id in (reviewer_id_1, reviewer_id_2):
        if db.session.get(ReviewerUser, reviewer_id) is None:
            raise NotFoundError(resource="ReviewerUser", resource_id=reviewer_id)

    existing = db.session.execute(
        select(func.count(ReviewerAssignment.id)).where(
            ReviewerAssignment.proposal_id == proposal_id
        )
    ).scalar()
    if existing:
        raise ConflictError(resource="ReviewerAssignment", field="proposal_id", value=proposal_id)

    assignments = [
        ReviewerAssignment(
            proposal_id=proposal_id,
            reviewer_user_id=reviewer_id,
            reviewer_number=number,
            assigned_by=actor_id,
        )
        for number, reviewer_id in ((1, reviewer_id_1), (2, reviewer_id_2))
    ]
    try:
        db.session.add_all(assignments)
        db.session.flush()
        write_audit(
            action="REVIEWER_ASSIGN",
            entity_type="proposal",
            entity_id=proposal_id,
            user_id=actor_id,
            new_value={"reviewer_user_ids": [reviewer_id_1, reviewer_id_2]},
        )
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent assignment of the same proposal.
        db.session.rollback()
        logger.warning("Reviewer assignment conflict proposal_id=%s", proposal_id)
        raise ConflictError(resource="ReviewerAssignment", field="proposal_id", value=proposal_id)
    except Exception:
        db.session.rollback()
        logger.exception("Reviewer assignment failed proposal_id=%s", proposal_id)
        raise

    logger.info(
        "Reviewers assigned proposal_id=%s reviewers=%s,%s",
        proposal_id, reviewer_id_1, reviewer_id_2,
        extra={"proposal_id": proposal_id, "user_id": actor_id},
    )
    return [a.to_dict() for a in assignments]


def bulk_assign(items: list[dict], actor_id: str | None) -> list[dict]:
    """
    Apply assign_reviewers to each item independently.

    A failing item is reported and skipped; items already committed stay.

    Returns:
        [{"proposal_id", "status": "success", "data": [...]}
         | {"proposal_id", "status": "error", "code", "message"}]
    """
    results = []
    for item in items:
        item = item if isinstance(item, dict) else {}
        proposal_id = item.get("proposal_id")
        try:
            data = assign_reviewers(proposal_id, item.get("reviewer_ids"), actor_id)
            results.append({"proposal_id": proposal_id, "status": "success", "data": data})
        except (NotFoundError, ValidationError, ConflictError) as exc:
            db.session.rollback()
            results.append({
                "proposal_id": proposal_id,
                "status": "error",
                "code": error_code_for(exc),
                "message": str(exc),
            })
        except SQLAlchemyError:
            db.session.rollback()
            results.append({
                "proposal_id": proposal_id,
                "status": "error",
                "code": E.INTERNAL,
                "message": "Gagal menyimpan penugasan reviewer",
            })

    succeeded = sum(1 for r in results if r["status"] == "success")
    logger.info("Bulk assign processed=%d succeeded=%d", len(results), succeeded)
    return results


def unassign(assignment_id: int, actor_id: str | None = None) -> None:
    """
    Delete an assignment that has no scoring yet.

    Raises:
        NotFoundError:   assignment does not exist.
        ValidationError: an assessment exists, or the review phase is open.
    """
    assignment = _assignment_with_scoring(assignment_id)
    if assignment is None:
        raise NotFoundError(resource="ReviewerAssignment", resource_id=assignment_id)

    if assignment.has_scoring:
        raise ValidationError(
            "Tidak bisa unassign reviewer yang sudah memberikan penilaian",
            details={"assignment_id": assignment_id},
        )
    if system_config_service.is_enabled(system_config_service.REVIEW):
        raise ValidationError(
            "Tidak bisa unassign saat review sedang berlangsung",
            details={"toggle": system_config_service.REVIEW},
        )

    proposal_id = assignment.proposal_id
    try:
        write_audit(
            action="REVIEWER_UNASSIGN",
            entity_type="reviewer_assignment",
            entity_id=assignment_id,
            user_id=actor_id,
            old_value={
                "proposal_id": proposal_id,
                "reviewer_user_id": assignment.reviewer_user_id,
                "reviewer_number": assignment.reviewer_number,
            },
        )
        db.session.delete(assignment)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Unassign failed assignment_id=%s", assignment_id)
        raise

    logger.info(
        "Reviewer unassigned assignment_id=%s proposal_id=%s",
        assignment_id, proposal_id,
        extra={"assignment_id": assignment_id, "proposal_id": proposal_id},
    )


def list_by_proposal(proposal_id: int) -> list[dict]:
    """Assignments of a proposal with completion flags (admin view)."""
    if db.session.get(Proposal, proposal_id) is None:
        raise NotFoundError(resource="Proposal", resource_id=proposal_id)
    rows = db.session.execute(
        select(ReviewerAssignment)
        .where(ReviewerAssignment.proposal_id == proposal_id)
        .options(
            selectinload(ReviewerAssignment.reviewer_user),
            selectinload(ReviewerAssignment.penilaian_administrasi),
            selectinload(ReviewerAssignment.penilaian_substansi),
        )
        .order_by(ReviewerAssignment.reviewer_number)
    ).scalars().all()
    return [a.to_dict() for a in rows]


def get_reviewer_by_user(user_id: str) -> ReviewerUser:
    reviewer = db.session.execute(
        select(ReviewerUser).where(ReviewerUser.user_id == user_id)
    ).scalar_one_or_none()
    if reviewer is None:
        raise NotFoundError(resource="ReviewerUser", resource_id=user_id)
    return reviewer


def list_my_assignments(user_id: str) -> list[dict]:
    """Assignments of the calling reviewer, newest first, with proposal context."""
    reviewer = get_reviewer_by_user(user_id)
    rows = db.session.execute(
        select(ReviewerAssignment)
        .where(ReviewerAssignment.reviewer_user_id == reviewer.id)
        .options(
            selectinload(ReviewerAssignment.proposal).selectinload(Proposal.team),
            selectinload(ReviewerAssignment.penilaian_administrasi),
            selectinload(ReviewerAssignment.penilaian_substansi),
        )
        .order_by(ReviewerAssignment.assigned_at.desc(), ReviewerAssignment.id.desc())
    ).scalars().all()

    result = []
    for a in rows:
        d = a.to_dict(include_reviewer=False)
        team = a.proposal.team if a.proposal else None
        d["proposal"] = {
            "id": a.proposal_id,
            "type": a.proposal.type if a.proposal else None,
            "status": a.proposal.status if a.proposal else None,
            "team_id": team.id if team else None,
            "nama_team": team.nama_team if team else None,
            "judul_proposal": team.judul_proposal if team else None,
        }
        result.append(d)
    return result
