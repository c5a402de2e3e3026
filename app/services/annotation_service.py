"""
PDF annotations made by reviewers on proposal files.

Writes require the owning reviewer and an open review phase. Reads follow
the blind-review rule: an admin sees every reviewer's annotations on a file,
a reviewer only their own, anyone else is rejected.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.models import db
from app.models.annotation import ANNOTATION_TYPES, PdfAnnotation
from app.models.proposal import ProposalFile
from app.models.reviewer import ReviewerAssignment
from app.services import system_config_service
from app.services.helpers.review_access import Viewer, get_or_raise, load_owned_assignment

logger = logging.getLogger(__name__)


def _require_review_open() -> None:
    system_config_service.require_enabled(
        system_config_service.REVIEW, "Review sedang tidak aktif",
    )


def create_annotation(data: dict, user_id: str | None) -> dict:
    """
    Args:
        data: {"proposal_file_id", "reviewer_assignment_id", "type",
               "page_number", "annotation_data"}
        user_id: calling reviewer.

    Raises:
        ValidationError: missing/invalid field, file of another proposal,
                         or review phase closed.
        ForbiddenError:  caller does not own the assignment.
        NotFoundError:   file or assignment does not exist.
    """
    data = data or {}
    try:
        file_id = int(data.get("proposal_file_id"))
        assignment_id = int(data.get("reviewer_assignment_id"))
        page_number = int(data.get("page_number"))
    except (TypeError, ValueError):
        raise ValidationError(
            "proposal_file_id, reviewer_assignment_id dan page_number wajib diisi",
        )
    ann_type = data.get("type")
    if ann_type not in ANNOTATION_TYPES:
        raise ValidationError(
            f"type harus salah satu dari: {', '.join(sorted(ANNOTATION_TYPES))}",
            details={"type": ann_type},
        )
    if page_number < 1:
        raise ValidationError("page_number minimal 1", details={"page_number": page_number})
    annotation_data = data.get("annotation_data") or {}
    if not isinstance(annotation_data, dict):
        raise ValidationError("annotation_data harus berupa object")

    assignment = load_owned_assignment(assignment_id, user_id)
    _require_review_open()
    proposal_file = get_or_raise(ProposalFile, file_id)
    if proposal_file.proposal_id != assignment.proposal_id:
        raise ValidationError(
            "File bukan milik proposal yang ditugaskan",
            details={"proposal_file_id": file_id, "assignment_id": assignment_id},
        )

    annotation = PdfAnnotation(
        proposal_file_id=file_id,
        reviewer_assignment_id=assignment_id,
        type=ann_type,
        page_number=page_number,
        annotation_data=annotation_data,
    )
    try:
        db.session.add(annotation)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Annotation create failed assignment_id=%s", assignment_id)
        raise

    logger.info(
        "Annotation %s created file_id=%s",
        annotation.id, file_id,
        extra={"assignment_id": assignment_id, "user_id": user_id},
    )
    return annotation.to_dict()


def find_by_file(file_id: int, viewer: Viewer) -> list[dict]:
    """Annotations on a file visible to the caller, ordered by page."""
    get_or_raise(ProposalFile, file_id)

    stmt = (
        select(PdfAnnotation)
        .join(ReviewerAssignment, PdfAnnotation.reviewer_assignment_id == ReviewerAssignment.id)
        .where(PdfAnnotation.proposal_file_id == file_id)
        .options(
            selectinload(PdfAnnotation.reviewer_assignment)
            .selectinload(ReviewerAssignment.reviewer_user)
        )
        .order_by(PdfAnnotation.page_number, PdfAnnotation.id)
    )
    if viewer.is_admin:
        rows = db.session.execute(stmt).scalars().all()
        return [a.to_dict(include_reviewer=True) for a in rows]
    if viewer.is_reviewer:
        rows = db.session.execute(stmt).scalars().all()
        return [a.to_dict() for a in rows if a.reviewer_assignment.is_owned_by(viewer.user_id)]
    raise ForbiddenError("Anda tidak memiliki akses ke anotasi ini")


def delete_annotation(annotation_id: int, user_id: str | None) -> None:
    annotation = get_or_raise(PdfAnnotation, annotation_id)
    load_owned_assignment(annotation.reviewer_assignment_id, user_id)
    _require_review_open()

    try:
        db.session.delete(annotation)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Annotation delete failed id=%s", annotation_id)
        raise
    logger.info("Annotation %s deleted", annotation_id, extra={"user_id": user_id})
