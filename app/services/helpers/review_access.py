"""
Blind-review access helpers.

Reviewers must never read another reviewer's judgments. Every read or write
of assignment-scoped data goes through these checks:

    admin     → any assignment
    reviewer  → only assignments whose ReviewerUser.user_id is the caller
    others    → ForbiddenError

Usage:
    viewer = Viewer(user_id=g.jwt_user_id, role=g.jwt_role)
    assignment = load_owned_assignment(assignment_id, user_id)
    assert_can_read_assignment(assignment, viewer)
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.core.exceptions import ForbiddenError, NotFoundError
from app.models import db
from app.models.reviewer import ReviewerAssignment

ROLE_ADMIN = "admin"
ROLE_REVIEWER = "reviewer"
ROLE_MAHASISWA = "mahasiswa"

ROLES = frozenset({ROLE_ADMIN, ROLE_REVIEWER, ROLE_MAHASISWA})


@dataclass(frozen=True)
class Viewer:
    """Resolved caller identity passed into visibility-aware services."""
    user_id: str | None
    role: str | None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_reviewer(self) -> bool:
        return self.role == ROLE_REVIEWER

    @property
    def is_mahasiswa(self) -> bool:
        return self.role == ROLE_MAHASISWA


def get_or_raise(model, pk, resource: str | None = None):
    """db.session.get() that raises NotFoundError instead of returning None."""
    obj = db.session.get(model, pk) if pk is not None else None
    if obj is None:
        raise NotFoundError(resource=resource or model.__name__, resource_id=pk)
    return obj


def load_assignment(assignment_id: int) -> ReviewerAssignment:
    assignment = db.session.execute(
        select(ReviewerAssignment)
        .where(ReviewerAssignment.id == assignment_id)
        .options(selectinload(ReviewerAssignment.reviewer_user))
    ).scalar_one_or_none()
    if assignment is None:
        raise NotFoundError(resource="ReviewerAssignment", resource_id=assignment_id)
    return assignment


def load_owned_assignment(assignment_id: int, user_id: str | None) -> ReviewerAssignment:
    """Return the assignment if the caller is its reviewer, else ForbiddenError."""
    assignment = load_assignment(assignment_id)
    if user_id is None or not assignment.is_owned_by(user_id):
        raise ForbiddenError("Anda tidak memiliki akses ke assignment ini")
    return assignment


def assert_can_read_assignment(assignment: ReviewerAssignment, viewer: Viewer | None) -> None:
    """Blind-review read rule. ``viewer=None`` means a trusted internal caller."""
    if viewer is None or viewer.is_admin:
        return
    if viewer.is_reviewer and assignment.is_owned_by(viewer.user_id):
        return
    raise ForbiddenError("Anda tidak memiliki akses ke penilaian ini")
