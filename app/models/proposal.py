"""
PKM Review Platform
Proposal domain models.

Models:
    - Proposal:      one of the two proposals (original / revised) owned by a team
    - ProposalFile:  metadata of an uploaded PDF (binary lives in external storage)

Lifecycle states:
    draft → submitted                    (student submit, upload phase open)
    submitted | revised → under_review   (reviewEnabled switched on)
    under_review → reviewed | not_reviewed   (reviewEnabled switched off)
    reviewed → needs_revision            (uploadRevisionEnabled switched on)
    needs_revision → revised             (file upload while in needs_revision)

    Admins may force any status through ``proposal_service.override_status``.
"""

from datetime import datetime, timezone

from app.models import db

# ── Constants ────────────────────────────────────────────────────────────────

PROPOSAL_TYPES = ("original", "revised")

PROPOSAL_STATUSES = (
    "draft",
    "submitted",
    "under_review",
    "reviewed",
    "not_reviewed",
    "needs_revision",
    "revised",
)

# Statuses a file may be uploaded in.
UPLOADABLE_STATUSES = frozenset({"draft", "needs_revision"})

# ── Lifecycle Transition Guards ──────────────────────────────────────────────

# Transitions triggered by student actions. Phase cascades are applied in bulk
# by system_config_service and do not go through this table.
MANUAL_TRANSITIONS = {
    "draft":          ["submitted"],
    "needs_revision": ["revised"],
}

CASCADE_TRANSITIONS = {
    "submitted":      ["under_review"],
    "revised":        ["under_review"],
    "under_review":   ["reviewed", "not_reviewed"],
    "reviewed":       ["needs_revision"],
}


def validate_manual_transition(old_status, new_status):
    """Return True if a student-driven Proposal status transition is valid."""
    return new_status in MANUAL_TRANSITIONS.get(old_status, [])


def _utcnow():
    return datetime.now(timezone.utc)


def _decimal_str(value):
    return str(value) if value is not None else None


class Proposal(db.Model):
    """
    Proposal of a team. Exactly two per team, never deleted on its own
    (removed only through the team cascade).
    """

    __tablename__ = "proposals"
    __table_args__ = (
        db.UniqueConstraint("team_id", "type", name="uq_proposal_team_type"),
        db.Index("ix_proposals_status", "status"),
    )

    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(
        db.Integer, db.ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    type = db.Column(db.String(20), nullable=False, comment="original | revised")
    status = db.Column(
        db.String(30), nullable=False, default="draft",
        comment="draft | submitted | under_review | reviewed | not_reviewed | needs_revision | revised",
    )
    submitted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Averages stored when the review phase closes
    administratif_score = db.Column(db.Numeric(10, 2), nullable=True)
    substantif_score = db.Column(db.Numeric(10, 2), nullable=True)

    created_by = db.Column(db.String(64), nullable=True)
    updated_by = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )

    team = db.relationship("Team", back_populates="proposals")
    files = db.relationship(
        "ProposalFile", back_populates="proposal",
        cascade="all, delete-orphan", order_by="ProposalFile.uploaded_at.desc()",
    )
    reviewer_assignments = db.relationship(
        "ReviewerAssignment", back_populates="proposal",
        cascade="all, delete-orphan", order_by="ReviewerAssignment.reviewer_number",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "team_id": self.team_id,
            "type": self.type,
            "status": self.status,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "administratif_score": _decimal_str(self.administratif_score),
            "substantif_score": _decimal_str(self.substantif_score),
            "file_count": len(self.files),
            "assignment_count": len(self.reviewer_assignments),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Proposal {self.id} team={self.team_id} {self.type} [{self.status}]>"


class ProposalFile(db.Model):
    __tablename__ = "proposal_files"

    id = db.Column(db.Integer, primary_key=True)
    proposal_id = db.Column(
        db.Integer, db.ForeignKey("proposals.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    file_path = db.Column(db.String(500), nullable=False)
    file_name = db.Column(db.String(255), nullable=False)
    file_size = db.Column(db.BigInteger, nullable=False)
    mime_type = db.Column(db.String(100), nullable=False)
    uploaded_by = db.Column(db.String(64), nullable=True)
    uploaded_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    proposal = db.relationship("Proposal", back_populates="files")

    def to_dict(self):
        return {
            "id": self.id,
            "proposal_id": self.proposal_id,
            "file_path": self.file_path,
            "file_name": self.file_name,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "uploaded_by": self.uploaded_by,
            "uploaded_at": self.uploaded_at.isoformat() if self.uploaded_at else None,
        }
