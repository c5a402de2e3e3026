"""
PKM Review Platform
Reviewer models.

Models:
    - ReviewerUser:        reviewer profile linked to an external user id
    - ReviewerAssignment:  proposal ↔ reviewer link tagged with slot 1 or 2

Invariants (enforced by assignment_service and the table constraints):
    - at most two assignments per proposal
    - reviewer numbers 1 and 2 used once per proposal
    - the two reviewers of a proposal are distinct
"""

from datetime import datetime, timezone

from app.models import db

REVIEWER_NUMBERS = (1, 2)


def _utcnow():
    return datetime.now(timezone.utc)


class ReviewerUser(db.Model):
    __tablename__ = "reviewer_users"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), unique=True, nullable=False, index=True)
    nama = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(200), nullable=True)

    assignments = db.relationship(
        "ReviewerAssignment", back_populates="reviewer_user", lazy="dynamic",
    )

    def to_dict(self):
        return {"id": self.id, "user_id": self.user_id, "nama": self.nama, "email": self.email}


class ReviewerAssignment(db.Model):
    __tablename__ = "reviewer_assignments"
    __table_args__ = (
        db.UniqueConstraint("proposal_id", "reviewer_number", name="uq_assignment_slot"),
        db.UniqueConstraint("proposal_id", "reviewer_user_id", name="uq_assignment_reviewer"),
        db.CheckConstraint("reviewer_number IN (1, 2)", name="ck_assignment_reviewer_number"),
    )

    id = db.Column(db.Integer, primary_key=True)
    proposal_id = db.Column(
        db.Integer, db.ForeignKey("proposals.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    reviewer_user_id = db.Column(
        db.Integer, db.ForeignKey("reviewer_users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    reviewer_number = db.Column(db.Integer, nullable=False, comment="1 | 2")
    assigned_by = db.Column(db.String(64), nullable=True)
    assigned_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    proposal = db.relationship("Proposal", back_populates="reviewer_assignments")
    reviewer_user = db.relationship("ReviewerUser", back_populates="assignments")
    penilaian_administrasi = db.relationship(
        "PenilaianAdministrasi", back_populates="reviewer_assignment",
        uselist=False, cascade="all, delete-orphan",
    )
    penilaian_substansi = db.relationship(
        "PenilaianSubstansi", back_populates="reviewer_assignment",
        uselist=False, cascade="all, delete-orphan",
    )

    def is_owned_by(self, user_id: str) -> bool:
        return self.reviewer_user is not None and self.reviewer_user.user_id == user_id

    @property
    def has_scoring(self) -> bool:
        """True once either assessment exists for this assignment."""
        return self.penilaian_administrasi is not None or self.penilaian_substansi is not None

    @property
    def is_complete(self) -> bool:
        """Both assessments submitted and marked complete."""
        adm = self.penilaian_administrasi
        sub = self.penilaian_substansi
        return bool(adm and adm.is_complete and sub and sub.is_complete)

    def to_dict(self, include_reviewer=True):
        result = {
            "id": self.id,
            "proposal_id": self.proposal_id,
            "reviewer_number": self.reviewer_number,
            "assigned_by": self.assigned_by,
            "assigned_at": self.assigned_at.isoformat() if self.assigned_at else None,
            "administrasi_complete": bool(
                self.penilaian_administrasi and self.penilaian_administrasi.is_complete
            ),
            "substansi_complete": bool(
                self.penilaian_substansi and self.penilaian_substansi.is_complete
            ),
        }
        if include_reviewer:
            result["reviewer_user_id"] = self.reviewer_user_id
            result["reviewer_nama"] = self.reviewer_user.nama if self.reviewer_user else None
        return result

    def __repr__(self):
        return f"<ReviewerAssignment {self.id} proposal={self.proposal_id} #{self.reviewer_number}>"
