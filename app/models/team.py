"""
PKM Review Platform
Team domain models.

Models:
    - Mahasiswa:   student profile linked to an external user id
    - Team:        student team applying for one grant type
    - TeamMember:  membership row (one team per student)

A team always owns exactly two proposals (``original`` and ``revised``),
created together with the team in ``team_service.create_team``.
"""

from datetime import datetime, timezone

from app.models import db

TEAM_STATUSES = {"active", "inactive"}
MEMBER_ROLES = {"ketua", "anggota"}


def _utcnow():
    return datetime.now(timezone.utc)


class Mahasiswa(db.Model):
    """Student profile. ``user_id`` is the identity provider's subject."""

    __tablename__ = "mahasiswa"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), unique=True, nullable=False, index=True)
    nama = db.Column(db.String(200), nullable=False)
    nim = db.Column(db.String(30), unique=True, nullable=False)

    def to_dict(self):
        return {"id": self.id, "user_id": self.user_id, "nama": self.nama, "nim": self.nim}


class Team(db.Model):
    __tablename__ = "teams"

    id = db.Column(db.Integer, primary_key=True)
    nama_team = db.Column(db.String(200), nullable=False)
    judul_proposal = db.Column(db.String(500), nullable=False)
    jenis_pkm_id = db.Column(
        db.Integer, db.ForeignKey("jenis_pkm.id", ondelete="RESTRICT"),
        nullable=False, index=True,
    )
    dosen_pembimbing_id = db.Column(
        db.Integer, db.ForeignKey("dosen_pembimbing.id", ondelete="SET NULL"),
        nullable=True,
    )
    status = db.Column(db.String(20), nullable=False, default="active")
    created_by = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    jenis_pkm = db.relationship("JenisPkm")
    dosen_pembimbing = db.relationship("DosenPembimbing")
    members = db.relationship(
        "TeamMember", back_populates="team",
        cascade="all, delete-orphan", order_by="TeamMember.id",
    )
    proposals = db.relationship(
        "Proposal", back_populates="team",
        cascade="all, delete-orphan", order_by="Proposal.type",
    )

    def has_member(self, user_id: str) -> bool:
        return any(m.mahasiswa and m.mahasiswa.user_id == user_id for m in self.members)

    def to_dict(self, include_members=False):
        result = {
            "id": self.id,
            "nama_team": self.nama_team,
            "judul_proposal": self.judul_proposal,
            "jenis_pkm_id": self.jenis_pkm_id,
            "dosen_pembimbing_id": self.dosen_pembimbing_id,
            "status": self.status,
            "member_count": len(self.members),
            "proposals": [p.to_dict() for p in self.proposals],
        }
        if include_members:
            result["members"] = [m.to_dict() for m in self.members]
        return result


class TeamMember(db.Model):
    __tablename__ = "team_members"
    __table_args__ = (
        db.UniqueConstraint("mahasiswa_id", name="uq_team_member_mahasiswa"),
    )

    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(
        db.Integer, db.ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    mahasiswa_id = db.Column(
        db.Integer, db.ForeignKey("mahasiswa.id", ondelete="CASCADE"),
        nullable=False,
    )
    role = db.Column(db.String(20), nullable=False, default="anggota")
    joined_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    team = db.relationship("Team", back_populates="members")
    mahasiswa = db.relationship("Mahasiswa")

    def to_dict(self):
        return {
            "id": self.id,
            "team_id": self.team_id,
            "mahasiswa_id": self.mahasiswa_id,
            "nama": self.mahasiswa.nama if self.mahasiswa else None,
            "nim": self.mahasiswa.nim if self.mahasiswa else None,
            "role": self.role,
        }
