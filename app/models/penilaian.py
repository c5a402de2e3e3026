"""
PKM Review Platform
Assessment models (one administrative + one substantive per assignment).

Models:
    - PenilaianAdministrasi:        checklist header (total_kesalahan = flagged rows)
    - DetailPenilaianAdministrasi:  one row per administrative criterion
    - PenilaianSubstansi:           weighted score header (total_skor = Σ skor × bobot)
    - DetailPenilaianSubstansi:     one row per substantive criterion

Detail rows are authoritative and replaced wholesale on update; the header
totals are derived from them inside the same transaction.
"""

from datetime import datetime, timezone

from app.models import db


def _utcnow():
    return datetime.now(timezone.utc)


def _decimal_str(value):
    return str(value) if value is not None else None


class PenilaianAdministrasi(db.Model):
    __tablename__ = "penilaian_administrasi"

    id = db.Column(db.Integer, primary_key=True)
    reviewer_assignment_id = db.Column(
        db.Integer, db.ForeignKey("reviewer_assignments.id", ondelete="CASCADE"),
        unique=True, nullable=False,
    )
    total_kesalahan = db.Column(db.Integer, nullable=False, default=0)
    catatan = db.Column(db.Text, nullable=True)
    is_complete = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )

    reviewer_assignment = db.relationship(
        "ReviewerAssignment", back_populates="penilaian_administrasi",
    )
    details = db.relationship(
        "DetailPenilaianAdministrasi", back_populates="penilaian",
        cascade="all, delete-orphan",
    )

    def ordered_details(self):
        return sorted(
            self.details,
            key=lambda d: (d.kriteria.urutan if d.kriteria else 0, d.kriteria_administrasi_id),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "reviewer_assignment_id": self.reviewer_assignment_id,
            "total_kesalahan": self.total_kesalahan,
            "catatan": self.catatan,
            "is_complete": self.is_complete,
            "details": [d.to_dict() for d in self.ordered_details()],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class DetailPenilaianAdministrasi(db.Model):
    __tablename__ = "detail_penilaian_administrasi"
    __table_args__ = (
        db.UniqueConstraint(
            "penilaian_administrasi_id", "kriteria_administrasi_id",
            name="uq_detail_administrasi_kriteria",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    penilaian_administrasi_id = db.Column(
        db.Integer, db.ForeignKey("penilaian_administrasi.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    kriteria_administrasi_id = db.Column(
        db.Integer, db.ForeignKey("kriteria_administrasi.id", ondelete="CASCADE"),
        nullable=False,
    )
    ada_kesalahan = db.Column(db.Boolean, nullable=False, default=False)

    penilaian = db.relationship("PenilaianAdministrasi", back_populates="details")
    kriteria = db.relationship("KriteriaAdministrasi")

    def to_dict(self):
        return {
            "kriteria_administrasi_id": self.kriteria_administrasi_id,
            "deskripsi": self.kriteria.deskripsi if self.kriteria else None,
            "urutan": self.kriteria.urutan if self.kriteria else None,
            "ada_kesalahan": self.ada_kesalahan,
        }


class PenilaianSubstansi(db.Model):
    __tablename__ = "penilaian_substansi"

    id = db.Column(db.Integer, primary_key=True)
    reviewer_assignment_id = db.Column(
        db.Integer, db.ForeignKey("reviewer_assignments.id", ondelete="CASCADE"),
        unique=True, nullable=False,
    )
    total_skor = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    catatan = db.Column(db.Text, nullable=True)
    is_complete = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )

    reviewer_assignment = db.relationship(
        "ReviewerAssignment", back_populates="penilaian_substansi",
    )
    details = db.relationship(
        "DetailPenilaianSubstansi", back_populates="penilaian",
        cascade="all, delete-orphan",
    )

    def ordered_details(self):
        return sorted(
            self.details,
            key=lambda d: (d.kriteria.urutan if d.kriteria else 0, d.kriteria_substansi_id),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "reviewer_assignment_id": self.reviewer_assignment_id,
            "total_skor": _decimal_str(self.total_skor),
            "catatan": self.catatan,
            "is_complete": self.is_complete,
            "details": [d.to_dict() for d in self.ordered_details()],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class DetailPenilaianSubstansi(db.Model):
    __tablename__ = "detail_penilaian_substansi"
    __table_args__ = (
        db.UniqueConstraint(
            "penilaian_substansi_id", "kriteria_substansi_id",
            name="uq_detail_substansi_kriteria",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    penilaian_substansi_id = db.Column(
        db.Integer, db.ForeignKey("penilaian_substansi.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    kriteria_substansi_id = db.Column(
        db.Integer, db.ForeignKey("kriteria_substansi.id", ondelete="CASCADE"),
        nullable=False,
    )
    skor = db.Column(db.Numeric(5, 2), nullable=False)
    nilai = db.Column(db.Numeric(10, 2), nullable=False, comment="skor × bobot")

    penilaian = db.relationship("PenilaianSubstansi", back_populates="details")
    kriteria = db.relationship("KriteriaSubstansi")

    def to_dict(self):
        k = self.kriteria
        return {
            "kriteria_substansi_id": self.kriteria_substansi_id,
            "nama": k.nama if k else None,
            "bobot": k.bobot if k else None,
            "skor_min": k.skor_min if k else None,
            "skor_max": k.skor_max if k else None,
            "urutan": k.urutan if k else None,
            "skor": _decimal_str(self.skor),
            "nilai": _decimal_str(self.nilai),
        }
