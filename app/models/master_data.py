"""
PKM Review Platform
Master data models consumed by the review engine.

Models:
    - JenisPkm:              grant type (PKM-RE, PKM-K, ...) owning its criteria sets
    - KriteriaAdministrasi:  administrative compliance checklist item
    - KriteriaSubstansi:     weighted substantive scoring criterion
    - DosenPembimbing:       supervising advisor

The CRUD screens for these tables live outside the engine; only the
weight-sum guard in ``kriteria_service`` is enforced here.

Architecture:
    JenisPkm ──1:N──▶ KriteriaAdministrasi
    JenisPkm ──1:N──▶ KriteriaSubstansi
"""

from datetime import datetime, timezone

from app.models import db


def _utcnow():
    return datetime.now(timezone.utc)


class JenisPkm(db.Model):
    """Grant type. Every team belongs to exactly one."""

    __tablename__ = "jenis_pkm"

    id = db.Column(db.Integer, primary_key=True)
    nama = db.Column(db.String(100), unique=True, nullable=False)
    deskripsi = db.Column(db.Text, default="")
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    kriteria_administrasi = db.relationship(
        "KriteriaAdministrasi", back_populates="jenis_pkm",
        lazy="dynamic", cascade="all, delete-orphan",
    )
    kriteria_substansi = db.relationship(
        "KriteriaSubstansi", back_populates="jenis_pkm",
        lazy="dynamic", cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "nama": self.nama,
            "deskripsi": self.deskripsi,
        }

    def __repr__(self):
        return f"<JenisPkm {self.id}: {self.nama}>"


class KriteriaAdministrasi(db.Model):
    """Administrative checklist criterion; reviewers flag it as error or not."""

    __tablename__ = "kriteria_administrasi"

    id = db.Column(db.Integer, primary_key=True)
    jenis_pkm_id = db.Column(
        db.Integer, db.ForeignKey("jenis_pkm.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    deskripsi = db.Column(db.Text, nullable=False)
    urutan = db.Column(db.Integer, nullable=False, default=0, comment="Display order")
    created_by = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    jenis_pkm = db.relationship("JenisPkm", back_populates="kriteria_administrasi")

    def to_dict(self):
        return {
            "id": self.id,
            "jenis_pkm_id": self.jenis_pkm_id,
            "deskripsi": self.deskripsi,
            "urutan": self.urutan,
        }


class KriteriaSubstansi(db.Model):
    """
    Weighted substantive criterion.

    nilai = skor × bobot; the sum of ``bobot`` for one grant type is capped
    at 100 when criteria are defined.
    """

    __tablename__ = "kriteria_substansi"

    id = db.Column(db.Integer, primary_key=True)
    jenis_pkm_id = db.Column(
        db.Integer, db.ForeignKey("jenis_pkm.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    nama = db.Column(db.String(200), nullable=False)
    deskripsi = db.Column(db.Text, default="")
    skor_min = db.Column(db.Integer, nullable=False, default=1)
    skor_max = db.Column(db.Integer, nullable=False, default=7)
    bobot = db.Column(db.Integer, nullable=False, comment="Weight, 0-100")
    urutan = db.Column(db.Integer, nullable=False, default=0)
    created_by = db.Column(db.String(64), nullable=True)
    updated_by = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )

    jenis_pkm = db.relationship("JenisPkm", back_populates="kriteria_substansi")

    def to_dict(self):
        return {
            "id": self.id,
            "jenis_pkm_id": self.jenis_pkm_id,
            "nama": self.nama,
            "deskripsi": self.deskripsi,
            "skor_min": self.skor_min,
            "skor_max": self.skor_max,
            "bobot": self.bobot,
            "urutan": self.urutan,
        }

    def __repr__(self):
        return f"<KriteriaSubstansi {self.id}: {self.nama} w={self.bobot}>"


class DosenPembimbing(db.Model):
    """Supervising advisor. A team cannot submit without one."""

    __tablename__ = "dosen_pembimbing"

    id = db.Column(db.Integer, primary_key=True)
    nama = db.Column(db.String(200), nullable=False)
    nidn = db.Column(db.String(20), unique=True, nullable=True)
    email = db.Column(db.String(200), nullable=True)

    def to_dict(self):
        return {"id": self.id, "nama": self.nama, "nidn": self.nidn, "email": self.email}
