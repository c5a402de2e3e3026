"""
ORM-level builders for tests.

Rows are committed so services that re-query through their own selects see
them. Identities mirror the external identity provider: user ids are strings.
"""

from types import SimpleNamespace

from app.models import db
from app.models.master_data import (
    DosenPembimbing,
    JenisPkm,
    KriteriaAdministrasi,
    KriteriaSubstansi,
)
from app.models.proposal import Proposal, ProposalFile
from app.models.reviewer import ReviewerAssignment, ReviewerUser
from app.models.system_config import SystemConfig
from app.models.team import Mahasiswa, Team, TeamMember
from app.services.jwt_service import generate_access_token


def auth_headers(role, user_id):
    token = generate_access_token(user_id, role)
    return {"Authorization": f"Bearer {token}"}


def make_jenis_pkm(nama="PKM-RE"):
    jenis = JenisPkm(nama=nama, deskripsi="Riset Eksakta")
    db.session.add(jenis)
    db.session.commit()
    return jenis


def make_kriteria_administrasi(jenis, count=3):
    rows = [
        KriteriaAdministrasi(jenis_pkm_id=jenis.id, deskripsi=f"Format halaman {i}", urutan=i)
        for i in range(1, count + 1)
    ]
    db.session.add_all(rows)
    db.session.commit()
    return rows


def make_kriteria_substansi(jenis, bobots=(20, 30)):
    rows = [
        KriteriaSubstansi(
            jenis_pkm_id=jenis.id, nama=f"K{i}", skor_min=1, skor_max=7, bobot=bobot, urutan=i,
        )
        for i, bobot in enumerate(bobots, start=1)
    ]
    db.session.add_all(rows)
    db.session.commit()
    return rows


def make_mahasiswa(user_id, nim=None):
    m = Mahasiswa(user_id=user_id, nama=f"Mahasiswa {user_id}", nim=nim or f"NIM-{user_id}")
    db.session.add(m)
    db.session.commit()
    return m


def make_team(jenis, members, with_dosen=True, nama="Tim Alpha"):
    """Team with ``members`` (Mahasiswa rows, first is ketua) and both proposals."""
    dosen = None
    if with_dosen:
        dosen = DosenPembimbing(nama="Dr. Pembimbing", nidn=f"NIDN-{nama}")
        db.session.add(dosen)
        db.session.flush()
    team = Team(
        nama_team=nama,
        judul_proposal=f"Judul {nama}",
        jenis_pkm_id=jenis.id,
        dosen_pembimbing_id=dosen.id if dosen else None,
    )
    db.session.add(team)
    db.session.flush()
    for i, m in enumerate(members):
        db.session.add(TeamMember(team_id=team.id, mahasiswa_id=m.id, role="ketua" if i == 0 else "anggota"))
    db.session.add_all([
        Proposal(team_id=team.id, type="original", status="draft"),
        Proposal(team_id=team.id, type="revised", status="draft"),
    ])
    db.session.commit()
    return team


def original_proposal(team):
    return Proposal.query.filter_by(team_id=team.id, type="original").one()


def make_file(proposal, name="proposal.pdf"):
    f = ProposalFile(
        proposal_id=proposal.id,
        file_path=f"proposals/{proposal.id}/{name}",
        file_name=name,
        file_size=1024,
        mime_type="application/pdf",
    )
    db.session.add(f)
    db.session.commit()
    return f


def make_reviewer(user_id, nama=None):
    r = ReviewerUser(user_id=user_id, nama=nama or f"Reviewer {user_id}")
    db.session.add(r)
    db.session.commit()
    return r


def make_assignments(proposal, reviewer_1, reviewer_2):
    rows = [
        ReviewerAssignment(proposal_id=proposal.id, reviewer_user_id=reviewer_1.id, reviewer_number=1),
        ReviewerAssignment(proposal_id=proposal.id, reviewer_user_id=reviewer_2.id, reviewer_number=2),
    ]
    db.session.add_all(rows)
    db.session.commit()
    return rows


def set_status(proposal, status):
    proposal.status = status
    db.session.commit()
    return proposal


def set_toggles(**states):
    """set_toggles(reviewEnabled=True) writes rows directly, no cascade."""
    for key, enabled in states.items():
        row = SystemConfig.query.filter_by(config_key=key).first()
        if row is None:
            row = SystemConfig(config_key=key)
            db.session.add(row)
        row.config_value = {"enabled": enabled}
    db.session.commit()


def build_world():
    jenis = make_jenis_pkm()
    kriteria_adm = make_kriteria_administrasi(jenis, count=3)
    kriteria_sub = make_kriteria_substansi(jenis, bobots=(20, 30))
    students = [make_mahasiswa(f"mhs-{i}") for i in range(1, 4)]
    team = make_team(jenis, students)
    proposal = original_proposal(team)
    reviewer_1 = make_reviewer("rev-1", "Reviewer Satu")
    reviewer_2 = make_reviewer("rev-2", "Reviewer Dua")
    return SimpleNamespace(
        jenis=jenis,
        kriteria_adm=kriteria_adm,
        kriteria_sub=kriteria_sub,
        students=students,
        team=team,
        proposal=proposal,
        reviewer_1=reviewer_1,
        reviewer_2=reviewer_2,
    )


def checklist(kriteria_adm, flagged=()):
    return [
        {"kriteria_administrasi_id": k.id, "ada_kesalahan": k.id in flagged}
        for k in kriteria_adm
    ]


def scores(kriteria_sub, values):
    return [
        {"kriteria_substansi_id": k.id, "skor": v}
        for k, v in zip(kriteria_sub, values)
    ]


def make_complete_review(assignment, total_kesalahan=0, total_skor=270, administrasi=True, substansi=True):
    """Attach complete assessment headers directly, skipping the services."""
    from decimal import Decimal

    from app.models.penilaian import PenilaianAdministrasi, PenilaianSubstansi

    if administrasi:
        db.session.add(PenilaianAdministrasi(
            reviewer_assignment_id=assignment.id, total_kesalahan=total_kesalahan, is_complete=True,
        ))
    if substansi:
        db.session.add(PenilaianSubstansi(
            reviewer_assignment_id=assignment.id, total_skor=Decimal(total_skor), is_complete=True,
        ))
    db.session.commit()
