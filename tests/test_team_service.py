"""
Team creation and membership.
"""

import pytest

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.services import team_service as svc

from tests import factories


def test_create_team_with_ketua_and_both_proposals():
    jenis = factories.make_jenis_pkm()
    factories.make_mahasiswa("ketua-1")

    team = svc.create_team(
        {"nama_team": "Tim Gamma", "judul_proposal": "Sensor Banjir", "jenis_pkm_id": jenis.id},
        "ketua-1",
    )

    assert [m["role"] for m in team["members"]] == ["ketua"]
    assert sorted(p["type"] for p in team["proposals"]) == ["original", "revised"]
    assert all(p["status"] == "draft" for p in team["proposals"])


def test_create_requires_names():
    jenis = factories.make_jenis_pkm()
    factories.make_mahasiswa("ketua-1")
    with pytest.raises(ValidationError):
        svc.create_team({"nama_team": "", "judul_proposal": "X", "jenis_pkm_id": jenis.id}, "ketua-1")


def test_student_in_one_team_only(world):
    with pytest.raises(ConflictError):
        svc.create_team(
            {"nama_team": "Tim Lagi", "judul_proposal": "X", "jenis_pkm_id": world.jenis.id},
            "mhs-1",
        )


def test_add_member(world):
    newcomer = factories.make_mahasiswa("mhs-4")
    member = svc.add_member(world.team.id, newcomer.id)
    assert member["role"] == "anggota"
    with pytest.raises(ConflictError):
        svc.add_member(world.team.id, newcomer.id)


def test_add_member_unknown_team(world):
    with pytest.raises(NotFoundError):
        svc.add_member(9999, world.students[0].id)
