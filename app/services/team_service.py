"""
Team creation and membership.

A team is created together with its ``original`` and ``revised`` proposals
and with the creator as ``ketua``, all in one commit. A student belongs to
at most one team.
"""

from __future__ import annotations

import logging

from sqlalchemy import select

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models import db
from app.models.master_data import DosenPembimbing, JenisPkm
from app.models.proposal import PROPOSAL_TYPES, Proposal
from app.models.team import Mahasiswa, Team, TeamMember

logger = logging.getLogger(__name__)


def _mahasiswa_by_user(user_id: str) -> Mahasiswa:
    mahasiswa = db.session.execute(
        select(Mahasiswa).where(Mahasiswa.user_id == user_id)
    ).scalar_one_or_none()
    if mahasiswa is None:
        raise NotFoundError(resource="Mahasiswa", resource_id=user_id)
    return mahasiswa


def _assert_no_team(mahasiswa: Mahasiswa) -> None:
    existing = db.session.execute(
        select(TeamMember).where(TeamMember.mahasiswa_id == mahasiswa.id)
    ).scalar_one_or_none()
    if existing is not None:
        raise ConflictError(resource="TeamMember", field="mahasiswa_id", value=mahasiswa.id)


def create_team(data: dict, user_id: str) -> dict:
    """
    Args:
        data: {"nama_team", "judul_proposal", "jenis_pkm_id", "dosen_pembimbing_id"?}
        user_id: creating student; becomes ketua.

    Returns:
        Serialized team with members and both proposals.
    """
    data = data or {}
    nama_team = (data.get("nama_team") or "").strip()
    judul = (data.get("judul_proposal") or "").strip()
    if not nama_team or not judul:
        raise ValidationError("nama_team dan judul_proposal wajib diisi")

    jenis_pkm_id = data.get("jenis_pkm_id")
    if jenis_pkm_id is None or db.session.get(JenisPkm, jenis_pkm_id) is None:
        raise NotFoundError(resource="JenisPkm", resource_id=jenis_pkm_id)
    dosen_id = data.get("dosen_pembimbing_id")
    if dosen_id is not None and db.session.get(DosenPembimbing, dosen_id) is None:
        raise NotFoundError(resource="DosenPembimbing", resource_id=dosen_id)

    ketua = _mahasiswa_by_user(user_id)
    _assert_no_team(ketua)

    try:
        team = Team(
            nama_team=nama_team,
            judul_proposal=judul,
            jenis_pkm_id=jenis_pkm_id,
            dosen_pembimbing_id=dosen_id,
            created_by=user_id,
        )
        db.session.add(team)
        db.session.flush()
        db.session.add(TeamMember(team_id=team.id, mahasiswa_id=ketua.id, role="ketua"))
        db.session.add_all([
            Proposal(team_id=team.id, type=ptype, status="draft", created_by=user_id)
            for ptype in PROPOSAL_TYPES
        ])
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Team creation failed user_id=%s", user_id)
        raise

    logger.info("Team %s created by %s", team.id, user_id, extra={"user_id": user_id})
    db.session.refresh(team)
    return team.to_dict(include_members=True)


def add_member(team_id: int, mahasiswa_id: int) -> dict:
    team = db.session.get(Team, team_id)
    if team is None:
        raise NotFoundError(resource="Team", resource_id=team_id)
    mahasiswa = db.session.get(Mahasiswa, mahasiswa_id)
    if mahasiswa is None:
        raise NotFoundError(resource="Mahasiswa", resource_id=mahasiswa_id)
    _assert_no_team(mahasiswa)

    try:
        member = TeamMember(team_id=team_id, mahasiswa_id=mahasiswa_id, role="anggota")
        db.session.add(member)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Add member failed team_id=%s", team_id)
        raise
    return member.to_dict()
