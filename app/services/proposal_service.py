"""
Proposal lifecycle: student-driven transitions and the admin override.

Student transitions (validated with ``validate_manual_transition``):
    draft → submitted           submit_proposal, uploadProposalEnabled on
    needs_revision → revised    upload_file, uploadRevisionEnabled on

Phase-driven transitions are cascaded by system_config_service and never
pass through here.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.models import db
from app.models.audit import write_audit
from app.models.proposal import (
    PROPOSAL_STATUSES,
    UPLOADABLE_STATUSES,
    Proposal,
    ProposalFile,
    validate_manual_transition,
)
from app.models.team import Team, TeamMember
from app.services import system_config_service

logger = logging.getLogger(__name__)

# Which phase toggle gates uploads in a given status.
_UPLOAD_TOGGLE_BY_STATUS = {
    "draft": (system_config_service.UPLOAD_PROPOSAL, "Upload proposal sedang tidak aktif"),
    "needs_revision": (system_config_service.UPLOAD_REVISION, "Upload revisi sedang tidak aktif"),
}


# ── Private helpers ────────────────────────────────────────────────────────────


def _load(proposal_id: int) -> Proposal:
    proposal = db.session.execute(
        select(Proposal)
        .where(Proposal.id == proposal_id)
        .options(
            selectinload(Proposal.team)
            .selectinload(Team.members)
            .selectinload(TeamMember.mahasiswa),
        )
    ).scalar_one_or_none()
    if proposal is None:
        raise NotFoundError(resource="Proposal", resource_id=proposal_id)
    return proposal


def _assert_member(proposal: Proposal, user_id: str | None) -> None:
    if user_id is None or not proposal.team.has_member(user_id):
        raise ForbiddenError("Anda bukan anggota tim proposal ini")


def _file_count(proposal_id: int) -> int:
    return db.session.execute(
        select(func.count(ProposalFile.id)).where(ProposalFile.proposal_id == proposal_id)
    ).scalar() or 0


def _validate_file_meta(file_meta: dict) -> dict:
    file_meta = file_meta or {}
    missing = [k for k in ("file_path", "file_name", "file_size", "mime_type") if not file_meta.get(k)]
    if missing:
        raise ValidationError("Metadata file tidak lengkap", details={"missing": missing})

    allowed = current_app.config.get("ALLOWED_PROPOSAL_MIME_TYPES", ("application/pdf",))
    if file_meta["mime_type"] not in allowed:
        raise ValidationError(
            "File harus berformat PDF",
            details={"mime_type": file_meta["mime_type"]},
        )
    try:
        size = int(file_meta["file_size"])
    except (TypeError, ValueError):
        raise ValidationError("file_size tidak valid", details={"file_size": file_meta["file_size"]})
    max_size = current_app.config.get("MAX_PROPOSAL_FILE_SIZE", 10 * 1024 * 1024)
    if size <= 0 or size > max_size:
        raise ValidationError(
            f"Ukuran file maksimal {max_size // (1024 * 1024)}MB",
            details={"file_size": size, "max": max_size},
        )
    return {
        "file_path": str(file_meta["file_path"]),
        "file_name": str(file_meta["file_name"]),
        "file_size": size,
        "mime_type": file_meta["mime_type"],
    }


# ── Queries ────────────────────────────────────────────────────────────────────


def get_proposal(proposal_id: int, user_id: str | None = None) -> dict:
    """Proposal with its files. ``user_id`` restricts access to team members."""
    proposal = _load(proposal_id)
    if user_id is not None:
        _assert_member(proposal, user_id)
    result = proposal.to_dict()
    result["files"] = [f.to_dict() for f in proposal.files]
    result["team"] = proposal.team.to_dict() if proposal.team else None
    return result


def list_by_team(team_id: int) -> list[dict]:
    if db.session.get(Team, team_id) is None:
        raise NotFoundError(resource="Team", resource_id=team_id)
    rows = db.session.execute(
        select(Proposal).where(Proposal.team_id == team_id).order_by(Proposal.type)
    ).scalars().all()
    return [p.to_dict() for p in rows]


def get_latest_file(proposal_id: int) -> dict | None:
    if db.session.get(Proposal, proposal_id) is None:
        raise NotFoundError(resource="Proposal", resource_id=proposal_id)
    latest = db.session.execute(
        select(ProposalFile)
        .where(ProposalFile.proposal_id == proposal_id)
        .order_by(ProposalFile.uploaded_at.desc(), ProposalFile.id.desc())
        .limit(1)
    ).scalar_one_or_none()
    return latest.to_dict() if latest else None


# ── Transitions ────────────────────────────────────────────────────────────────


def submit_proposal(proposal_id: int, user_id: str | None) -> dict:
    """
    draft → submitted.

    Raises:
        NotFoundError:   proposal missing.
        ForbiddenError:  caller is not a team member.
        ValidationError: wrong status, upload phase closed, team too small,
                         no advisor, or no file uploaded.
    """
    proposal = _load(proposal_id)
    _assert_member(proposal, user_id)

    if not validate_manual_transition(proposal.status, "submitted"):
        raise ValidationError(
            f"Proposal dengan status {proposal.status} tidak dapat disubmit",
            details={"status": proposal.status},
        )
    system_config_service.require_enabled(
        system_config_service.UPLOAD_PROPOSAL, "Upload proposal sedang tidak aktif",
    )

    team = proposal.team
    min_members = current_app.config.get("MIN_TEAM_MEMBERS", 3)
    if len(team.members) < min_members:
        raise ValidationError(
            f"Tim harus memiliki minimal {min_members} anggota",
            details={"member_count": len(team.members)},
        )
    if team.dosen_pembimbing_id is None:
        raise ValidationError("Tim belum memiliki dosen pembimbing")
    if _file_count(proposal.id) == 0:
        raise ValidationError("Proposal belum memiliki file")

    try:
        proposal.status = "submitted"
        proposal.submitted_at = datetime.now(timezone.utc)
        proposal.updated_by = user_id
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Proposal submit failed proposal_id=%s", proposal_id)
        raise

    logger.info(
        "Proposal %s submitted", proposal_id,
        extra={"proposal_id": proposal_id, "user_id": user_id},
    )
    return proposal.to_dict()


def upload_file(proposal_id: int, file_meta: dict, user_id: str | None) -> dict:
    """
    Record an uploaded PDF. An upload in ``needs_revision`` moves the
    proposal to ``revised`` in the same commit.
    """
    proposal = _load(proposal_id)
    _assert_member(proposal, user_id)

    if proposal.status not in UPLOADABLE_STATUSES:
        raise ValidationError(
            f"Tidak bisa upload file pada status {proposal.status}",
            details={"status": proposal.status},
        )
    toggle, message = _UPLOAD_TOGGLE_BY_STATUS[proposal.status]
    system_config_service.require_enabled(toggle, message)
    meta = _validate_file_meta(file_meta)

    old_status = proposal.status
    try:
        proposal_file = ProposalFile(proposal_id=proposal.id, uploaded_by=user_id, **meta)
        db.session.add(proposal_file)
        if validate_manual_transition(old_status, "revised"):
            proposal.status = "revised"
            proposal.updated_by = user_id
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("File upload failed proposal_id=%s", proposal_id)
        raise

    logger.info(
        "File %s uploaded proposal_id=%s status=%s→%s",
        proposal_file.id, proposal_id, old_status, proposal.status,
        extra={"proposal_id": proposal_id, "user_id": user_id},
    )
    return proposal_file.to_dict()


def override_status(proposal_id: int, status: str, actor_id: str | None) -> dict:
    """Admin escape hatch: set any valid status. Audited."""
    if status not in PROPOSAL_STATUSES:
        raise ValidationError(
            f"Status tidak valid. Valid: {', '.join(PROPOSAL_STATUSES)}",
            details={"status": status},
        )
    proposal = db.session.get(Proposal, proposal_id)
    if proposal is None:
        raise NotFoundError(resource="Proposal", resource_id=proposal_id)

    old_status = proposal.status
    try:
        proposal.status = status
        proposal.updated_by = actor_id
        write_audit(
            action="PROPOSAL_STATUS_OVERRIDE",
            entity_type="proposal",
            entity_id=proposal_id,
            user_id=actor_id,
            old_value={"status": old_status},
            new_value={"status": status},
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Status override failed proposal_id=%s", proposal_id)
        raise

    logger.warning(
        "Proposal %s status overridden %s → %s",
        proposal_id, old_status, status,
        extra={"proposal_id": proposal_id, "user_id": actor_id},
    )
    return proposal.to_dict()
