"""
Phase Toggle Controller: system configuration service.

Owns the three mutually exclusive phase toggles and the proposal status
cascade that runs whenever one of them flips.

    uploadProposalEnabled   students upload and submit proposals
    reviewEnabled           reviewers score proposals
    uploadRevisionEnabled   students upload revisions

Cascade rules (same transaction as the toggle write):
    reviewEnabled ON         submitted | revised → under_review
    reviewEnabled OFF        under_review → reviewed (both reviewers complete)
                                          → not_reviewed (otherwise)
    uploadRevisionEnabled ON reviewed → needs_revision

Rules:
  - db.session.commit() happens once, at the end of set_toggle().
  - Bulk moves are set-based UPDATEs; only the review close finalization
    walks a snapshot of under_review proposals, loaded eagerly.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from app.core.exceptions import ValidationError
from app.models import db
from app.models.audit import write_audit
from app.models.proposal import Proposal
from app.models.reviewer import REVIEWER_NUMBERS, ReviewerAssignment
from app.models.system_config import SystemConfig

logger = logging.getLogger(__name__)

UPLOAD_PROPOSAL = "uploadProposalEnabled"
REVIEW = "reviewEnabled"
UPLOAD_REVISION = "uploadRevisionEnabled"

TOGGLE_KEYS = (UPLOAD_PROPOSAL, REVIEW, UPLOAD_REVISION)

PHASE_BY_TOGGLE = {
    UPLOAD_PROPOSAL: "SUBMISSION",
    REVIEW: "REVIEW",
    UPLOAD_REVISION: "REVISION",
}

_TWO_PLACES = Decimal("0.01")


# ── Private helpers ────────────────────────────────────────────────────────────


def _validate_key(key: str) -> None:
    if key not in TOGGLE_KEYS:
        raise ValidationError(
            f'Toggle "{key}" tidak valid. Valid: {", ".join(TOGGLE_KEYS)}',
            details={"key": key},
        )


def _load_configs() -> dict[str, SystemConfig]:
    rows = db.session.execute(
        select(SystemConfig).where(SystemConfig.config_key.in_(TOGGLE_KEYS))
    ).scalars().all()
    return {row.config_key: row for row in rows}


def _upsert(configs: dict[str, SystemConfig], key: str, enabled: bool, actor_id: str | None) -> None:
    row = configs.get(key)
    if row is None:
        row = SystemConfig(config_key=key)
        db.session.add(row)
        configs[key] = row
    row.config_value = {"enabled": enabled}
    row.updated_by = actor_id


def _states(configs: dict[str, SystemConfig]) -> dict[str, bool]:
    return {key: (configs[key].enabled if key in configs else False) for key in TOGGLE_KEYS}


def _move_status(from_statuses: tuple[str, ...], to_status: str, actor_id: str | None) -> int:
    """Set-based status move. Returns the number of proposals touched."""
    result = db.session.execute(
        update(Proposal)
        .where(Proposal.status.in_(from_statuses))
        .values(status=to_status, updated_by=actor_id)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0


def _average(values: list[Decimal]) -> Decimal | None:
    if not values:
        return None
    return (sum(values, Decimal(0)) / len(values)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def is_fully_reviewed(assignments) -> bool:
    """Both reviewer slots present and each has complete administrative + substantive scores."""
    complete_slots = {a.reviewer_number for a in assignments if a.is_complete}
    return all(n in complete_slots for n in REVIEWER_NUMBERS)


def _finalize_review(actor_id: str | None) -> dict[str, int]:
    """
    Close the review phase: every under_review proposal becomes reviewed or
    not_reviewed. Snapshot read with assignments and assessments loaded in
    two extra queries, rows locked where the dialect supports it.
    """
    proposals = db.session.execute(
        select(Proposal)
        .where(Proposal.status == "under_review")
        .options(
            selectinload(Proposal.reviewer_assignments)
            .selectinload(ReviewerAssignment.penilaian_administrasi),
            selectinload(Proposal.reviewer_assignments)
            .selectinload(ReviewerAssignment.penilaian_substansi),
        )
        .order_by(Proposal.id)
        .with_for_update(of=Proposal)
        .execution_options(populate_existing=True)
    ).scalars().all()

    counts = {"reviewed": 0, "not_reviewed": 0}
    for proposal in proposals:
        assignments = proposal.reviewer_assignments
        if is_fully_reviewed(assignments):
            completed = [a for a in assignments if a.is_complete]
            proposal.administratif_score = _average(
                [Decimal(a.penilaian_administrasi.total_kesalahan) for a in completed]
            )
            proposal.substantif_score = _average(
                [Decimal(a.penilaian_substansi.total_skor) for a in completed]
            )
            proposal.status = "reviewed"
        else:
            proposal.status = "not_reviewed"
        proposal.updated_by = actor_id
        counts[proposal.status] += 1
    return counts


# ── Public API ─────────────────────────────────────────────────────────────────


def get_all_toggles() -> dict[str, bool]:
    """Current state of all three toggles (missing rows read as False)."""
    return _states(_load_configs())


def get_toggle(key: str) -> dict:
    _validate_key(key)
    return {"key": key, "enabled": is_enabled(key)}


def is_enabled(key: str) -> bool:
    row = db.session.execute(
        select(SystemConfig).where(SystemConfig.config_key == key)
    ).scalar_one_or_none()
    return row.enabled if row else False


def require_enabled(key: str, message: str) -> None:
    """Raise ValidationError unless the toggle is on."""
    if not is_enabled(key):
        raise ValidationError(message, details={"toggle": key})


def current_phase(states: dict[str, bool] | None = None) -> str:
    """SUBMISSION | REVIEW | REVISION | CLOSED."""
    states = states if states is not None else get_all_toggles()
    for key in TOGGLE_KEYS:
        if states.get(key):
            return PHASE_BY_TOGGLE[key]
    return "CLOSED"


def set_toggle(key: str, enabled: bool, actor_id: str | None) -> dict[str, bool]:
    """
    Flip one phase toggle and cascade proposal statuses.

    Enabling a toggle turns the other two off first. All writes (toggles,
    audit row, status cascade) are committed together.

    Args:
        key:      one of TOGGLE_KEYS.
        enabled:  target state.
        actor_id: admin user id, recorded on the config rows and audit log.

    Returns:
        {key: bool} for all three toggles after the change.

    Raises:
        ValidationError: unknown key or non-boolean ``enabled``.
    """
    _validate_key(key)
    if not isinstance(enabled, bool):
        raise ValidationError("enabled harus berupa boolean", details={"enabled": enabled})

    cascade: dict[str, int] = {}
    try:
        configs = _load_configs()
        before = _states(configs)
        old_value = before[key]

        if enabled:
            for other in TOGGLE_KEYS:
                if other != key:
                    _upsert(configs, other, False, actor_id)
        _upsert(configs, key, enabled, actor_id)

        write_audit(
            action="TOGGLE_UPDATE",
            entity_type="system_config",
            entity_id=key,
            user_id=actor_id,
            old_value={"enabled": old_value},
            new_value={"enabled": enabled},
        )

        # Review closes explicitly, or implicitly when another phase opens over it.
        review_closing = (key == REVIEW and not enabled) or (
            enabled and key != REVIEW and before[REVIEW]
        )

        if key == REVIEW and enabled:
            cascade["under_review"] = _move_status(("submitted", "revised"), "under_review", actor_id)
        if review_closing:
            cascade.update(_finalize_review(actor_id))
        if key == UPLOAD_REVISION and enabled:
            cascade["needs_revision"] = _move_status(("reviewed",), "needs_revision", actor_id)

        states = _states(configs)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Toggle update failed key=%s enabled=%s", key, enabled)
        raise

    logger.info(
        "Toggle %s → %s cascade=%s",
        key, enabled, cascade,
        extra={"toggle_key": key, "user_id": actor_id},
    )
    return states
