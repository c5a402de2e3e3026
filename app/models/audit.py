"""
PKM Review Platform
Audit domain model.

Models:
    - AuditLog: append-only trail for phase toggles and admin status overrides.
"""

from datetime import datetime, timezone

from app.models import db

# ── Constants ────────────────────────────────────────────────────────────────

AUDIT_ACTIONS = {
    "TOGGLE_UPDATE",
    "PROPOSAL_STATUS_OVERRIDE",
    "REVIEWER_ASSIGN",
    "REVIEWER_UNASSIGN",
}


class AuditLog(db.Model):
    """
    Immutable audit row. ``old_value`` / ``new_value`` carry the snapshot of
    the changed state.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("idx_audit_entity", "entity_type", "entity_id"),
        db.Index("idx_audit_action", "action"),
        db.Index("idx_audit_ts", "timestamp"),
    )

    id = db.Column(db.Integer, primary_key=True)
    action = db.Column(db.String(60), nullable=False)
    entity_type = db.Column(
        db.String(30), nullable=False,
        comment="system_config | proposal | reviewer_assignment",
    )
    entity_id = db.Column(db.String(64), nullable=False)
    old_value = db.Column(db.JSON, nullable=True)
    new_value = db.Column(db.JSON, nullable=True)
    user_id = db.Column(db.String(64), nullable=True, index=True)
    timestamp = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "user_id": self.user_id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    def __repr__(self):
        return f"<AuditLog {self.id}: {self.action} on {self.entity_type}/{self.entity_id}>"


# ── Convenience writer ───────────────────────────────────────────────────────

def write_audit(
    *,
    action: str,
    entity_type: str,
    entity_id,
    user_id: str | None = None,
    old_value: dict | None = None,
    new_value: dict | None = None,
) -> AuditLog:
    """
    Append a single audit row.  Uses ``flush`` so callers keep
    transaction control.
    """
    entry = AuditLog(
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        user_id=user_id,
        old_value=old_value,
        new_value=new_value,
    )
    db.session.add(entry)
    db.session.flush()
    return entry
