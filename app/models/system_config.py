"""
PKM Review Platform
System configuration key-value store.

The three phase toggles live here as ``{"enabled": bool}`` JSON values:
    uploadProposalEnabled | reviewEnabled | uploadRevisionEnabled

Rows are created lazily; a missing row reads as disabled.
"""

from datetime import datetime, timezone

from app.models import db


def _utcnow():
    return datetime.now(timezone.utc)


class SystemConfig(db.Model):
    __tablename__ = "system_config"

    id = db.Column(db.Integer, primary_key=True)
    config_key = db.Column(db.String(100), unique=True, nullable=False)
    config_value = db.Column(db.JSON, nullable=False, default=dict)
    updated_by = db.Column(db.String(64), nullable=True)
    updated_at = db.Column(
        db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )

    @property
    def enabled(self) -> bool:
        return bool((self.config_value or {}).get("enabled", False))

    def to_dict(self):
        return {
            "config_key": self.config_key,
            "config_value": self.config_value,
            "updated_by": self.updated_by,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<SystemConfig {self.config_key}={self.config_value}>"
