"""Database models used by the NWS alert importer."""

from __future__ import annotations

from typing import Any, Dict

from app_utils import ROOT_SEQUENCE, utc_now
from app_utils.poll_intervals import DEFAULT_POLLER_SETTINGS

from .extensions import db


class WeatherAlert(db.Model):
    """One imported NWS alert message.

    Follow-up messages point at the root message of their series through
    ``parent_id``. Timestamps are stored exactly as NWS sent them.
    """

    __tablename__ = "weather_alerts"

    id = db.Column(db.Integer, primary_key=True)
    parent_id = db.Column(
        db.Integer,
        db.ForeignKey("weather_alerts.id", ondelete="SET NULL"),
        index=True,
    )

    nws_id = db.Column(db.String(255), unique=True, nullable=False)
    identifier = db.Column(db.String(128), nullable=False, index=True)
    sequence = db.Column(db.String(16), nullable=False, index=True)
    version = db.Column(db.String(16), nullable=False)

    title = db.Column(db.Text, nullable=False)
    area_desc = db.Column(db.Text, default="")
    same_codes = db.Column(db.Text, default="[]")
    ugc_codes = db.Column(db.Text, default="[]")
    sent = db.Column(db.String(64), default="")
    effective = db.Column(db.String(64), default="")
    onset = db.Column(db.String(64), default="")
    ends = db.Column(db.String(64), default="")
    expires = db.Column(db.String(64), default="")
    status = db.Column(db.String(50), default="")
    message_type = db.Column(db.String(50), default="")
    severity = db.Column(db.String(50), default="")
    certainty = db.Column(db.String(50), default="")
    urgency = db.Column(db.String(50), default="")
    event = db.Column(db.String(255), default="")
    sender_name = db.Column(db.String(255), default="")
    headline = db.Column(db.Text, default="")
    description = db.Column(db.Text, default="")
    instruction = db.Column(db.Text, default="")
    vtec = db.Column(db.String(255), default="")
    geometry_coordinates = db.Column(db.Text, default="")
    source_url = db.Column(db.String(512), default="")
    created_at = db.Column(db.DateTime(timezone=True), default=utc_now)

    parent = db.relationship("WeatherAlert", remote_side=[id])

    @property
    def is_root(self) -> bool:
        return self.sequence == ROOT_SEQUENCE

    def to_summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "nws_id": self.nws_id,
            "title": self.title,
            "event": self.event,
            "identifier": self.identifier,
            "sequence": self.sequence,
            "version": self.version,
            "sent": self.sent,
            "parent_id": self.parent_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<WeatherAlert {self.identifier}.{self.sequence}.{self.version}>"


class PollerState(db.Model):
    """Key/value storage for poller bookkeeping (last poll time, ledger)."""

    __tablename__ = "poller_state"

    key = db.Column(db.String(64), primary_key=True)
    value = db.Column(db.JSON)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
    )


class PollerSettings(db.Model):
    __tablename__ = "poller_settings"

    id = db.Column(db.Integer, primary_key=True)
    poll_interval = db.Column(
        db.String(32),
        nullable=False,
        default=DEFAULT_POLLER_SETTINGS["poll_interval"],
    )
    user_agent = db.Column(
        db.String(255),
        nullable=False,
        default=DEFAULT_POLLER_SETTINGS["user_agent"],
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "poll_interval": self.poll_interval,
            "user_agent": self.user_agent,
        }


class PollHistory(db.Model):
    __tablename__ = "poll_history"

    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.DateTime(timezone=True), default=utc_now)
    status = db.Column(db.String(20), nullable=False)
    alerts_fetched = db.Column(db.Integer, default=0)
    alerts_uploaded = db.Column(db.Integer, default=0)
    alerts_skipped = db.Column(db.Integer, default=0)
    alerts_dismissed = db.Column(db.Integer, default=0)
    error_count = db.Column(db.Integer, default=0)
    execution_time_ms = db.Column(db.Integer)
    error_message = db.Column(db.Text)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "status": self.status,
            "alerts_fetched": self.alerts_fetched,
            "alerts_uploaded": self.alerts_uploaded,
            "alerts_skipped": self.alerts_skipped,
            "alerts_dismissed": self.alerts_dismissed,
            "error_count": self.error_count,
            "execution_time_ms": self.execution_time_ms,
            "error_message": self.error_message,
        }


class SystemLog(db.Model):
    __tablename__ = "system_log"

    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.DateTime(timezone=True), default=utc_now)
    level = db.Column(db.String(20), nullable=False)
    message = db.Column(db.Text, nullable=False)
    module = db.Column(db.String(100))
    details = db.Column(db.JSON)


__all__ = [
    "PollHistory",
    "PollerSettings",
    "PollerState",
    "SystemLog",
    "WeatherAlert",
]
