"""
EAS Station - Emergency Alert System
Copyright (c) 2025 Timothy Kramer (KR8MER)

This file is part of EAS Station.

EAS Station is dual-licensed software:
- GNU Affero General Public License v3 (AGPL-3.0) for open-source use
- Commercial License for proprietary use

You should have received a copy of both licenses with this software.
For more information, see LICENSE and LICENSE-COMMERCIAL files.

IMPORTANT: This software cannot be rebranded or have attribution removed.
See NOTICE file for complete terms.

Repository: https://github.com/KR8MER/eas-station
"""

from __future__ import annotations

"""Helpers for loading and updating persisted poller settings."""

import threading
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError

from app_utils.poll_intervals import (
    DEFAULT_POLLER_SETTINGS,
    interval_label,
    interval_seconds,
    normalise_poll_interval,
    sanitize_poller_settings,
)

from .extensions import db
from .models import PollerSettings

_settings_lock = threading.Lock()


class PollerSettingsError(Exception):
    """Raised when poller settings cannot be saved."""


@dataclass(frozen=True)
class PollerConfig:
    """Settings snapshot handed to the importer for one cycle."""

    poll_interval: str
    user_agent: str

    @property
    def interval_seconds(self) -> int:
        return interval_seconds(self.poll_interval)

    @property
    def interval_label(self) -> str:
        return interval_label(self.poll_interval)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PollerConfig":
        cleaned = sanitize_poller_settings(data)
        return cls(poll_interval=cleaned["poll_interval"], user_agent=cleaned["user_agent"])


def _log_warning(message: str) -> None:
    if has_app_context():
        current_app.logger.warning(message)


def _ensure_settings_record() -> PollerSettings:
    record = PollerSettings.query.order_by(PollerSettings.id).first()
    if not record:
        defaults = sanitize_poller_settings(DEFAULT_POLLER_SETTINGS)
        record = PollerSettings(**defaults)
        db.session.add(record)
        db.session.commit()
    return record


def get_poller_settings() -> Dict[str, str]:
    with _settings_lock:
        record = _ensure_settings_record()
        return sanitize_poller_settings(record.to_dict())


def get_poller_config() -> PollerConfig:
    return PollerConfig.from_mapping(get_poller_settings())


def update_poller_settings(data: Mapping[str, Any]) -> Dict[str, str]:
    """Validate and persist operator changes, returning the stored values."""

    with _settings_lock:
        record = _ensure_settings_record()

        requested_interval = data.get("poll_interval")
        if requested_interval is not None and normalise_poll_interval(requested_interval) != str(
            requested_interval
        ).strip().lower():
            _log_warning(
                "Unknown poll interval %r; using %s" % (requested_interval, normalise_poll_interval(None))
            )

        cleaned = sanitize_poller_settings(data, fallback=record.to_dict())
        record.poll_interval = cleaned["poll_interval"]
        record.user_agent = cleaned["user_agent"]

        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PollerSettingsError(f"Failed to save poller settings: {exc}") from exc

        return cleaned


__all__ = [
    "PollerConfig",
    "PollerSettingsError",
    "get_poller_config",
    "get_poller_settings",
    "update_poller_settings",
]
