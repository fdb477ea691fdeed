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

"""Timezone and datetime helpers for the NWS alert importer."""

import logging
import os
from datetime import datetime
from typing import Any, Optional

import pytz

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE_NAME = os.getenv("DEFAULT_TIMEZONE", "America/New_York")
UTC_TZ = pytz.UTC
_location_timezone = pytz.timezone(DEFAULT_TIMEZONE_NAME)


def get_location_timezone():
    """Return the configured display timezone object."""

    return _location_timezone


def get_location_timezone_name() -> str:
    tz = get_location_timezone()
    return getattr(tz, "zone", DEFAULT_TIMEZONE_NAME)


def set_location_timezone(tz_name: Optional[str]) -> None:
    """Update the timezone used for operator-facing timestamps."""

    global _location_timezone

    if not tz_name:
        return

    try:
        _location_timezone = pytz.timezone(tz_name)
        logger.info("Updated location timezone to %s", tz_name)
    except pytz.UnknownTimeZoneError as exc:
        logger.warning(
            "Invalid timezone '%s', keeping %s: %s",
            tz_name,
            get_location_timezone_name(),
            exc,
        )


def utc_now() -> datetime:
    """Return the current timezone-aware UTC timestamp."""

    return datetime.now(UTC_TZ)


def local_now() -> datetime:
    return utc_now().astimezone(get_location_timezone())


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""

    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC_TZ)
    return dt.astimezone(UTC_TZ)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a stored poll timestamp.

    Accepts ISO-8601 strings (as written by this application) and plain
    epoch seconds, which older state rows may still carry.
    """

    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return ensure_utc(value)

    if isinstance(value, (int, float)):
        if value <= 0:
            return None
        return datetime.fromtimestamp(float(value), UTC_TZ)

    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        logger.warning("Could not parse stored timestamp: %s", value)
        return None


def format_local_datetime(dt: Optional[datetime], include_utc: bool = True) -> str:
    """Format a datetime in the configured local time with optional UTC."""

    dt = ensure_utc(dt)
    if not dt:
        return "Never"

    local_dt = dt.astimezone(get_location_timezone())

    if include_utc:
        utc_str = dt.strftime("%H:%M:%S UTC")
        return f"{local_dt.strftime('%Y-%m-%d %H:%M:%S %Z')} ({utc_str})"

    return local_dt.strftime("%Y-%m-%d %H:%M:%S %Z")
