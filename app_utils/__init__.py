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

"""Utility helpers for the NWS alert importer."""

from .time import (
    UTC_TZ,
    ensure_utc,
    format_local_datetime,
    get_location_timezone,
    get_location_timezone_name,
    local_now,
    parse_timestamp,
    set_location_timezone,
    utc_now,
)
from .alert_ids import (
    ROOT_SEQUENCE,
    AlertIdentifier,
    derive_root_alert_id,
    parse_alert_id,
)
from .poll_intervals import (
    DEFAULT_POLLER_SETTINGS,
    POLL_INTERVAL_LABELS,
    POLL_INTERVAL_SECONDS,
    interval_label,
    interval_seconds,
    sanitize_poller_settings,
)

__all__ = [
    "UTC_TZ",
    "utc_now",
    "local_now",
    "ensure_utc",
    "parse_timestamp",
    "format_local_datetime",
    "get_location_timezone",
    "get_location_timezone_name",
    "set_location_timezone",
    "ROOT_SEQUENCE",
    "AlertIdentifier",
    "derive_root_alert_id",
    "parse_alert_id",
    "DEFAULT_POLLER_SETTINGS",
    "POLL_INTERVAL_LABELS",
    "POLL_INTERVAL_SECONDS",
    "interval_label",
    "interval_seconds",
    "sanitize_poller_settings",
]
