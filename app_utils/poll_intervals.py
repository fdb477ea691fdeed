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

"""Poller settings defaults and helpers for the NWS alert importer."""

import os
from typing import Any, Dict, Mapping, Optional

POLL_INTERVAL_ONE_MINUTE = "every_one_minute"
POLL_INTERVAL_TWO_MINUTES = "every_two_minutes"
POLL_INTERVAL_FIVE_MINUTES = "every_five_minutes"

POLL_INTERVAL_SECONDS: Dict[str, int] = {
    POLL_INTERVAL_ONE_MINUTE: 60,
    POLL_INTERVAL_TWO_MINUTES: 120,
    POLL_INTERVAL_FIVE_MINUTES: 300,
}

POLL_INTERVAL_LABELS: Dict[str, str] = {
    POLL_INTERVAL_ONE_MINUTE: "Every 1 Minute",
    POLL_INTERVAL_TWO_MINUTES: "Every 2 Minutes",
    POLL_INTERVAL_FIVE_MINUTES: "Every 5 Minutes",
}

DEFAULT_POLL_INTERVAL = POLL_INTERVAL_TWO_MINUTES
DEFAULT_USER_AGENT = "wxalerts.org/1.0 (support@wxalerts.org)"

DEFAULT_POLLER_SETTINGS: Dict[str, str] = {
    "poll_interval": os.getenv("NWS_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
    "user_agent": os.getenv("NWS_USER_AGENT", DEFAULT_USER_AGENT),
}

_MAX_USER_AGENT_LENGTH = 255


def normalise_poll_interval(value: Optional[str]) -> str:
    """Return ``value`` if it names a known interval, else the default."""

    candidate = str(value or "").strip().lower()
    if candidate in POLL_INTERVAL_SECONDS:
        return candidate
    return DEFAULT_POLL_INTERVAL


def interval_seconds(name: Optional[str]) -> int:
    return POLL_INTERVAL_SECONDS.get(normalise_poll_interval(name), 120)


def interval_label(name: Optional[str]) -> str:
    return POLL_INTERVAL_LABELS.get(str(name or ""), "Unknown")


def sanitize_user_agent(value: Any) -> str:
    """Collapse whitespace and strip control characters from a user agent."""

    if value is None:
        return ""
    text = "".join(ch for ch in str(value) if ch.isprintable())
    return " ".join(text.split())[:_MAX_USER_AGENT_LENGTH]


def sanitize_poller_settings(
    data: Mapping[str, Any],
    fallback: Optional[Mapping[str, Any]] = None,
) -> Dict[str, str]:
    """Validate operator supplied settings.

    Unknown intervals fall back to the default interval; a blank user agent
    keeps the fallback value (or the default when there is none).
    """

    base = dict(fallback or DEFAULT_POLLER_SETTINGS)

    poll_interval = data.get("poll_interval")
    if poll_interval is None:
        poll_interval = base.get("poll_interval")

    user_agent = sanitize_user_agent(data.get("user_agent"))
    if not user_agent:
        user_agent = sanitize_user_agent(base.get("user_agent")) or DEFAULT_USER_AGENT

    return {
        "poll_interval": normalise_poll_interval(poll_interval),
        "user_agent": user_agent,
    }


__all__ = [
    "DEFAULT_POLLER_SETTINGS",
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_USER_AGENT",
    "POLL_INTERVAL_FIVE_MINUTES",
    "POLL_INTERVAL_LABELS",
    "POLL_INTERVAL_ONE_MINUTE",
    "POLL_INTERVAL_SECONDS",
    "POLL_INTERVAL_TWO_MINUTES",
    "interval_label",
    "interval_seconds",
    "normalise_poll_interval",
    "sanitize_poller_settings",
    "sanitize_user_agent",
]
