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

"""Helpers for decomposing NWS alert identifiers.

NWS alert ids look like ``urn:oid:2.49.0.1.840.0.<identifier>.<sequence>.<version>``.
The ``identifier`` segment groups every message belonging to one event series,
``sequence`` ``001`` marks the originating (root) message and anything else is
a follow-up update.
"""

from dataclasses import dataclass
from typing import Optional

ROOT_SEQUENCE = "001"
ROOT_VERSION = "1"
MIN_ID_SEGMENTS = 9

_IDENTIFIER_INDEX = 6
_SEQUENCE_INDEX = 7
_VERSION_INDEX = 8


@dataclass(frozen=True)
class AlertIdentifier:
    """Parsed components of a raw NWS alert id."""

    full_id: str
    identifier: str
    sequence: str
    version: str

    @property
    def is_root(self) -> bool:
        return self.sequence == ROOT_SEQUENCE


def parse_alert_id(raw_id: Optional[str]) -> Optional[AlertIdentifier]:
    """Split ``raw_id`` on dots and map segments 6/7/8.

    Returns ``None`` when fewer than nine segments are present. Segment
    contents are not validated.
    """

    if not isinstance(raw_id, str):
        return None

    parts = raw_id.split(".")
    if len(parts) < MIN_ID_SEGMENTS:
        return None

    return AlertIdentifier(
        full_id=raw_id,
        identifier=parts[_IDENTIFIER_INDEX],
        sequence=parts[_SEQUENCE_INDEX],
        version=parts[_VERSION_INDEX],
    )


def derive_root_alert_id(parsed: AlertIdentifier) -> str:
    """Guess the raw id of the root message for a follow-up alert.

    Replaces ``.<sequence>.<version>`` with ``.001.1``. This assumes the root
    message was published as version 1, which NWS does not guarantee, so a
    lookup with the derived id can miss even when the root exists upstream.
    """

    return parsed.full_id.replace(
        f".{parsed.sequence}.{parsed.version}",
        f".{ROOT_SEQUENCE}.{ROOT_VERSION}",
    )


__all__ = [
    "AlertIdentifier",
    "MIN_ID_SEGMENTS",
    "ROOT_SEQUENCE",
    "ROOT_VERSION",
    "derive_root_alert_id",
    "parse_alert_id",
]
