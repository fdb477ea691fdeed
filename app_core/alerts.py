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

"""Mapping of NWS alert payloads onto ``WeatherAlert`` column values."""

import json
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

from app_utils import AlertIdentifier, parse_alert_id

DEFAULT_ALERT_TITLE = "NWS Weather Alert"


@dataclass(frozen=True)
class AlertRecord:
    """Column values for one alert, built before anything touches the database."""

    nws_id: str
    identifier: str
    sequence: str
    version: str
    title: str
    area_desc: str = ""
    same_codes: str = "[]"
    ugc_codes: str = "[]"
    sent: str = ""
    effective: str = ""
    onset: str = ""
    ends: str = ""
    expires: str = ""
    status: str = ""
    message_type: str = ""
    severity: str = ""
    certainty: str = ""
    urgency: str = ""
    event: str = ""
    sender_name: str = ""
    headline: str = ""
    description: str = ""
    instruction: str = ""
    vtec: str = ""
    geometry_coordinates: str = ""
    source_url: str = ""

    def to_columns(self) -> Dict[str, str]:
        return asdict(self)


def _text(properties: Mapping[str, Any], key: str) -> str:
    value = properties.get(key)
    if value is None:
        return ""
    return str(value)


def _first_vtec(properties: Mapping[str, Any]) -> str:
    parameters = properties.get("parameters") or {}
    if not isinstance(parameters, Mapping):
        return ""
    vtec = parameters.get("VTEC") or []
    if isinstance(vtec, (list, tuple)) and vtec:
        return str(vtec[0])
    return ""


def _serialise_codes(geocode: Any, key: str) -> str:
    values = geocode.get(key) if isinstance(geocode, Mapping) else None
    return json.dumps(list(values or []))


def _serialise_coordinates(alert_payload: Mapping[str, Any]) -> str:
    geometry = alert_payload.get("geometry")
    if not isinstance(geometry, Mapping) or "coordinates" not in geometry:
        return ""
    return json.dumps(geometry["coordinates"])


def build_alert_record(
    alert_payload: Mapping[str, Any],
    parsed: Optional[AlertIdentifier] = None,
) -> Optional[AlertRecord]:
    """Build an ``AlertRecord`` from an NWS GeoJSON feature.

    Returns ``None`` when the payload has no ``properties`` or its id cannot
    be parsed.
    """

    properties = alert_payload.get("properties")
    if not isinstance(properties, Mapping):
        return None

    if parsed is None:
        parsed = parse_alert_id(properties.get("id"))
        if parsed is None:
            return None

    headline = _text(properties, "headline")
    geocode = properties.get("geocode") or {}

    return AlertRecord(
        nws_id=parsed.full_id,
        identifier=parsed.identifier,
        sequence=parsed.sequence,
        version=parsed.version,
        title=headline or DEFAULT_ALERT_TITLE,
        area_desc=_text(properties, "areaDesc"),
        same_codes=_serialise_codes(geocode, "SAME"),
        ugc_codes=_serialise_codes(geocode, "UGC"),
        sent=_text(properties, "sent"),
        effective=_text(properties, "effective"),
        onset=_text(properties, "onset"),
        ends=_text(properties, "ends"),
        expires=_text(properties, "expires"),
        status=_text(properties, "status"),
        message_type=_text(properties, "messageType"),
        severity=_text(properties, "severity"),
        certainty=_text(properties, "certainty"),
        urgency=_text(properties, "urgency"),
        event=_text(properties, "event"),
        sender_name=_text(properties, "senderName"),
        headline=headline,
        description=_text(properties, "description"),
        instruction=_text(properties, "instruction"),
        vtec=_first_vtec(properties),
        geometry_coordinates=_serialise_coordinates(alert_payload),
        source_url=str(alert_payload.get("id") or ""),
    )


__all__ = ["AlertRecord", "DEFAULT_ALERT_TITLE", "build_alert_record"]
