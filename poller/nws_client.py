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

"""HTTP client for the NWS ``/alerts`` API."""

import logging
import os
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import certifi
import requests

NWS_ALERTS_BASE_URL = os.getenv("NWS_ALERTS_URL", "https://api.weather.gov/alerts").rstrip("/")
REQUEST_TIMEOUT_SECONDS = 30


class AlertSourceError(Exception):
    """Base class for failures talking to the alert source."""


class AlertSourceTransportError(AlertSourceError):
    """The request failed before a usable response arrived."""


class AlertSourceShapeError(AlertSourceError):
    """The response arrived but did not contain the expected fields."""


class NWSAlertClient:
    """Fetches the active alert collection and single alerts by id."""

    def __init__(
        self,
        user_agent: str,
        base_url: str = NWS_ALERTS_BASE_URL,
        timeout: int = REQUEST_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": user_agent,
            "Accept": "application/json",
        })
        if session is None:
            ca_bundle_override = os.getenv("REQUESTS_CA_BUNDLE") or os.getenv("NWS_POLLER_CA_BUNDLE")
            if ca_bundle_override:
                self.logger.debug("Using custom CA bundle for NWS polling: %s", ca_bundle_override)
                self.session.verify = ca_bundle_override
            else:
                self.session.verify = certifi.where()

    @property
    def active_url(self) -> str:
        return f"{self.base_url}/active"

    def alert_url(self, raw_id: str) -> str:
        return f"{self.base_url}/{quote(raw_id, safe='')}"

    def fetch_active(self) -> List[Dict[str, Any]]:
        """Return the ``features`` array of the active alert collection."""

        url = self.active_url
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            self.logger.error("Error fetching from %s: %s", url, exc)
            raise AlertSourceTransportError(str(exc)) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise AlertSourceShapeError("Invalid API response") from exc

        features = data.get("features") if isinstance(data, dict) else None
        if not isinstance(features, list):
            self.logger.warning("NWS response from %s missing 'features' array", url)
            raise AlertSourceShapeError("Invalid API response")

        return features

    def fetch_by_id(self, raw_id: str) -> Optional[Dict[str, Any]]:
        """Return the alert feature for ``raw_id`` or ``None`` when unavailable."""

        url = self.alert_url(raw_id)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as exc:
            self.logger.warning("Could not fetch alert %s: %s", raw_id, exc)
            return None
        except ValueError:
            self.logger.warning("Alert %s returned a non-JSON body", raw_id)
            return None

        if not isinstance(data, dict) or not isinstance(data.get("properties"), dict):
            return None
        return data

    def close(self) -> None:
        self.session.close()


__all__ = [
    "AlertSourceError",
    "AlertSourceShapeError",
    "AlertSourceTransportError",
    "NWSAlertClient",
    "NWS_ALERTS_BASE_URL",
    "REQUEST_TIMEOUT_SECONDS",
]
