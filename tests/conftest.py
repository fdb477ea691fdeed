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

"""Pytest configuration and shared fixtures for the NWS alert importer tests.

This module provides common fixtures, test utilities, and configuration
that can be used across all test modules.
"""
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Add project root to Python path for imports
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite://")


# ============================================================================
# Session-level fixtures
# ============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


# ============================================================================
# Function-level fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path) -> Path:
    """Keep every test away from Redis, the real transcript file and shared lock files."""

    log_path = tmp_path / "nws-alerts-log.txt"
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("NWS_POLL_LOG_PATH", str(log_path))
    monkeypatch.setenv("NWS_POLL_LOCK_DIR", str(tmp_path))
    return log_path


@pytest.fixture
def app():
    """Flask app bound to a private in-memory SQLite database."""

    from app import create_app
    from app_core.extensions import db

    application = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SQLALCHEMY_ENGINE_OPTIONS": {},
    })

    with application.app_context():
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    from app_core.extensions import db

    return db.session


# ============================================================================
# Test data fixtures
# ============================================================================

ALERT_ID_PREFIX = "urn:oid:2.49.0.1.840.0"


def make_alert_id(identifier: str = "abc123", sequence: str = "001", version: str = "1") -> str:
    return f"{ALERT_ID_PREFIX}.{identifier}.{sequence}.{version}"


def make_feature(
    raw_id: Optional[str] = None,
    event: str = "Severe Thunderstorm Warning",
    headline: Optional[str] = "Severe Thunderstorm Warning issued for Allen County",
    **properties: Any,
) -> Dict[str, Any]:
    """Build a GeoJSON feature shaped like the NWS ``/alerts`` response."""

    raw_id = raw_id or make_alert_id()
    props: Dict[str, Any] = {
        "id": raw_id,
        "areaDesc": "Allen, OH",
        "geocode": {"SAME": ["039003"], "UGC": ["OHC003"]},
        "sent": "2025-05-01T12:00:00-04:00",
        "effective": "2025-05-01T12:00:00-04:00",
        "onset": "2025-05-01T12:00:00-04:00",
        "ends": "2025-05-01T13:00:00-04:00",
        "expires": "2025-05-01T13:00:00-04:00",
        "status": "Actual",
        "messageType": "Alert",
        "severity": "Severe",
        "certainty": "Observed",
        "urgency": "Immediate",
        "event": event,
        "senderName": "NWS Northern Indiana",
        "headline": headline,
        "description": "At noon, a severe thunderstorm was located near Lima.",
        "instruction": "Move to an interior room.",
        "parameters": {"VTEC": ["/O.NEW.KIWX.SV.W.0042.250501T1600Z-250501T1700Z/"]},
    }
    props.update(properties)
    return {
        "id": f"https://api.weather.gov/alerts/{raw_id}",
        "type": "Feature",
        "geometry": {"type": "Polygon", "coordinates": [[[-84.1, 40.7], [-84.0, 40.8], [-84.1, 40.7]]]},
        "properties": props,
    }


class FakeAlertClient:
    """Stand-in for ``NWSAlertClient`` that serves canned features."""

    active_url = "https://api.weather.gov/alerts/active"

    def __init__(self, features: Optional[List[Any]] = None, by_id: Optional[Dict[str, Any]] = None):
        self.features = list(features or [])
        self.by_id = dict(by_id or {})
        self.fetch_error: Optional[Exception] = None
        self.fetch_active_calls = 0
        self.fetch_by_id_calls: List[str] = []
        self.closed = False

    def fetch_active(self) -> List[Any]:
        self.fetch_active_calls += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        return list(self.features)

    def fetch_by_id(self, raw_id: str) -> Optional[Dict[str, Any]]:
        self.fetch_by_id_calls.append(raw_id)
        return self.by_id.get(raw_id)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_client() -> FakeAlertClient:
    return FakeAlertClient()


# ============================================================================
# Pytest configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
