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

"""Tests for the NWS alerts HTTP client using a mocked requests session."""
from unittest.mock import MagicMock

import pytest
import requests

from poller.nws_client import (
    AlertSourceShapeError,
    AlertSourceTransportError,
    NWSAlertClient,
)


def _response(payload=None, status_error=None, json_error=None):
    response = MagicMock()
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


def _client(response):
    session = MagicMock()
    session.headers = {}
    session.get.return_value = response
    return NWSAlertClient("station/1.0 (ops@example.org)", base_url="https://api.test/alerts", session=session), session


def test_client_sets_identifying_headers():
    client, session = _client(_response({"features": []}))

    assert session.headers["User-Agent"] == "station/1.0 (ops@example.org)"
    assert session.headers["Accept"] == "application/json"
    assert client.active_url == "https://api.test/alerts/active"


def test_fetch_active_returns_features():
    features = [{"properties": {"id": "a"}}]
    client, session = _client(_response({"features": features}))

    assert client.fetch_active() == features
    session.get.assert_called_once_with("https://api.test/alerts/active", timeout=30)


def test_fetch_active_wraps_transport_errors():
    client, session = _client(_response())
    session.get.side_effect = requests.exceptions.ConnectionError("boom")

    with pytest.raises(AlertSourceTransportError):
        client.fetch_active()


def test_fetch_active_wraps_http_errors():
    client, _ = _client(_response(status_error=requests.exceptions.HTTPError("503 Server Error")))

    with pytest.raises(AlertSourceTransportError):
        client.fetch_active()


@pytest.mark.parametrize("payload", [{"type": "FeatureCollection"}, {"features": "nope"}, []])
def test_fetch_active_rejects_missing_features(payload):
    client, _ = _client(_response(payload))

    with pytest.raises(AlertSourceShapeError, match="Invalid API response"):
        client.fetch_active()


def test_fetch_active_rejects_non_json():
    client, _ = _client(_response(json_error=ValueError("Expecting value")))

    with pytest.raises(AlertSourceShapeError):
        client.fetch_active()


def test_fetch_by_id_url_encodes_the_id():
    feature = {"properties": {"id": "urn:oid:2.49.0.1.840.0.abc.001.1"}}
    client, session = _client(_response(feature))

    assert client.fetch_by_id("urn:oid:2.49.0.1.840.0.abc.001.1") == feature
    session.get.assert_called_once_with(
        "https://api.test/alerts/urn%3Aoid%3A2.49.0.1.840.0.abc.001.1", timeout=30
    )


def test_fetch_by_id_returns_none_on_failure():
    client, session = _client(_response())
    session.get.side_effect = requests.exceptions.Timeout("slow")

    assert client.fetch_by_id("urn:oid:2.49.0.1.840.0.abc.001.1") is None


def test_fetch_by_id_returns_none_without_properties():
    client, _ = _client(_response({"title": "Not Found", "status": 404}))

    assert client.fetch_by_id("urn:oid:2.49.0.1.840.0.abc.001.1") is None
