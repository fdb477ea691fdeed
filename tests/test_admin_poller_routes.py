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

"""Flask route tests for the NWS poller admin endpoints."""
import pytest

from app_core.models import PollHistory, SystemLog
from conftest import make_alert_id, make_feature
from poller import alert_importer
from poller.nws_client import AlertSourceTransportError

ROOT_ID = make_alert_id("route1", "001", "1")
FOLLOW_UP_ID = make_alert_id("route1", "002", "1")


@pytest.fixture
def wired_client(monkeypatch, fake_client):
    """Route every importer built by the app to the fake NWS client."""

    monkeypatch.setattr(alert_importer, "NWSAlertClient", lambda *args, **kwargs: fake_client)
    return fake_client


def test_settings_round_trip(client):
    response = client.get("/admin/nws/settings")
    assert response.status_code == 200
    assert response.get_json()["intervals"]["every_one_minute"] == "Every 1 Minute"

    response = client.put(
        "/admin/nws/settings",
        json={"poll_interval": "every_one_minute", "user_agent": "station/9.0 (ops@example.org)"},
    )
    assert response.status_code == 200
    assert response.get_json()["settings"] == {
        "poll_interval": "every_one_minute",
        "user_agent": "station/9.0 (ops@example.org)",
    }

    assert client.get("/admin/nws/settings").get_json()["settings"]["poll_interval"] == "every_one_minute"


def test_manual_poll_runs_cycle_and_records_history(app, client, wired_client):
    wired_client.features = [make_feature(ROOT_ID), make_feature(FOLLOW_UP_ID)]

    response = client.post("/admin/nws/poll")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["success"] is True
    assert payload["data"]["status"] == "success"
    assert payload["data"]["results"]["uploaded"] == 2
    assert wired_client.closed

    history = PollHistory.query.all()
    assert len(history) == 1
    assert history[0].status == "SUCCESS"
    assert history[0].alerts_uploaded == 2
    messages = [entry.message for entry in SystemLog.query.all()]
    assert "Manual NWS poll triggered" in messages
    assert "NWS polling successful: 2 new alerts" in messages


def test_manual_poll_respects_cadence(client, wired_client):
    wired_client.features = [make_feature(ROOT_ID)]

    client.post("/admin/nws/poll")
    response = client.post("/admin/nws/poll")

    assert response.status_code == 200
    assert response.get_json()["data"]["status"] == "skipped"
    assert wired_client.fetch_active_calls == 1


def test_manual_poll_reports_fetch_errors(client, wired_client):
    wired_client.fetch_error = AlertSourceTransportError("503 Server Error")

    response = client.post("/admin/nws/poll")

    assert response.status_code == 502
    assert response.get_json()["data"] == {"status": "error", "message": "503 Server Error"}
    assert PollHistory.query.one().status == "ERROR"


def test_status_shows_alert_series(client, wired_client):
    wired_client.features = [make_feature(ROOT_ID), make_feature(FOLLOW_UP_ID)]
    client.post("/admin/nws/poll")

    status = client.get("/admin/nws/status").get_json()

    assert status["stored_alerts"] == 2
    assert status["processed_alerts"] == 2
    assert status["last_poll"] is not None
    assert status["poll_running"] is False
    assert len(status["recent_alerts"]) == 2
    assert len(status["alert_series"]) == 1
    series = status["alert_series"][0]
    assert series["nws_id"] == ROOT_ID
    assert [child["nws_id"] for child in series["children"]] == [FOLLOW_UP_ID]
    assert status["poll_history"][0]["status"] == "SUCCESS"


def test_status_before_first_poll(client):
    status = client.get("/admin/nws/status").get_json()

    assert status["last_poll"] is None
    assert status["last_poll_display"] == "Never"
    assert status["next_eligible_poll"] is None
    assert status["alert_series"] == []


def test_log_view_and_clear(client, wired_client):
    assert client.get("/admin/nws/log").get_json() == {"log": ""}

    client.post("/admin/nws/poll")
    log_text = client.get("/admin/nws/log").get_json()["log"]
    assert "=== Poll Complete ===" in log_text

    assert client.delete("/admin/nws/log").get_json() == {"cleared": True}
    assert client.delete("/admin/nws/log").get_json() == {"cleared": False}


def test_unknown_route_returns_json_404(client):
    response = client.get("/admin/nws/missing")

    assert response.status_code == 404
    assert response.get_json() == {"error": "Not found"}


def test_route_modules_register_admin_blueprint(app):
    from webapp import RouteModule, iter_route_modules

    modules = list(iter_route_modules())

    assert [module.name for module in modules] == ["routes_admin"]
    assert all(isinstance(module, RouteModule) for module in modules)
    assert "nws_poller" in app.blueprints
