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

"""Tests for alert payload mapping and the weather alert store."""
import json

import pytest

from app_core.alert_store import AlertPersistError, AlertStore
from app_core.alerts import DEFAULT_ALERT_TITLE, build_alert_record
from conftest import make_alert_id, make_feature


def test_build_record_maps_nws_properties():
    raw_id = make_alert_id("abc123", "002", "1")
    record = build_alert_record(make_feature(raw_id))

    assert record.nws_id == raw_id
    assert (record.identifier, record.sequence, record.version) == ("abc123", "002", "1")
    assert record.title == "Severe Thunderstorm Warning issued for Allen County"
    assert record.area_desc == "Allen, OH"
    assert json.loads(record.same_codes) == ["039003"]
    assert json.loads(record.ugc_codes) == ["OHC003"]
    assert record.message_type == "Alert"
    assert record.sender_name == "NWS Northern Indiana"
    assert record.vtec.startswith("/O.NEW.KIWX.SV.W.0042")
    assert json.loads(record.geometry_coordinates)[0][0] == [-84.1, 40.7]
    assert record.source_url == f"https://api.weather.gov/alerts/{raw_id}"


def test_build_record_defaults_missing_fields():
    feature = {"properties": {"id": make_alert_id(), "headline": None}}
    record = build_alert_record(feature)

    assert record.title == DEFAULT_ALERT_TITLE
    assert record.same_codes == "[]"
    assert record.ugc_codes == "[]"
    assert record.vtec == ""
    assert record.geometry_coordinates == ""
    assert record.description == ""


def test_build_record_rejects_bad_payloads():
    assert build_alert_record({}) is None
    assert build_alert_record({"properties": {"id": "bad.id"}}) is None


def test_insert_and_lookup(db_session):
    store = AlertStore(db_session)
    root = store.insert(build_alert_record(make_feature(make_alert_id("abc", "001", "1"))))
    child = store.insert(build_alert_record(make_feature(make_alert_id("abc", "002", "1"))), root)

    assert store.find_by_full_id(make_alert_id("abc", "002", "1")).id == child.id
    assert store.find_by_full_id(make_alert_id("abc", "003", "1")) is None
    assert store.find_root_by_identifier("abc").id == root.id
    assert store.find_root_by_identifier("other") is None
    assert child.parent_id == root.id
    assert [alert.id for alert in store.children_of(root)] == [child.id]
    assert store.count() == 2


def test_root_lookup_ignores_follow_ups(db_session):
    store = AlertStore(db_session)
    store.insert(build_alert_record(make_feature(make_alert_id("abc", "002", "1"))))

    assert store.find_root_by_identifier("abc") is None


def test_duplicate_insert_raises_persist_error(db_session):
    store = AlertStore(db_session)
    record = build_alert_record(make_feature(make_alert_id("dup", "001", "1")))
    store.insert(record)

    with pytest.raises(AlertPersistError, match="Failed to create alert record"):
        store.insert(record)

    assert store.count() == 1


def test_recent_orders_newest_first(db_session):
    store = AlertStore(db_session)
    first = store.insert(build_alert_record(make_feature(make_alert_id("one", "001", "1"))))
    second = store.insert(build_alert_record(make_feature(make_alert_id("two", "001", "1"))))

    recent_ids = [alert.id for alert in store.recent(5)]
    assert set(recent_ids) == {first.id, second.id}
    assert [alert.sequence for alert in store.recent_roots(5)] == ["001", "001"]
