"""Tests for alert and snapshot dataclasses."""

import re
from datetime import datetime, timezone

import pytest

from src.alerts.schemas import (
    FILTER_ALL,
    LOW_SENTIMENT_SCORE,
    Alert,
    AlertFilters,
    AlertStats,
    DriverSnapshot,
    new_local_alert_id,
    parse_timestamp,
)

LOCAL_ID_RE = re.compile(r"^alert-\d+-[0-9a-z]{9}$")


class TestLocalAlertId:
    def test_format(self):
        assert LOCAL_ID_RE.match(new_local_alert_id())

    def test_uses_given_time(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        alert_id = new_local_alert_id(now)
        assert alert_id.startswith(f"alert-{int(now.timestamp() * 1000)}-")

    def test_ids_are_unique(self):
        assert len({new_local_alert_id() for _ in range(200)}) == 200


class TestParseTimestamp:
    def test_z_suffix(self):
        parsed = parse_timestamp("2026-03-02T09:30:00Z")
        assert parsed == datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)

    def test_naive_string_is_utc(self):
        parsed = parse_timestamp("2026-03-02T09:30:00")
        assert parsed.tzinfo == timezone.utc

    def test_naive_datetime_is_utc(self):
        parsed = parse_timestamp(datetime(2026, 3, 2, 9, 30))
        assert parsed.tzinfo == timezone.utc

    def test_none_and_empty(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None


class TestDriverSnapshot:
    def test_placeholder_name(self):
        snap = DriverSnapshot(driver_id=7, ema_score=-0.2)
        assert snap.driver_name == "Driver #7"

    def test_missing_score_is_zero(self):
        assert DriverSnapshot(driver_id="d1").ema_score == 0.0

    def test_from_backend_record(self):
        snap = DriverSnapshot.from_dict({"driverId": 12, "driverName": "Ann", "emaScore": "-0.45"})
        assert snap.driver_id == 12
        assert snap.driver_name == "Ann"
        assert snap.ema_score == pytest.approx(-0.45)

    def test_name_fallback(self):
        snap = DriverSnapshot.from_dict({"driverId": 3, "name": "Bo", "emaScore": 0.1})
        assert snap.driver_name == "Bo"

    def test_missing_id_raises(self):
        with pytest.raises(ValueError, match="driverId"):
            DriverSnapshot.from_dict({"emaScore": -0.9})

    def test_bad_score_raises(self):
        with pytest.raises(ValueError):
            DriverSnapshot.from_dict({"driverId": 1, "emaScore": "n/a"})


class TestAlert:
    def test_defaults(self):
        alert = Alert(id="alert-1-abc", driver_id="d1", severity="HIGH", message="m")
        assert alert.status == "ACTIVE"
        assert alert.origin == "local"
        assert alert.alert_type == LOW_SENTIMENT_SCORE
        assert alert.is_active
        assert alert.created_at.tzinfo is not None

    def test_empty_status_reads_as_active(self):
        alert = Alert(id=1, driver_id="d1", severity="HIGH", message="m", status="")
        assert alert.status == "ACTIVE"

    def test_invalid_severity(self):
        with pytest.raises(ValueError, match="severity"):
            Alert(id=1, driver_id="d1", severity="URGENT", message="m")

    def test_invalid_status(self):
        with pytest.raises(ValueError, match="status"):
            Alert(id=1, driver_id="d1", severity="HIGH", message="m", status="OPEN")

    def test_invalid_origin(self):
        with pytest.raises(ValueError, match="origin"):
            Alert(id=1, driver_id="d1", severity="HIGH", message="m", origin="cache")

    def test_to_dict_is_camel_case(self):
        created = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)
        alert = Alert(
            id="alert-1-abc",
            driver_id="d1",
            driver_name="Ann",
            severity="CRITICAL",
            message="m",
            current_ema_score=-0.7,
            threshold_value=-0.6,
            created_at=created,
        )
        data = alert.to_dict()
        assert data["driverId"] == "d1"
        assert data["currentEmaScore"] == -0.7
        assert data["thresholdValue"] == -0.6
        assert data["createdAt"] == created.isoformat()
        assert data["acknowledgedAt"] is None
        assert data["origin"] == "local"

    def test_from_backend_record(self):
        alert = Alert.from_dict({
            "id": 42,
            "driverId": 9,
            "driverName": "Cy",
            "alertType": "LOW_SENTIMENT_SCORE",
            "severity": "HIGH",
            "status": None,
            "message": "WARNING: Cy has low sentiment score (-0.35).",
            "createdAt": "2026-03-01T08:00:00Z",
        })
        assert alert.id == 42
        assert alert.origin == "remote"
        assert alert.status == "ACTIVE"
        assert alert.created_at == datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)

    def test_from_dict_origin_parameter_wins(self):
        alert = Alert.from_dict(
            {"id": "alert-1-abc", "driver_id": "d1", "severity": "LOW", "origin": "remote"},
            origin="local",
        )
        assert alert.origin == "local"

    def test_from_dict_reads_snake_case(self):
        alert = Alert.from_dict({
            "id": "alert-1-abc",
            "driver_id": "d1",
            "severity": "LOW",
            "created_at": "2026-03-01T08:00:00+00:00",
            "resolution_notes": "ok",
        })
        assert alert.driver_id == "d1"
        assert alert.resolution_notes == "ok"

    def test_round_trip_keeps_origin(self):
        alert = Alert(id="alert-1-abc", driver_id="d1", severity="HIGH", message="m", status="ASSIGNED", assigned_to="mgr-2")
        restored = Alert.from_dict(alert.to_dict())
        assert restored == alert


class TestAlertFilters:
    def test_defaults_to_all(self):
        filters = AlertFilters()
        assert filters.severity == FILTER_ALL
        assert filters.status == FILTER_ALL

    def test_normalises_case(self):
        filters = AlertFilters(severity="critical", status="active")
        assert filters.severity == "CRITICAL"
        assert filters.status == "ACTIVE"

    def test_rejects_unknown_values(self):
        with pytest.raises(ValueError):
            AlertFilters(severity="SEVERE")
        with pytest.raises(ValueError):
            AlertFilters(status="OPEN")


class TestAlertStats:
    def test_add(self):
        total = AlertStats(total=2, critical=1, high=1, active=2) + AlertStats(total=1, low=1)
        assert total == AlertStats(total=3, critical=1, high=1, low=1, active=2)

    def test_to_dict(self):
        assert AlertStats(total=1, medium=1).to_dict() == {
            "total": 1, "critical": 0, "high": 0, "medium": 1, "low": 0, "active": 0,
        }
