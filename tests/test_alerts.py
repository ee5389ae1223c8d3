"""Tests for the shared alert model."""

import dataclasses
import re

import pytest

from ridesignal.models.alerts import (
    AlertStatus,
    AlertType,
    EvidenceType,
    FraudAlert,
    FraudEvidence,
    Severity,
    SubjectType,
    build_alert,
    clip_score,
    generate_alert_id,
    severity_for,
)


def _alert(**overrides) -> FraudAlert:
    kwargs = dict(
        alert_type=AlertType.GPS_SPOOFING,
        severity=Severity.HIGH,
        subject_type=SubjectType.RIDE,
        subject_id="ride-1",
        title="GPS Spoofing Detected",
        description="test",
        fraud_score=80.0,
        confidence=80.0,
    )
    kwargs.update(overrides)
    return build_alert(**kwargs)


class TestAlertIds:
    @pytest.mark.parametrize("alert_type, prefix", [(AlertType.GPS_SPOOFING, "GPS"), (AlertType.MULTI_ACCOUNTING, "MA")])
    def test_format(self, alert_type, prefix):
        assert re.fullmatch(rf"{prefix}_\d{{13}}_[0-9a-f]{{9}}", generate_alert_id(alert_type))

    def test_unique(self):
        ids = {generate_alert_id(AlertType.GPS_SPOOFING) for _ in range(200)}
        assert len(ids) == 200


class TestBuildAlert:
    def test_defaults(self):
        alert = _alert()
        assert alert.status == AlertStatus.ACTIVE
        assert alert.currency == "PHP"
        assert alert.timestamp.tzinfo is not None
        assert alert.id.startswith("GPS_")

    def test_scores_saturate(self):
        alert = _alert(fraud_score=135.0, confidence=-4.0)
        assert alert.fraud_score == 100.0
        assert alert.confidence == 0.0

    def test_direct_construction_validates_range(self):
        with pytest.raises(ValueError):
            FraudAlert(
                id="x", alert_type=AlertType.GPS_SPOOFING, severity=Severity.LOW,
                subject_type=SubjectType.RIDE, subject_id="r", title="t", description="d",
                fraud_score=101.0, confidence=50.0,
            )

    def test_alerts_are_immutable(self):
        alert = _alert()
        with pytest.raises(dataclasses.FrozenInstanceError):
            alert.status = AlertStatus.RESOLVED

    def test_to_dict(self):
        evidence = FraudEvidence(type=EvidenceType.LOCATION, description="jump", weight=25.0, data={"n": 1})
        payload = _alert(evidence=[evidence], related_accounts=["drv-1"]).to_dict()
        assert payload["alert_type"] == "gps_spoofing"
        assert payload["status"] == "active"
        assert payload["evidence"][0]["type"] == "location"
        assert payload["related_accounts"] == ["drv-1"]


class TestSeverity:
    @pytest.mark.parametrize(
        "score, expected",
        [(95, Severity.CRITICAL), (90, Severity.CRITICAL), (89.9, Severity.HIGH), (75, Severity.HIGH),
         (60, Severity.MEDIUM), (59.9, Severity.LOW), (0, Severity.LOW)],
    )
    def test_gps_bands(self, score, expected):
        assert severity_for(score, critical=90, high=75, medium=60) == expected


@pytest.mark.parametrize("value, expected", [(-1, 0.0), (0, 0.0), (55.5, 55.5), (100, 100.0), (250, 100.0)])
def test_clip_score(value, expected):
    assert clip_score(value) == expected
