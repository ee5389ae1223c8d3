"""
Data models shared by the detectors.

- telemetry: validated pydantic inputs (accounts, GPS points, device reports)
- detections: per-analysis aggregate records
- alerts: the FraudAlert / evidence output shape
"""

from ridesignal.models.alerts import (
    AlertStatus,
    AlertType,
    DetectedPattern,
    EvidenceType,
    FraudAlert,
    FraudEvidence,
    RiskFactor,
    Severity,
    SubjectType,
    build_alert,
    clip_score,
    severity_for,
)
from ridesignal.models.detections import (
    GPSJump,
    GPSSpoofingDetection,
    MultiAccountingDetection,
    PersonalInfoSimilarity,
    SuspectedAccount,
)
from ridesignal.models.telemetry import (
    AccountData,
    AccountType,
    Address,
    AppUsageStats,
    DeviceFingerprint,
    DeviceInfo,
    GeoCoordinates,
    GPSPoint,
    RidePattern,
    SensorSample,
    UsageTime,
    Vector3,
)

__all__ = [
    # Alerts
    "AlertStatus",
    "AlertType",
    "DetectedPattern",
    "EvidenceType",
    "FraudAlert",
    "FraudEvidence",
    "RiskFactor",
    "Severity",
    "SubjectType",
    "build_alert",
    "clip_score",
    "severity_for",
    # Detections
    "GPSJump",
    "GPSSpoofingDetection",
    "MultiAccountingDetection",
    "PersonalInfoSimilarity",
    "SuspectedAccount",
    # Telemetry
    "AccountData",
    "AccountType",
    "Address",
    "AppUsageStats",
    "DeviceFingerprint",
    "DeviceInfo",
    "GeoCoordinates",
    "GPSPoint",
    "RidePattern",
    "SensorSample",
    "UsageTime",
    "Vector3",
]
