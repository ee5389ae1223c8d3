# =============================================================================
# RideSignal - Alert & Evidence Model
# =============================================================================
"""
Shared output shape produced by every detector.

A `FraudAlert` is created exactly once per qualifying analysis and is frozen
from then on. Status transitions after creation (acknowledged, resolved)
belong to the external review workflow.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4


# =============================================================================
# Constants & Enums
# =============================================================================

class AlertType(str, Enum):
    """Types of fraud signal emitted by the engine."""

    MULTI_ACCOUNTING = "multi_accounting"
    GPS_SPOOFING = "gps_spoofing"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AlertStatus(str, Enum):
    """Review lifecycle. The engine only ever creates ACTIVE alerts."""

    ACTIVE = "active"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"


class SubjectType(str, Enum):
    RIDER = "rider"
    DRIVER = "driver"
    RIDE = "ride"


class EvidenceType(str, Enum):
    DEVICE = "device"
    LOCATION = "location"
    BEHAVIOR = "behavior"
    FINANCIAL = "financial"
    NETWORK = "network"
    TEMPORAL = "temporal"
    IDENTITY = "identity"


ALERT_ID_PREFIXES: dict[AlertType, str] = {
    AlertType.MULTI_ACCOUNTING: "MA",
    AlertType.GPS_SPOOFING: "GPS",
}

DEFAULT_CURRENCY = "PHP"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clip_score(value: float) -> float:
    """Saturate a weighted sum into [0, 100]."""
    return min(100.0, max(0.0, float(value)))


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class FraudEvidence:
    """A human-readable finding and its weight in the score."""

    type: EvidenceType
    description: str
    weight: float
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "description": self.description,
            "weight": self.weight,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class DetectedPattern:
    """A named behavioral pattern observed during the analysis."""

    pattern_type: str
    description: str
    risk_level: str  # low, medium, high
    frequency: int = 1
    timespan: str = "per_analysis"
    examples: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "pattern_type": self.pattern_type,
            "description": self.description,
            "risk_level": self.risk_level,
            "frequency": self.frequency,
            "timespan": self.timespan,
            "examples": list(self.examples),
        }


@dataclass(frozen=True)
class RiskFactor:
    """A contributing factor and the points it added to the score."""

    factor: str
    value: str | float | int | bool
    risk_contribution: float
    explanation: str

    def to_dict(self) -> dict:
        return {
            "factor": self.factor,
            "value": self.value,
            "risk_contribution": self.risk_contribution,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class FraudAlert:
    """Represents a detected fraud signal, ready for the review pipeline."""

    id: str
    alert_type: AlertType
    severity: Severity
    subject_type: SubjectType
    subject_id: str
    title: str
    description: str
    fraud_score: float
    confidence: float

    evidence: tuple[FraudEvidence, ...] = ()
    patterns: tuple[DetectedPattern, ...] = ()
    risk_factors: tuple[RiskFactor, ...] = ()
    related_accounts: tuple[str, ...] = ()

    status: AlertStatus = AlertStatus.ACTIVE
    currency: str = DEFAULT_CURRENCY
    timestamp: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        for name in ("fraud_score", "confidence"):
            value = getattr(self, name)
            if not 0.0 <= value <= 100.0:
                raise ValueError(f"{name} must be within [0, 100], got {value}")

    def to_dict(self) -> dict:
        """Convert to dictionary for the persistence/notification layer."""
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "alert_type": self.alert_type.value,
            "severity": self.severity.value,
            "status": self.status.value,
            "subject_type": self.subject_type.value,
            "subject_id": self.subject_id,
            "title": self.title,
            "description": self.description,
            "fraud_score": self.fraud_score,
            "confidence": self.confidence,
            "evidence": [e.to_dict() for e in self.evidence],
            "patterns": [p.to_dict() for p in self.patterns],
            "risk_factors": [r.to_dict() for r in self.risk_factors],
            "related_accounts": list(self.related_accounts),
            "currency": self.currency,
        }


# =============================================================================
# Builders
# =============================================================================

def generate_alert_id(alert_type: AlertType) -> str:
    """`<prefix>_<epoch ms>_<random suffix>`, e.g. `GPS_1760000000000_3f9a0c1be`."""
    prefix = ALERT_ID_PREFIXES[alert_type]
    return f"{prefix}_{int(time.time() * 1000)}_{uuid4().hex[:9]}"


def severity_for(
    score: float,
    critical: float,
    high: float,
    medium: float,
) -> Severity:
    """Map a bounded score onto a severity band."""
    if score >= critical:
        return Severity.CRITICAL
    if score >= high:
        return Severity.HIGH
    if score >= medium:
        return Severity.MEDIUM
    return Severity.LOW


def build_alert(
    alert_type: AlertType,
    severity: Severity,
    subject_type: SubjectType,
    subject_id: str,
    title: str,
    description: str,
    fraud_score: float,
    confidence: float,
    evidence: list[FraudEvidence] | None = None,
    patterns: list[DetectedPattern] | None = None,
    risk_factors: list[RiskFactor] | None = None,
    related_accounts: list[str] | None = None,
) -> FraudAlert:
    """Create a new active alert; both detectors go through here."""
    return FraudAlert(
        id=generate_alert_id(alert_type),
        alert_type=alert_type,
        severity=severity,
        subject_type=subject_type,
        subject_id=subject_id,
        title=title,
        description=description,
        fraud_score=clip_score(fraud_score),
        confidence=clip_score(confidence),
        evidence=tuple(evidence or ()),
        patterns=tuple(patterns or ()),
        risk_factors=tuple(risk_factors or ()),
        related_accounts=tuple(related_accounts or ()),
    )
