# =============================================================================
# RideSignal - Detection Records
# =============================================================================
"""
Per-analysis aggregate records.

Each detector fills one of these with every sub-signal it computed, then
derives a bounded score from it. They are transient: returned for
inspection and tests, never persisted by the engine.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional


# =============================================================================
# Multi-Accounting
# =============================================================================

@dataclass
class SuspectedAccount:
    """A candidate account that cleared the similarity threshold."""

    account_id: str
    account_type: str
    similarity_score: float
    shared_attributes: list[str] = field(default_factory=list)
    creation_date: Optional[datetime] = None
    last_activity: Optional[datetime] = None


@dataclass
class PersonalInfoSimilarity:
    name_match: float = 0.0
    phone_match: bool = False
    email_similarity: float = 0.0
    address_match: float = 0.0

    def merge_max(self, other: "PersonalInfoSimilarity") -> None:
        """Keep the strongest value seen per field."""
        self.name_match = max(self.name_match, other.name_match)
        self.phone_match = self.phone_match or other.phone_match
        self.email_similarity = max(self.email_similarity, other.email_similarity)
        self.address_match = max(self.address_match, other.address_match)


@dataclass
class MultiAccountingDetection:
    primary_account_id: str
    suspected_accounts: list[SuspectedAccount] = field(default_factory=list)

    # Device fingerprinting
    shared_devices: list[str] = field(default_factory=list)
    device_similarity: float = 0.0

    # Network analysis
    shared_ip_addresses: list[str] = field(default_factory=list)
    shared_wifi_networks: list[str] = field(default_factory=list)
    similar_network_patterns: bool = False

    # Behavioral patterns
    similar_ride_patterns: bool = False
    identical_preferences: bool = False
    timing_correlation: float = 0.0

    # Identity overlap
    similar_personal_info: PersonalInfoSimilarity = field(default_factory=PersonalInfoSimilarity)
    shared_payment_methods: bool = False

    # Geographic overlap
    shared_locations: list[str] = field(default_factory=list)
    proximity_score: float = 0.0

    # Philippines-specific indicators
    shared_barangay: bool = False
    familial_connections: bool = False

    # Sweep bookkeeping
    candidates_scored: int = 0
    sweep_complete: bool = True

    risk_score: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


# =============================================================================
# GPS Spoofing
# =============================================================================

@dataclass
class GPSJump:
    """A transition between consecutive fixes that implies impossible speed."""

    from_location: tuple[float, float]
    to_location: tuple[float, float]
    distance: float  # metres
    time_elapsed: float  # seconds
    implied_speed: float  # km/h
    timestamp: int  # epoch ms of the second fix


@dataclass
class GPSSpoofingDetection:
    ride_id: str
    driver_id: Optional[str] = None
    rider_id: Optional[str] = None
    point_count: int = 0

    # Location anomalies
    impossible_speed: bool = False
    teleportation: bool = False
    location_jumps: list[GPSJump] = field(default_factory=list)

    # Device indicators
    mock_location_app: bool = False
    mock_apps_found: list[str] = field(default_factory=list)
    emulator_detected: bool = False
    rooted_device: bool = False
    developer_options: bool = False

    # Route analysis
    route_deviation: float = 0.0
    straight_line_movement: bool = False
    unrealistic_traffic: bool = False

    # Philippines-specific checks
    outside_service_area: bool = False
    outside_point_ratio: float = 0.0
    restricted_zones: list[str] = field(default_factory=list)

    # Sensor data inconsistencies
    sensor_samples_paired: int = 0
    accelerometer_mismatch: bool = False
    gyroscope_mismatch: bool = False
    magnetometer_anomaly: bool = False

    confidence_score: float = 0.0

    @property
    def max_jump_speed(self) -> float:
        return max((jump.implied_speed for jump in self.location_jumps), default=0.0)

    def to_dict(self) -> dict:
        return asdict(self)
