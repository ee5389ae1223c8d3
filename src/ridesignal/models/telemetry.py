# =============================================================================
# RideSignal - Telemetry Input Models
# =============================================================================
"""
Pydantic models for the account and ride telemetry handed to the detectors.

Callers materialize these snapshots (from the account repository, the trip
pipeline, the driver app) before invoking a detector. Every field except an
account's id is optional: absent data degrades the corresponding factor to
zero instead of failing the analysis.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class AccountType(str, Enum):
    """Platform role of an account."""

    RIDER = "rider"
    DRIVER = "driver"


# =============================================================================
# Shared Value Objects
# =============================================================================

class GeoCoordinates(BaseModel):
    """A latitude/longitude pair in decimal degrees."""

    model_config = {"frozen": True}

    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class Address(BaseModel):
    """Philippine postal address."""

    street: Optional[str] = None
    barangay: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None


class DeviceFingerprint(BaseModel):
    """Hardware/OS fingerprint reported by the mobile app."""

    model: Optional[str] = None
    platform: Optional[str] = None
    os_version: Optional[str] = None


class RidePattern(BaseModel):
    """A recurring trip, aggregated by area and hour."""

    pickup_area: str
    dropoff_area: str
    hour_of_day: int = Field(..., ge=0, le=23)
    count: int = Field(default=1, ge=1)

    @property
    def key(self) -> tuple[str, str, int]:
        return (self.pickup_area.strip().lower(), self.dropoff_area.strip().lower(), self.hour_of_day)


class UsageTime(BaseModel):
    """App sessions observed in one weekday/hour slot."""

    day_of_week: int = Field(..., ge=0, le=6, description="0 = Monday")
    hour: int = Field(..., ge=0, le=23)
    sessions: int = Field(default=1, ge=0)


class AppUsageStats(BaseModel):
    """Aggregate in-app behavior."""

    sessions_per_day: Optional[float] = Field(default=None, ge=0.0)
    avg_session_minutes: Optional[float] = Field(default=None, ge=0.0)
    promo_redemptions: Optional[int] = Field(default=None, ge=0)
    preferred_payment_method: Optional[str] = None


# =============================================================================
# Account Snapshot
# =============================================================================

class AccountData(BaseModel):
    """
    Snapshot of everything known about one platform account.

    Owned by the external account repository; the detectors only read it.
    """

    id: str = Field(..., min_length=1)
    account_type: AccountType = Field(default=AccountType.RIDER)

    # Identity
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[Address] = None

    # Device fingerprint
    device_id: Optional[str] = None
    device_info: Optional[DeviceFingerprint] = None
    app_version: Optional[str] = None

    # Network
    ip_addresses: Optional[list[str]] = None
    network_carrier: Optional[str] = None
    wifi_networks: Optional[list[str]] = None

    # Location history
    home_location: Optional[GeoCoordinates] = None
    frequent_locations: Optional[list[GeoCoordinates]] = None

    # Behavior
    ride_patterns: Optional[list[RidePattern]] = None
    usage_times: Optional[list[UsageTime]] = None
    app_usage: Optional[AppUsageStats] = None

    # Hashed payment instruments (cards, e-wallet handles)
    payment_fingerprints: Optional[list[str]] = None

    # Timestamps
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_activity: Optional[datetime] = None

    @property
    def has_behavioral_data(self) -> bool:
        return bool(self.ride_patterns or self.usage_times or self.app_usage)


# =============================================================================
# Ride Telemetry
# =============================================================================

class GPSPoint(BaseModel):
    """One GPS fix reported during a ride."""

    model_config = {"frozen": True}

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    timestamp: int = Field(..., description="Epoch milliseconds")
    accuracy: Optional[float] = Field(default=None, ge=0.0, description="Metres")
    altitude: Optional[float] = None
    speed: Optional[float] = Field(default=None, ge=0.0, description="Device-reported m/s")
    bearing: Optional[float] = Field(default=None, description="Device-reported degrees")


class Vector3(BaseModel):
    """Three-axis sensor reading."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


class SensorSample(BaseModel):
    """
    Inertial/magnetic sample paired with a GPS fix.

    `accelerometer` is linear acceleration with gravity removed (m/s²),
    `gyroscope` is angular velocity (rad/s), `magnetometer` is field
    strength (nT).
    """

    timestamp: Optional[int] = None
    accelerometer: Optional[Vector3] = None
    gyroscope: Optional[Vector3] = None
    magnetometer: Optional[Vector3] = None


class DeviceInfo(BaseModel):
    """Device integrity report attached to a ride."""

    installed_apps: list[str] = Field(default_factory=list)
    is_rooted: bool = False
    is_jailbroken: bool = False
    developer_options_enabled: bool = False
    build_props: dict[str, str] = Field(default_factory=dict)
    sensor_data: list[Optional[SensorSample]] = Field(default_factory=list)

    @field_validator("build_props", mode="before")
    @classmethod
    def stringify_build_props(cls, v):
        """Build properties arrive from mixed-type JSON; keep them as strings."""
        if v is None:
            return {}
        return {str(key): str(value) for key, value in dict(v).items()}
