# =============================================================================
# RideSignal Settings Configuration
# =============================================================================
"""
Centralized configuration management using Pydantic Settings.

Every threshold, geofence box and restricted zone used by the detectors is
loaded from environment variables and .env files so a deployment can tune
them per region without a code change.
"""

from functools import lru_cache

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# Geofence Primitives
# =============================================================================

class BoundingBox(BaseModel):
    """Axis-aligned latitude/longitude box (edges inclusive)."""

    model_config = {"frozen": True}

    name: str
    north: float = Field(..., ge=-90.0, le=90.0)
    south: float = Field(..., ge=-90.0, le=90.0)
    east: float = Field(..., ge=-180.0, le=180.0)
    west: float = Field(..., ge=-180.0, le=180.0)

    @model_validator(mode="after")
    def check_orientation(self) -> "BoundingBox":
        if self.south > self.north:
            raise ValueError(f"{self.name}: south ({self.south}) is above north ({self.north})")
        if self.west > self.east:
            raise ValueError(f"{self.name}: west ({self.west}) is east of east ({self.east})")
        return self

    def contains(self, latitude: float, longitude: float) -> bool:
        return (
            self.south <= latitude <= self.north
            and self.west <= longitude <= self.east
        )


class RestrictedZone(BaseModel):
    """Circular no-pickup zone (airports, palaces, military camps)."""

    model_config = {"frozen": True}

    name: str
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    radius_m: float = Field(..., gt=0.0)


PHILIPPINES_BOUNDS = BoundingBox(name="Philippines", north=21.0, south=4.0, east=127.0, west=116.0)

DEFAULT_SERVICE_AREAS: tuple[BoundingBox, ...] = (
    BoundingBox(name="Metro Manila", north=14.8, south=14.3, east=121.2, west=120.9),
    BoundingBox(name="Cebu City", north=10.4, south=10.2, east=124.0, west=123.8),
    BoundingBox(name="Davao City", north=7.3, south=7.0, east=125.7, west=125.4),
)

DEFAULT_RESTRICTED_ZONES: tuple[RestrictedZone, ...] = (
    RestrictedZone(name="NAIA Airport", latitude=14.5086, longitude=121.0194, radius_m=5000),
    RestrictedZone(name="Malacañang Palace", latitude=14.5958, longitude=120.9936, radius_m=1000),
    RestrictedZone(name="Camp Aguinaldo", latitude=14.6417, longitude=121.0056, radius_m=2000),
)


# =============================================================================
# Detector Settings
# =============================================================================

class MultiAccountSettings(BaseSettings):
    """Multi-account similarity thresholds and sweep parameters."""

    model_config = SettingsConfigDict(env_prefix="MULTI_ACCOUNT_", frozen=True)

    similarity_threshold: float = Field(
        default=70.0,
        ge=0.0,
        le=100.0,
        description="Minimum pairwise similarity for a candidate to become a suspect",
    )
    alert_threshold: float = Field(
        default=70.0,
        ge=0.0,
        le=100.0,
        description="Minimum risk score before an alert is emitted",
    )
    high_risk_threshold: float = Field(
        default=85.0,
        description="Risk score at or above which severity is critical",
    )
    high_severity_threshold: float = Field(default=80.0)
    medium_severity_threshold: float = Field(default=60.0)

    shared_location_radius_m: float = Field(
        default=500.0,
        gt=0.0,
        description="Two frequent locations closer than this count as shared",
    )
    home_decay_distance_m: float = Field(
        default=10_000.0,
        gt=0.0,
        description="Home-location similarity decays linearly to zero at this distance",
    )
    similar_behavior_threshold: float = Field(
        default=70.0,
        description="Mean behavioral similarity above which ride patterns are flagged",
    )

    # Candidate sweep
    batch_size: int = Field(default=250, ge=1, description="Candidates scored per work unit")
    max_workers: int = Field(default=4, ge=1, description="Worker count for pooled sweeps")
    sweep_timeout_seconds: float | None = Field(
        default=None,
        description="Upper bound for a full candidate sweep (None = unbounded)",
    )
    loader_timeout_seconds: float = Field(default=2.0, gt=0.0)
    loader_concurrency: int = Field(default=16, ge=1)

    @model_validator(mode="after")
    def check_severity_bands(self) -> "MultiAccountSettings":
        bands = (self.medium_severity_threshold, self.high_severity_threshold, self.high_risk_threshold)
        if list(bands) != sorted(bands):
            raise ValueError(f"severity bands must be ascending, got {bands}")
        return self


class GPSSettings(BaseSettings):
    """GPS spoofing thresholds, geofences and device blacklists."""

    model_config = SettingsConfigDict(env_prefix="GPS_", frozen=True)

    # Location anomalies
    max_speed_kmh: float = Field(
        default=200.0,
        gt=0.0,
        description="Maximum realistic speed in Philippine traffic",
    )
    max_teleport_distance_m: float = Field(default=10_000.0, gt=0.0)
    min_time_between_updates_s: float = Field(default=2.0, ge=0.0)
    impossible_speed_ratio: float = Field(default=0.05, ge=0.0, le=1.0)

    # Route patterns
    straight_bearing_tolerance_deg: float = Field(default=2.0, ge=0.0, le=180.0)
    straight_line_ratio: float = Field(default=0.7, ge=0.0, le=1.0)
    traffic_speed_delta_kmh: float = Field(default=50.0, gt=0.0)
    unrealistic_traffic_ratio: float = Field(default=0.3, ge=0.0, le=1.0)
    route_deviation_threshold_m: float = Field(default=100.0, ge=0.0)

    # Geofencing
    outside_service_ratio: float = Field(default=0.1, ge=0.0, le=1.0)
    country_bounds: BoundingBox = Field(default=PHILIPPINES_BOUNDS)
    service_areas: tuple[BoundingBox, ...] = Field(default=DEFAULT_SERVICE_AREAS)
    restricted_zones: tuple[RestrictedZone, ...] = Field(default=DEFAULT_RESTRICTED_ZONES)

    # Sensor cross-check
    accelerometer_threshold: float = Field(default=5.0, gt=0.0, description="m/s²")
    gyroscope_threshold: float = Field(default=2.0, gt=0.0, description="rad/s")
    magnetometer_min_nt: float = Field(default=35_000.0)
    magnetometer_max_nt: float = Field(default=55_000.0)
    accelerometer_mismatch_ratio: float = Field(default=0.2, ge=0.0, le=1.0)
    gyroscope_mismatch_ratio: float = Field(default=0.2, ge=0.0, le=1.0)
    magnetometer_anomaly_ratio: float = Field(default=0.3, ge=0.0, le=1.0)

    # Device indicators
    mock_location_apps: tuple[str, ...] = Field(
        default=(
            "fake gps", "mock locations", "gps joystick", "fake location",
            "location spoofer", "gps emulator", "mock gps",
        ),
        description="Lower-case substrings identifying mock-location tools",
    )
    emulator_indicators: tuple[str, ...] = Field(
        default=("goldfish", "ranchu", "sdk", "emulator", "vbox", "genymotion"),
    )

    # Emission and severity banding are independent: the medium band sits
    # below the default emission threshold.
    alert_threshold: float = Field(default=70.0, ge=0.0, le=100.0)
    critical_threshold: float = Field(default=90.0)
    high_threshold: float = Field(default=75.0)
    medium_threshold: float = Field(default=60.0)

    @field_validator("magnetometer_max_nt")
    @classmethod
    def validate_magnetometer_range(cls, v: float, info) -> float:
        """Ensure the expected geomagnetic range is not inverted."""
        low = info.data.get("magnetometer_min_nt", 35_000.0)
        if v <= low:
            raise ValueError(f"magnetometer_max_nt ({v}) must be > magnetometer_min_nt ({low})")
        return v

    @model_validator(mode="after")
    def check_severity_bands(self) -> "GPSSettings":
        bands = (self.medium_threshold, self.high_threshold, self.critical_threshold)
        if list(bands) != sorted(bands):
            raise ValueError(f"severity bands must be ascending, got {bands}")
        return self


class Settings(BaseSettings):
    """
    Master settings aggregating all configuration sections.

    Usage:
        settings = get_settings()
        print(settings.gps.max_speed_kmh)
        print(settings.multi_account.similarity_threshold)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app_name: str = Field(default="RideSignal")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    multi_account: MultiAccountSettings = Field(default_factory=MultiAccountSettings)
    gps: GPSSettings = Field(default_factory=GPSSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings loaded from environment.

    Note:
        Settings are cached for performance. Call `get_settings.cache_clear()`
        to reload settings if environment changes.
    """
    return Settings()
