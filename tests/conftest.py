"""Shared fixtures for the RideSignal test suite."""

import io
from datetime import datetime, timezone

import pytest
from rich.console import Console

from ridesignal.config import GPSSettings, MultiAccountSettings, Settings
from ridesignal.models.telemetry import AccountData, GPSPoint
from ridesignal.processor.gps_trajectory import GPSTrajectoryAnalyzer
from ridesignal.processor.multi_account import MultiAccountEngine


BASE_TS = 1_760_000_000_000

ORTIGAS = (14.5869, 121.0614)
MALACANANG = (14.5958, 120.9936)
TOKYO = (35.6812, 139.6917)


def _account_payload(account_id: str) -> dict:
    return {
        "id": account_id,
        "account_type": "rider",
        "name": "Juan Dela Cruz",
        "email": "juan.delacruz@gmail.com",
        "phone": "09171234567",
        "address": {"street": "123 Shaw Boulevard", "barangay": "Kapitolyo", "city": "Pasig"},
        "device_id": "dev-0001",
        "device_info": {"model": "Samsung Galaxy A54", "platform": "android", "os_version": "14"},
        "app_version": "5.12.0",
        "ip_addresses": ["112.198.10.1", "112.198.10.2"],
        "network_carrier": "Globe",
        "wifi_networks": ["PLDT_HomeFiber_A1B2"],
        "home_location": {"lat": ORTIGAS[0], "lng": ORTIGAS[1]},
        "frequent_locations": [
            {"lat": ORTIGAS[0], "lng": ORTIGAS[1]},
            {"lat": 14.5547, "lng": 121.0244},
        ],
        "ride_patterns": [
            {"pickup_area": "Ortigas", "dropoff_area": "BGC", "hour_of_day": 8, "count": 5},
            {"pickup_area": "BGC", "dropoff_area": "Ortigas", "hour_of_day": 18, "count": 4},
        ],
        "usage_times": [
            {"day_of_week": 0, "hour": 8, "sessions": 3},
            {"day_of_week": 4, "hour": 18, "sessions": 2},
        ],
        "app_usage": {
            "sessions_per_day": 3.0,
            "avg_session_minutes": 12.0,
            "promo_redemptions": 4,
            "preferred_payment_method": "gcash",
        },
        "payment_fingerprints": ["pay-abc123"],
        "created_at": datetime(2025, 3, 1, tzinfo=timezone.utc),
    }


@pytest.fixture
def make_account():
    """Factory for a fully populated account; keyword overrides replace fields."""

    def _make(account_id: str = "acc-primary", **overrides) -> AccountData:
        payload = _account_payload(account_id)
        payload.update(overrides)
        return AccountData.model_validate(payload)

    return _make


@pytest.fixture
def make_point():
    """Factory for GPS fixes; `offset_s` is seconds after the base timestamp."""

    def _make(latitude: float, longitude: float, offset_s: float = 0.0, **extra) -> GPSPoint:
        return GPSPoint(
            latitude=latitude,
            longitude=longitude,
            timestamp=BASE_TS + int(offset_s * 1000),
            **extra,
        )

    return _make


@pytest.fixture
def multi_account_settings() -> MultiAccountSettings:
    return MultiAccountSettings()


@pytest.fixture
def gps_settings() -> GPSSettings:
    return GPSSettings()


@pytest.fixture
def settings(multi_account_settings, gps_settings) -> Settings:
    return Settings(multi_account=multi_account_settings, gps=gps_settings)


@pytest.fixture
def engine(multi_account_settings) -> MultiAccountEngine:
    return MultiAccountEngine(multi_account_settings)


@pytest.fixture
def analyzer(gps_settings) -> GPSTrajectoryAnalyzer:
    return GPSTrajectoryAnalyzer(gps_settings)


@pytest.fixture
def quiet_console() -> Console:
    return Console(file=io.StringIO(), width=120)
