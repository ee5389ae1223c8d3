"""Configuration management module for RideSignal."""

from ridesignal.config.settings import (
    DEFAULT_RESTRICTED_ZONES,
    DEFAULT_SERVICE_AREAS,
    PHILIPPINES_BOUNDS,
    BoundingBox,
    GPSSettings,
    MultiAccountSettings,
    RestrictedZone,
    Settings,
    get_settings,
)

__all__ = [
    "DEFAULT_RESTRICTED_ZONES",
    "DEFAULT_SERVICE_AREAS",
    "PHILIPPINES_BOUNDS",
    "BoundingBox",
    "GPSSettings",
    "MultiAccountSettings",
    "RestrictedZone",
    "Settings",
    "get_settings",
]
