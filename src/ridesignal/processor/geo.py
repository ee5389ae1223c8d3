# =============================================================================
# RideSignal - Geospatial Utilities
# =============================================================================
"""
Distance, bearing, speed and geofence helpers shared by both detectors.

All distances are in metres, bearings in degrees clockwise from north,
speeds in km/h.
"""

from __future__ import annotations

from math import atan2, cos, degrees, radians, sin, sqrt
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ridesignal.config.settings import BoundingBox, RestrictedZone
    from ridesignal.models.telemetry import GeoCoordinates, GPSPoint


# Earth's mean radius in metres
EARTH_RADIUS_M = 6_371_000.0


def haversine_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)

    Returns:
        Distance in metres
    """
    lat1_rad = radians(lat1)
    lat2_rad = radians(lat2)
    delta_lat = radians(lat2 - lat1)
    delta_lon = radians(lon2 - lon1)

    a = sin(delta_lat / 2) ** 2 + cos(lat1_rad) * cos(lat2_rad) * sin(delta_lon / 2) ** 2
    # Rounding can push `a` a hair past 1 for antipodal points
    a = min(1.0, a)
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_M * c


def coordinates_distance(a: GeoCoordinates, b: GeoCoordinates) -> float:
    return haversine_distance(a.lat, a.lng, b.lat, b.lng)


def points_distance(p1: GPSPoint, p2: GPSPoint) -> float:
    return haversine_distance(p1.latitude, p1.longitude, p2.latitude, p2.longitude)


def calculate_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial compass heading from the first point to the second, in [0, 360)."""
    lat1_rad = radians(lat1)
    lat2_rad = radians(lat2)
    delta_lon = radians(lon2 - lon1)

    y = sin(delta_lon) * cos(lat2_rad)
    x = cos(lat1_rad) * sin(lat2_rad) - sin(lat1_rad) * cos(lat2_rad) * cos(delta_lon)

    return (degrees(atan2(y, x)) + 360.0) % 360.0


def bearing_difference(bearing1: float, bearing2: float) -> float:
    """Smallest angle between two headings, in [0, 180]."""
    diff = abs(bearing1 - bearing2) % 360.0
    return 360.0 - diff if diff > 180.0 else diff


def elapsed_seconds(p1: GPSPoint, p2: GPSPoint) -> float:
    return (p2.timestamp - p1.timestamp) / 1000.0


def point_speed_kmh(p1: GPSPoint, p2: GPSPoint) -> float:
    """Speed implied by two consecutive fixes; 0 when no time has passed."""
    elapsed = elapsed_seconds(p1, p2)
    if elapsed <= 0:
        return 0.0
    return points_distance(p1, p2) / elapsed * 3.6


def within_bounds(latitude: float, longitude: float, box: BoundingBox) -> bool:
    return box.contains(latitude, longitude)


def within_radius(latitude: float, longitude: float, zone: RestrictedZone) -> bool:
    return haversine_distance(latitude, longitude, zone.latitude, zone.longitude) <= zone.radius_m
