# =============================================================================
# RideSignal - GPS Trajectory Analyzer
# =============================================================================
"""
Detects falsified location data on a ride.

Five independent checks run over one ride's GPS trace:

1. **Location anomalies**: impossible speeds and teleport jumps between
   consecutive fixes.
2. **Device indicators**: mock-location apps, emulator build properties,
   rooted devices, developer options.
3. **Route pattern**: unnaturally straight movement, route deviation and
   speed changes no real traffic produces.
4. **Philippines geofencing**: points outside the country or the service
   areas, and points inside restricted zones.
5. **Sensor cross-check**: GPS-derived acceleration and rotation compared
   with the phone's own inertial sensors.

Their flags are combined into a confidence score saturated at 100. An alert
is returned only when the score clears the emission threshold.

Usage:
    analyzer = GPSTrajectoryAnalyzer(settings.gps)
    alert = analyzer.analyze_gps_data("ride-42", points, device_info)
"""

from __future__ import annotations

from collections.abc import Sequence
from math import radians
from typing import Any, Optional

import numpy as np
from loguru import logger

from ridesignal.config import GPSSettings, get_settings
from ridesignal.exceptions import TrajectoryValidationError
from ridesignal.models.alerts import (
    AlertType,
    DetectedPattern,
    EvidenceType,
    FraudAlert,
    FraudEvidence,
    RiskFactor,
    SubjectType,
    build_alert,
    clip_score,
    severity_for,
)
from ridesignal.models.detections import GPSJump, GPSSpoofingDetection
from ridesignal.models.telemetry import DeviceInfo, GPSPoint, SensorSample, Vector3
from ridesignal.processor.geo import (
    bearing_difference,
    calculate_bearing,
    elapsed_seconds,
    point_speed_kmh,
    points_distance,
    within_bounds,
    within_radius,
)


# Points added to the confidence score per signal
SIGNAL_WEIGHTS: dict[str, float] = {
    "impossible_speed": 25.0,
    "teleportation": 30.0,
    "mock_location_app": 35.0,
    "rooted_device": 15.0,
    "developer_options": 10.0,
    "straight_line_movement": 20.0,
    "route_deviation": 15.0,
    "unrealistic_traffic": 12.0,
    "outside_service_area": 25.0,
    "accelerometer_mismatch": 10.0,
    "gyroscope_mismatch": 8.0,
    "magnetometer_anomaly": 7.0,
}

JUMP_POINTS, JUMP_CAP = 5.0, 20.0
ZONE_POINTS, ZONE_CAP = 5.0, 15.0


def _magnitude(vector: Vector3) -> float:
    return float(np.linalg.norm(vector.as_tuple()))


def _coerce_points(gps_points: Sequence[GPSPoint | dict[str, Any]]) -> list[GPSPoint]:
    return [p if isinstance(p, GPSPoint) else GPSPoint.model_validate(p) for p in gps_points]


def _coerce_device(device_info: DeviceInfo | dict[str, Any] | None) -> DeviceInfo | None:
    if device_info is None or isinstance(device_info, DeviceInfo):
        return device_info
    return DeviceInfo.model_validate(device_info)


class GPSTrajectoryAnalyzer:
    """
    Per-ride GPS spoofing analysis.

    Stateless apart from its settings; one instance can serve any number of
    rides concurrently.
    """

    def __init__(self, settings: GPSSettings | None = None) -> None:
        self.settings = settings or get_settings().gps

    # =========================================================================
    # Public API
    # =========================================================================

    def analyze_gps_data(
        self,
        ride_id: str,
        gps_points: Sequence[GPSPoint | dict[str, Any]] | None,
        device_info: DeviceInfo | dict[str, Any] | None = None,
        driver_id: str | None = None,
        rider_id: str | None = None,
    ) -> FraudAlert | None:
        """
        Analyze one ride's GPS trace for spoofing.

        Args:
            ride_id: Ride being analyzed
            gps_points: Fixes in non-decreasing timestamp order
            device_info: Optional device integrity report
            driver_id: Driver on the ride, if known
            rider_id: Rider on the ride, if known

        Returns:
            FraudAlert when the confidence reaches the alert threshold,
            None otherwise (too few points, rejected input, or failure).
        """
        if not gps_points or len(gps_points) < 2:
            logger.debug(f"Ride {ride_id}: {len(gps_points or ())} GPS point(s), nothing to analyze")
            return None

        try:
            detection = self.build_detection(ride_id, gps_points, device_info, driver_id, rider_id)
        except TrajectoryValidationError as e:
            logger.warning(f"Rejected GPS trace: {e}")
            return None
        except Exception as e:
            logger.exception(f"GPS spoofing analysis failed for ride {ride_id}: {e}")
            return None

        if detection.confidence_score < self.settings.alert_threshold:
            logger.debug(
                f"Ride {ride_id}: confidence {detection.confidence_score:.1f} below threshold"
            )
            return None

        alert = self._generate_alert(detection)
        logger.info(
            f"GPS spoofing alert {alert.id} for ride {ride_id}: "
            f"confidence={alert.confidence:.1f} severity={alert.severity.value}"
        )
        return alert

    def build_detection(
        self,
        ride_id: str,
        gps_points: Sequence[GPSPoint | dict[str, Any]],
        device_info: DeviceInfo | dict[str, Any] | None = None,
        driver_id: str | None = None,
        rider_id: str | None = None,
    ) -> GPSSpoofingDetection:
        """
        Run every check and return the full detection record.

        Raises:
            TrajectoryValidationError: if a point is earlier than its predecessor.
        """
        points = _coerce_points(gps_points)
        self.validate_order(ride_id, points)
        device = _coerce_device(device_info)

        detection = GPSSpoofingDetection(
            ride_id=ride_id,
            driver_id=driver_id,
            rider_id=rider_id,
            point_count=len(points),
        )

        self._analyze_location_anomalies(detection, points)
        if device is not None:
            self._analyze_device_indicators(detection, device)
        self._analyze_route_patterns(detection, points)
        self._check_philippines_geofencing(detection, points)
        if device is not None and device.sensor_data:
            self._analyze_sensor_data(detection, points, device.sensor_data)

        detection.confidence_score = self.calculate_confidence(detection)
        return detection

    @staticmethod
    def validate_order(ride_id: str, points: Sequence[GPSPoint]) -> None:
        for index in range(1, len(points)):
            previous, current = points[index - 1].timestamp, points[index].timestamp
            if current < previous:
                raise TrajectoryValidationError(ride_id, index, previous, current)

    # =========================================================================
    # Location Anomalies
    # =========================================================================

    def _analyze_location_anomalies(self, detection: GPSSpoofingDetection, points: list[GPSPoint]) -> None:
        settings = self.settings

        for prev, curr in zip(points, points[1:]):
            distance = points_distance(prev, curr)
            elapsed = elapsed_seconds(prev, curr)
            if elapsed < settings.min_time_between_updates_s and distance > settings.max_teleport_distance_m:
                detection.teleportation = True

            # Speed is undefined for simultaneous fixes
            if elapsed <= 0 or distance <= 0:
                continue

            speed_kmh = distance / elapsed * 3.6
            if speed_kmh > settings.max_speed_kmh:
                detection.location_jumps.append(GPSJump(
                    from_location=(prev.latitude, prev.longitude),
                    to_location=(curr.latitude, curr.longitude),
                    distance=distance,
                    time_elapsed=elapsed,
                    implied_speed=speed_kmh,
                    timestamp=curr.timestamp,
                ))

        detection.impossible_speed = (
            len(detection.location_jumps) > len(points) * settings.impossible_speed_ratio
        )

    # =========================================================================
    # Device Indicators
    # =========================================================================

    def _analyze_device_indicators(self, detection: GPSSpoofingDetection, device: DeviceInfo) -> None:
        mock_apps = [app.lower() for app in self.settings.mock_location_apps]
        found = [
            installed for installed in device.installed_apps
            if any(mock in installed.lower() for mock in mock_apps)
        ]
        detection.mock_apps_found = list(dict.fromkeys(found))
        detection.mock_location_app = bool(found)

        detection.rooted_device = device.is_rooted or device.is_jailbroken
        detection.developer_options = device.developer_options_enabled

        # Only property values are inspected; keys such as "ro.build.version.sdk" are benign
        indicators = [i.lower() for i in self.settings.emulator_indicators]
        detection.emulator_detected = any(
            indicator in value.lower()
            for value in device.build_props.values()
            for indicator in indicators
        )
        if detection.emulator_detected:
            detection.mock_location_app = True

    # =========================================================================
    # Route Pattern
    # =========================================================================

    def _analyze_route_patterns(self, detection: GPSSpoofingDetection, points: list[GPSPoint]) -> None:
        triplets = list(zip(points, points[1:], points[2:]))
        if not triplets:
            return

        settings = self.settings
        tolerance = settings.straight_bearing_tolerance_deg
        straight = 0
        abrupt = 0
        deviation = 0.0

        for p1, p2, p3 in triplets:
            bearing1 = calculate_bearing(p1.latitude, p1.longitude, p2.latitude, p2.longitude)
            bearing2 = calculate_bearing(p2.latitude, p2.longitude, p3.latitude, p3.longitude)
            if bearing_difference(bearing1, bearing2) < tolerance:
                straight += 1

            travelled = points_distance(p1, p2) + points_distance(p2, p3)
            deviation += travelled - points_distance(p1, p3)

            speed1 = point_speed_kmh(p1, p2)
            speed2 = point_speed_kmh(p2, p3)
            if speed1 > 0 and speed2 > 0 and abs(speed2 - speed1) > settings.traffic_speed_delta_kmh:
                abrupt += 1

        detection.straight_line_movement = straight / len(triplets) >= settings.straight_line_ratio
        detection.route_deviation = deviation
        detection.unrealistic_traffic = abrupt / len(triplets) >= settings.unrealistic_traffic_ratio

    # =========================================================================
    # Philippines Geofencing
    # =========================================================================

    def _check_philippines_geofencing(self, detection: GPSSpoofingDetection, points: list[GPSPoint]) -> None:
        settings = self.settings
        outside = 0
        zones: list[str] = []

        for point in points:
            in_country = within_bounds(point.latitude, point.longitude, settings.country_bounds)
            in_service = in_country and any(
                within_bounds(point.latitude, point.longitude, area) for area in settings.service_areas
            )
            if not in_service:
                outside += 1

            if in_country:
                zones.extend(
                    zone.name for zone in settings.restricted_zones
                    if within_radius(point.latitude, point.longitude, zone)
                )

        detection.outside_point_ratio = outside / len(points)
        detection.outside_service_area = detection.outside_point_ratio > settings.outside_service_ratio
        detection.restricted_zones = list(dict.fromkeys(zones))

    # =========================================================================
    # Sensor Cross-Check
    # =========================================================================

    def _analyze_sensor_data(
        self,
        detection: GPSSpoofingDetection,
        points: list[GPSPoint],
        samples: Sequence[Optional[SensorSample]],
    ) -> None:
        """Sample i is compared with the GPS transition from point i-1 to point i."""
        settings = self.settings
        paired = 0
        accel_mismatches = 0
        gyro_mismatches = 0
        mag_anomalies = 0

        for index in range(1, min(len(points), len(samples))):
            sample = samples[index]
            if sample is None:
                continue

            prev, curr = points[index - 1], points[index]
            elapsed = elapsed_seconds(prev, curr)
            if elapsed <= 0:
                continue
            paired += 1

            if sample.accelerometer is not None:
                gps_accel = abs((curr.speed or 0.0) - (prev.speed or 0.0)) / elapsed
                if abs(gps_accel - _magnitude(sample.accelerometer)) > settings.accelerometer_threshold:
                    accel_mismatches += 1

            if sample.gyroscope is not None and prev.bearing is not None and curr.bearing is not None:
                gps_rotation = radians(bearing_difference(prev.bearing, curr.bearing)) / elapsed
                if abs(gps_rotation - _magnitude(sample.gyroscope)) > settings.gyroscope_threshold:
                    gyro_mismatches += 1

            if sample.magnetometer is not None:
                field_strength = _magnitude(sample.magnetometer)
                if not settings.magnetometer_min_nt <= field_strength <= settings.magnetometer_max_nt:
                    mag_anomalies += 1

        detection.sensor_samples_paired = paired
        if paired == 0:
            return

        detection.accelerometer_mismatch = accel_mismatches / paired >= settings.accelerometer_mismatch_ratio
        detection.gyroscope_mismatch = gyro_mismatches / paired >= settings.gyroscope_mismatch_ratio
        detection.magnetometer_anomaly = mag_anomalies / paired >= settings.magnetometer_anomaly_ratio

    # =========================================================================
    # Confidence Scoring
    # =========================================================================

    def score_breakdown(self, detection: GPSSpoofingDetection) -> dict[str, float]:
        """Points contributed by each signal (zero when the signal is absent)."""
        breakdown = {
            name: weight if getattr(detection, name) else 0.0
            for name, weight in SIGNAL_WEIGHTS.items()
            if name != "route_deviation"
        }
        breakdown["route_deviation"] = (
            SIGNAL_WEIGHTS["route_deviation"]
            if detection.route_deviation > self.settings.route_deviation_threshold_m
            else 0.0
        )
        breakdown["location_jumps"] = min(JUMP_CAP, len(detection.location_jumps) * JUMP_POINTS)
        breakdown["restricted_zones"] = min(ZONE_CAP, len(detection.restricted_zones) * ZONE_POINTS)
        return breakdown

    def calculate_confidence(self, detection: GPSSpoofingDetection) -> float:
        return clip_score(sum(self.score_breakdown(detection).values()))

    # =========================================================================
    # Alert Generation
    # =========================================================================

    def _generate_alert(self, detection: GPSSpoofingDetection) -> FraudAlert:
        settings = self.settings
        score = detection.confidence_score
        severity = severity_for(
            score,
            critical=settings.critical_threshold,
            high=settings.high_threshold,
            medium=settings.medium_threshold,
        )

        return build_alert(
            alert_type=AlertType.GPS_SPOOFING,
            severity=severity,
            subject_type=SubjectType.RIDE,
            subject_id=detection.ride_id,
            title="GPS Spoofing Detected",
            description=f"Suspicious GPS manipulation detected in ride {detection.ride_id}",
            fraud_score=score,
            confidence=score,
            evidence=self._generate_evidence(detection),
            patterns=self._generate_patterns(detection),
            risk_factors=self._generate_risk_factors(detection),
            related_accounts=[a for a in (detection.driver_id, detection.rider_id) if a],
        )

    def _generate_evidence(self, detection: GPSSpoofingDetection) -> list[FraudEvidence]:
        evidence: list[FraudEvidence] = []

        if detection.impossible_speed or detection.teleportation:
            evidence.append(FraudEvidence(
                type=EvidenceType.LOCATION,
                description="Impossible travel speeds detected",
                weight=(
                    (SIGNAL_WEIGHTS["impossible_speed"] if detection.impossible_speed else 0.0)
                    + (SIGNAL_WEIGHTS["teleportation"] if detection.teleportation else 0.0)
                ),
                data={
                    "max_speed_kmh": round(detection.max_jump_speed, 1),
                    "jump_count": len(detection.location_jumps),
                    "teleportation": detection.teleportation,
                },
            ))

        if detection.mock_location_app:
            evidence.append(FraudEvidence(
                type=EvidenceType.DEVICE,
                description="Mock location applications detected on device",
                weight=SIGNAL_WEIGHTS["mock_location_app"],
                data={
                    "apps": list(detection.mock_apps_found),
                    "emulator": detection.emulator_detected,
                },
            ))

        if detection.rooted_device or detection.developer_options:
            evidence.append(FraudEvidence(
                type=EvidenceType.DEVICE,
                description="Device integrity compromised",
                weight=(
                    (SIGNAL_WEIGHTS["rooted_device"] if detection.rooted_device else 0.0)
                    + (SIGNAL_WEIGHTS["developer_options"] if detection.developer_options else 0.0)
                ),
                data={
                    "rooted": detection.rooted_device,
                    "developer_options": detection.developer_options,
                },
            ))

        if detection.outside_service_area or detection.restricted_zones:
            evidence.append(FraudEvidence(
                type=EvidenceType.LOCATION,
                description="Trace leaves the service area or enters restricted zones",
                weight=(
                    (SIGNAL_WEIGHTS["outside_service_area"] if detection.outside_service_area else 0.0)
                    + min(ZONE_CAP, len(detection.restricted_zones) * ZONE_POINTS)
                ),
                data={
                    "outside_point_ratio": round(detection.outside_point_ratio, 3),
                    "restricted_zones": list(detection.restricted_zones),
                },
            ))

        mismatches = {
            "accelerometer": detection.accelerometer_mismatch,
            "gyroscope": detection.gyroscope_mismatch,
            "magnetometer": detection.magnetometer_anomaly,
        }
        if any(mismatches.values()):
            evidence.append(FraudEvidence(
                type=EvidenceType.DEVICE,
                description="Motion sensors disagree with reported GPS movement",
                weight=(
                    (SIGNAL_WEIGHTS["accelerometer_mismatch"] if detection.accelerometer_mismatch else 0.0)
                    + (SIGNAL_WEIGHTS["gyroscope_mismatch"] if detection.gyroscope_mismatch else 0.0)
                    + (SIGNAL_WEIGHTS["magnetometer_anomaly"] if detection.magnetometer_anomaly else 0.0)
                ),
                data={**mismatches, "samples": detection.sensor_samples_paired},
            ))

        return evidence

    def _generate_patterns(self, detection: GPSSpoofingDetection) -> list[DetectedPattern]:
        patterns: list[DetectedPattern] = []

        if detection.straight_line_movement:
            patterns.append(DetectedPattern(
                pattern_type="unnatural_movement",
                description="Unnaturally straight movement patterns inconsistent with road networks",
                risk_level="high",
                timespan="per_ride",
                examples=("Perfect straight lines between points",),
            ))

        if detection.unrealistic_traffic:
            patterns.append(DetectedPattern(
                pattern_type="unrealistic_traffic",
                description="Speed changes between segments that no real traffic produces",
                risk_level="medium",
                timespan="per_ride",
            ))

        if detection.location_jumps:
            patterns.append(DetectedPattern(
                pattern_type="location_jumps",
                description="Consecutive fixes imply impossible travel speed",
                risk_level="high",
                frequency=len(detection.location_jumps),
                timespan="per_ride",
                examples=tuple(f"{jump.implied_speed:.0f} km/h" for jump in detection.location_jumps[:3]),
            ))

        return patterns

    def _generate_risk_factors(self, detection: GPSSpoofingDetection) -> list[RiskFactor]:
        factors = [
            RiskFactor(
                factor="GPS Spoofing Confidence",
                value=detection.confidence_score,
                risk_contribution=detection.confidence_score,
                explanation="Overall confidence in GPS manipulation detection",
            )
        ]
        factors.extend(
            RiskFactor(
                factor=name.replace("_", " ").capitalize(),
                value=points,
                risk_contribution=points,
                explanation="Points added by this signal",
            )
            for name, points in self.score_breakdown(detection).items()
            if points > 0
        )
        return factors
