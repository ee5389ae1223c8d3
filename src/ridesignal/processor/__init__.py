"""
Processing module for fraud detection engines.

This module contains:
- MultiAccountEngine: account similarity sweeps and cluster risk scoring
- GPSTrajectoryAnalyzer: per-ride GPS spoofing analysis
- FraudSignalService: facade running both detectors for business code
"""

from ridesignal.processor.behavior import BehaviorScorer, NullBehaviorScorer, PatternBehaviorScorer
from ridesignal.processor.detector import DetectorStats, FraudSignalService
from ridesignal.processor.geo import calculate_bearing, haversine_distance
from ridesignal.processor.gps_trajectory import GPSTrajectoryAnalyzer
from ridesignal.processor.loader import AccountLoader, InMemoryAccountLoader, resolve_candidates
from ridesignal.processor.multi_account import MultiAccountEngine

__all__ = [
    # Multi-Account Engine
    "MultiAccountEngine",
    "BehaviorScorer",
    "NullBehaviorScorer",
    "PatternBehaviorScorer",
    "AccountLoader",
    "InMemoryAccountLoader",
    "resolve_candidates",
    # GPS Trajectory
    "GPSTrajectoryAnalyzer",
    "calculate_bearing",
    "haversine_distance",
    # Signal Service
    "FraudSignalService",
    "DetectorStats",
]
