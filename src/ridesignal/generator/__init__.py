# =============================================================================
# RideSignal - Generator Module
# =============================================================================
"""
Synthetic Philippine ride-hailing data with fraud pattern injection.

This module provides:
- Smooth city trips and account pools with Filipino localization
- Injected patterns (teleporting traces, spoofed devices, account clusters)
- Seeded mixing for reproducible replay fixtures and demos
"""

from ridesignal.generator.models import (
    AccountScenario,
    Anchor,
    RideScenario,
    ScenarioLabel,
)
from ridesignal.generator.patterns import (
    METRO_MANILA_ANCHORS,
    SERVICE_ANCHORS,
    MultiAccountClusterGenerator,
    NormalTripGenerator,
    ScenarioMixer,
    SpoofedDeviceGenerator,
    TeleportTripGenerator,
    UnrelatedAccountsGenerator,
    generate_account,
    generate_trace,
)

__all__ = [
    # Models
    "AccountScenario",
    "Anchor",
    "RideScenario",
    "ScenarioLabel",
    # Generators
    "METRO_MANILA_ANCHORS",
    "SERVICE_ANCHORS",
    "MultiAccountClusterGenerator",
    "NormalTripGenerator",
    "ScenarioMixer",
    "SpoofedDeviceGenerator",
    "TeleportTripGenerator",
    "UnrelatedAccountsGenerator",
    "generate_account",
    "generate_trace",
]
