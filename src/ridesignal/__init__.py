# =============================================================================
# RideSignal - Ride-Hailing Fraud Signal Engine
# =============================================================================
"""
RideSignal: Trust-and-Safety Fraud Signals for Ride-Hailing Operations.

This package turns account and ride telemetry into bounded, explainable
fraud alerts for downstream review tooling. It covers Multi-Accounting
(one person farming incentives through several accounts) and GPS Spoofing
(falsified ride locations) in the Philippine market.

Modules:
    - config: Configuration management
    - models: Telemetry inputs, detection records and alerts
    - processor: Detection engines and the signal service
    - generator: Synthetic scenario generation
"""

__version__ = "1.0.0"
__author__ = "RideSignal Trust & Safety"

from typing import Final

# Package constants
PACKAGE_NAME: Final[str] = "ridesignal"
