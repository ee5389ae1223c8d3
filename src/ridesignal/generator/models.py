# =============================================================================
# RideSignal - Synthetic Scenario Models
# =============================================================================
"""
Pydantic models for generated replay scenarios.

A scenario bundles detector input with the label of the pattern that was
injected, so demos and tests can compare what the detectors flag against
what the generator planted.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ridesignal.models.telemetry import AccountData, DeviceInfo, GPSPoint


class ScenarioLabel(str, Enum):
    """Pattern injected into a generated scenario."""

    NORMAL = "normal"
    TELEPORT = "teleport"
    SPOOFED_DEVICE = "spoofed_device"
    MULTI_ACCOUNT = "multi_account"
    UNRELATED = "unrelated"


class Anchor(BaseModel):
    """A named starting point inside a service area."""

    model_config = {"frozen": True}

    name: str
    city: str
    latitude: float
    longitude: float


class RideScenario(BaseModel):
    """One ride's GPS trace and device report."""

    ride_id: str
    driver_id: Optional[str] = None
    rider_id: Optional[str] = None
    points: list[GPSPoint] = Field(default_factory=list)
    device_info: Optional[DeviceInfo] = None
    label: ScenarioLabel = Field(default=ScenarioLabel.NORMAL)

    @property
    def is_fraud(self) -> bool:
        return self.label != ScenarioLabel.NORMAL


class AccountScenario(BaseModel):
    """A subject account, the candidate pool to sweep, and the planted links."""

    primary: AccountData
    pool: list[AccountData] = Field(default_factory=list)
    linked_ids: list[str] = Field(default_factory=list, description="Pool ids planted as duplicates")
    label: ScenarioLabel = Field(default=ScenarioLabel.UNRELATED)

    @property
    def is_fraud(self) -> bool:
        return self.label == ScenarioLabel.MULTI_ACCOUNT
