#!/usr/bin/env python
# =============================================================================
# RideSignal - Detector Smoke Script
# =============================================================================
"""
Standalone smoke run for both detectors.

This script exercises the detectors in isolation:
1. Builds a clean 40 km/h trip and a trip that teleports between cities
2. Builds a rooted emulator trip running a mock-location app
3. Plants a multi-account cluster in a pool of strangers
4. Prints what each detector flags

Usage:
    pip install -e .
    python scripts/smoke_detectors.py

Expected Output:
    [+] Normal trip: no alert
    [!] Teleport trip: GPS spoofing alert
    [!] Spoofed device: GPS spoofing alert
    [!] Account cluster: multi-accounting alert linking the planted accounts
"""

import random
import sys

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Configure logging
logger.remove()
logger.add(
    sys.stderr,
    level="DEBUG",
    format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
)

console = Console()


def smoke_detectors(seed: int = 7) -> bool:
    """Run every scenario once and report whether each was classified as planted."""

    console.print(Panel.fit(
        "[bold blue]RideSignal[/bold blue]\n"
        "[yellow]Detector Smoke Run[/yellow]",
        border_style="blue",
    ))

    # Import after logging setup
    from ridesignal.generator import (
        MultiAccountClusterGenerator,
        NormalTripGenerator,
        SpoofedDeviceGenerator,
        TeleportTripGenerator,
    )
    from ridesignal.processor import FraudSignalService

    rng = random.Random(seed)
    service = FraudSignalService()

    results = Table(title="Scenario Results")
    results.add_column("Scenario", style="cyan")
    results.add_column("Planted", justify="center")
    results.add_column("Flagged", justify="center")
    results.add_column("Score", justify="right")

    all_ok = True

    # ==========================================================================
    # Rides
    # ==========================================================================
    for name, generator in (
        ("Normal trip", NormalTripGenerator(rng)),
        ("Teleport trip", TeleportTripGenerator(rng)),
        ("Spoofed device", SpoofedDeviceGenerator(rng)),
    ):
        ride = generator.generate()
        alert = service.check_ride(
            ride.ride_id, ride.points, ride.device_info, ride.driver_id, ride.rider_id
        )
        flagged = alert is not None
        all_ok &= flagged == ride.is_fraud
        results.add_row(
            name,
            "yes" if ride.is_fraud else "no",
            "[red]yes[/red]" if flagged else "[green]no[/green]",
            f"{alert.confidence:.1f}" if alert else "-",
        )

    # ==========================================================================
    # Accounts
    # ==========================================================================
    scenario = MultiAccountClusterGenerator(rng, duplicates=2, noise_accounts=15).generate()
    alert = service.check_account(scenario.primary, scenario.pool)
    linked_ok = alert is not None and set(scenario.linked_ids) <= set(alert.related_accounts)
    all_ok &= linked_ok
    results.add_row(
        "Account cluster",
        "yes",
        "[red]yes[/red]" if alert else "[green]no[/green]",
        f"{alert.fraud_score:.1f}" if alert else "-",
    )

    console.print(results)
    console.print(service.create_stats_table())

    if all_ok:
        console.print("[green][+] Every scenario classified as planted[/green]")
    else:
        console.print("[red][x] Some scenarios were misclassified[/red]")
    return all_ok


if __name__ == "__main__":
    sys.exit(0 if smoke_detectors() else 1)
