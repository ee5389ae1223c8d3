# =============================================================================
# RideSignal - Fraud Signal Service
# =============================================================================
"""
The facade business code calls when an account is created or a ride ends.

It holds one configured instance of each detector:

1. **Multi-Account Engine**: links accounts operated by the same person
   Example: three rider accounts on one handset, same barangay, same surname

2. **GPS Trajectory Analyzer**: flags falsified ride locations
   Example: a trace that is in Ortigas one second and in Cebu the next

A detector failure never reaches the caller: it is logged, counted and
reported as "no alert".

Usage:
    # Replay fixture files
    python -m ridesignal.processor.detector --rides rides.json --accounts accounts.json

    # Or run over generated scenarios
    ridesignal-replay --demo 50 --seed 7 --verbose
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ridesignal.config import Settings, get_settings
from ridesignal.generator.models import AccountScenario, RideScenario
from ridesignal.generator.patterns import ScenarioMixer
from ridesignal.models.alerts import AlertType, FraudAlert
from ridesignal.models.telemetry import AccountData, DeviceInfo, GPSPoint
from ridesignal.processor.gps_trajectory import GPSTrajectoryAnalyzer
from ridesignal.processor.multi_account import MultiAccountEngine


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class DetectorStats:
    """Statistics for the signal service."""

    accounts_processed: int = 0
    rides_processed: int = 0
    multi_account_alerts: int = 0
    gps_alerts: int = 0
    errors: int = 0
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def processed(self) -> int:
        return self.accounts_processed + self.rides_processed

    @property
    def alerts_raised(self) -> int:
        return self.multi_account_alerts + self.gps_alerts

    @property
    def uptime_seconds(self) -> float:
        return (datetime.now(timezone.utc) - self.start_time).total_seconds()

    @property
    def alert_rate(self) -> float:
        if self.processed == 0:
            return 0.0
        return self.alerts_raised / self.processed

    def record_alert(self, alert: FraudAlert) -> None:
        if alert.alert_type == AlertType.MULTI_ACCOUNTING:
            self.multi_account_alerts += 1
        else:
            self.gps_alerts += 1


# =============================================================================
# Fraud Signal Service
# =============================================================================

class FraudSignalService:
    """
    Runs the detectors on behalf of the surrounding business transaction.

    Detectors are constructed once here (or injected) and shared across
    calls; nothing is a process-wide singleton.

    Example:
        service = FraudSignalService()
        alert = service.check_ride("ride-42", points, device_info)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        multi_account_engine: MultiAccountEngine | None = None,
        gps_analyzer: GPSTrajectoryAnalyzer | None = None,
        console: Console | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.multi_account_engine = multi_account_engine or MultiAccountEngine(self.settings.multi_account)
        self.gps_analyzer = gps_analyzer or GPSTrajectoryAnalyzer(self.settings.gps)

        self.stats = DetectorStats()
        self.console = console or Console()

        logger.debug("FraudSignalService initialized")

    # =========================================================================
    # Detector Entry Points
    # =========================================================================

    def check_account(
        self,
        account_data: AccountData | dict[str, Any],
        candidate_pool: Iterable[AccountData | dict[str, Any]] | None = None,
    ) -> FraudAlert | None:
        """
        Run multi-account detection for one account.

        Returns:
            FraudAlert if the account links to a suspicious cluster, None otherwise
        """
        self.stats.accounts_processed += 1

        try:
            account = (
                account_data if isinstance(account_data, AccountData)
                else AccountData.model_validate(account_data)
            )
            alert = self.multi_account_engine.analyze_account(account.id, account, candidate_pool or [])
        except Exception as e:
            logger.error(f"Multi-account detector unavailable: {e}")
            self.stats.errors += 1
            return None

        if alert is not None:
            self.stats.record_alert(alert)
        return alert

    def check_ride(
        self,
        ride_id: str,
        gps_points: Sequence[GPSPoint | dict[str, Any]],
        device_info: DeviceInfo | dict[str, Any] | None = None,
        driver_id: str | None = None,
        rider_id: str | None = None,
    ) -> FraudAlert | None:
        """
        Run GPS spoofing detection for one completed ride.

        Returns:
            FraudAlert if the trace looks falsified, None otherwise
        """
        self.stats.rides_processed += 1

        try:
            alert = self.gps_analyzer.analyze_gps_data(
                ride_id,
                gps_points,
                device_info=device_info,
                driver_id=driver_id,
                rider_id=rider_id,
            )
        except Exception as e:
            logger.error(f"GPS detector unavailable for ride {ride_id}: {e}")
            self.stats.errors += 1
            return None

        if alert is not None:
            self.stats.record_alert(alert)
        return alert

    # =========================================================================
    # Replay
    # =========================================================================

    def replay_rides(self, rides: Iterable[RideScenario], show_alerts: bool = True) -> list[FraudAlert]:
        alerts: list[FraudAlert] = []
        for ride in rides:
            alert = self.check_ride(
                ride.ride_id,
                ride.points,
                device_info=ride.device_info,
                driver_id=ride.driver_id,
                rider_id=ride.rider_id,
            )
            if alert is not None:
                alerts.append(alert)
                if show_alerts:
                    self._print_alert(alert)
        return alerts

    def replay_accounts(self, accounts: Sequence[AccountData], show_alerts: bool = True) -> list[FraudAlert]:
        """Sweep every account against all the others in the same file."""
        alerts: list[FraudAlert] = []
        for account in accounts:
            alert = self.check_account(account, [other for other in accounts if other.id != account.id])
            if alert is not None:
                alerts.append(alert)
                if show_alerts:
                    self._print_alert(alert)
        return alerts

    def replay_account_scenarios(
        self,
        scenarios: Iterable[AccountScenario],
        show_alerts: bool = True,
    ) -> list[FraudAlert]:
        alerts: list[FraudAlert] = []
        for scenario in scenarios:
            alert = self.check_account(scenario.primary, scenario.pool)
            if alert is not None:
                alerts.append(alert)
                if show_alerts:
                    self._print_alert(alert)
        return alerts

    # =========================================================================
    # Console Output
    # =========================================================================

    def _print_alert(self, alert: FraudAlert) -> None:
        """Print a formatted fraud alert to console."""
        severity_colors = {
            "low": "yellow",
            "medium": "orange1",
            "high": "red",
            "critical": "red bold",
        }
        color = severity_colors.get(alert.severity.value, "red")

        lines = [
            f"[{color}][!] {alert.title.upper()}[/{color}]",
            "",
            f"[bold]Alert ID:[/bold] {alert.id}",
            f"[bold]Type:[/bold] {alert.alert_type.value.upper().replace('_', ' ')}",
            f"[bold]Severity:[/bold] [{color}]{alert.severity.value.upper()}[/{color}]",
            f"[bold]Score:[/bold] {alert.fraud_score:.1f}  [bold]Confidence:[/bold] {alert.confidence:.1f}",
            f"[bold]Subject:[/bold] {alert.subject_type.value} {alert.subject_id}",
        ]
        if alert.related_accounts:
            lines.append(f"[bold]Related:[/bold] {', '.join(alert.related_accounts)}")
        lines.extend(["", "[bold]Evidence:[/bold]"])
        lines.extend(f"  - {e.description} (+{e.weight:.0f})" for e in alert.evidence)
        lines.extend(["", alert.description])

        self.console.print(Panel(
            "\n".join(lines),
            title="[red bold][!] FRAUD SIGNAL [!][/red bold]",
            border_style="red",
        ))

    def create_stats_table(self) -> Table:
        """Create a rich table with service statistics."""
        table = Table(title="[*] RideSignal Replay", expand=True)

        table.add_column("Metric", style="cyan", no_wrap=True)
        table.add_column("Value", style="green", justify="right")

        table.add_row("[>] Accounts Checked", f"{self.stats.accounts_processed:,}")
        table.add_row("[>] Rides Checked", f"{self.stats.rides_processed:,}")
        table.add_row("[!] Alerts Raised", f"[red]{self.stats.alerts_raised:,}[/red]")
        table.add_row("   +-- Multi-Accounting", f"{self.stats.multi_account_alerts:,}")
        table.add_row("   +-- GPS Spoofing", f"{self.stats.gps_alerts:,}")
        table.add_row("[x] Errors", f"{self.stats.errors:,}")
        table.add_row("[T] Elapsed", f"{self.stats.uptime_seconds:.1f}s")

        alert_rate = self.stats.alert_rate * 100
        rate_color = "green" if alert_rate < 5 else "yellow" if alert_rate < 10 else "red"
        table.add_row("[~] Alert Rate", f"[{rate_color}]{alert_rate:.2f}%[/{rate_color}]")

        return table


# =============================================================================
# Fixture Loading
# =============================================================================

def _read_json_list(path: Path) -> list[Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list of objects")
    return data


def load_rides(path: Path) -> list[RideScenario]:
    """Load ride fixtures; malformed entries are logged and skipped."""
    rides: list[RideScenario] = []
    for index, raw in enumerate(_read_json_list(path)):
        if isinstance(raw, dict) and "gps_points" in raw and "points" not in raw:
            raw = {**raw, "points": raw["gps_points"]}
        try:
            rides.append(RideScenario.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"{path}: skipping ride #{index}: {e.error_count()} validation error(s)")
    return rides


def load_accounts(path: Path) -> list[AccountData]:
    """Load account fixtures; malformed entries are logged and skipped."""
    accounts: list[AccountData] = []
    for index, raw in enumerate(_read_json_list(path)):
        try:
            accounts.append(AccountData.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"{path}: skipping account #{index}: {e.error_count()} validation error(s)")
    return accounts


# =============================================================================
# CLI Interface
# =============================================================================

def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="RideSignal fraud detector replay",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--rides", "-r",
        type=Path,
        default=None,
        help="JSON file with rides (ride_id, points, device_info, driver_id, rider_id)",
    )

    parser.add_argument(
        "--accounts", "-a",
        type=Path,
        default=None,
        help="JSON file with accounts; each is swept against the rest",
    )

    parser.add_argument(
        "--demo", "-d",
        type=int,
        default=None,
        metavar="N",
        help="Generate N synthetic rides and N account sweeps (default 20 when no files are given)",
    )

    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=None,
        help="Random seed for --demo",
    )

    parser.add_argument(
        "--fraud-ratio",
        type=float,
        default=0.3,
        help="Share of generated scenarios with an injected pattern",
    )

    parser.add_argument(
        "--no-alerts",
        action="store_true",
        help="Only print the statistics table",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    settings = get_settings()

    # Configure logging
    log_level = "DEBUG" if args.verbose else settings.log_level
    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
    )

    service = FraudSignalService(settings)
    show_alerts = not args.no_alerts

    service.console.print(Panel.fit(
        f"[bold cyan]{settings.app_name}[/bold cyan] fraud signal replay",
        border_style="cyan",
    ))

    if args.rides:
        service.replay_rides(load_rides(args.rides), show_alerts=show_alerts)
    if args.accounts:
        service.replay_accounts(load_accounts(args.accounts), show_alerts=show_alerts)

    demo_size = args.demo
    if demo_size is None and not (args.rides or args.accounts):
        demo_size = 20

    if demo_size:
        mixer = ScenarioMixer(fraud_ratio=args.fraud_ratio, seed=args.seed)
        rides = mixer.generate_rides(demo_size)
        scenarios = mixer.generate_account_scenarios(demo_size)

        ride_alerts = service.replay_rides(rides, show_alerts=show_alerts)
        account_alerts = service.replay_account_scenarios(scenarios, show_alerts=show_alerts)

        planted_rides = sum(1 for ride in rides if ride.is_fraud)
        planted_clusters = sum(1 for scenario in scenarios if scenario.is_fraud)
        logger.info(f"GPS spoofing: {len(ride_alerts)} alert(s) for {planted_rides} planted ride(s)")
        logger.info(
            f"Multi-accounting: {len(account_alerts)} alert(s) for {planted_clusters} planted cluster(s)"
        )

    service.console.print(service.create_stats_table())


if __name__ == "__main__":
    main()
