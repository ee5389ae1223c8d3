# =============================================================================
# RideSignal - Multi-Account Similarity Engine
# =============================================================================
"""
Detects one person operating several platform accounts to farm incentives.

The engine works in two stages:

1. **Candidate sweep**: every account in the candidate pool is compared to
   the subject with `compare_accounts`, a weighted blend of five dimensions
   (device 30%, personal info 25%, behavior 20%, network 15%, geography
   10%). Candidates at or above the similarity threshold become suspects.

2. **Cluster analysis**: six sub-analyses run over the suspect set (device
   sharing, network sharing, behavioral correlation, identity overlap,
   geographic overlap, Philippines-specific checks). Their findings feed a
   weighted risk score saturated at 100.

An alert is returned only when the risk score clears the alert threshold.

Usage:
    engine = MultiAccountEngine(settings.multi_account)
    alert = engine.analyze_account(account.id, account, candidate_pool)
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections import Counter
from collections.abc import Iterable, Sequence
from concurrent.futures import Executor, ThreadPoolExecutor, wait
from typing import Any, Optional

from loguru import logger

from ridesignal.config import MultiAccountSettings, get_settings
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
from ridesignal.models.detections import (
    MultiAccountingDetection,
    PersonalInfoSimilarity,
    SuspectedAccount,
)
from ridesignal.models.telemetry import AccountData, AccountType, GeoCoordinates
from ridesignal.processor.behavior import BehaviorScorer, PatternBehaviorScorer
from ridesignal.processor.geo import coordinates_distance
from ridesignal.processor.loader import AccountLoader, resolve_candidates
from ridesignal.processor.similarity import (
    address_similarity,
    email_similarity,
    last_name,
    name_similarity,
    normalize_text,
    phones_match,
    set_overlap,
)


# =============================================================================
# Weights
# =============================================================================

COMPARISON_WEIGHTS: dict[str, float] = {
    "device": 30.0,
    "personal": 25.0,
    "behavioral": 20.0,
    "network": 15.0,
    "geographic": 10.0,
}

# Partial device credit when device ids differ
DEVICE_FIELD_CREDIT: dict[str, float] = {
    "model": 30.0,
    "platform": 20.0,
    "os_version": 15.0,
}
APP_VERSION_CREDIT = 10.0

CARRIER_MATCH_POINTS = 25.0
WIFI_OVERLAP_POINTS = 50.0

IDENTICAL_PREFERENCES_THRESHOLD = 95.0


def _mean(values: Iterable[Optional[float]]) -> float:
    present = [v for v in values if v is not None]
    return sum(present) / len(present) if present else 0.0


def _mean_or_none(values: Iterable[Optional[float]]) -> Optional[float]:
    present = [v for v in values if v is not None]
    return sum(present) / len(present) if present else None


def _same_text(v1: Optional[str], v2: Optional[str]) -> Optional[bool]:
    n1, n2 = normalize_text(v1), normalize_text(v2)
    if not n1 or not n2:
        return None
    return n1 == n2


def _coerce_account(data: AccountData | dict[str, Any]) -> AccountData:
    if isinstance(data, AccountData):
        return data
    return AccountData.model_validate(data)


def _score_batch(
    engine: "MultiAccountEngine",
    account: AccountData,
    batch: Sequence[AccountData],
) -> list[SuspectedAccount]:
    """Score one batch of candidates against the subject account."""
    threshold = engine.settings.similarity_threshold
    suspects: list[SuspectedAccount] = []

    for candidate in batch:
        try:
            score = engine.compare_accounts(account, candidate)
        except Exception as e:
            logger.error(f"Comparison {account.id} vs {candidate.id} failed: {e}")
            continue

        if score >= threshold:
            suspects.append(SuspectedAccount(
                account_id=candidate.id,
                account_type=candidate.account_type.value,
                similarity_score=score,
                shared_attributes=engine.identify_shared_attributes(account, candidate),
                creation_date=candidate.created_at,
                last_activity=candidate.last_activity or candidate.updated_at,
            ))

    return suspects


# =============================================================================
# Multi-Account Engine
# =============================================================================

class MultiAccountEngine:
    """
    Pairwise and one-vs-pool account similarity scoring.

    Constructed once per process by the caller and shared freely: it holds
    only read-only settings and a stateless behavior scorer.
    """

    def __init__(
        self,
        settings: MultiAccountSettings | None = None,
        behavior_scorer: BehaviorScorer | None = None,
    ) -> None:
        self.settings = settings or get_settings().multi_account
        self.behavior_scorer = behavior_scorer or PatternBehaviorScorer()

    # =========================================================================
    # Public API
    # =========================================================================

    def analyze_account(
        self,
        account_id: str,
        account_data: AccountData | dict[str, Any],
        candidate_pool: Iterable[AccountData | dict[str, Any]] | None = None,
        executor: Executor | None = None,
        timeout: float | None = None,
    ) -> FraudAlert | None:
        """
        Analyze an account for multi-accounting.

        Returns:
            FraudAlert when the risk score reaches the alert threshold,
            None otherwise (including when the analysis itself fails).
        """
        try:
            detection = self.build_detection(
                account_id,
                account_data,
                candidate_pool or [],
                executor=executor,
                timeout=timeout,
            )
        except Exception as e:
            logger.exception(f"Multi-account analysis failed for {account_id}: {e}")
            return None

        if detection.risk_score < self.settings.alert_threshold:
            logger.debug(
                f"Account {account_id}: risk {detection.risk_score:.1f} below "
                f"threshold ({len(detection.suspected_accounts)} suspects)"
            )
            return None

        subject = _coerce_account(account_data)
        alert = self._generate_alert(detection, subject.account_type)
        logger.info(
            f"Multi-accounting alert {alert.id} for {account_id}: "
            f"score={alert.fraud_score:.1f} severity={alert.severity.value}"
        )
        return alert

    async def analyze_account_ids(
        self,
        account_id: str,
        account_data: AccountData | dict[str, Any],
        candidate_ids: Iterable[str],
        loader: AccountLoader,
    ) -> FraudAlert | None:
        """
        Resolve candidates through an injected loader, then analyze.

        Candidates that fail to load (error, timeout, missing) are dropped
        and contribute nothing.
        """
        try:
            candidates = await resolve_candidates(
                loader,
                candidate_ids,
                timeout=self.settings.loader_timeout_seconds,
                concurrency=self.settings.loader_concurrency,
            )
        except Exception as e:
            logger.error(f"Candidate resolution failed for {account_id}: {e}")
            candidates = []

        return await asyncio.to_thread(self.analyze_account, account_id, account_data, candidates)

    def build_detection(
        self,
        account_id: str,
        account_data: AccountData | dict[str, Any],
        candidate_pool: Iterable[AccountData | dict[str, Any]],
        executor: Executor | None = None,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> MultiAccountingDetection:
        """Run the sweep and all six sub-analyses, returning the full record."""
        account = _coerce_account(account_data)
        pool = [
            candidate for candidate in (_coerce_account(c) for c in candidate_pool)
            if candidate.id not in (account_id, account.id)
        ]

        detection = MultiAccountingDetection(primary_account_id=account_id)

        suspects, scored, complete = self._sweep(account, pool, executor, timeout, cancel_event)
        detection.suspected_accounts = suspects
        detection.candidates_scored = scored
        detection.sweep_complete = complete

        if suspects:
            by_id = {candidate.id: candidate for candidate in pool}
            suspect_data = [by_id[s.account_id] for s in suspects]

            self._analyze_device_patterns(detection, account, suspect_data)
            self._analyze_network_patterns(detection, account, suspect_data)
            self._analyze_behavioral_patterns(detection, account, suspect_data)
            self._analyze_identity_overlap(detection, account, suspect_data)
            self._analyze_geographic_patterns(detection, account, suspect_data)
            self._analyze_philippines_patterns(detection, account, suspect_data)

        detection.risk_score = self.calculate_risk_score(detection)
        return detection

    def find_suspected_accounts(
        self,
        account_data: AccountData | dict[str, Any],
        candidate_pool: Iterable[AccountData | dict[str, Any]],
        executor: Executor | None = None,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> list[SuspectedAccount]:
        """Candidates at or above the similarity threshold, best first."""
        account = _coerce_account(account_data)
        pool = [c for c in (_coerce_account(c) for c in candidate_pool) if c.id != account.id]
        suspects, _, _ = self._sweep(account, pool, executor, timeout, cancel_event)
        return suspects

    def compare_accounts(
        self,
        account1: AccountData | dict[str, Any],
        account2: AccountData | dict[str, Any],
    ) -> float:
        """
        Weighted similarity of two accounts in [0, 100].

        Device 30%, personal info 25%, behavior 20%, network 15%,
        geography 10%. Missing data contributes zero.
        """
        a, b = _coerce_account(account1), _coerce_account(account2)

        blended = (
            COMPARISON_WEIGHTS["device"] * self.device_similarity(a, b)
            + COMPARISON_WEIGHTS["personal"] * self.personal_info_score(a, b)
            + COMPARISON_WEIGHTS["behavioral"] * self.behavioral_similarity(a, b)
            + COMPARISON_WEIGHTS["network"] * self.network_similarity(a, b)
            + COMPARISON_WEIGHTS["geographic"] * self.geographic_similarity(a, b)
        ) / 100.0

        return clip_score(blended)

    # =========================================================================
    # Candidate Sweep
    # =========================================================================

    def _sweep(
        self,
        account: AccountData,
        pool: list[AccountData],
        executor: Executor | None,
        timeout: float | None,
        cancel_event: threading.Event | None,
    ) -> tuple[list[SuspectedAccount], int, bool]:
        """
        Score the pool in batches.

        Returns (suspects sorted best-first, candidates scored, complete).
        A timeout or cancellation keeps the batches already scored.
        """
        batch_size = self.settings.batch_size
        batches = [pool[i:i + batch_size] for i in range(0, len(pool), batch_size)]
        if timeout is None:
            timeout = self.settings.sweep_timeout_seconds

        owned_executor: ThreadPoolExecutor | None = None
        if executor is None and len(batches) > 1 and self.settings.max_workers > 1:
            owned_executor = ThreadPoolExecutor(
                max_workers=self.settings.max_workers,
                thread_name_prefix="ridesignal-sweep",
            )
            executor = owned_executor

        try:
            if executor is None:
                suspects, scored, complete = self._sweep_sequential(
                    account, batches, timeout, cancel_event
                )
            else:
                suspects, scored, complete = self._sweep_pooled(
                    account, batches, executor, timeout, cancel_event
                )
        finally:
            if owned_executor is not None:
                owned_executor.shutdown(wait=False, cancel_futures=True)

        if not complete:
            logger.warning(
                f"Candidate sweep for {account.id} stopped early: "
                f"{scored}/{len(pool)} candidates scored"
            )

        # Completion order must not leak into the result
        suspects.sort(key=lambda s: (-s.similarity_score, s.account_id))
        return suspects, scored, complete

    def _sweep_sequential(
        self,
        account: AccountData,
        batches: list[list[AccountData]],
        timeout: float | None,
        cancel_event: threading.Event | None,
    ) -> tuple[list[SuspectedAccount], int, bool]:
        deadline = time.monotonic() + timeout if timeout is not None else None
        suspects: list[SuspectedAccount] = []
        scored = 0

        for batch in batches:
            if cancel_event is not None and cancel_event.is_set():
                return suspects, scored, False
            if deadline is not None and time.monotonic() >= deadline:
                return suspects, scored, False
            suspects.extend(_score_batch(self, account, batch))
            scored += len(batch)

        return suspects, scored, True

    def _sweep_pooled(
        self,
        account: AccountData,
        batches: list[list[AccountData]],
        executor: Executor,
        timeout: float | None,
        cancel_event: threading.Event | None,
    ) -> tuple[list[SuspectedAccount], int, bool]:
        futures = {}
        complete = True
        for batch in batches:
            if cancel_event is not None and cancel_event.is_set():
                complete = False
                break
            futures[executor.submit(_score_batch, self, account, batch)] = len(batch)

        done, pending = wait(futures, timeout=timeout)
        for future in pending:
            future.cancel()
        if pending:
            complete = False

        suspects: list[SuspectedAccount] = []
        scored = 0
        for future in done:
            if future.cancelled():
                complete = False
                continue
            error = future.exception()
            if error is not None:
                logger.error(f"Candidate batch failed for {account.id}: {error}")
                complete = False
                continue
            suspects.extend(future.result())
            scored += futures[future]

        return suspects, scored, complete

    # =========================================================================
    # Pairwise Dimensions
    # =========================================================================

    def device_similarity(self, a: AccountData, b: AccountData) -> float:
        """100 for the same device id, otherwise hardware credit averaged over shared factors.

        A device id present on both sides but different counts as one
        zero-scored factor. Device info adds three factors (model,
        platform, OS version) and app version adds one.
        """
        if a.device_id and b.device_id and a.device_id == b.device_id:
            return 100.0

        score = 0.0
        factors = 0
        if a.device_id and b.device_id:
            factors += 1

        if a.device_info and b.device_info:
            for field_name, credit in DEVICE_FIELD_CREDIT.items():
                if _same_text(getattr(a.device_info, field_name), getattr(b.device_info, field_name)):
                    score += credit
            factors += len(DEVICE_FIELD_CREDIT)

        if a.app_version and b.app_version:
            factors += 1
            if _same_text(a.app_version, b.app_version):
                score += APP_VERSION_CREDIT

        return score / factors if factors else 0.0

    def personal_info_similarity(self, a: AccountData, b: AccountData) -> PersonalInfoSimilarity:
        return PersonalInfoSimilarity(
            name_match=name_similarity(a.name, b.name) or 0.0,
            phone_match=bool(phones_match(a.phone, b.phone)),
            email_similarity=email_similarity(a.email, b.email) or 0.0,
            address_match=address_similarity(a.address, b.address) or 0.0,
        )

    def personal_info_score(self, a: AccountData, b: AccountData) -> float:
        """Mean of the personal-info factors both accounts carry."""
        phone = phones_match(a.phone, b.phone)
        return _mean([
            name_similarity(a.name, b.name),
            None if phone is None else (100.0 if phone else 0.0),
            email_similarity(a.email, b.email),
            address_similarity(a.address, b.address),
        ])

    def behavioral_similarity(self, a: AccountData, b: AccountData) -> float:
        return _mean(self._behavioral_components(a, b))

    def _behavioral_components(self, a: AccountData, b: AccountData) -> list[Optional[float]]:
        scorer = self.behavior_scorer
        return [
            scorer.ride_pattern_similarity(a.ride_patterns, b.ride_patterns),
            scorer.timing_similarity(a.usage_times, b.usage_times),
            scorer.usage_similarity(a.app_usage, b.app_usage),
        ]

    def network_similarity(self, a: AccountData, b: AccountData) -> float:
        """IP overlap (100) + same carrier (25) + WiFi overlap (50), saturated."""
        score = 0.0

        ip_overlap = set_overlap(a.ip_addresses, b.ip_addresses)
        if ip_overlap is not None:
            score += ip_overlap * 100.0

        if _same_text(a.network_carrier, b.network_carrier):
            score += CARRIER_MATCH_POINTS

        wifi_overlap = set_overlap(a.wifi_networks, b.wifi_networks)
        if wifi_overlap is not None:
            score += wifi_overlap * WIFI_OVERLAP_POINTS

        return clip_score(score)

    def geographic_similarity(self, a: AccountData, b: AccountData) -> float:
        """Mean of home-location proximity and frequent-location overlap."""
        components: list[Optional[float]] = []

        if a.home_location and b.home_location:
            decay = self.settings.home_decay_distance_m
            distance = coordinates_distance(a.home_location, b.home_location)
            components.append(max(0.0, (decay - distance) / decay * 100.0))

        components.append(self.location_overlap(a.frequent_locations, b.frequent_locations))
        return _mean(components)

    def location_overlap(
        self,
        locations1: Optional[list[GeoCoordinates]],
        locations2: Optional[list[GeoCoordinates]],
    ) -> Optional[float]:
        """Share of locations (from both sides) with a counterpart within the shared radius."""
        if not locations1 or not locations2:
            return None

        matched1 = sum(1 for loc in locations1 if self._near_any(loc, locations2))
        matched2 = sum(1 for loc in locations2 if self._near_any(loc, locations1))
        return (matched1 + matched2) / (len(locations1) + len(locations2)) * 100.0

    def _near_any(self, location: GeoCoordinates, others: Iterable[GeoCoordinates]) -> bool:
        radius = self.settings.shared_location_radius_m
        return any(coordinates_distance(location, other) < radius for other in others)

    def identify_shared_attributes(self, a: AccountData, b: AccountData) -> list[str]:
        attributes: list[str] = []

        if a.device_id and a.device_id == b.device_id:
            attributes.append("device_id")
        if phones_match(a.phone, b.phone):
            attributes.append("phone_number")
        if _same_text(a.email, b.email):
            attributes.append("email")
        if set(a.ip_addresses or ()) & set(b.ip_addresses or ()):
            attributes.append("ip_address")
        if set(a.wifi_networks or ()) & set(b.wifi_networks or ()):
            attributes.append("wifi_network")
        if a.home_location and b.home_location and self._near_any(a.home_location, [b.home_location]):
            attributes.append("home_location")
        if a.address and b.address and _same_text(a.address.barangay, b.address.barangay):
            attributes.append("barangay")
        if set(a.payment_fingerprints or ()) & set(b.payment_fingerprints or ()):
            attributes.append("payment_method")

        return attributes

    # =========================================================================
    # Cluster Sub-Analyses
    # =========================================================================

    def _analyze_device_patterns(
        self,
        detection: MultiAccountingDetection,
        account: AccountData,
        suspects: list[AccountData],
    ) -> None:
        usage = Counter(a.device_id for a in [account, *suspects] if a.device_id)
        detection.shared_devices = [device_id for device_id, count in usage.items() if count > 1]
        detection.device_similarity = _mean(self.device_similarity(account, s) for s in suspects)

    def _analyze_network_patterns(
        self,
        detection: MultiAccountingDetection,
        account: AccountData,
        suspects: list[AccountData],
    ) -> None:
        account_ips = set(account.ip_addresses or ())
        account_wifi = set(account.wifi_networks or ())
        suspect_ips: set[str] = set()
        suspect_wifi: set[str] = set()
        for suspect in suspects:
            suspect_ips.update(suspect.ip_addresses or ())
            suspect_wifi.update(suspect.wifi_networks or ())

        detection.shared_ip_addresses = sorted(account_ips & suspect_ips)
        detection.shared_wifi_networks = sorted(account_wifi & suspect_wifi)
        detection.similar_network_patterns = bool(
            detection.shared_ip_addresses or detection.shared_wifi_networks
        )

    def _analyze_behavioral_patterns(
        self,
        detection: MultiAccountingDetection,
        account: AccountData,
        suspects: list[AccountData],
    ) -> None:
        if not account.has_behavioral_data:
            return

        behavioral = [self.behavioral_similarity(account, s) for s in suspects]
        timing = [
            self.behavior_scorer.timing_similarity(account.usage_times, s.usage_times) or 0.0
            for s in suspects
        ]
        usage = [self.behavior_scorer.usage_similarity(account.app_usage, s.app_usage) for s in suspects]

        detection.similar_ride_patterns = _mean(behavioral) > self.settings.similar_behavior_threshold
        detection.timing_correlation = _mean(timing)
        detection.identical_preferences = any(
            u is not None and u >= IDENTICAL_PREFERENCES_THRESHOLD for u in usage
        )

    def _analyze_identity_overlap(
        self,
        detection: MultiAccountingDetection,
        account: AccountData,
        suspects: list[AccountData],
    ) -> None:
        strongest = PersonalInfoSimilarity()
        for suspect in suspects:
            strongest.merge_max(self.personal_info_similarity(account, suspect))
        detection.similar_personal_info = strongest

        payments = set(account.payment_fingerprints or ())
        detection.shared_payment_methods = any(
            payments & set(s.payment_fingerprints or ()) for s in suspects
        )

    def _analyze_geographic_patterns(
        self,
        detection: MultiAccountingDetection,
        account: AccountData,
        suspects: list[AccountData],
    ) -> None:
        shared: list[str] = []
        for location in account.frequent_locations or ():
            for suspect in suspects:
                if suspect.frequent_locations and self._near_any(location, suspect.frequent_locations):
                    shared.append(f"{location.lat},{location.lng}")
                    break

        detection.shared_locations = list(dict.fromkeys(shared))
        detection.proximity_score = _mean(self.geographic_similarity(account, s) for s in suspects)

    def _analyze_philippines_patterns(
        self,
        detection: MultiAccountingDetection,
        account: AccountData,
        suspects: list[AccountData],
    ) -> None:
        barangay = normalize_text(account.address.barangay) if account.address else ""
        if barangay:
            detection.shared_barangay = any(
                s.address is not None and normalize_text(s.address.barangay) == barangay
                for s in suspects
            )

        # Same surname marks a household cluster
        surname = last_name(account.name)
        if surname:
            detection.familial_connections = any(
                surname in normalize_text(s.name) for s in suspects if s.name
            )

    # =========================================================================
    # Risk Scoring
    # =========================================================================

    def risk_contributions(self, detection: MultiAccountingDetection) -> list[RiskFactor]:
        """Every term of the risk score, including the zero ones."""
        info = detection.similar_personal_info
        terms = [
            ("Shared devices", len(detection.shared_devices), len(detection.shared_devices) * 25.0,
             "Device ids used by more than one account in the cluster"),
            ("Device similarity", round(detection.device_similarity, 2), detection.device_similarity * 0.3,
             "Average hardware fingerprint similarity to suspects"),
            ("Shared IP addresses", len(detection.shared_ip_addresses),
             len(detection.shared_ip_addresses) * 15.0, "IP addresses also used by suspects"),
            ("Shared network pattern", detection.similar_network_patterns,
             20.0 if detection.similar_network_patterns else 0.0,
             "Suspects connect through the same IPs or WiFi networks"),
            ("Name similarity", round(info.name_match, 2), info.name_match * 0.4,
             "Closest name match among suspects"),
            ("Phone match", info.phone_match, 40.0 if info.phone_match else 0.0,
             "A suspect uses the same normalized phone number"),
            ("Email similarity", round(info.email_similarity, 2), info.email_similarity * 0.3,
             "Closest email local-part match on the same domain"),
            ("Address similarity", round(info.address_match, 2), info.address_match * 0.2,
             "Closest street/barangay/city match"),
            ("Similar ride patterns", detection.similar_ride_patterns,
             15.0 if detection.similar_ride_patterns else 0.0,
             "Suspects ride the same routes at the same hours"),
            ("Timing correlation", round(detection.timing_correlation, 2), detection.timing_correlation * 0.2,
             "App sessions happen in the same weekday/hour slots"),
            ("Shared locations", len(detection.shared_locations), len(detection.shared_locations) * 5.0,
             "Frequent locations shared with suspects"),
            ("Proximity", round(detection.proximity_score, 2), detection.proximity_score * 0.1,
             "Average geographic similarity to suspects"),
            ("Shared barangay", detection.shared_barangay, 15.0 if detection.shared_barangay else 0.0,
             "A suspect is registered in the same barangay"),
            ("Familial connection", detection.familial_connections,
             10.0 if detection.familial_connections else 0.0,
             "A suspect carries the same surname"),
        ]
        return [
            RiskFactor(factor=name, value=value, risk_contribution=round(points, 2), explanation=why)
            for name, value, points, why in terms
        ]

    def calculate_risk_score(self, detection: MultiAccountingDetection) -> float:
        total = sum(factor.risk_contribution for factor in self.risk_contributions(detection))
        return clip_score(total)

    # =========================================================================
    # Alert Generation
    # =========================================================================

    def _generate_alert(self, detection: MultiAccountingDetection, account_type: AccountType) -> FraudAlert:
        settings = self.settings
        severity = severity_for(
            detection.risk_score,
            critical=settings.high_risk_threshold,
            high=settings.high_severity_threshold,
            medium=settings.medium_severity_threshold,
        )
        linked = [s.account_id for s in detection.suspected_accounts]

        return build_alert(
            alert_type=AlertType.MULTI_ACCOUNTING,
            severity=severity,
            subject_type=SubjectType(account_type.value),
            subject_id=detection.primary_account_id,
            title="Multi-Account Detection",
            description=(
                f"Potential multi-accounting detected for account {detection.primary_account_id}: "
                f"{len(linked)} linked account(s)"
            ),
            fraud_score=detection.risk_score,
            confidence=min(95.0, detection.risk_score + 5.0),
            evidence=self._generate_evidence(detection),
            patterns=self._generate_patterns(detection),
            risk_factors=[f for f in self.risk_contributions(detection) if f.risk_contribution > 0],
            related_accounts=linked,
        )

    def _generate_evidence(self, detection: MultiAccountingDetection) -> list[FraudEvidence]:
        evidence: list[FraudEvidence] = []
        info = detection.similar_personal_info

        if detection.shared_devices:
            evidence.append(FraudEvidence(
                type=EvidenceType.DEVICE,
                description=f"{len(detection.shared_devices)} device(s) shared across linked accounts",
                weight=len(detection.shared_devices) * 25.0,
                data={"device_ids": list(detection.shared_devices)},
            ))

        if detection.similar_network_patterns:
            evidence.append(FraudEvidence(
                type=EvidenceType.NETWORK,
                description="Linked accounts connect from the same networks",
                weight=len(detection.shared_ip_addresses) * 15.0 + 20.0,
                data={
                    "ip_addresses": list(detection.shared_ip_addresses),
                    "wifi_networks": list(detection.shared_wifi_networks),
                },
            ))

        if info.phone_match:
            evidence.append(FraudEvidence(
                type=EvidenceType.IDENTITY,
                description="Same phone number registered on multiple accounts",
                weight=40.0,
                data={"phone_match": True},
            ))

        if info.name_match >= 80.0 or info.email_similarity >= 80.0:
            evidence.append(FraudEvidence(
                type=EvidenceType.IDENTITY,
                description="Near-identical name or email on linked accounts",
                weight=round(info.name_match * 0.4 + info.email_similarity * 0.3, 2),
                data={
                    "name_match": round(info.name_match, 2),
                    "email_similarity": round(info.email_similarity, 2),
                },
            ))

        if detection.shared_payment_methods:
            evidence.append(FraudEvidence(
                type=EvidenceType.FINANCIAL,
                description="Payment instrument shared with a linked account",
                weight=0.0,
                data={"shared_payment_methods": True},
            ))

        if detection.similar_ride_patterns or detection.timing_correlation > 0:
            evidence.append(FraudEvidence(
                type=EvidenceType.BEHAVIOR,
                description="Correlated riding and app-usage behavior",
                weight=round(
                    (15.0 if detection.similar_ride_patterns else 0.0) + detection.timing_correlation * 0.2,
                    2,
                ),
                data={
                    "similar_ride_patterns": detection.similar_ride_patterns,
                    "timing_correlation": round(detection.timing_correlation, 2),
                },
            ))

        if detection.shared_locations or detection.shared_barangay:
            evidence.append(FraudEvidence(
                type=EvidenceType.LOCATION,
                description="Linked accounts operate from the same places",
                weight=len(detection.shared_locations) * 5.0 + (15.0 if detection.shared_barangay else 0.0),
                data={
                    "shared_locations": list(detection.shared_locations),
                    "shared_barangay": detection.shared_barangay,
                },
            ))

        return evidence

    def _generate_patterns(self, detection: MultiAccountingDetection) -> list[DetectedPattern]:
        patterns: list[DetectedPattern] = []
        suspects = detection.suspected_accounts

        if len(suspects) >= 2:
            patterns.append(DetectedPattern(
                pattern_type="account_cluster",
                description="Several accounts resolve to the same operator",
                risk_level="high",
                frequency=len(suspects),
                examples=tuple(s.account_id for s in suspects[:3]),
            ))

        if detection.shared_devices:
            patterns.append(DetectedPattern(
                pattern_type="device_sharing",
                description="One handset used to operate multiple accounts",
                risk_level="high",
                frequency=len(detection.shared_devices),
                examples=tuple(detection.shared_devices[:3]),
            ))

        if detection.timing_correlation >= 70.0:
            patterns.append(DetectedPattern(
                pattern_type="coordinated_usage",
                description="Accounts are active in the same time slots",
                risk_level="medium",
                timespan="weekly",
            ))

        if detection.familial_connections:
            patterns.append(DetectedPattern(
                pattern_type="household_network",
                description="Linked accounts share a family name",
                risk_level="low",
            ))

        return patterns
