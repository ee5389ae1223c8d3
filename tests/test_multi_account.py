"""Tests for the Multi-Account Similarity Engine."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from ridesignal.config import MultiAccountSettings
from ridesignal.models.alerts import AlertType, Severity, SubjectType
from ridesignal.models.detections import MultiAccountingDetection, PersonalInfoSimilarity
from ridesignal.models.telemetry import AccountData
from ridesignal.processor.behavior import NullBehaviorScorer, PatternBehaviorScorer
from ridesignal.processor.geo import haversine_distance
from ridesignal.processor.multi_account import MultiAccountEngine


class CancellingScorer(PatternBehaviorScorer):
    """Sets the cancel event once a given number of candidates has been scored."""

    def __init__(self, event: threading.Event, after: int):
        self.event = event
        self.after = after
        self.calls = 0

    def ride_pattern_similarity(self, patterns1, patterns2):
        self.calls += 1
        if self.calls >= self.after:
            self.event.set()
        return super().ride_pattern_similarity(patterns1, patterns2)


class SlowScorer(PatternBehaviorScorer):
    def ride_pattern_similarity(self, patterns1, patterns2):
        time.sleep(0.3)
        return super().ride_pattern_similarity(patterns1, patterns2)


class TestCompareAccounts:
    def test_identical_accounts_score_100(self, engine, make_account):
        a = make_account("acc-1")
        b = make_account("acc-2")
        assert engine.compare_accounts(a, b) == pytest.approx(100.0, abs=1e-6)

    def test_empty_accounts_score_zero(self, engine):
        assert engine.compare_accounts(AccountData(id="a"), AccountData(id="b")) == 0.0

    def test_symmetric(self, engine, make_account):
        a = make_account("acc-1")
        b = make_account(
            "acc-2",
            name="Maria Dela Cruz",
            email="maria.dc@gmail.com",
            device_id="dev-0002",
            ip_addresses=["112.198.10.1", "112.200.1.1", "112.200.1.2"],
            home_location={"lat": 14.60, "lng": 121.07},
            usage_times=[{"day_of_week": 0, "hour": 8, "sessions": 1}],
        )
        assert engine.compare_accounts(a, b) == pytest.approx(engine.compare_accounts(b, a))

    def test_accepts_plain_dicts(self, engine, make_account):
        a = make_account("acc-1").model_dump()
        b = make_account("acc-2").model_dump()
        assert engine.compare_accounts(a, b) == pytest.approx(100.0, abs=1e-6)

    def test_score_is_bounded(self, engine, make_account):
        a = make_account("acc-1", wifi_networks=["A", "B"], ip_addresses=["1.1.1.1"])
        b = make_account("acc-2", wifi_networks=["A", "B"], ip_addresses=["1.1.1.1"])
        assert 0.0 <= engine.compare_accounts(a, b) <= 100.0


class TestDimensions:
    def test_same_device_id(self, engine, make_account):
        assert engine.device_similarity(make_account("a"), make_account("b")) == 100.0

    def test_partial_device_credit(self, engine, make_account):
        a = make_account("a")
        b = make_account(
            "b",
            device_id="dev-other",
            device_info={"model": "samsung galaxy a54", "platform": "Android", "os_version": "13"},
        )
        # (model 30 + platform 20 + app version 10) over five factors
        assert engine.device_similarity(a, b) == pytest.approx(12.0)

    def test_identical_hardware_on_different_devices(self, engine, make_account):
        a = make_account("a")
        b = make_account("b", device_id="dev-0002")
        assert engine.device_similarity(a, b) == pytest.approx(15.0)

    def test_device_factors_missing_on_one_side(self, engine, make_account):
        a = make_account("a", device_id=None, app_version=None)
        b = make_account("b", device_id="dev-0002", app_version=None)
        # only the three hardware fields are comparable
        assert engine.device_similarity(a, b) == pytest.approx(65.0 / 3)
        bare = make_account("c", device_id=None, device_info=None, app_version=None)
        assert engine.device_similarity(a, bare) == 0.0

    def test_network_similarity(self, engine, make_account):
        a = make_account("a", ip_addresses=["1.1.1.1", "2.2.2.2"], wifi_networks=None)
        b = make_account("b", ip_addresses=["1.1.1.1"], wifi_networks=["X"])
        # IP overlap 1/2 -> 50, same carrier -> 25, no comparable WiFi
        assert engine.network_similarity(a, b) == pytest.approx(75.0)

    def test_network_saturates(self, engine, make_account):
        assert engine.network_similarity(make_account("a"), make_account("b")) == 100.0

    def test_home_location_decay(self, engine, make_account):
        a = make_account("a", frequent_locations=None, home_location={"lat": 14.5869, "lng": 121.0614})
        b = make_account("b", frequent_locations=None, home_location={"lat": 14.6319, "lng": 121.0614})
        distance = haversine_distance(14.5869, 121.0614, 14.6319, 121.0614)
        expected = (10_000 - distance) / 10_000 * 100
        assert engine.geographic_similarity(a, b) == pytest.approx(expected)

    def test_far_homes_score_zero(self, engine, make_account):
        a = make_account("a", frequent_locations=None)
        b = make_account("b", frequent_locations=None, home_location={"lat": 10.3308, "lng": 123.9054})
        assert engine.geographic_similarity(a, b) == 0.0

    def test_location_overlap_is_symmetric_share(self, engine, make_account):
        a = make_account("a", home_location=None, frequent_locations=[
            {"lat": 14.5869, "lng": 121.0614}, {"lat": 10.3308, "lng": 123.9054},
        ])
        b = make_account("b", home_location=None, frequent_locations=[{"lat": 14.5870, "lng": 121.0615}])
        # one of two on the left matches, the single one on the right matches: 2 / 3
        assert engine.geographic_similarity(a, b) == pytest.approx(200 / 3)

    def test_null_behavior_scorer(self, multi_account_settings, make_account):
        null_engine = MultiAccountEngine(multi_account_settings, behavior_scorer=NullBehaviorScorer())
        assert null_engine.behavioral_similarity(make_account("a"), make_account("b")) == 0.0

    def test_shared_attributes(self, engine, make_account):
        a = make_account("a")
        b = make_account("b", phone="+63 917 123 4567", email="JUAN.DELACRUZ@gmail.com")
        shared = engine.identify_shared_attributes(a, b)
        assert shared == [
            "device_id", "phone_number", "email", "ip_address", "wifi_network",
            "home_location", "barangay", "payment_method",
        ]


class TestRiskScore:
    def test_phone_match_adds_40_points(self, engine):
        detection = MultiAccountingDetection(
            primary_account_id="acc-1",
            similar_personal_info=PersonalInfoSimilarity(phone_match=True),
        )
        assert engine.calculate_risk_score(detection) == pytest.approx(40.0)

    def test_formatted_phone_variants_match(self, engine, make_account):
        primary = make_account("acc-1", phone="+639171234567")
        twin = make_account("acc-2", phone="09171234567")
        detection = engine.build_detection(primary.id, primary, [twin])
        assert detection.similar_personal_info.phone_match is True
        phone_factor = next(f for f in engine.risk_contributions(detection) if f.factor == "Phone match")
        assert phone_factor.risk_contribution == 40.0

    def test_saturates_at_100(self, engine, make_account):
        primary = make_account("acc-1")
        detection = engine.build_detection(primary.id, primary, [make_account(f"acc-{i}") for i in range(2, 6)])
        assert detection.risk_score == 100.0

    def test_empty_detection_scores_zero(self, engine):
        assert engine.calculate_risk_score(MultiAccountingDetection(primary_account_id="x")) == 0.0


class TestAnalyzeAccount:
    def test_identical_account_raises_alert(self, engine, make_account):
        primary = make_account("acc-1")
        alert = engine.analyze_account(primary.id, primary, [make_account("acc-2")])

        assert alert is not None
        assert alert.alert_type == AlertType.MULTI_ACCOUNTING
        assert alert.id.startswith("MA_")
        assert alert.severity == Severity.CRITICAL
        assert alert.subject_type == SubjectType.RIDER
        assert alert.subject_id == "acc-1"
        assert alert.fraud_score == 100.0
        assert alert.confidence == 95.0
        assert alert.related_accounts == ("acc-2",)
        assert alert.evidence
        assert all(f.risk_contribution > 0 for f in alert.risk_factors)

    def test_driver_subject_type(self, engine, make_account):
        primary = make_account("drv-1", account_type="driver")
        alert = engine.analyze_account(primary.id, primary, [make_account("drv-2", account_type="driver")])
        assert alert.subject_type == SubjectType.DRIVER

    def test_empty_accounts_raise_nothing(self, engine):
        primary = AccountData(id="a")
        assert engine.analyze_account("a", primary, [AccountData(id="b")]) is None

    def test_no_candidates(self, engine, make_account):
        primary = make_account("acc-1")
        assert engine.analyze_account(primary.id, primary, []) is None
        assert engine.analyze_account(primary.id, primary, None) is None

    def test_subject_is_excluded_from_pool(self, engine, make_account):
        primary = make_account("acc-1")
        detection = engine.build_detection(primary.id, primary, [primary])
        assert detection.suspected_accounts == []
        assert detection.risk_score == 0.0

    def test_unexpected_failure_returns_none(self, engine, make_account, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(engine, "build_detection", explode)
        primary = make_account("acc-1")
        assert engine.analyze_account(primary.id, primary, [make_account("acc-2")]) is None


class TestClusterAnalysis:
    @pytest.fixture
    def cluster(self, make_account):
        primary = make_account("acc-1")
        sibling = make_account(
            "acc-2",
            name="Maria Dela Cruz",
            email="maria.delacruz@gmail.com",
            phone="+63 917 123 4567",
        )
        stranger = AccountData(
            id="acc-3",
            name="Paolo Reyes",
            device_id="dev-9999",
            address={"barangay": "Lahug", "city": "Cebu City"},
        )
        return primary, [sibling, stranger]

    def test_detection_fields(self, engine, cluster):
        primary, pool = cluster
        detection = engine.build_detection(primary.id, primary, pool)

        assert [s.account_id for s in detection.suspected_accounts] == ["acc-2"]
        assert detection.candidates_scored == 2
        assert detection.sweep_complete is True
        assert detection.shared_devices == ["dev-0001"]
        assert detection.device_similarity == 100.0
        assert detection.shared_ip_addresses == ["112.198.10.1", "112.198.10.2"]
        assert detection.shared_wifi_networks == ["PLDT_HomeFiber_A1B2"]
        assert detection.similar_network_patterns is True
        assert detection.similar_ride_patterns is True
        assert detection.identical_preferences is True
        assert detection.timing_correlation == pytest.approx(100.0)
        assert detection.similar_personal_info.phone_match is True
        assert detection.shared_payment_methods is True
        assert detection.shared_locations == ["14.5869,121.0614", "14.5547,121.0244"]
        assert detection.shared_barangay is True
        assert detection.familial_connections is True

    def test_patterns_and_evidence(self, engine, cluster):
        primary, pool = cluster
        alert = engine.analyze_account(primary.id, primary, pool)
        pattern_types = {p.pattern_type for p in alert.patterns}
        evidence_types = {e.type.value for e in alert.evidence}

        assert {"device_sharing", "coordinated_usage", "household_network"} <= pattern_types
        assert {"device", "network", "identity", "location", "behavior", "financial"} <= evidence_types

    def test_missing_behavioral_data_skips_behavior(self, engine, make_account):
        primary = make_account("acc-1", ride_patterns=None, usage_times=None, app_usage=None)
        detection = engine.build_detection(primary.id, primary, [make_account("acc-2")])
        assert detection.suspected_accounts
        assert detection.similar_ride_patterns is False
        assert detection.timing_correlation == 0.0


class TestCandidateSweep:
    @pytest.fixture
    def pool(self, make_account):
        return [make_account(f"acc-{i:02d}") for i in range(10, 0, -1)]

    def test_results_sorted_by_score_then_id(self, engine, make_account, pool):
        primary = make_account("acc-00")
        weaker = make_account("acc-99", device_id="dev-other", ip_addresses=["9.9.9.9"])
        suspects = engine.find_suspected_accounts(primary, pool + [weaker])

        ids = [s.account_id for s in suspects]
        assert ids[-1] == "acc-99"
        assert ids[:-1] == sorted(ids[:-1])
        scores = [s.similarity_score for s in suspects]
        assert scores == sorted(scores, reverse=True)

    def test_pooled_sweep_matches_sequential(self, make_account, pool):
        settings = MultiAccountSettings(batch_size=3, max_workers=1)
        engine = MultiAccountEngine(settings)
        primary = make_account("acc-00")

        sequential = engine.find_suspected_accounts(primary, pool)
        with ThreadPoolExecutor(max_workers=4) as executor:
            pooled = engine.find_suspected_accounts(primary, pool, executor=executor)

        assert [s.account_id for s in pooled] == [s.account_id for s in sequential]

    def test_cancellation_keeps_partial_results(self, make_account, pool):
        event = threading.Event()
        settings = MultiAccountSettings(batch_size=2, max_workers=1)
        engine = MultiAccountEngine(settings, behavior_scorer=CancellingScorer(event, after=2))
        primary = make_account("acc-00")

        detection = engine.build_detection(primary.id, primary, pool, cancel_event=event)

        assert detection.sweep_complete is False
        assert detection.candidates_scored == 2
        ids = [s.account_id for s in detection.suspected_accounts]
        assert ids == ["acc-09", "acc-10"]
        assert detection.risk_score == 100.0

    def test_timeout_keeps_partial_results_sorted(self, make_account, pool):
        settings = MultiAccountSettings(batch_size=1, max_workers=1)
        engine = MultiAccountEngine(settings, behavior_scorer=SlowScorer())
        primary = make_account("acc-00")

        executor = ThreadPoolExecutor(max_workers=1)
        try:
            detection = engine.build_detection(primary.id, primary, pool[:4], executor=executor, timeout=0.45)
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        assert detection.sweep_complete is False
        assert detection.candidates_scored < 4
        ids = [s.account_id for s in detection.suspected_accounts]
        assert ids == sorted(ids)
        assert 0.0 <= detection.risk_score <= 100.0

    def test_sweep_timeout_from_settings(self, make_account, pool):
        settings = MultiAccountSettings(batch_size=1, max_workers=1, sweep_timeout_seconds=0.0)
        engine = MultiAccountEngine(settings)
        primary = make_account("acc-00")
        detection = engine.build_detection(primary.id, primary, pool)
        assert detection.sweep_complete is False
