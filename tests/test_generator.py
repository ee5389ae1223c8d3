"""Tests for the synthetic scenario generators."""

import random

import pytest

from ridesignal.generator import (
    METRO_MANILA_ANCHORS,
    MultiAccountClusterGenerator,
    NormalTripGenerator,
    ScenarioLabel,
    ScenarioMixer,
    UnrelatedAccountsGenerator,
)
from ridesignal.processor.similarity import normalize_phone


class TestScenarioMixer:
    def test_seeded_runs_are_reproducible(self):
        first = ScenarioMixer(seed=42)
        second = ScenarioMixer(seed=42)

        rides_a, rides_b = first.generate_rides(10), second.generate_rides(10)
        assert [r.ride_id for r in rides_a] == [r.ride_id for r in rides_b]
        assert rides_a[0].points == rides_b[0].points

        accounts_a, accounts_b = first.generate_account_scenarios(3), second.generate_account_scenarios(3)
        assert [s.primary.id for s in accounts_a] == [s.primary.id for s in accounts_b]

    @pytest.mark.parametrize("size, ratio, expected", [(10, 0.3, 3), (20, 0.5, 10), (5, 0.0, 0)])
    def test_ride_fraud_ratio(self, size, ratio, expected):
        rides = ScenarioMixer(fraud_ratio=ratio, seed=1).generate_rides(size)
        assert len(rides) == size
        assert sum(r.is_fraud for r in rides) == expected

    def test_spoofed_kinds_alternate(self):
        rides = ScenarioMixer(fraud_ratio=0.4, seed=1).generate_rides(10)
        labels = [r.label for r in rides if r.is_fraud]
        assert labels.count(ScenarioLabel.TELEPORT) == 2
        assert labels.count(ScenarioLabel.SPOOFED_DEVICE) == 2

    def test_account_scenarios_always_plant_a_cluster(self):
        scenarios = ScenarioMixer(fraud_ratio=0.0, seed=1).generate_account_scenarios(3)
        assert sum(s.is_fraud for s in scenarios) == 1
        assert ScenarioMixer(seed=1).generate_account_scenarios(0) == []


class TestTrips:
    @pytest.mark.parametrize("seed", range(5))
    def test_normal_trace_stays_in_metro_manila(self, seed):
        ride = NormalTripGenerator(random.Random(seed)).generate()
        assert len(ride.points) == 40
        assert all(14.3 <= p.latitude <= 14.8 and 120.9 <= p.longitude <= 121.2 for p in ride.points)
        timestamps = [p.timestamp for p in ride.points]
        assert timestamps == sorted(timestamps)

    def test_metro_manila_anchors(self):
        assert METRO_MANILA_ANCHORS
        assert all(a.city not in ("Cebu City", "Davao City") for a in METRO_MANILA_ANCHORS)


class TestAccounts:
    def test_cluster_links_are_in_the_pool(self):
        scenario = MultiAccountClusterGenerator(random.Random(3), duplicates=2, noise_accounts=4).generate()
        pool = {a.id: a for a in scenario.pool}

        assert scenario.label == ScenarioLabel.MULTI_ACCOUNT
        assert len(scenario.pool) == 6
        assert set(scenario.linked_ids) <= set(pool)

        primary = scenario.primary
        surname = primary.name.split()[-1]
        for linked_id in scenario.linked_ids:
            duplicate = pool[linked_id]
            assert duplicate.device_id == primary.device_id
            assert normalize_phone(duplicate.phone) == normalize_phone(primary.phone)
            assert duplicate.name.endswith(surname)
            assert duplicate.email.split("@")[1] == primary.email.split("@")[1]

    def test_cluster_is_detected(self, engine):
        scenario = MultiAccountClusterGenerator(random.Random(9)).generate()
        alert = engine.analyze_account(scenario.primary.id, scenario.primary, scenario.pool)

        assert alert is not None
        assert set(scenario.linked_ids) <= set(alert.related_accounts)

    def test_unrelated_pool(self):
        scenario = UnrelatedAccountsGenerator(random.Random(3), pool_size=5).generate()
        assert len(scenario.pool) == 5
        assert scenario.linked_ids == []
        assert not scenario.is_fraud
