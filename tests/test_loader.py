"""Tests for candidate resolution through an injected loader."""

import asyncio

import pytest

from ridesignal.config import MultiAccountSettings
from ridesignal.models.alerts import AlertType
from ridesignal.processor.loader import InMemoryAccountLoader, resolve_candidates
from ridesignal.processor.multi_account import MultiAccountEngine


class SlowLoader(InMemoryAccountLoader):
    """Never answers for the ids it is told to stall on."""

    def __init__(self, accounts, stalled):
        super().__init__(accounts)
        self.stalled = set(stalled)

    async def fetch_account(self, account_id):
        if account_id in self.stalled:
            await asyncio.sleep(10)
        return await super().fetch_account(account_id)


class FailingLoader(InMemoryAccountLoader):
    def __init__(self, accounts, broken):
        super().__init__(accounts)
        self.broken = set(broken)
        self.calls = []

    async def fetch_account(self, account_id):
        self.calls.append(account_id)
        if account_id in self.broken:
            raise ConnectionError("replica unavailable")
        return await super().fetch_account(account_id)


class TestResolveCandidates:
    def test_in_memory_order_preserved(self, make_account):
        accounts = [make_account(f"acc-{i}") for i in range(4)]
        loader = InMemoryAccountLoader(accounts)

        resolved = asyncio.run(resolve_candidates(loader, ["acc-3", "acc-1", "acc-2"]))
        assert [a.id for a in resolved] == ["acc-3", "acc-1", "acc-2"]

    def test_duplicates_fetched_once(self, make_account):
        loader = FailingLoader([make_account("acc-1")], broken=[])

        resolved = asyncio.run(resolve_candidates(loader, ["acc-1", "acc-1", "acc-1"]))
        assert [a.id for a in resolved] == ["acc-1"]
        assert loader.calls == ["acc-1"]

    def test_missing_ids_are_dropped(self, make_account):
        loader = InMemoryAccountLoader([make_account("acc-1")])
        resolved = asyncio.run(resolve_candidates(loader, ["acc-1", "acc-404"]))
        assert [a.id for a in resolved] == ["acc-1"]

    def test_empty_ids(self):
        assert asyncio.run(resolve_candidates(InMemoryAccountLoader([]), [])) == []

    def test_slow_fetch_times_out(self, make_account):
        loader = SlowLoader([make_account("acc-1"), make_account("acc-2")], stalled=["acc-2"])
        resolved = asyncio.run(resolve_candidates(loader, ["acc-1", "acc-2"], timeout=0.05))
        assert [a.id for a in resolved] == ["acc-1"]

    def test_failing_fetch_is_dropped(self, make_account):
        loader = FailingLoader([make_account("acc-1"), make_account("acc-2")], broken=["acc-1"])
        resolved = asyncio.run(resolve_candidates(loader, ["acc-1", "acc-2"]))
        assert [a.id for a in resolved] == ["acc-2"]

    def test_concurrency_limit(self, make_account):
        in_flight = 0
        peak = 0

        class CountingLoader(InMemoryAccountLoader):
            async def fetch_account(self, account_id):
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.01)
                in_flight -= 1
                return await super().fetch_account(account_id)

        accounts = [make_account(f"acc-{i}") for i in range(10)]
        resolved = asyncio.run(
            resolve_candidates(CountingLoader(accounts), [a.id for a in accounts], concurrency=3)
        )
        assert len(resolved) == 10
        assert peak <= 3


class TestAnalyzeAccountIds:
    def test_end_to_end(self, make_account):
        primary = make_account("acc-primary")
        duplicate = make_account("acc-dup")
        loader = FailingLoader([duplicate, make_account("acc-broken")], broken=["acc-broken"])
        engine = MultiAccountEngine(MultiAccountSettings())

        alert = asyncio.run(
            engine.analyze_account_ids("acc-primary", primary, ["acc-dup", "acc-broken", "acc-404"], loader)
        )

        assert alert is not None
        assert alert.alert_type == AlertType.MULTI_ACCOUNTING
        assert alert.subject_id == "acc-primary"
        assert alert.related_accounts == ("acc-dup",)

    def test_nothing_resolves(self, make_account):
        engine = MultiAccountEngine(MultiAccountSettings(loader_timeout_seconds=0.05))
        loader = SlowLoader([make_account("acc-dup")], stalled=["acc-dup"])

        alert = asyncio.run(
            engine.analyze_account_ids("acc-primary", make_account("acc-primary"), ["acc-dup"], loader)
        )
        assert alert is None


@pytest.mark.parametrize("concurrency", [1, 16])
def test_resolution_is_independent_of_concurrency(make_account, concurrency):
    accounts = [make_account(f"acc-{i}") for i in range(5)]
    resolved = asyncio.run(
        resolve_candidates(InMemoryAccountLoader(accounts), [a.id for a in accounts], concurrency=concurrency)
    )
    assert [a.id for a in resolved] == [a.id for a in accounts]
