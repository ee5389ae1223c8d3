# =============================================================================
# RideSignal - Candidate Account Loader
# =============================================================================
"""
Injected data access for resolving candidate accounts by id.

The detectors never touch storage themselves. When a caller only has
candidate ids, it passes an `AccountLoader`; each fetch runs with its own
timeout and a failure simply drops that candidate from the analysis.

Example:
    loader = InMemoryAccountLoader(accounts)
    resolved = asyncio.run(resolve_candidates(loader, ["acc-2", "acc-3"], timeout=1.0))
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Optional, Protocol

from loguru import logger

from ridesignal.exceptions import CandidateResolutionError
from ridesignal.models.telemetry import AccountData


class AccountLoader(Protocol):
    """Fetch-by-id interface implemented by the account repository."""

    async def fetch_account(self, account_id: str) -> Optional[AccountData]: ...


class InMemoryAccountLoader:
    """Loader backed by a dict; used for fixtures and replays."""

    def __init__(self, accounts: Iterable[AccountData]) -> None:
        self._accounts = {account.id: account for account in accounts}

    async def fetch_account(self, account_id: str) -> Optional[AccountData]:
        return self._accounts.get(account_id)


async def _fetch_one(
    loader: AccountLoader,
    account_id: str,
    timeout: float,
    semaphore: asyncio.Semaphore,
) -> AccountData:
    async with semaphore:
        try:
            account = await asyncio.wait_for(loader.fetch_account(account_id), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise CandidateResolutionError(account_id, f"timed out after {timeout}s") from e
        except Exception as e:
            raise CandidateResolutionError(account_id, repr(e)) from e

    if account is None:
        raise CandidateResolutionError(account_id, "not found")
    return account


async def resolve_candidates(
    loader: AccountLoader,
    account_ids: Iterable[str],
    timeout: float = 2.0,
    concurrency: int = 16,
) -> list[AccountData]:
    """
    Resolve candidate ids concurrently.

    Args:
        loader: Injected account repository
        account_ids: Candidate ids (duplicates are fetched once)
        timeout: Per-fetch timeout in seconds
        concurrency: Maximum in-flight fetches

    Returns:
        Successfully resolved accounts, in the order the ids were given.
        Failed fetches are logged and omitted.
    """
    unique_ids = list(dict.fromkeys(account_ids))
    if not unique_ids:
        return []

    semaphore = asyncio.Semaphore(concurrency)
    results = await asyncio.gather(
        *(_fetch_one(loader, account_id, timeout, semaphore) for account_id in unique_ids),
        return_exceptions=True,
    )

    resolved: list[AccountData] = []
    failures = 0
    for result in results:
        if isinstance(result, CandidateResolutionError):
            failures += 1
            logger.warning(f"Candidate dropped: {result}")
        elif isinstance(result, BaseException):
            raise result
        else:
            resolved.append(result)

    if failures:
        logger.info(f"Resolved {len(resolved)}/{len(unique_ids)} candidates ({failures} dropped)")
    return resolved
