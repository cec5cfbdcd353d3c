"""Fixtures for rate service tests.

Provides a scriptable fetcher and a helper for waiting on asynchronous
conditions without sleeping for fixed, flaky amounts of time.
"""

import asyncio
import time
from collections.abc import Callable

import pytest

from app.rates.interface import RateFetcher, RateFetchError
from app.rates.models import RateQuote


class FakeFetcher(RateFetcher):
    """Returns (or raises) the configured outcome and counts calls.

    ``outcome`` is a RateQuote to return, an exception to raise, or a list of
    either consumed one per call (the last entry repeats).
    """

    def __init__(self, outcome, delay: float = 0.0) -> None:
        self.outcome = outcome
        self.delay = delay
        self.calls = 0

    async def fetch_once(self) -> RateQuote:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.outcome
        if isinstance(outcome, list):
            outcome = outcome[min(self.calls - 1, len(outcome) - 1)]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def make_fetcher() -> Callable[..., FakeFetcher]:
    return FakeFetcher


@pytest.fixture
def network_error() -> RateFetchError:
    return RateFetchError("network down")


@pytest.fixture
def wait_until():
    """Poll a predicate until it holds or the timeout expires."""

    async def _wait(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        deadline = time.monotonic() + timeout
        while not predicate():
            if time.monotonic() > deadline:
                raise AssertionError("Condition not met before timeout")
            await asyncio.sleep(0.01)

    return _wait
