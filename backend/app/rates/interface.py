"""Abstract interfaces for the collaborators of the rate service."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import RateQuote


class RateFetchError(Exception):
    """Raised when a fetch fails in transport, on HTTP status, or in decoding."""


class RateFetcher(ABC):
    """Contract for remote rate providers.

    One call is one network round trip. Implementations never retry; the
    rate service decides what to do with a failure.
    """

    @abstractmethod
    async def fetch_once(self) -> RateQuote:
        """Fetch and decode the current quote.

        Raises RateFetchError on any failure.
        """


class SnapshotStore(ABC):
    """Durable single-slot storage for the latest good quote.

    Lifecycle:
        store = FileSnapshotStore(path)
        await store.save(quote)      # after every live fetch
        cached = await store.load()  # on subscribe and on fetch failure
    """

    @abstractmethod
    async def save(self, quote: RateQuote) -> None:
        """Persist the quote, replacing any previous one.

        Best-effort: failures are logged, never raised.
        """

    @abstractmethod
    async def load(self) -> RateQuote | None:
        """Return the last saved quote, or None if nothing is stored or it can't be read."""


class EventRecorder(ABC):
    """Sink for named analytics events."""

    @abstractmethod
    def record(self, name: str, tags: dict[str, str] | None = None) -> None:
        """Record an event. Fire-and-forget: must not block or raise."""
