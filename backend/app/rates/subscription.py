"""Subscriptions and the registry the rate service fans out to."""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Awaitable, Callable

from .models import RateQuote

_END = object()  # Queue sentinel: no more quotes will follow
_ids = itertools.count(1)


class Subscription:
    """One caller's channel of quotes, ended by close or by a single terminal error.

    Consume it as an async iterator:

        subscription = await service.subscribe()
        async with subscription:
            async for quote in subscription:
                ...

    The service pushes into it until it is closed; the caller closes it with
    aclose() (or by leaving the ``async with`` block), which drops anything
    still queued and removes it from the service's registry. Quotes already
    queued before a terminal error are still delivered, then the error is
    raised exactly once.
    """

    def __init__(self, on_close: Callable[[Subscription], Awaitable[None]] | None = None) -> None:
        self.id: int = next(_ids)
        self.error: BaseException | None = None
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._error_raised = False
        self._on_close = on_close

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self) -> int:
        """Number of quotes delivered but not yet consumed."""
        size = self._queue.qsize()
        # Once closed, the queue always ends with exactly one sentinel
        return size - 1 if self._closed and size else size

    # --- Engine side ---

    def deliver(self, quote: RateQuote) -> bool:
        """Queue a quote. Returns False if the subscription is already closed."""
        if self._closed:
            return False
        self._queue.put_nowait(quote)
        return True

    def finish(self, error: BaseException | None = None) -> None:
        """Close the channel, optionally with a terminal error. No-op if already closed."""
        if self._closed:
            return
        self._closed = True
        self.error = error
        self._queue.put_nowait(_END)

    # --- Caller side ---

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> RateQuote:
        item = await self._queue.get()
        if item is _END:
            # Leave the sentinel in place so later calls also end
            self._queue.put_nowait(_END)
            if self.error is not None and not self._error_raised:
                self._error_raised = True
                raise self.error
            raise StopAsyncIteration
        return item

    async def aclose(self) -> None:
        """Cancel from the caller side: drop queued quotes, stop delivery and leave the registry."""
        self.finish()
        # Everything ahead of the sentinel is unconsumed quotes
        while self._queue.get_nowait() is not _END:
            pass
        self._queue.put_nowait(_END)
        if self._on_close is not None:
            on_close, self._on_close = self._on_close, None
            await on_close(self)

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Subscription id={self.id} {state}>"


class SubscriberRegistry:
    """The set of open subscriptions, keyed by id.

    Not synchronized on its own: the rate service only touches it while
    holding its lock.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[int, Subscription] = {}

    def add(self, subscription: Subscription) -> None:
        self._subscriptions[subscription.id] = subscription

    def remove(self, subscription: Subscription) -> bool:
        """Remove a subscription. Returns True if it was registered."""
        return self._subscriptions.pop(subscription.id, None) is not None

    def snapshot(self) -> list[Subscription]:
        """Point-in-time copy for fan-out."""
        return list(self._subscriptions.values())

    def clear(self) -> list[Subscription]:
        """Empty the registry, returning what was in it."""
        removed = list(self._subscriptions.values())
        self._subscriptions.clear()
        return removed

    def __len__(self) -> int:
        return len(self._subscriptions)

    def __contains__(self, subscription: Subscription) -> bool:
        return subscription.id in self._subscriptions
