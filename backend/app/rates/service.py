"""Rate service: polls one quote and fans it out to live subscribers."""

from __future__ import annotations

import asyncio
import enum
import logging

from .interface import EventRecorder, RateFetcher, SnapshotStore
from .models import RateQuote
from .subscription import SubscriberRegistry, Subscription

logger = logging.getLogger(__name__)

RATE_FETCHED_EVENT = "rate_fetched"
DEFAULT_POLL_INTERVAL = 20.0


class LifecycleState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"


class RateService:
    """Background refresh engine for a single rate quote.

    Each poll cycle fetches a quote (falling back to the last saved one when
    the fetch fails), pushes it to every open subscription, then waits
    ``interval`` seconds. A fetch failure with nothing cached is terminal:
    every subscription receives the error and the loop stops until
    start_fetching() is called again.

    Lifecycle:
        service = RateService(fetcher, store, recorder)
        subscription = await service.subscribe()   # replays the cached quote
        await service.start_fetching(10.0)
        async for quote in subscription:
            ...
        await subscription.aclose()                # last one out stops polling

    Registry and lifecycle state are only touched while holding ``_lock``.
    Fetching, store I/O and the inter-cycle wait happen outside it.
    """

    def __init__(
        self,
        fetcher: RateFetcher,
        store: SnapshotStore,
        recorder: EventRecorder,
        default_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        if default_interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {default_interval}")
        self._fetcher = fetcher
        self._store = store
        self._recorder = recorder
        self._default_interval = default_interval
        self._registry = SubscriberRegistry()
        self._lock = asyncio.Lock()
        self._state = LifecycleState.IDLE
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None
        self._interval: float | None = None

    # --- Public API ---

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is LifecycleState.RUNNING

    @property
    def interval(self) -> float | None:
        """Interval of the active loop, or None when idle."""
        return self._interval

    @property
    def default_interval(self) -> float:
        return self._default_interval

    @property
    def subscriber_count(self) -> int:
        return len(self._registry)

    async def latest(self) -> RateQuote | None:
        """Last persisted quote, without subscribing."""
        return await self._load_cached()

    async def subscribe(self) -> Subscription:
        """Open a subscription, replaying the cached quote to it first.

        The replay goes out before the subscription joins the registry, so a
        concurrent fan-out can never be overtaken by the older cached quote.
        """
        subscription = Subscription(on_close=self.unsubscribe)
        cached = await self._load_cached()
        if cached is not None:
            subscription.deliver(cached)
            logger.debug("Replayed cached quote to subscription %d", subscription.id)

        async with self._lock:
            if subscription.closed:
                return subscription
            self._registry.add(subscription)
            count = len(self._registry)
        logger.info("Subscription %d opened (%d active)", subscription.id, count)
        return subscription

    async def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscription. Polling stops when the last one leaves."""
        subscription.finish()
        async with self._lock:
            removed = self._registry.remove(subscription)
            now_empty = removed and len(self._registry) == 0
            count = len(self._registry)
        if not removed:
            return
        logger.info("Subscription %d closed (%d active)", subscription.id, count)
        if now_empty and self._state is not LifecycleState.IDLE:
            logger.info("No subscribers left, stopping rate fetching")
            await self._stop(when_unused=True)

    async def start_fetching(self, interval: float | None = None) -> None:
        """Start the poll loop. No-op (with a warning) if it is already running.

        If a stop is still in progress, waits for the old loop to exit and
        then starts a new one.
        """
        if interval is None:
            interval = self._default_interval
        if interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {interval}")

        while True:
            async with self._lock:
                if self._state is LifecycleState.RUNNING:
                    logger.warning("Rate fetching is already running")
                    return
                if self._state is LifecycleState.IDLE:
                    self._state = LifecycleState.RUNNING
                    self._interval = interval
                    self._stop_event = asyncio.Event()
                    self._task = asyncio.create_task(
                        self._poll_loop(interval, self._stop_event), name="rate-poller"
                    )
                    break
                stopping = self._task
            logger.debug("Waiting for the previous poll loop to exit")
            await self._join(stopping)
        logger.info("Starting to fetch rates every %.1fs", interval)

    async def stop_fetching(self) -> None:
        """Signal the poll loop to stop and wait for it to exit. Safe to call when idle."""
        await self._stop(when_unused=False)

    async def aclose(self) -> None:
        """Stop polling and end every open subscription."""
        await self.stop_fetching()
        async with self._lock:
            subscriptions = self._registry.clear()
        for subscription in subscriptions:
            subscription.finish()

    # --- Internal ---

    async def _stop(self, when_unused: bool) -> None:
        async with self._lock:
            task = self._task
            if task is None or self._stop_event is None:
                logger.debug("Rate fetching already stopped")
                return
            # Auto-stop lost the race against a new subscriber
            if when_unused and len(self._registry) > 0:
                logger.info("Subscriber joined, keeping rate fetching running")
                return
            self._state = LifecycleState.STOPPING
            self._stop_event.set()

        await self._join(task)
        logger.info("Stopped rate fetching")

    @staticmethod
    async def _join(task: asyncio.Task) -> None:
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _poll_loop(self, interval: float, stop: asyncio.Event) -> None:
        """One iteration per cycle: fetch (with fallback), fan out, wait."""
        try:
            while not stop.is_set():
                try:
                    quote = await self._fetch_with_fallback()
                except Exception as e:
                    if stop.is_set():
                        break
                    logger.error("Error fetching rate: %s", e)
                    await self._fail_subscribers(e)
                    break

                # Stopped while the fetch was in flight: deliver nothing
                if stop.is_set():
                    break
                await self._broadcast(quote)

                try:
                    await asyncio.wait_for(stop.wait(), timeout=interval)
                except asyncio.TimeoutError:
                    continue
        finally:
            await self._mark_idle()

    async def _fetch_with_fallback(self) -> RateQuote:
        """Fetch a live quote; on failure substitute the cached one if there is one.

        Only a live fetch is recorded and persisted.
        """
        try:
            quote = await self._fetcher.fetch_once()
        except Exception as fetch_error:
            cached = await self._load_cached()
            if cached is None:
                raise
            logger.warning("Fetch failed (%s), using cached quote from %.0f", fetch_error, cached.timestamp)
            return cached

        logger.debug("Fetched %s: %.2f USD", quote.symbol, quote.price_usd)
        self._record_fetched(quote)
        await self._persist(quote)
        return quote

    async def _broadcast(self, quote: RateQuote) -> None:
        async with self._lock:
            subscriptions = self._registry.snapshot()
        delivered = sum(1 for s in subscriptions if s.deliver(quote))
        logger.debug("Delivered %s to %d subscribers", quote.symbol, delivered)

    async def _fail_subscribers(self, error: Exception) -> None:
        """Terminal delivery: each subscription gets the error once and is dropped."""
        async with self._lock:
            subscriptions = self._registry.clear()
        for subscription in subscriptions:
            subscription.finish(error)
        logger.info("Delivered terminal error to %d subscribers", len(subscriptions))

    async def _mark_idle(self) -> None:
        async with self._lock:
            if self._task is asyncio.current_task():
                self._task = None
                self._stop_event = None
                self._interval = None
                self._state = LifecycleState.IDLE

    async def _load_cached(self) -> RateQuote | None:
        try:
            return await self._store.load()
        except Exception:
            logger.exception("Snapshot store load failed")
            return None

    async def _persist(self, quote: RateQuote) -> None:
        try:
            await self._store.save(quote)
        except Exception:
            logger.exception("Snapshot store save failed")

    def _record_fetched(self, quote: RateQuote) -> None:
        try:
            self._recorder.record(
                RATE_FETCHED_EVENT,
                {
                    "symbol": quote.symbol,
                    "price_usd": str(quote.price_usd),
                    "change_percent_24hr": str(quote.change_percent_24hr),
                },
            )
        except Exception:
            logger.exception("Event recording failed")
