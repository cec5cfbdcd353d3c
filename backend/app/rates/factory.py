"""Factories that wire the rate service from environment variables."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .interface import EventRecorder, RateFetcher, SnapshotStore
from .service import DEFAULT_POLL_INTERVAL, RateService
from .store import FileSnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_ASSET = "bitcoin"


def get_asset() -> str:
    return os.environ.get("RATE_ASSET", "").strip().lower() or DEFAULT_ASSET


def get_poll_interval() -> float:
    """RATE_POLL_INTERVAL in seconds, default 20. Raises ValueError if not a positive number."""
    raw = os.environ.get("RATE_POLL_INTERVAL", "").strip()
    if not raw:
        return DEFAULT_POLL_INTERVAL
    interval = float(raw)
    if interval <= 0:
        raise ValueError(f"RATE_POLL_INTERVAL must be positive, got {raw!r}")
    return interval


def create_rate_fetcher() -> RateFetcher:
    """Create the appropriate fetcher based on environment variables.

    - COINCAP_API_KEY set and non-empty → CoinCapFetcher (live rates)
    - Otherwise → SimulatedRateFetcher (GBM simulation)
    """
    api_key = os.environ.get("COINCAP_API_KEY", "").strip()
    asset = get_asset()

    if api_key:
        from .coincap_client import CoinCapFetcher

        logger.info("Rate source: CoinCap API (%s)", asset)
        return CoinCapFetcher(api_key=api_key, asset=asset)
    else:
        from .simulator import SimulatedRateFetcher

        logger.info("Rate source: GBM Simulator (%s)", asset)
        return SimulatedRateFetcher(asset=asset)


def create_snapshot_store() -> SnapshotStore:
    """File store at RATE_SNAPSHOT_PATH, or data/<asset>_rate.json by default."""
    path = os.environ.get("RATE_SNAPSHOT_PATH", "").strip()
    if not path:
        path = str(Path("data") / f"{get_asset()}_rate.json")
    logger.info("Rate snapshots stored at %s", path)
    return FileSnapshotStore(path)


def create_rate_service(recorder: EventRecorder) -> RateService:
    """Build an unstarted RateService. Caller must await service.start_fetching()."""
    return RateService(
        fetcher=create_rate_fetcher(),
        store=create_snapshot_store(),
        recorder=recorder,
        default_interval=get_poll_interval(),
    )
