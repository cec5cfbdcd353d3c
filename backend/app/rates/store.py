"""Snapshot stores for the last known-good quote."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from threading import Lock

from .interface import SnapshotStore
from .models import RateQuote

logger = logging.getLogger(__name__)


class MemorySnapshotStore(SnapshotStore):
    """Thread-safe in-memory store. Does not survive a restart."""

    def __init__(self, initial: RateQuote | None = None) -> None:
        self._quote = initial
        self._lock = Lock()

    async def save(self, quote: RateQuote) -> None:
        with self._lock:
            self._quote = quote

    async def load(self) -> RateQuote | None:
        with self._lock:
            return self._quote


class FileSnapshotStore(SnapshotStore):
    """Stores the quote as a JSON document on disk.

    Writes go to a sibling temp file which is then renamed over the target,
    so a crash mid-write never leaves a truncated snapshot behind. File I/O
    runs in a worker thread to keep the event loop free.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def save(self, quote: RateQuote) -> None:
        try:
            await asyncio.to_thread(self._write, quote)
        except Exception as e:
            logger.error("Failed to save snapshot to %s: %s", self._path, e)

    async def load(self) -> RateQuote | None:
        try:
            return await asyncio.to_thread(self._read)
        except Exception as e:
            logger.error("Failed to load snapshot from %s: %s", self._path, e)
            return None

    # --- Internal ---

    def _write(self, quote: RateQuote) -> None:
        payload = json.dumps(quote.to_dict())
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp.write_text(payload, encoding="utf-8")
            os.replace(tmp, self._path)
        logger.debug("Snapshot saved: %s @ %.2f", quote.symbol, quote.price_usd)

    def _read(self) -> RateQuote | None:
        with self._lock:
            if not self._path.exists():
                return None
            raw = self._path.read_text(encoding="utf-8")
        return RateQuote.from_dict(json.loads(raw))
