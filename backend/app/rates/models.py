"""Data models for rate quotes and analytics events."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _to_float(value: Any) -> float | None:
    """CoinCap sends numbers as strings and nulls for unknown values."""
    if value is None or value == "":
        return None
    return float(value)


@dataclass(frozen=True, slots=True)
class RateQuote:
    """Immutable snapshot of one asset's price at a point in time."""

    asset_id: str
    symbol: str
    name: str
    price_usd: float
    change_percent_24hr: float
    rank: int | None = None
    supply: float | None = None
    max_supply: float | None = None
    market_cap_usd: float | None = None
    volume_usd_24hr: float | None = None
    vwap_24hr: float | None = None
    explorer: str | None = None
    timestamp: float = field(default_factory=time.time)  # Unix seconds

    @classmethod
    def from_api(cls, data: dict[str, Any], timestamp_ms: int | None = None) -> RateQuote:
        """Build a quote from a CoinCap ``/v3/assets/{id}`` ``data`` object.

        Raises KeyError / ValueError / TypeError on missing or malformed fields.
        """
        rank = data.get("rank")
        return cls(
            asset_id=data["id"],
            symbol=data["symbol"],
            name=data["name"],
            price_usd=float(data["priceUsd"]),
            change_percent_24hr=float(data["changePercent24Hr"]),
            rank=int(rank) if rank not in (None, "") else None,
            supply=_to_float(data.get("supply")),
            max_supply=_to_float(data.get("maxSupply")),
            market_cap_usd=_to_float(data.get("marketCapUsd")),
            volume_usd_24hr=_to_float(data.get("volumeUsd24Hr")),
            vwap_24hr=_to_float(data.get("vwap24Hr")),
            explorer=data.get("explorer") or None,
            # CoinCap timestamps are Unix milliseconds -> convert to seconds
            timestamp=timestamp_ms / 1000.0 if timestamp_ms is not None else time.time(),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RateQuote:
        """Inverse of to_dict(). Used when reading a persisted snapshot."""
        return cls(
            asset_id=data["asset_id"],
            symbol=data["symbol"],
            name=data["name"],
            price_usd=float(data["price_usd"]),
            change_percent_24hr=float(data["change_percent_24hr"]),
            rank=data.get("rank"),
            supply=data.get("supply"),
            max_supply=data.get("max_supply"),
            market_cap_usd=data.get("market_cap_usd"),
            volume_usd_24hr=data.get("volume_usd_24hr"),
            vwap_24hr=data.get("vwap_24hr"),
            explorer=data.get("explorer"),
            timestamp=float(data["timestamp"]),
        )

    @property
    def direction(self) -> str:
        """'up', 'down', or 'flat' over the last 24 hours."""
        if self.change_percent_24hr > 0:
            return "up"
        elif self.change_percent_24hr < 0:
            return "down"
        return "flat"

    def to_dict(self) -> dict:
        """Serialize for JSON persistence / SSE transmission."""
        return {
            "asset_id": self.asset_id,
            "symbol": self.symbol,
            "name": self.name,
            "price_usd": self.price_usd,
            "change_percent_24hr": self.change_percent_24hr,
            "rank": self.rank,
            "supply": self.supply,
            "max_supply": self.max_supply,
            "market_cap_usd": self.market_cap_usd,
            "volume_usd_24hr": self.volume_usd_24hr,
            "vwap_24hr": self.vwap_24hr,
            "explorer": self.explorer,
            "timestamp": self.timestamp,
            "direction": self.direction,
        }


@dataclass(frozen=True, slots=True)
class AnalyticsEvent:
    """A named occurrence with string tags, stamped when it was recorded."""

    name: str
    parameters: dict[str, str] = field(default_factory=dict)
    date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "parameters": dict(self.parameters),
            "date": self.date.isoformat(),
        }
