"""GBM-based rate simulator, used when no CoinCap API key is configured."""

from __future__ import annotations

import logging
import math
import random
import time

import numpy as np

from .interface import RateFetcher, RateFetchError
from .models import RateQuote
from .seed_prices import (
    ASSET_PARAMS,
    DEFAULT_PARAMS,
    DEFAULT_PRICE_RANGE,
    SEED_ASSETS,
    VOLUME_TO_MARKET_CAP,
)

logger = logging.getLogger(__name__)


class GBMSimulator:
    """Geometric Brownian Motion for a single asset price.

    Math:
        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)

    Where:
        S(t)   = current price
        mu     = annualized drift (expected return)
        sigma  = annualized volatility
        dt     = time step as a fraction of a year
        Z      = standard normal random variable

    Crypto trades 24/7, so a year is 365 full days rather than trading hours.
    """

    SECONDS_PER_YEAR = 365 * 24 * 3600  # 31,536,000
    DEFAULT_DT = 20.0 / SECONDS_PER_YEAR  # One default poll interval

    def __init__(
        self,
        price: float,
        sigma: float,
        mu: float,
        dt: float = DEFAULT_DT,
        event_probability: float = 0.001,
        rng: np.random.Generator | None = None,
    ) -> None:
        if price <= 0:
            raise ValueError(f"Starting price must be positive, got {price}")
        self._price = price
        self._sigma = sigma
        self._mu = mu
        self._dt = dt
        self._event_prob = event_probability
        self._rng = rng or np.random.default_rng()

    @property
    def price(self) -> float:
        return self._price

    def step(self) -> float:
        """Advance one time step and return the new price (rounded to cents)."""
        z = float(self._rng.standard_normal())
        drift = (self._mu - 0.5 * self._sigma**2) * self._dt
        diffusion = self._sigma * math.sqrt(self._dt) * z
        self._price *= math.exp(drift + diffusion)

        # Rare shock: a sudden 2-8% move
        if self._rng.random() < self._event_prob:
            shock_magnitude = float(self._rng.uniform(0.02, 0.08))
            shock_sign = 1 if self._rng.random() < 0.5 else -1
            self._price *= 1 + shock_magnitude * shock_sign
            logger.debug(
                "Random event: %.1f%% %s",
                shock_magnitude * 100,
                "up" if shock_sign > 0 else "down",
            )

        return round(self._price, 2)


class SimulatedRateFetcher(RateFetcher):
    """RateFetcher that produces simulated quotes instead of calling the network.

    The 24h change is measured against the price at construction time, which
    stands in for the opening price of the session. ``failure_rate`` makes a
    fraction of calls raise RateFetchError so the cache fallback can be seen
    in action without pulling the network cable.
    """

    def __init__(
        self,
        asset: str = "bitcoin",
        dt: float = GBMSimulator.DEFAULT_DT,
        event_probability: float = 0.001,
        failure_rate: float = 0.0,
        seed: int | None = None,
    ) -> None:
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError(f"failure_rate must be within [0, 1], got {failure_rate}")
        self._asset = asset.strip().lower()
        self._meta = SEED_ASSETS.get(self._asset) or self._unknown_asset_meta(self._asset)
        params = ASSET_PARAMS.get(self._asset, DEFAULT_PARAMS)
        self._failure_rate = failure_rate
        self._rng = np.random.default_rng(seed)
        self._open_price = float(self._meta["price_usd"])
        self._sim = GBMSimulator(
            price=self._open_price,
            sigma=params["sigma"],
            mu=params["mu"],
            dt=dt,
            event_probability=event_probability,
            rng=self._rng,
        )

    @property
    def asset(self) -> str:
        return self._asset

    async def fetch_once(self) -> RateQuote:
        if self._failure_rate and self._rng.random() < self._failure_rate:
            raise RateFetchError(f"Simulated network failure for {self._asset}")

        price = self._sim.step()
        change_percent = round((price - self._open_price) / self._open_price * 100, 4)
        supply = self._meta.get("supply")
        market_cap = round(price * supply, 2) if supply else None
        return RateQuote(
            asset_id=self._asset,
            symbol=self._meta["symbol"],
            name=self._meta["name"],
            price_usd=price,
            change_percent_24hr=change_percent,
            rank=self._meta.get("rank"),
            supply=supply,
            max_supply=self._meta.get("max_supply"),
            market_cap_usd=market_cap,
            volume_usd_24hr=round(market_cap * VOLUME_TO_MARKET_CAP, 2) if market_cap else None,
            vwap_24hr=round((price + self._open_price) / 2, 2),
            explorer=self._meta.get("explorer"),
            timestamp=time.time(),
        )

    @staticmethod
    def _unknown_asset_meta(asset: str) -> dict:
        return {
            "symbol": asset[:4].upper(),
            "name": asset.capitalize(),
            "rank": None,
            "price_usd": round(random.uniform(*DEFAULT_PRICE_RANGE), 2),
            "supply": None,
            "max_supply": None,
            "explorer": None,
        }
