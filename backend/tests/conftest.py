"""Pytest configuration and fixtures."""

import pytest

from app.rates.models import RateQuote


@pytest.fixture
def btc_quote() -> RateQuote:
    """A fully populated bitcoin quote."""
    return RateQuote(
        asset_id="bitcoin",
        symbol="BTC",
        name="Bitcoin",
        price_usd=42000.0,
        change_percent_24hr=2.5,
        rank=1,
        supply=19_000_000.0,
        max_supply=21_000_000.0,
        market_cap_usd=800_000_000_000.0,
        volume_usd_24hr=20_000_000_000.0,
        vwap_24hr=41500.0,
        explorer="https://blockchain.info/",
        timestamp=1707580800.0,
    )
