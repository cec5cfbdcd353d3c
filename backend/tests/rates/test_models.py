"""Tests for RateQuote and AnalyticsEvent dataclasses."""

import dataclasses
from datetime import timezone

import pytest

from app.rates.models import AnalyticsEvent, RateQuote

API_DATA = {
    "id": "bitcoin",
    "rank": "1",
    "symbol": "BTC",
    "name": "Bitcoin",
    "supply": "19000000.0000000000000000",
    "maxSupply": "21000000.0000000000000000",
    "marketCapUsd": "800000000000.0000000000000000",
    "volumeUsd24Hr": "20000000000.0000000000000000",
    "priceUsd": "42000.0000000000000000",
    "changePercent24Hr": "2.5000000000000000",
    "vwap24Hr": "41500.0000000000000000",
    "explorer": "https://blockchain.info/",
}


class TestRateQuote:
    """Unit tests for the RateQuote model."""

    def test_from_api(self):
        """Test decoding a CoinCap asset object."""
        quote = RateQuote.from_api(API_DATA, timestamp_ms=1707580800000)
        assert quote.asset_id == "bitcoin"
        assert quote.symbol == "BTC"
        assert quote.rank == 1
        assert quote.price_usd == 42000.0
        assert quote.change_percent_24hr == 2.5
        assert quote.max_supply == 21_000_000.0
        assert quote.explorer == "https://blockchain.info/"

    def test_from_api_timestamp_in_seconds(self):
        """Test that millisecond timestamps are converted to seconds."""
        quote = RateQuote.from_api(API_DATA, timestamp_ms=1707580800000)
        assert quote.timestamp == 1707580800.0

    def test_from_api_nullable_fields(self):
        """Test that null optional fields decode to None."""
        data = dict(API_DATA, maxSupply=None, explorer=None, rank="")
        quote = RateQuote.from_api(data)
        assert quote.max_supply is None
        assert quote.explorer is None
        assert quote.rank is None

    def test_from_api_missing_price(self):
        """Test that a missing required field raises KeyError."""
        data = {k: v for k, v in API_DATA.items() if k != "priceUsd"}
        with pytest.raises(KeyError):
            RateQuote.from_api(data)

    def test_from_api_bad_number(self):
        """Test that a non-numeric price raises ValueError."""
        with pytest.raises(ValueError):
            RateQuote.from_api(dict(API_DATA, priceUsd="n/a"))

    def test_immutability(self, btc_quote):
        """Test that quotes are frozen."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            btc_quote.price_usd = 1.0  # type: ignore[misc]

    def test_direction(self, btc_quote):
        """Test up / down / flat direction from the 24h change."""
        assert btc_quote.direction == "up"
        assert dataclasses.replace(btc_quote, change_percent_24hr=-1.2).direction == "down"
        assert dataclasses.replace(btc_quote, change_percent_24hr=0.0).direction == "flat"

    def test_to_dict(self, btc_quote):
        """Test serialization for JSON / SSE."""
        result = btc_quote.to_dict()
        assert result["asset_id"] == "bitcoin"
        assert result["price_usd"] == 42000.0
        assert result["timestamp"] == 1707580800.0
        assert result["direction"] == "up"

    def test_dict_round_trip(self, btc_quote):
        """Test that from_dict() restores a persisted quote."""
        assert RateQuote.from_dict(btc_quote.to_dict()) == btc_quote


class TestAnalyticsEvent:
    """Unit tests for the AnalyticsEvent model."""

    def test_defaults(self):
        """Test that an event gets empty parameters and a UTC date."""
        event = AnalyticsEvent(name="rate_fetched")
        assert event.parameters == {}
        assert event.date.tzinfo is timezone.utc

    def test_to_dict(self):
        """Test serialization."""
        event = AnalyticsEvent(name="rate_fetched", parameters={"price_usd": "1.0"})
        result = event.to_dict()
        assert result["name"] == "rate_fetched"
        assert result["parameters"] == {"price_usd": "1.0"}
        assert "T" in result["date"]
