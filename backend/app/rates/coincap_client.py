"""CoinCap REST API client for live asset rates."""

from __future__ import annotations

import logging

import httpx

from .interface import RateFetcher, RateFetchError
from .models import RateQuote

logger = logging.getLogger(__name__)

COINCAP_BASE_URL = "https://rest.coincap.io"


class CoinCapFetcher(RateFetcher):
    """RateFetcher backed by the CoinCap v3 REST API.

    Calls GET /v3/assets/{asset} once per fetch_once(). The response looks like:

        {"data": {"id": "bitcoin", "priceUsd": "42000.12", ...}, "timestamp": 1707580800000}

    Any failure (transport, non-2xx status, unexpected body) is raised as
    RateFetchError with the original exception chained.
    """

    def __init__(
        self,
        api_key: str,
        asset: str = "bitcoin",
        base_url: str = COINCAP_BASE_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._asset = asset.strip().lower()
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport  # Injected in tests (httpx.MockTransport)

    @property
    def asset(self) -> str:
        return self._asset

    async def fetch_once(self) -> RateQuote:
        url = f"{self._base_url}/v3/assets/{self._asset}"
        logger.debug("Fetching %s", url)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(
                    url,
                    params={"apiKey": self._api_key},
                    headers={"Cache-Control": "no-cache"},
                )
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPStatusError as e:
            raise RateFetchError(
                f"CoinCap returned HTTP {e.response.status_code} for {self._asset}"
            ) from e
        except httpx.HTTPError as e:
            raise RateFetchError(f"CoinCap request failed: {e}") from e
        except ValueError as e:  # Body is not JSON
            raise RateFetchError(f"CoinCap returned an invalid body: {e}") from e

        try:
            return RateQuote.from_api(body["data"], timestamp_ms=body.get("timestamp"))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise RateFetchError(f"Unexpected CoinCap payload for {self._asset}: {e!r}") from e
