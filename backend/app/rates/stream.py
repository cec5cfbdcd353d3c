"""HTTP routes for the rate service: SSE stream, lifecycle control, analytics."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator
from datetime import datetime

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from .analytics import AnalyticsService
from .service import RateService

logger = logging.getLogger(__name__)


def create_rate_router(service: RateService, analytics: AnalyticsService) -> APIRouter:
    """Create the /api/rates router bound to one service and its event log.

    This factory pattern lets us inject the RateService without globals.
    """
    router = APIRouter(prefix="/api/rates", tags=["rates"])

    @router.get("/stream")
    async def stream_rates(request: Request) -> StreamingResponse:
        """SSE endpoint for live rate updates.

        Every quote the service delivers is sent as:

            data: {"asset_id": "bitcoin", "symbol": "BTC", "price_usd": 42000.0, ...}

        The first event is the cached quote, if there is one. If polling
        fails with nothing cached, an ``error`` event is sent and the stream
        ends. Includes a retry directive so the browser auto-reconnects.
        """
        return StreamingResponse(
            _generate_events(service, request),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering if proxied
            },
        )

    @router.post("/start")
    async def start(interval: float | None = Query(default=None, gt=0)) -> dict:
        await service.start_fetching(interval)
        return _status(service)

    @router.post("/stop")
    async def stop() -> dict:
        await service.stop_fetching()
        return _status(service)

    @router.get("/status")
    async def status() -> dict:
        return _status(service)

    @router.get("/latest")
    async def latest() -> dict:
        quote = await service.latest()
        if quote is None:
            raise HTTPException(status_code=404, detail="No rate fetched yet")
        return quote.to_dict()

    @router.get("/events")
    async def events(
        name: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[dict]:
        return [e.to_dict() for e in analytics.get_events(name=name, start=start, end=end)]

    return router


def _status(service: RateService) -> dict:
    return {
        "state": service.state.value,
        "interval": service.interval,
        "subscribers": service.subscriber_count,
    }


async def _generate_events(
    service: RateService,
    request: Request,
    interval: float = 0.5,
) -> AsyncGenerator[str, None]:
    """Async generator that yields SSE-formatted rate events.

    Waits on a subscription, checking every `interval` seconds whether the
    client has gone away. Closing the subscription on exit may stop the
    poll loop if this was the last listener.
    """
    # Tell the client to retry after 1 second if the connection drops
    yield "retry: 1000\n\n"

    client_ip = request.client.host if request.client else "unknown"
    subscription = await service.subscribe()
    logger.info("SSE client connected: %s (subscription %d)", client_ip, subscription.id)

    try:
        while True:
            if await request.is_disconnected():
                logger.info("SSE client disconnected: %s", client_ip)
                break

            try:
                quote = await asyncio.wait_for(anext(subscription), timeout=interval)
            except asyncio.TimeoutError:
                continue
            except StopAsyncIteration:
                break
            except Exception as e:
                logger.warning("Rate stream failed for %s: %s", client_ip, e)
                yield f"event: error\ndata: {json.dumps({'error': str(e)})}\n\n"
                break

            yield f"data: {json.dumps(quote.to_dict())}\n\n"
    except asyncio.CancelledError:
        logger.info("SSE stream cancelled for: %s", client_ip)
        raise
    finally:
        await subscription.aclose()
