"""FastAPI application factory.

API Layout
----------
GET  /api/rates/stream    SSE stream of live quotes
POST /api/rates/start     Start polling (optional ?interval=seconds)
POST /api/rates/stop      Stop polling
GET  /api/rates/status    Lifecycle state, interval, subscriber count
GET  /api/rates/latest    Last persisted quote
GET  /api/rates/events    Analytics events (?name=&start=&end=)
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .rates import AnalyticsService, RateService, create_rate_router, create_rate_service

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def create_app(
    service: RateService | None = None,
    analytics: AnalyticsService | None = None,
    autostart: bool | None = None,
) -> FastAPI:
    """Build the app. Arguments override the environment (used by tests)."""
    if analytics is None:
        analytics = AnalyticsService()
    if service is None:
        service = create_rate_service(recorder=analytics)
    if autostart is None:
        autostart = _env_flag("RATE_AUTOSTART", True)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if autostart:
            await service.start_fetching()
        yield
        logger.info("Shutting down rate service")
        await service.aclose()

    app = FastAPI(title="Rate Feed", lifespan=lifespan)
    app.state.rate_service = service
    app.state.analytics = analytics
    app.include_router(create_rate_router(service, analytics))
    return app


def main() -> None:
    import uvicorn

    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    uvicorn.run(
        create_app(),
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "8000")),
    )


if __name__ == "__main__":
    main()
