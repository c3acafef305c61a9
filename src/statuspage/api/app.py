"""FastAPI application factory for the status page."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from statuspage.api.routes import configuration, status
from statuspage.config.loader import load_config
from statuspage.config.models import StatusPageConfig
from statuspage.monitor.monitor import StatusMonitor

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    monitor: StatusMonitor = app.state.monitor
    logger.info("Starting status checks for %d services", len(monitor.config.services))
    monitor.start()
    try:
        yield
    finally:
        await monitor.aclose()


def create_app(
    config: Optional[StatusPageConfig] = None,
    monitor: Optional[StatusMonitor] = None,
) -> FastAPI:
    """Build the app. A missing or invalid configuration raises; there is no fallback."""
    if config is None:
        config = monitor.config if monitor is not None else load_config()
    if monitor is None:
        monitor = StatusMonitor(config)

    app = FastAPI(
        title=config.title,
        version="0.1.0",
        description="Service health status page",
        lifespan=_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.monitor = monitor

    @app.get("/health", tags=["meta"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(status.router, prefix="/api")
    app.include_router(configuration.router, prefix="/api")

    if config.dashboard_dir:
        dashboard_dir = Path(config.dashboard_dir)
        if dashboard_dir.is_dir():
            app.mount("/", StaticFiles(directory=str(dashboard_dir), html=True), name="dashboard")
        else:
            logger.warning("Dashboard directory %s does not exist; not serving it", dashboard_dir)

    return app
