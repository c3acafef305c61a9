"""Status monitor: wires resolver, executor, store and scheduler for one config."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Optional

import httpx

from statuspage.config.models import CheckSettings, StatusPageConfig
from statuspage.monitor.scheduler import SweepMode, SweepReport, SweepScheduler
from statuspage.monitor.snapshot import SweepSnapshot, build_snapshot
from statuspage.probing.executor import ProbeExecutor
from statuspage.probing.models import StatusRecord
from statuspage.probing.resolver import EndpointResolver
from statuspage.probing.store import StatusStore

USER_AGENT = "StatusPage/1.0"


def build_client(settings: CheckSettings) -> httpx.AsyncClient:
    """Shared HTTP client for all probes of one monitor."""
    return httpx.AsyncClient(
        timeout=settings.timeout_ms / 1000,
        follow_redirects=True,
        headers={"Accept": "application/json, text/plain, */*", "User-Agent": USER_AGENT},
    )


class StatusMonitor:
    """Owns the status store of one configuration and keeps it fresh."""

    def __init__(
        self,
        config: StatusPageConfig,
        client: Optional[httpx.AsyncClient] = None,
        mode: Optional[SweepMode] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        settings = config.settings
        self._config = config
        self._client = client if client is not None else build_client(settings)
        self.store = StatusStore(service.name for service in config.services)
        self.resolver = EndpointResolver.from_settings(self._client, settings)
        self.executor = ProbeExecutor(
            self.resolver, self.store, slow_threshold_ms=settings.slow_threshold_ms, clock=clock
        )
        self.scheduler = SweepScheduler(
            config.services,
            self.executor,
            interval_ms=settings.check_interval_ms,
            probe_delay_ms=settings.probe_delay_ms,
            mode=mode or settings.mode,
            clock=clock,
        )

    @property
    def config(self) -> StatusPageConfig:
        return self._config

    def get_status(self, name: str) -> StatusRecord:
        return self.store.get(name)

    async def sweep(self) -> Optional[SweepReport]:
        return await self.scheduler.run_sweep()

    def sweep_sync(self) -> Optional[SweepReport]:
        async def _run() -> Optional[SweepReport]:
            async with self:
                return await self.sweep()

        return asyncio.run(_run())

    def snapshot(self) -> SweepSnapshot:
        return build_snapshot(
            self._config,
            self.store.snapshot_all(),
            last_sweep_completed_at=self.scheduler.last_sweep_completed_at,
        )

    def start(self) -> None:
        self.scheduler.start()

    async def aclose(self) -> None:
        await self.scheduler.stop()
        await self._client.aclose()

    async def __aenter__(self) -> StatusMonitor:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
