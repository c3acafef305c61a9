"""Periodic sweeps over every configured service."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal, Optional

from statuspage.config.models import ServiceDefinition
from statuspage.probing.executor import ProbeExecutor
from statuspage.probing.models import ServiceState, StatusRecord

logger = logging.getLogger(__name__)

SweepMode = Literal["concurrent", "serialized"]


@dataclass
class SweepReport:
    """Result of one full sweep."""

    started_at: datetime
    completed_at: datetime
    duration_ms: float
    records: dict[str, StatusRecord] = field(default_factory=dict)

    @property
    def counts(self) -> dict[str, int]:
        counts = {state.value: 0 for state in ServiceState}
        for record in self.records.values():
            counts[record.state.value] += 1
        return counts


class SweepScheduler:
    """Drives sweeps at a fixed cadence.

    ``concurrent`` probes every service at once and waits for all of them.
    ``serialized`` probes one service at a time with ``probe_delay_ms``
    between probes, to stay polite towards shared relays. Sweeps never
    overlap: a sweep requested while another runs is skipped.
    """

    def __init__(
        self,
        services: Sequence[ServiceDefinition],
        executor: ProbeExecutor,
        interval_ms: int = 30_000,
        probe_delay_ms: int = 500,
        mode: SweepMode = "concurrent",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._services = list(services)
        self._executor = executor
        self._interval = interval_ms / 1000
        self._probe_delay = probe_delay_ms / 1000
        self._mode = mode
        self._clock = clock
        self._sleep = sleep
        self._sweep_lock = asyncio.Lock()
        self._task: Optional[asyncio.Task[None]] = None
        self.last_sweep_completed_at: Optional[datetime] = None
        self.sweep_count = 0

    @property
    def mode(self) -> SweepMode:
        return self._mode

    @property
    def is_sweeping(self) -> bool:
        return self._sweep_lock.locked()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_sweep(self) -> Optional[SweepReport]:
        """Probe every service once. Returns None if a sweep was already running."""
        if self._sweep_lock.locked():
            logger.warning("Sweep already in progress, skipping this one")
            return None
        async with self._sweep_lock:
            started_at = datetime.now(UTC)
            start = self._clock()
            logger.info("Checking %d services (%s)", len(self._services), self._mode)
            if self._mode == "serialized":
                records = await self._sweep_serialized()
            else:
                records = await self._sweep_concurrent()
            completed_at = datetime.now(UTC)
            self.last_sweep_completed_at = completed_at
            self.sweep_count += 1
            report = SweepReport(
                started_at=started_at,
                completed_at=completed_at,
                duration_ms=(self._clock() - start) * 1000,
                records=records,
            )
            logger.info("All services checked in %.0fms: %s", report.duration_ms, report.counts)
            return report

    async def _sweep_concurrent(self) -> dict[str, StatusRecord]:
        results = await asyncio.gather(
            *(self._executor.probe(service) for service in self._services),
            return_exceptions=True,
        )
        records: dict[str, StatusRecord] = {}
        for service, result in zip(self._services, results):
            if isinstance(result, BaseException):
                logger.error("Probe for %s raised: %s", service.name, result, exc_info=result)
                continue
            records[service.name] = result
        return records

    async def _sweep_serialized(self) -> dict[str, StatusRecord]:
        records: dict[str, StatusRecord] = {}
        for index, service in enumerate(self._services):
            if index and self._probe_delay:
                await self._sleep(self._probe_delay)
            records[service.name] = await self._executor.probe(service)
        return records

    async def run_forever(
        self,
        max_sweeps: Optional[int] = None,
        on_sweep: Optional[Callable[[SweepReport], None]] = None,
    ) -> None:
        """Sweep now, then every interval measured from each sweep's start.

        Ticks missed because a sweep overran are dropped rather than queued.
        """
        done = 0
        while True:
            tick_start = self._clock()
            report = await self.run_sweep()
            done += 1
            if report is not None and on_sweep is not None:
                on_sweep(report)
            if max_sweeps is not None and done >= max_sweeps:
                return

            next_tick = tick_start + self._interval
            now = self._clock()
            if now > next_tick:
                missed = int((now - next_tick) // self._interval) + 1
                logger.warning("Sweep overran the %.1fs interval; skipping %d tick(s)", self._interval, missed)
                next_tick += missed * self._interval
            await self._sleep(next_tick - now)

    def start(self) -> asyncio.Task[None]:
        """Run :meth:`run_forever` in a background task."""
        if self.is_running:
            assert self._task is not None
            return self._task
        self._task = asyncio.create_task(self.run_forever(), name="statuspage-scheduler")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
