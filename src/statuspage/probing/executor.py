"""Timed, classified probes that write into the status store."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime

from statuspage.config.models import ServiceDefinition
from statuspage.probing.models import ServiceState, StatusRecord
from statuspage.probing.resolver import EndpointResolver
from statuspage.probing.store import StatusStore

logger = logging.getLogger(__name__)


def classify(elapsed_ms: int, slow_threshold_ms: int) -> ServiceState:
    """``up`` up to and including the threshold, ``slow`` beyond it."""
    if elapsed_ms <= slow_threshold_ms:
        return ServiceState.UP
    return ServiceState.SLOW


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ProbeExecutor:
    """Runs one resolution per probe and records the classified outcome."""

    def __init__(
        self,
        resolver: EndpointResolver,
        store: StatusStore,
        slow_threshold_ms: int = 5_000,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._resolver = resolver
        self._store = store
        self._slow_threshold_ms = slow_threshold_ms
        self._clock = clock
        self._now = now

    async def probe(self, service: ServiceDefinition) -> StatusRecord:
        start = self._clock()
        try:
            resolution = await self._resolver.resolve(service)
        except Exception as exc:
            logger.exception("Unexpected error while probing %s", service.name)
            record = StatusRecord.failure(f"Probe error: {exc}", self._now())
        else:
            if resolution.ok and resolution.address is not None:
                elapsed_ms = round((self._clock() - start) * 1000)
                state = classify(elapsed_ms, self._slow_threshold_ms)
                record = StatusRecord.success(
                    state,
                    elapsed_ms,
                    self._now(),
                    resolved_address=resolution.address,
                    via_fallback=resolution.via_fallback,
                    proxy=resolution.proxy,
                )
                logger.info(
                    "%s: %s (%dms) via %s%s",
                    service.name,
                    state.value,
                    elapsed_ms,
                    resolution.address,
                    " through proxy" if resolution.via_fallback else "",
                )
            else:
                record = StatusRecord.failure(resolution.error or "Resolution failed", self._now())
                logger.warning("%s: down - %s", service.name, record.error)

        self._store.set(service.name, record)
        return record
