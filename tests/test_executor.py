"""Tests for probe timing, classification and store writes."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from statuspage.config.models import ServiceDefinition
from statuspage.probing.executor import ProbeExecutor, classify
from statuspage.probing.models import Resolution, ServiceState
from statuspage.probing.store import StatusStore

CHECKED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def make_executor(resolver, store, clock, threshold=5000) -> ProbeExecutor:
    return ProbeExecutor(resolver, store, slow_threshold_ms=threshold, clock=clock, now=lambda: CHECKED_AT)


def resolver_taking(clock, seconds: float, resolution: Resolution) -> AsyncMock:
    async def _resolve(service):
        clock.advance(seconds)
        return resolution

    resolver = AsyncMock()
    resolver.resolve.side_effect = _resolve
    return resolver


class TestClassify:
    def test_at_threshold_is_up(self):
        assert classify(5000, 5000) == ServiceState.UP

    def test_one_past_threshold_is_slow(self):
        assert classify(5001, 5000) == ServiceState.SLOW

    def test_instant_is_up(self):
        assert classify(0, 5000) == ServiceState.UP


class TestProbeExecutor:
    @pytest.fixture()
    def service(self) -> ServiceDefinition:
        return ServiceDefinition(name="api", urls=["https://api.example.com/health"])

    @pytest.fixture()
    def store(self) -> StatusStore:
        return StatusStore(["api"])

    @pytest.mark.asyncio
    async def test_fast_success_is_up(self, service, store, fake_clock):
        resolver = resolver_taking(fake_clock, 0.1, Resolution(ok=True, address=service.url))
        record = await make_executor(resolver, store, fake_clock).probe(service)

        assert record.state == ServiceState.UP
        assert record.response_time_ms == 100
        assert record.error is None
        assert record.resolved_address == service.url
        assert record.last_checked_at == CHECKED_AT
        assert store.get("api") is record

    @pytest.mark.asyncio
    async def test_elapsed_equal_to_threshold_is_up(self, service, store, fake_clock):
        resolver = resolver_taking(fake_clock, 5.0, Resolution(ok=True, address=service.url))
        record = await make_executor(resolver, store, fake_clock).probe(service)
        assert record.response_time_ms == 5000
        assert record.state == ServiceState.UP

    @pytest.mark.asyncio
    async def test_elapsed_past_threshold_is_slow(self, service, store, fake_clock):
        resolver = resolver_taking(fake_clock, 5.001, Resolution(ok=True, address=service.url))
        record = await make_executor(resolver, store, fake_clock).probe(service)
        assert record.response_time_ms == 5001
        assert record.state == ServiceState.SLOW

    @pytest.mark.asyncio
    async def test_fallback_path_is_recorded(self, service, store, fake_clock):
        resolution = Resolution(ok=True, address=service.url, via_fallback=True, proxy="https://relay.example/")
        resolver = resolver_taking(fake_clock, 0.2, resolution)
        record = await make_executor(resolver, store, fake_clock).probe(service)
        assert record.via_fallback is True
        assert record.proxy == "https://relay.example/"

    @pytest.mark.asyncio
    async def test_failure_is_down(self, service, store, fake_clock):
        resolution = Resolution(ok=False, error="All direct connections failed. Last error: HTTP 503")
        resolver = resolver_taking(fake_clock, 0.3, resolution)
        record = await make_executor(resolver, store, fake_clock).probe(service)

        assert record.state == ServiceState.DOWN
        assert record.response_time_ms is None
        assert record.error == "All direct connections failed. Last error: HTTP 503"
        assert record.resolved_address is None
        assert record.last_checked_at == CHECKED_AT
        assert store.get("api").state == ServiceState.DOWN

    @pytest.mark.asyncio
    async def test_unexpected_error_is_contained(self, service, store, fake_clock):
        resolver = AsyncMock()
        resolver.resolve.side_effect = RuntimeError("boom")
        record = await make_executor(resolver, store, fake_clock).probe(service)

        assert record.state == ServiceState.DOWN
        assert "boom" in record.error
        assert store.get("api") is record

    @pytest.mark.asyncio
    async def test_overwrites_previous_record(self, service, store, fake_clock):
        down = resolver_taking(fake_clock, 0.1, Resolution(ok=False, error="nope"))
        await make_executor(down, store, fake_clock).probe(service)
        up = resolver_taking(fake_clock, 0.1, Resolution(ok=True, address=service.url))
        await make_executor(up, store, fake_clock).probe(service)

        record = store.get("api")
        assert record.state == ServiceState.UP
        assert record.error is None
