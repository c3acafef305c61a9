"""End-to-end sweeps through StatusMonitor over a mocked network."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from statuspage.config.models import StatusPageConfig
from statuspage.monitor.monitor import StatusMonitor
from statuspage.probing.models import ServiceState

RELAY = "https://relay.example/fetch/"


def three_service_config(mode: str = "serialized", slow_threshold_ms: int = 5000) -> StatusPageConfig:
    return StatusPageConfig.model_validate(
        {
            "settings": {
                "timeout_ms": 10000,
                "slow_threshold_ms": slow_threshold_ms,
                "probe_delay_ms": 0,
                "mode": mode,
                "proxies": [RELAY],
            },
            "services": [
                {"name": "fast", "url": "https://fast.example/"},
                {"name": "slow", "url": "https://slow.example/"},
                {"name": "gone", "url": "https://gone.example/"},
            ],
        }
    )


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_one_up_one_slow_one_down(self, fake_clock):
        latencies = {"fast.example": 0.1, "slow.example": 6.0}

        def handler(request: httpx.Request) -> httpx.Response:
            host = request.url.host
            if host not in latencies:
                raise httpx.ConnectError("Name or service not known", request=request)
            fake_clock.advance(latencies[host])
            return httpx.Response(200)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        async with StatusMonitor(three_service_config(), client=client, clock=fake_clock) as monitor:
            report = await monitor.sweep()
            data = monitor.snapshot().to_dict()

        assert report is not None
        assert data["summary"]["upCount"] == 1
        assert data["summary"]["slowCount"] == 1
        assert data["summary"]["downCount"] == 1
        by_name = {s["name"]: s for s in data["services"]}
        assert by_name["fast"]["responseTimeMillis"] == 100
        assert by_name["slow"]["responseTimeMillis"] == 6000
        assert by_name["gone"]["errorDetail"].startswith("All direct connections failed")
        assert all(s["lastCheckedAt"] is not None for s in data["services"])
        assert data["lastSweepCompletedAt"] is not None

    @pytest.mark.asyncio
    async def test_concurrent_mode_with_real_latency(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "gone.example":
                raise httpx.ConnectError("refused", request=request)
            if request.url.host == "slow.example":
                await asyncio.sleep(0.3)
            return httpx.Response(200)

        config = three_service_config(mode="concurrent", slow_threshold_ms=150)
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        async with StatusMonitor(config, client=client) as monitor:
            await monitor.sweep()
            counts = monitor.snapshot().counts

        assert counts == {"unknown": 0, "up": 1, "slow": 1, "down": 1}

    @pytest.mark.asyncio
    async def test_direct_service_never_reaches_relay(self, sample_config: StatusPageConfig):
        hosts: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            hosts.append(request.url.host)
            raise httpx.ConnectError("refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        async with StatusMonitor(sample_config, client=client) as monitor:
            record = await monitor.executor.probe(sample_config.get_service("api"))

        assert record.state == ServiceState.DOWN
        assert hosts == ["api.example.com"]

    @pytest.mark.asyncio
    async def test_mixed_service_recovers_through_relay(self, sample_config: StatusPageConfig):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "relay.example":
                return httpx.Response(200)
            raise httpx.ConnectError("blocked by CORS", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        async with StatusMonitor(sample_config, client=client) as monitor:
            record = await monitor.executor.probe(sample_config.get_service("docs"))

        assert record.state in (ServiceState.UP, ServiceState.SLOW)
        assert record.via_fallback is True
        assert record.resolved_address == "https://docs-a.example.com/"
        assert record.proxy == RELAY

    @pytest.mark.asyncio
    async def test_statuses_before_first_sweep_are_unknown(self, sample_config: StatusPageConfig):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        async with StatusMonitor(sample_config, client=client) as monitor:
            assert monitor.get_status("api").state == ServiceState.UNKNOWN
            assert monitor.snapshot().counts["unknown"] == 3

    def test_sweep_sync(self, sample_config: StatusPageConfig):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        monitor = StatusMonitor(sample_config, client=client)

        report = monitor.sweep_sync()

        assert report is not None
        assert report.counts["up"] == 3
        assert client.is_closed
