"""Endpoint resolution: reach a service through any of its addresses and paths.

A service is reachable when *some* address answers through *some* permitted
path. Paths are strategies, each an async callable ``(address) -> Attempt``:
a direct GET, or a GET through one configured relay. The resolver walks the
addresses in order and, for each, tries its strategies in order until one
succeeds.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Sequence
from typing import Any, Optional, Protocol

import httpx

from statuspage.config.models import CheckSettings, ProxyTemplate, ServiceDefinition
from statuspage.probing.models import Attempt, Resolution

logger = logging.getLogger(__name__)


def is_success_code(status_code: int) -> bool:
    return 200 <= status_code < 400


class Strategy(Protocol):
    """One way of reaching an address."""

    def __call__(self, address: str) -> Awaitable[Attempt]: ...


def _describe(exc: BaseException) -> str:
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


async def _bounded_get(client: httpx.AsyncClient, url: str, timeout: float) -> httpx.Response:
    # httpx timeouts are per phase; wait_for caps the whole request.
    return await asyncio.wait_for(client.get(url), timeout=timeout)


class DirectCheck:
    """GET the address itself."""

    method = "direct"

    def __init__(self, client: httpx.AsyncClient, timeout: float) -> None:
        self._client = client
        self._timeout = timeout

    async def __call__(self, address: str) -> Attempt:
        try:
            resp = await _bounded_get(self._client, address, self._timeout)
        except (TimeoutError, httpx.TimeoutException):
            return Attempt(ok=False, address=address, method=self.method, error=f"Timeout after {self._timeout:g}s")
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return Attempt(ok=False, address=address, method=self.method, error=_describe(exc))

        if not is_success_code(resp.status_code):
            return Attempt(
                ok=False,
                address=address,
                method=self.method,
                status_code=resp.status_code,
                error=f"HTTP {resp.status_code}",
            )
        return Attempt(ok=True, address=address, method=self.method, status_code=resp.status_code)


def _upstream_status(resp: httpx.Response) -> Optional[int]:
    """Pull ``status.http_code`` out of a wrapping relay's JSON body, if any."""
    try:
        data: Any = resp.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    status = data.get("status")
    if isinstance(status, dict):
        code = status.get("http_code")
        if isinstance(code, int):
            return code
    return None


class ProxyCheck:
    """GET the address through one relay.

    A relay answer counts as success unless a wrapping relay reports an
    upstream status code outside the success range.
    """

    method = "proxy"

    def __init__(self, client: httpx.AsyncClient, proxy: ProxyTemplate, timeout: float) -> None:
        self._client = client
        self._proxy = proxy
        self._timeout = timeout

    @property
    def proxy(self) -> ProxyTemplate:
        return self._proxy

    def _fail(self, address: str, error: str, status_code: Optional[int] = None) -> Attempt:
        return Attempt(
            ok=False,
            address=address,
            method=self.method,
            via_fallback=True,
            proxy=self._proxy.url,
            status_code=status_code,
            error=error,
        )

    async def __call__(self, address: str) -> Attempt:
        request_url = self._proxy.build(address)
        try:
            resp = await _bounded_get(self._client, request_url, self._timeout)
        except (TimeoutError, httpx.TimeoutException):
            return self._fail(address, f"Proxy {self._proxy.url} timed out after {self._timeout:g}s")
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return self._fail(address, f"Proxy {self._proxy.url} failed: {_describe(exc)}")

        if not is_success_code(resp.status_code):
            return self._fail(address, f"Proxy {self._proxy.url} answered HTTP {resp.status_code}", resp.status_code)

        status_code = resp.status_code
        if self._proxy.style == "wrapped":
            upstream = _upstream_status(resp)
            if upstream is not None:
                if not is_success_code(upstream):
                    return self._fail(address, f"Upstream answered HTTP {upstream} via {self._proxy.url}", upstream)
                status_code = upstream

        return Attempt(
            ok=True,
            address=address,
            method=self.method,
            via_fallback=True,
            proxy=self._proxy.url,
            status_code=status_code,
        )


async def first_success(strategies: Sequence[Strategy], address: str) -> tuple[Optional[Attempt], list[Attempt]]:
    """Run *strategies* in order against *address*; stop at the first success.

    Returns the winning attempt (or None) and the failed attempts before it.
    """
    failures: list[Attempt] = []
    for strategy in strategies:
        attempt = await strategy(address)
        if attempt.ok:
            return attempt, failures
        failures.append(attempt)
    return None, failures


class EndpointResolver:
    """Resolves a service to the first address/path combination that answers."""

    def __init__(self, direct: Strategy, fallbacks: Sequence[Strategy] = ()) -> None:
        self._direct = direct
        self._fallbacks = list(fallbacks)

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient, settings: CheckSettings) -> EndpointResolver:
        timeout = settings.timeout_ms / 1000
        return cls(
            direct=DirectCheck(client, timeout),
            fallbacks=[ProxyCheck(client, proxy, timeout) for proxy in settings.proxies],
        )

    def strategies_for(self, service: ServiceDefinition) -> list[Strategy]:
        if service.check_method == "direct":
            return [self._direct]
        if service.check_method == "intermediated":
            return list(self._fallbacks)
        return [self._direct, *self._fallbacks]

    async def resolve(self, service: ServiceDefinition) -> Resolution:
        strategies = self.strategies_for(service)
        if not strategies:
            return Resolution(ok=False, error=f"No connection methods available for check method '{service.check_method}'")

        tried: list[Attempt] = []
        total = len(service.urls)
        for index, address in enumerate(service.urls, start=1):
            logger.debug("Trying %s address %d/%d: %s", service.name, index, total, address)
            winner, failures = await first_success(strategies, address)
            for failed in failures:
                logger.info("%s: %s attempt on %s failed: %s", service.name, failed.method, address, failed.error)
            tried.extend(failures)
            if winner is not None:
                logger.debug("%s reachable at %s (%s)", service.name, address, winner.method)
                return Resolution(
                    ok=True,
                    address=winner.address,
                    via_fallback=winner.via_fallback,
                    proxy=winner.proxy,
                    attempts=[*tried, winner],
                )

        last_error = tried[-1].error if tried else "none"
        if service.check_method == "direct":
            message = f"All direct connections failed. Last error: {last_error}"
        else:
            message = f"All connection methods failed for all URLs. Last error: {last_error}"
        return Resolution(ok=False, error=message, attempts=tried)
