"""Data models for probe outcomes and per-service status."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Optional


class ServiceState(StrEnum):
    UNKNOWN = "unknown"
    UP = "up"
    SLOW = "slow"
    DOWN = "down"


@dataclass(frozen=True)
class Attempt:
    """Outcome of one strategy against one address."""

    ok: bool
    address: str
    method: str
    via_fallback: bool = False
    proxy: Optional[str] = None
    status_code: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a whole service: the winning attempt or an aggregated error."""

    ok: bool
    address: Optional[str] = None
    via_fallback: bool = False
    proxy: Optional[str] = None
    error: Optional[str] = None
    attempts: list[Attempt] = field(default_factory=list)


@dataclass(frozen=True)
class StatusRecord:
    """Latest known status of one service.

    Records are immutable and replaced wholesale, so a reader never sees a
    half-updated one. Use the constructors below rather than building
    records by hand; they keep the optional fields consistent with ``state``.
    """

    state: ServiceState = ServiceState.UNKNOWN
    response_time_ms: Optional[int] = None
    last_checked_at: Optional[datetime] = None
    error: Optional[str] = None
    resolved_address: Optional[str] = None
    via_fallback: bool = False
    proxy: Optional[str] = None

    @classmethod
    def unknown(cls) -> StatusRecord:
        return cls()

    @classmethod
    def success(
        cls,
        state: ServiceState,
        response_time_ms: int,
        checked_at: datetime,
        resolved_address: str,
        via_fallback: bool = False,
        proxy: Optional[str] = None,
    ) -> StatusRecord:
        if state not in (ServiceState.UP, ServiceState.SLOW):
            raise ValueError(f"Not a success state: {state}")
        return cls(
            state=state,
            response_time_ms=max(0, response_time_ms),
            last_checked_at=checked_at,
            resolved_address=resolved_address,
            via_fallback=via_fallback,
            proxy=proxy,
        )

    @classmethod
    def failure(cls, error: str, checked_at: datetime) -> StatusRecord:
        return cls(state=ServiceState.DOWN, last_checked_at=checked_at, error=error or "Unknown error")

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "responseTimeMillis": self.response_time_ms,
            "lastCheckedAt": self.last_checked_at.isoformat() if self.last_checked_at else None,
            "errorDetail": self.error,
            "resolvedAddress": self.resolved_address,
            "viaFallback": self.via_fallback,
            "proxy": self.proxy,
        }
