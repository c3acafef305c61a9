"""Point-in-time views of every service joined with its latest status."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Optional

from statuspage.config.models import ServiceDefinition, StatusPageConfig
from statuspage.probing.models import ServiceState, StatusRecord


@dataclass(frozen=True)
class ServiceView:
    """A service definition paired with its status record."""

    definition: ServiceDefinition
    record: StatusRecord

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.definition.name,
            "description": self.definition.description,
            "url": self.definition.url,
            "urls": list(self.definition.urls),
            "checkMethod": self.definition.check_method,
            **self.record.to_dict(),
        }


@dataclass(frozen=True)
class SweepSnapshot:
    """Every configured service with its current record, in config order."""

    services: list[ServiceView]
    generated_at: datetime
    check_interval_ms: int
    last_sweep_completed_at: Optional[datetime] = None
    title: str = ""

    @property
    def counts(self) -> dict[str, int]:
        counts = {state.value: 0 for state in ServiceState}
        for view in self.services:
            counts[view.record.state.value] += 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        counts = self.counts
        return {
            "title": self.title,
            "services": [view.to_dict() for view in self.services],
            "summary": {
                "upCount": counts["up"],
                "slowCount": counts["slow"],
                "downCount": counts["down"],
                "unknownCount": counts["unknown"],
                "total": len(self.services),
            },
            "generatedAt": self.generated_at.isoformat(),
            "lastSweepCompletedAt": (
                self.last_sweep_completed_at.isoformat() if self.last_sweep_completed_at else None
            ),
            "checkIntervalMillis": self.check_interval_ms,
        }


def build_snapshot(
    config: StatusPageConfig,
    records: Mapping[str, StatusRecord],
    last_sweep_completed_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> SweepSnapshot:
    """Join the configured services with *records*. Pure; missing records read as ``unknown``."""
    views = [
        ServiceView(definition=service, record=records.get(service.name) or StatusRecord.unknown())
        for service in config.services
    ]
    return SweepSnapshot(
        services=views,
        generated_at=now or datetime.now(UTC),
        check_interval_ms=config.settings.check_interval_ms,
        last_sweep_completed_at=last_sweep_completed_at,
        title=config.title,
    )
