"""Status query and manual refresh endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Request

from statuspage.monitor.monitor import StatusMonitor
from statuspage.monitor.snapshot import ServiceView

router = APIRouter(tags=["status"])


def _get_monitor(request: Request) -> StatusMonitor:
    return request.app.state.monitor


@router.get("/status")
async def get_status(request: Request) -> Dict[str, Any]:
    """Best-known snapshot of every service; never triggers a probe."""
    return _get_monitor(request).snapshot().to_dict()


@router.get("/services/{name}")
async def get_service(request: Request, name: str) -> Dict[str, Any]:
    monitor = _get_monitor(request)
    definition = monitor.config.get_service(name)
    if definition is None:
        raise HTTPException(status_code=404, detail=f"Unknown service: {name}")
    return ServiceView(definition=definition, record=monitor.get_status(name)).to_dict()


@router.post("/refresh")
async def refresh(request: Request) -> Dict[str, Any]:
    """Run a sweep now unless one is already in flight."""
    monitor = _get_monitor(request)
    report = await monitor.sweep()
    if report is None:
        return {"status": "skipped", "reason": "A sweep is already in progress"}
    counts = report.counts
    return {
        "status": "completed",
        "durationMillis": round(report.duration_ms),
        "completedAt": report.completed_at.isoformat(),
        "summary": {
            "upCount": counts["up"],
            "slowCount": counts["slow"],
            "downCount": counts["down"],
        },
    }
