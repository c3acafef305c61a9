"""Resolved configuration endpoint."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter(tags=["config"])


@router.get("/config")
async def get_config(request: Request) -> Dict[str, Any]:
    config = request.app.state.config
    return config.model_dump(mode="json")
