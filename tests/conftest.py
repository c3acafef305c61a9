"""Shared fixtures for status page tests."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict

import pytest
import yaml

from statuspage.config.models import StatusPageConfig

SAMPLE_CONFIG: Dict[str, Any] = {
    "title": "Test Status",
    "settings": {
        "check_interval_ms": 30000,
        "timeout_ms": 1000,
        "slow_threshold_ms": 5000,
        "probe_delay_ms": 0,
        "mode": "concurrent",
        "proxies": [
            "https://relay.example/fetch/",
            {"url": "https://wrap.example/get?url=", "style": "wrapped", "encode": True},
        ],
    },
    "services": [
        {
            "name": "api",
            "description": "Main API",
            "urls": ["https://api.example.com/health"],
            "check_method": "direct",
        },
        {
            "name": "docs",
            "description": "Documentation site",
            "urls": ["https://docs-a.example.com/", "https://docs-b.example.com/"],
            "check_method": "mixed",
        },
        {
            "name": "legacy",
            "url": "https://legacy.example.com/",
            "checkMethod": "cors",
        },
    ],
}


class FakeClock:
    """Monotonic clock stand-in that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def sample_config() -> StatusPageConfig:
    """Return a parsed StatusPageConfig from sample data."""
    return StatusPageConfig(**copy.deepcopy(SAMPLE_CONFIG))


@pytest.fixture()
def sample_config_dict() -> Dict[str, Any]:
    """Return raw sample config dict."""
    return copy.deepcopy(SAMPLE_CONFIG)


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    """Write sample config to a temp statuspage.yaml and return the path."""
    path = tmp_path / "statuspage.yaml"
    with path.open("w") as fh:
        yaml.dump(SAMPLE_CONFIG, fh)
    return path


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("STATUSPAGE_CONFIG", raising=False)
