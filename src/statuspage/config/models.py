"""Pydantic models for status page configuration."""

from __future__ import annotations

from typing import Any, Literal
from urllib.parse import quote

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

CheckMethod = Literal["direct", "intermediated", "mixed"]

DEFAULT_PROXIES = [
    "https://api.codetabs.com/v1/proxy?quest=",
    "https://thingproxy.freeboard.io/fetch/",
    "https://api.allorigins.win/get?url=",
]


class ProxyTemplate(BaseModel):
    """A relay that fetches a target address on our behalf."""

    model_config = ConfigDict(frozen=True)

    url: str
    style: Literal["prefix", "wrapped"] = "prefix"
    encode: bool = False

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        # allorigins wraps its answer in JSON; an explicit style or encode still wins.
        if isinstance(data, str):
            data = {"url": data}
        if isinstance(data, dict) and "allorigins" in str(data.get("url", "")):
            data = {"style": "wrapped", "encode": True, **data}
        return data

    def build(self, target: str) -> str:
        """Rewrite *target* into the address this relay expects."""
        if self.encode:
            return self.url + quote(target, safe="")
        return self.url + target


class ServiceDefinition(BaseModel):
    """A monitored service with one or more candidate addresses."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    description: str = ""
    urls: list[str] = Field(min_length=1)
    check_method: CheckMethod = Field(
        default="direct",
        validation_alias=AliasChoices("check_method", "checkMethod"),
    )

    @model_validator(mode="before")
    @classmethod
    def _legacy_url(cls, data: Any) -> Any:
        if isinstance(data, dict) and "urls" not in data and "url" in data:
            data = dict(data)
            data["urls"] = [data.pop("url")]
        return data

    @field_validator("check_method", mode="before")
    @classmethod
    def _normalize_method(cls, value: Any) -> Any:
        if value == "cors":
            return "intermediated"
        return value

    @property
    def url(self) -> str:
        return self.urls[0]


class CheckSettings(BaseModel):
    """Global probing settings."""

    check_interval_ms: int = Field(
        default=30_000,
        gt=0,
        validation_alias=AliasChoices("check_interval_ms", "checkInterval", "refreshInterval"),
    )
    timeout_ms: int = Field(default=10_000, gt=0, validation_alias=AliasChoices("timeout_ms", "timeout"))
    slow_threshold_ms: int = Field(
        default=5_000,
        gt=0,
        validation_alias=AliasChoices("slow_threshold_ms", "slowThreshold"),
    )
    probe_delay_ms: int = Field(default=500, ge=0, validation_alias=AliasChoices("probe_delay_ms", "probeDelay"))
    mode: Literal["concurrent", "serialized"] = "concurrent"
    proxies: list[ProxyTemplate] = Field(
        default_factory=lambda: [ProxyTemplate.model_validate(p) for p in DEFAULT_PROXIES],
        validation_alias=AliasChoices("proxies", "corsProxies"),
    )


class StatusPageConfig(BaseModel):
    """Root configuration model for statuspage.yaml."""

    title: str = "Service Status"
    settings: CheckSettings = Field(default_factory=CheckSettings)
    services: list[ServiceDefinition] = Field(min_length=1)
    dashboard_dir: str = ""

    @model_validator(mode="before")
    @classmethod
    def _hoist_server_settings(cls, data: Any) -> Any:
        # The server-style JSON config keeps checkInterval/timeout at the top level.
        if not isinstance(data, dict):
            return data
        legacy = {k: data[k] for k in ("checkInterval", "timeout") if k in data}
        if not legacy:
            return data
        data = {k: v for k, v in data.items() if k not in legacy}
        settings = dict(data.get("settings") or {})
        for key, value in legacy.items():
            settings.setdefault(key, value)
        data["settings"] = settings
        return data

    @field_validator("services")
    @classmethod
    def _unique_names(cls, services: list[ServiceDefinition]) -> list[ServiceDefinition]:
        seen: set[str] = set()
        for service in services:
            if service.name in seen:
                raise ValueError(f"Duplicate service name: {service.name}")
            seen.add(service.name)
        return services

    @model_validator(mode="after")
    def _relays_available(self) -> StatusPageConfig:
        if self.settings.proxies:
            return self
        relayed = [s.name for s in self.services if s.check_method != "direct"]
        if relayed:
            raise ValueError(f"No proxies configured for relayed service(s): {', '.join(relayed)}")
        return self

    def get_service(self, name: str) -> ServiceDefinition | None:
        for service in self.services:
            if service.name == name:
                return service
        return None
