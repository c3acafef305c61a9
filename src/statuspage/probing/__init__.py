"""Probing engine: endpoint resolution, probe execution and status storage."""

from statuspage.probing.executor import ProbeExecutor, classify
from statuspage.probing.models import Attempt, Resolution, ServiceState, StatusRecord
from statuspage.probing.resolver import DirectCheck, EndpointResolver, ProxyCheck, first_success
from statuspage.probing.store import StatusStore

__all__ = [
    "Attempt",
    "DirectCheck",
    "EndpointResolver",
    "ProbeExecutor",
    "ProxyCheck",
    "Resolution",
    "ServiceState",
    "StatusRecord",
    "StatusStore",
    "classify",
    "first_success",
]
