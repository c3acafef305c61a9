"""Process-wide holder of the latest status record per service."""

from __future__ import annotations

import threading
from collections.abc import Iterable

from statuspage.probing.models import StatusRecord


class StatusStore:
    """Keyed by service name. Thread-safe via a lock around whole-record swaps.

    Every configured name holds exactly one record from construction on,
    starting as ``unknown``.
    """

    def __init__(self, names: Iterable[str]) -> None:
        self._records: dict[str, StatusRecord] = {name: StatusRecord.unknown() for name in names}
        self._lock = threading.Lock()

    @property
    def names(self) -> list[str]:
        return list(self._records.keys())

    def get(self, name: str) -> StatusRecord:
        """Return the latest record; ``unknown`` for names never probed."""
        with self._lock:
            return self._records.get(name, StatusRecord.unknown())

    def set(self, name: str, record: StatusRecord) -> None:
        """Replace the record for *name* wholesale."""
        with self._lock:
            if name not in self._records:
                raise KeyError(f"Unknown service: {name}")
            self._records[name] = record

    def snapshot_all(self) -> dict[str, StatusRecord]:
        """Point-in-time copy of every record."""
        with self._lock:
            return dict(self._records)
