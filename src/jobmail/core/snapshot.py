from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any

from jobmail.core.aggregate import aggregate
from jobmail.core.models import ClassifiedMessage, CompanyStats, DaySnapshot


@dataclass(frozen=True, slots=True)
class Snapshot:
    days: DaySnapshot = field(default_factory=dict)
    companies: CompanyStats = field(default_factory=dict)
    version: int = 0
    refreshed_at: datetime | None = None

    @classmethod
    def build(
        cls,
        messages: Sequence[ClassifiedMessage],
        version: int,
        refreshed_at: datetime | None = None,
        tz: tzinfo | None = None,
    ) -> Snapshot:
        days, companies = aggregate(messages, tz=tz)
        return cls(days=days, companies=companies, version=version, refreshed_at=refreshed_at)

    @property
    def is_empty(self) -> bool:
        return self.version == 0

    @property
    def message_count(self) -> int:
        return sum(len(bucket) for bucket in self.days.values())

    def messages(self) -> list[ClassifiedMessage]:
        return [message for bucket in self.days.values() for message in bucket]

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "refreshed_at": self.refreshed_at.isoformat() if self.refreshed_at else None,
            "days": {key: [m.to_dict() for m in bucket] for key, bucket in self.days.items()},
            "companies": {name: counts.to_dict() for name, counts in self.companies.items()},
        }


EMPTY_SNAPSHOT = Snapshot()


class SnapshotStore:
    """Single-writer holder of the published snapshot.

    Readers call ``current`` without locking: publishing is one attribute
    assignment of a fully built ``Snapshot``, so a reader sees either the
    previous snapshot or the new one.
    """

    def __init__(self, initial: Snapshot | None = None):
        self._lock = threading.Lock()
        self._snapshot = initial or EMPTY_SNAPSHOT

    @property
    def current(self) -> Snapshot:
        return self._snapshot

    @property
    def version(self) -> int:
        return self._snapshot.version

    def next_version(self) -> int:
        return self._snapshot.version + 1

    def publish(self, snapshot: Snapshot) -> Snapshot:
        with self._lock:
            if snapshot.version <= self._snapshot.version:
                raise ValueError(
                    f"Stale snapshot version {snapshot.version}, current is {self._snapshot.version}"
                )
            self._snapshot = snapshot
        return snapshot
