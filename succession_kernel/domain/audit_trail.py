"""
Audit trail -- append-only, per-entity log of structured notes.

Responsibility:
    Every ledger entity keeps an ordered list of ``AuditEntry`` records
    ({timestamp, actor, message} plus optional structured detail). Notes
    are the durable trace of policy adjustments (payment clamps), reasoned
    transitions (exclusions, write-offs, unfreeze) and reclassifications.

Invariants enforced:
    - Entries are immutable and only ever appended
    - Order of entries is the order of recording

Non-goals:
    - Storage format; callers serialize via ``to_records()``
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class AuditEntry:
    """One audit note."""

    timestamp: datetime
    actor: str
    message: str
    detail: tuple[tuple[str, str], ...] = ()

    def to_record(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "actor": self.actor,
            "message": self.message,
            "detail": dict(self.detail),
        }


@dataclass
class AuditTrail:
    """Append-only ordered collection of AuditEntry records."""

    _entries: list[AuditEntry] = field(default_factory=list)

    def append(
        self,
        timestamp: datetime,
        actor: str,
        message: str,
        **detail: object,
    ) -> AuditEntry:
        entry = AuditEntry(
            timestamp=timestamp,
            actor=actor,
            message=message,
            detail=tuple(sorted((k, str(v)) for k, v in detail.items())),
        )
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> tuple[AuditEntry, ...]:
        return tuple(self._entries)

    @property
    def latest(self) -> AuditEntry | None:
        return self._entries[-1] if self._entries else None

    def by_actor(self, actor: str) -> tuple[AuditEntry, ...]:
        return tuple(e for e in self._entries if e.actor == actor)

    def to_records(self) -> list[dict[str, Any]]:
        return [e.to_record() for e in self._entries]

    def __iter__(self) -> Iterator[AuditEntry]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
