"""
Recording -- shared audit-note and fact-recording behaviour for ledger entities.

Entities mixing this in provide three attributes: ``clock`` (a Clock),
``audit`` (an AuditTrail) and ``facts`` (a list of EstateFact). Facts stay
on the entity until the orchestrator drains them with ``pull_facts()``.
"""

from __future__ import annotations

from succession_kernel.domain.audit_trail import AuditEntry, AuditTrail
from succession_kernel.domain.clock import Clock
from succession_kernel.domain.events import EstateFact


class RecordingMixin:
    clock: Clock
    audit: AuditTrail
    facts: list[EstateFact]

    def _note(self, actor: str, message: str, **detail: object) -> AuditEntry:
        return self.audit.append(self.clock.now(), actor, message, **detail)

    def _record(self, fact: EstateFact) -> None:
        self.facts.append(fact)

    def pull_facts(self) -> list[EstateFact]:
        """Return and clear facts recorded since the last pull."""
        drained = list(self.facts)
        self.facts.clear()
        return drained
