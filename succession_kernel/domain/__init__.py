"""
Pure domain layer.

Value objects, clocks, workflow primitives, audit records and emitted facts.
No I/O and no dependency on anything outside succession_kernel.
"""

from succession_kernel.domain.audit_trail import AuditEntry, AuditTrail
from succession_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from succession_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from succession_kernel.domain.values import Currency, Money, Percentage
from succession_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "AuditEntry",
    "AuditTrail",
    "Clock",
    "Currency",
    "CurrencyInfo",
    "CurrencyRegistry",
    "DeterministicClock",
    "Guard",
    "Money",
    "Percentage",
    "SystemClock",
    "Transition",
    "Workflow",
]
