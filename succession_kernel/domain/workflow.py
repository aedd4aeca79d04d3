"""
Canonical workflow types (``succession_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for the ledger state machines (gift hotchpot, gift
condition, debt, bequest, tax gate, estate lifecycle). Each machine is a
``Workflow`` whose ``transitions`` table is the complete set of legal
edges; anything not in the table is rejected.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects. ZERO I/O.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* ``terminal_states`` have no outgoing transitions.
"""

from __future__ import annotations

from dataclasses import dataclass

from succession_kernel.exceptions import InvalidTransitionError


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.
    Non-goals: does not evaluate the condition -- the owning entity does.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``emits`` names the fact recorded when the transition fires, if any.
    """
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    emits: str | None = None


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a ledger entity lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        known = set(self.states)
        if self.initial_state not in known:
            raise ValueError(
                f"Workflow {self.name}: initial state {self.initial_state} not in states"
            )
        for t in self.transitions:
            if t.from_state not in known or t.to_state not in known:
                raise ValueError(
                    f"Workflow {self.name}: transition {t.action} "
                    f"{t.from_state}->{t.to_state} references an unknown state"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"Workflow {self.name}: terminal state {t.from_state} "
                    f"has outgoing transition {t.action}"
                )

    def find_transition(self, from_state: str, action: str) -> Transition | None:
        for t in self.transitions:
            if t.from_state == from_state and t.action == action:
                return t
        return None

    def require_transition(
        self, entity_id: str, from_state: str, action: str
    ) -> Transition:
        """Return the matching edge or raise InvalidTransitionError."""
        transition = self.find_transition(from_state, action)
        if transition is None:
            raise InvalidTransitionError(self.name, entity_id, from_state, action)
        return transition

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states

    def actions_from(self, state: str) -> tuple[str, ...]:
        return tuple(t.action for t in self.transitions if t.from_state == state)
