"""
Gift Workflows (``succession_modules.gifts.workflows``).

Responsibility
--------------
Declares the three independent state machines of an inter-vivos gift:
hotchpot treatment, the attached condition, and legal status. The
``GiftLedgerEntry`` consults these tables for every transition; an edge
that is not listed is rejected.

Invariants enforced
-------------------
* ``not_applicable`` is terminal: exempt gifts never enter hotchpot.
* Only ``pending`` and ``calculation_pending`` may move to ``reclaimed``.
* ``include`` is only reachable from ``calculation_pending``.
* ``reset`` returns a valued gift to ``pending`` when the date of death it
  was valued against is withdrawn; ``included`` has no other exit.
"""

from succession_kernel.domain.workflow import Guard, Transition, Workflow
from succession_kernel.logging_config import get_logger

logger = get_logger("modules.gifts.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

SUBJECT_TO_HOTCHPOT = Guard(
    name="subject_to_hotchpot",
    description="Gift is subject to hotchpot and not customarily exempt",
)

INFLATION_CALCULATED = Guard(
    name="inflation_calculated",
    description="An inflation-adjusted value has been recorded",
)

REASON_DOCUMENTED = Guard(
    name="reason_documented",
    description="A justification of the minimum length is supplied",
)

DEATH_RECORD_WITHDRAWN = Guard(
    name="death_record_withdrawn",
    description="The date of death the valuation used has been corrected",
)


# -----------------------------------------------------------------------------
# Hotchpot Workflow
# -----------------------------------------------------------------------------

HOTCHPOT_WORKFLOW = Workflow(
    name="gift_hotchpot",
    description="Hotchpot treatment of an inter-vivos gift",
    initial_state="pending",
    states=(
        "not_applicable",
        "pending",
        "calculation_pending",
        "included",
        "excluded",
        "reclaimed",
    ),
    terminal_states=("not_applicable", "excluded", "reclaimed"),
    transitions=(
        Transition("pending", "calculation_pending", action="calculate",
                   guard=SUBJECT_TO_HOTCHPOT, emits="gift_hotchpot_calculated"),
        Transition("calculation_pending", "calculation_pending", action="calculate",
                   guard=SUBJECT_TO_HOTCHPOT, emits="gift_hotchpot_calculated"),
        Transition("calculation_pending", "included", action="include", guard=INFLATION_CALCULATED),
        Transition("pending", "excluded", action="exclude", guard=REASON_DOCUMENTED),
        Transition("calculation_pending", "excluded", action="exclude", guard=REASON_DOCUMENTED),
        Transition("pending", "reclaimed", action="reclaim", emits="gift_reclaimed"),
        Transition("calculation_pending", "reclaimed", action="reclaim", emits="gift_reclaimed"),
        Transition("calculation_pending", "pending", action="reset", guard=DEATH_RECORD_WITHDRAWN),
        Transition("included", "pending", action="reset", guard=DEATH_RECORD_WITHDRAWN),
    ),
)

logger.info(
    "gift_hotchpot_workflow_registered",
    extra={
        "workflow_name": HOTCHPOT_WORKFLOW.name,
        "state_count": len(HOTCHPOT_WORKFLOW.states),
        "transition_count": len(HOTCHPOT_WORKFLOW.transitions),
    },
)


# -----------------------------------------------------------------------------
# Condition Workflow
# -----------------------------------------------------------------------------

CONDITION_WORKFLOW = Workflow(
    name="gift_condition",
    description="Condition attached to an inter-vivos gift",
    initial_state="none",
    states=("none", "pending", "met", "failed", "waived", "time_expired"),
    terminal_states=("met", "failed", "waived", "time_expired"),
    transitions=(
        Transition("none", "pending", action="set"),
        Transition("pending", "met", action="meet"),
        Transition("pending", "failed", action="fail"),
        Transition("pending", "waived", action="waive", guard=REASON_DOCUMENTED),
        Transition("pending", "time_expired", action="expire"),
    ),
)


# -----------------------------------------------------------------------------
# Legal Status Workflow
# -----------------------------------------------------------------------------

LEGAL_STATUS_WORKFLOW = Workflow(
    name="gift_legal_status",
    description="Legal standing of an inter-vivos gift",
    initial_state="valid",
    states=("valid", "contested", "settled", "invalid"),
    terminal_states=("invalid",),
    transitions=(
        Transition("valid", "contested", action="contest", guard=REASON_DOCUMENTED),
        Transition("settled", "contested", action="contest", guard=REASON_DOCUMENTED),
        Transition("contested", "valid", action="uphold"),
        Transition("contested", "settled", action="settle"),
        Transition("contested", "invalid", action="invalidate"),
    ),
)

logger.info(
    "gift_condition_workflows_registered",
    extra={
        "workflows": [CONDITION_WORKFLOW.name, LEGAL_STATUS_WORKFLOW.name],
    },
)
