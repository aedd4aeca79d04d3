"""
Debt Workflows (``succession_modules.debts.workflows``).

Responsibility
--------------
Declares the payment-state machine of an estate liability. Terminal
states (settled, written off, statute-barred) accept no further payments.

Invariants enforced
-------------------
* A disputed debt cannot be paid until the dispute is resolved.
* Resolving a dispute as upheld or dismissed reinstates ``outstanding``;
  resolving it as settled ends the debt.
"""

from succession_kernel.domain.workflow import Guard, Transition, Workflow
from succession_kernel.logging_config import get_logger

logger = get_logger("modules.debts.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

NOT_TIER_ONE = Guard(
    name="not_tier_one",
    description="Funeral and testamentary expenses cannot be written off",
)

TAX_WRITE_OFF_APPROVED = Guard(
    name="tax_write_off_approved",
    description="Tax debts carry an authority approval reference before write-off",
)

LIMITATION_EXPIRED = Guard(
    name="limitation_expired",
    description="As-of date is after the end of the limitation window",
)


# -----------------------------------------------------------------------------
# Debt Workflow
# -----------------------------------------------------------------------------

_OPEN_STATES = ("outstanding", "partially_paid", "disputed")

DEBT_WORKFLOW = Workflow(
    name="estate_debt",
    description="Payment lifecycle of an estate liability",
    initial_state="outstanding",
    states=(
        "outstanding",
        "partially_paid",
        "settled",
        "disputed",
        "written_off",
        "statute_barred",
    ),
    terminal_states=("settled", "written_off", "statute_barred"),
    transitions=(
        Transition("outstanding", "partially_paid", action="pay_part", emits="debt_payment_recorded"),
        Transition("outstanding", "settled", action="pay_in_full", emits="debt_payment_recorded"),
        Transition("partially_paid", "partially_paid", action="pay_part", emits="debt_payment_recorded"),
        Transition("partially_paid", "settled", action="pay_in_full", emits="debt_payment_recorded"),
        Transition("outstanding", "disputed", action="dispute"),
        Transition("partially_paid", "disputed", action="dispute"),
        Transition("disputed", "outstanding", action="reinstate"),
        Transition("disputed", "settled", action="settle_dispute"),
        *(
            Transition(s, "written_off", action="write_off",
                       guard=NOT_TIER_ONE)
            for s in _OPEN_STATES
        ),
        *(
            Transition(s, "statute_barred", action="bar",
                       guard=LIMITATION_EXPIRED, emits="debt_statute_barred")
            for s in _OPEN_STATES
        ),
    ),
)

logger.info(
    "debt_workflow_registered",
    extra={
        "workflow_name": DEBT_WORKFLOW.name,
        "state_count": len(DEBT_WORKFLOW.states),
        "transition_count": len(DEBT_WORKFLOW.transitions),
        "guards": [NOT_TIER_ONE.name, TAX_WRITE_OFF_APPROVED.name, LIMITATION_EXPIRED.name],
    },
)
