"""
Tax Compliance Workflows (``succession_modules.tax.workflows``).

Responsibility
--------------
Declares the tax clearance lifecycle for one estate. ``cleared`` and
``exempt`` are the only states that release distribution.
"""

from succession_kernel.domain.workflow import Guard, Transition, Workflow
from succession_kernel.logging_config import get_logger

logger = get_logger("modules.tax.workflows")

BALANCE_ZERO = Guard(
    name="balance_zero",
    description="Remaining liability is exactly zero and a certificate is supplied",
)
BELOW_THRESHOLD = Guard(
    name="below_threshold",
    description="Total liability is below the small-estate exemption threshold",
)

TAX_WORKFLOW = Workflow(
    name="tax_compliance",
    description="Tax assessment, payment and clearance for one estate",
    initial_state="pending",
    states=("pending", "assessed", "partially_paid", "cleared", "disputed", "exempt"),
    terminal_states=("cleared", "exempt"),
    transitions=(
        Transition("pending", "assessed", action="assess"),
        Transition("assessed", "assessed", action="assess"),
        Transition("partially_paid", "partially_paid", action="assess"),
        Transition("assessed", "partially_paid", action="pay"),
        Transition("partially_paid", "partially_paid", action="pay"),
        Transition("pending", "cleared", action="clear", guard=BALANCE_ZERO, emits="tax_cleared"),
        Transition("assessed", "cleared", action="clear", guard=BALANCE_ZERO, emits="tax_cleared"),
        Transition("partially_paid", "cleared", action="clear", guard=BALANCE_ZERO, emits="tax_cleared"),
        Transition("pending", "exempt", action="exempt", guard=BELOW_THRESHOLD),
        Transition("assessed", "exempt", action="exempt", guard=BELOW_THRESHOLD),
        Transition("assessed", "disputed", action="dispute"),
        Transition("partially_paid", "disputed", action="dispute"),
        Transition("disputed", "assessed", action="resolve"),
        Transition("disputed", "partially_paid", action="resolve_paid"),
    ),
)

logger.info(
    "tax_workflow_registered",
    extra={
        "workflow_name": TAX_WORKFLOW.name,
        "state_count": len(TAX_WORKFLOW.states),
        "transition_count": len(TAX_WORKFLOW.transitions),
    },
)
