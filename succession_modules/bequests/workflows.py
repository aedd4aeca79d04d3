"""
Bequest Workflows (``succession_modules.bequests.workflows``).

Responsibility
--------------
Declares the lifecycle of a bequest assignment: planned while the testator
lives, activated at death or will execution, then ending as fulfilled,
lapsed, disclaimed, revoked or adeemed.
"""

from succession_kernel.domain.workflow import Guard, Transition, Workflow
from succession_kernel.logging_config import get_logger

logger = get_logger("modules.bequests.workflows")

SPECIFIC_ASSET_ONLY = Guard(
    name="specific_asset_only",
    description="Only a specific-asset bequest can be adeemed",
)

BEQUEST_WORKFLOW = Workflow(
    name="bequest_assignment",
    description="Lifecycle of one bequest under a will",
    initial_state="planned",
    states=("planned", "active", "fulfilled", "lapsed", "disclaimed", "revoked", "adeemed"),
    terminal_states=("fulfilled", "lapsed", "disclaimed", "revoked", "adeemed"),
    transitions=(
        Transition("planned", "active", action="activate"),
        Transition("planned", "revoked", action="revoke"),
        Transition("active", "revoked", action="revoke"),
        Transition("active", "fulfilled", action="fulfil"),
        Transition("active", "lapsed", action="lapse"),
        Transition("active", "disclaimed", action="disclaim"),
        Transition("active", "adeemed", action="adeem", guard=SPECIFIC_ASSET_ONLY),
    ),
)

logger.info(
    "bequest_workflow_registered",
    extra={
        "workflow_name": BEQUEST_WORKFLOW.name,
        "state_count": len(BEQUEST_WORKFLOW.states),
        "transition_count": len(BEQUEST_WORKFLOW.transitions),
    },
)
