"""
Estate Workflows (``succession_modules.estate.workflows``).

Responsibility
--------------
Declares the estate lifecycle from planning through closure. Recording a
death freezes the estate; ``unfreeze`` is the only way back and exists for
corrections.
"""

from succession_kernel.domain.workflow import Guard, Transition, Workflow
from succession_kernel.logging_config import get_logger

logger = get_logger("modules.estate.workflows")

DEATH_RECORDED = Guard(
    name="death_recorded",
    description="A date of death and a death certificate reference are on file",
)
CORRECTION_REASONED = Guard(
    name="correction_reasoned",
    description="An unfreeze carries a documented reason",
)

ESTATE_WORKFLOW = Workflow(
    name="estate",
    description="Administration lifecycle of a deceased person's estate",
    initial_state="planning",
    states=("planning", "active", "frozen", "probate", "administration", "distributed", "closed"),
    terminal_states=("closed",),
    transitions=(
        Transition("planning", "active", action="activate"),
        Transition("planning", "frozen", action="record_death", guard=DEATH_RECORDED, emits="estate_frozen"),
        Transition("active", "frozen", action="record_death", guard=DEATH_RECORDED, emits="estate_frozen"),
        Transition("frozen", "active", action="unfreeze", guard=CORRECTION_REASONED, emits="estate_unfrozen"),
        Transition("frozen", "probate", action="open_probate"),
        Transition("probate", "administration", action="begin_administration"),
        Transition("administration", "distributed", action="mark_distributed"),
        Transition("distributed", "closed", action="close"),
    ),
)

logger.info(
    "estate_workflow_registered",
    extra={
        "workflow_name": ESTATE_WORKFLOW.name,
        "state_count": len(ESTATE_WORKFLOW.states),
        "transition_count": len(ESTATE_WORKFLOW.transitions),
    },
)
