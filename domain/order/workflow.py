"""
订单状态机 - 工作流与命名转换

工作流只描述允许的状态与转换，不持有订单状态本身。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class WorkflowTransition:
    id: str
    label: str
    from_states: tuple[str, ...]
    to_state: str


@dataclass(frozen=True)
class Workflow:
    id: str
    label: str
    states: tuple[str, ...]
    transitions: tuple[WorkflowTransition, ...]

    def get_transition(self, transition_id: str) -> Optional[WorkflowTransition]:
        for transition in self.transitions:
            if transition.id == transition_id:
                return transition
        return None


ORDER_DEFAULT = Workflow(
    id="order_default",
    label="Default",
    states=("draft", "completed", "canceled"),
    transitions=(
        WorkflowTransition("place", "Place order", ("draft",), "completed"),
        WorkflowTransition("cancel", "Cancel order", ("draft",), "canceled"),
    ),
)

ORDER_DEFAULT_VALIDATION = Workflow(
    id="order_default_validation",
    label="Default, with validation",
    states=("draft", "validation", "completed", "canceled"),
    transitions=(
        WorkflowTransition("place", "Place order", ("draft",), "validation"),
        WorkflowTransition("validate", "Validate order", ("validation",), "completed"),
        WorkflowTransition("cancel", "Cancel order", ("draft", "validation"), "canceled"),
    ),
)

_WORKFLOWS = {w.id: w for w in (ORDER_DEFAULT, ORDER_DEFAULT_VALIDATION)}


def get_workflow(workflow_id: str) -> Workflow:
    try:
        return _WORKFLOWS[workflow_id]
    except KeyError:
        raise ValueError(f"Unknown order workflow: {workflow_id}") from None
