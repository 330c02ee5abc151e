from .entity import (
    Address,
    Adjustment,
    BillingProfile,
    Money,
    Order,
    OrderItem,
)
from .workflow import Workflow, WorkflowTransition, get_workflow

__all__ = [
    "Address",
    "Adjustment",
    "BillingProfile",
    "Money",
    "Order",
    "OrderItem",
    "Workflow",
    "WorkflowTransition",
    "get_workflow",
]
