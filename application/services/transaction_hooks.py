"""
Synchronous interception point run before every outbound create/update call.

Hooks are plain callables ``hook(order, step, values)`` invoked in
registration order. Each one receives the map produced by the previous hook
and may mutate it in place (return ``None``) or return a replacement map.
The map left after the last hook is what the gateway sends.
"""
from __future__ import annotations

import inspect
from typing import Any, Callable, Iterable, Optional

from domain.order.entity import Order
from core.logging_config import get_logger


logger = get_logger(__name__)

STEP_CREATE = "create"
STEP_CREATED = "created"
STEPS = frozenset({STEP_CREATE, STEP_CREATED})

TransactionAlterHook = Callable[[Order, str, dict[str, Any]], Optional[dict[str, Any]]]


class TransactionHookRegistry:
    def __init__(self, hooks: Optional[Iterable[TransactionAlterHook]] = None) -> None:
        self._hooks: list[TransactionAlterHook] = list(hooks or [])

    def register(self, hook: TransactionAlterHook) -> TransactionAlterHook:
        """Register a hook; usable as a decorator."""
        self._hooks.append(hook)
        return hook

    def __len__(self) -> int:
        return len(self._hooks)

    def alter(self, order: Order, step: str, values: dict[str, Any]) -> dict[str, Any]:
        if step not in STEPS:
            raise ValueError(f"Unknown transaction step: {step}")
        current = values
        for hook in self._hooks:
            result = hook(order, step, current)
            if inspect.isawaitable(result):
                close = getattr(result, "close", None)
                if callable(close):
                    close()
                raise TypeError(f"Transaction hook {hook!r} must be synchronous")
            if result is None:
                continue
            if not isinstance(result, dict):
                raise TypeError(f"Transaction hook {hook!r} returned {type(result).__name__}, expected dict")
            current = result
        if self._hooks:
            logger.debug("transaction_values_altered", order_id=order.id, step=step, hooks=len(self._hooks))
        return current


# Process-wide registry; extensions register with ``@transaction_hooks.register``
transaction_hooks = TransactionHookRegistry()
