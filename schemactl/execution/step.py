"""
Step schemas - the unit of work of an execution plan.

A Step carries a forward action plus optional hooks. Every optional field
defaults to None and its absence is a no-op:
- simulate: side-effect-free stand-in, called only in dry-run mode
- on_step_success: runs right after forward; failure counts as a step failure
- on_plan_success: deferred until every step succeeded; best-effort
- compensate: how to undo forward during an unwind
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

Action = Callable[[], Any]


@dataclass(frozen=True)
class Compensation:
    """
    Compensating action for a completed step.

    Attributes:
        action: Callable that undoes the step's forward effect
        failure_message: Shown to the user if the action raises during unwind
    """
    action: Action
    failure_message: str

    def __post_init__(self):
        if not callable(self.action):
            raise TypeError("Compensation.action must be callable")


@dataclass(frozen=True)
class Step:
    """
    A single side-effecting step.

    Attributes:
        name: Human-readable label used in logs and unwind reporting
        forward: The effect to perform
        simulate: Dry-run substitute for forward (optional)
        on_step_success: Runs immediately after forward (optional)
        on_plan_success: Runs after the whole plan succeeds (optional)
        compensate: Undo action registered once forward completes (optional)
    """
    name: str
    forward: Action
    simulate: Optional[Action] = None
    on_step_success: Optional[Action] = None
    on_plan_success: Optional[Action] = None
    compensate: Optional[Compensation] = None

    def __post_init__(self):
        if not callable(self.forward):
            raise TypeError(f"Step '{self.name}': forward must be callable")
        for hook_name in ("simulate", "on_step_success", "on_plan_success"):
            hook = getattr(self, hook_name)
            if hook is not None and not callable(hook):
                raise TypeError(f"Step '{self.name}': {hook_name} must be callable")
