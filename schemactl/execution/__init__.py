"""
schemactl.execution - execution plans with rollback and interrupt handling.

Step -> RollbackQueue -> InterruptCoordinator -> ExecutionPlan
"""

from .step import Step, Compensation
from .rollback import RollbackQueue, RollbackEntry
from .reporter import Reporter
from .interrupt import InterruptCoordinator, InterruptState, terminate_process
from .plan import ExecutionPlan, PlanCancelled

__all__ = [
    "Step",
    "Compensation",
    "RollbackQueue",
    "RollbackEntry",
    "Reporter",
    "InterruptCoordinator",
    "InterruptState",
    "terminate_process",
    "ExecutionPlan",
    "PlanCancelled",
]
