"""
ExecutionPlan - sequential step runner with LIFO rollback.

Execution flow (real mode):
1. Install the interrupt coordinator
2. For each step, in insertion order:
   a. If cancellation was requested, unwind and exit with status 130
   b. Run forward (on failure: unwind, re-raise)
   c. If cancellation was requested while forward ran, register the
      step's compensation, unwind, exit with status 130
   d. Register the compensation, queue on_plan_success
   e. Run on_step_success (on failure: unwind, re-raise)
3. Run queued on_plan_success hooks, best-effort
4. Remove the interrupt coordinator (on every exit path)

Dry-run mode only calls each step's simulate hook.

Propagation policy:
- forward / on_step_success errors (any BaseException, SystemExit
  included) are re-raised after the unwind; a forced exit skips it
- compensation failures are collected into one rollback warning
- on_plan_success failures are reported as warnings
- cancellation raises PlanCancelled (a SystemExit with status 130)
"""

import logging
from typing import Any, Callable, Optional

from schemactl.errors import EXIT_SIGINT

from .interrupt import InterruptCoordinator, terminate_process
from .reporter import Reporter
from .rollback import RollbackQueue
from .step import Action, Step

logger = logging.getLogger(__name__)


class PlanCancelled(SystemExit):
    """Raised after a user-requested cancellation has been unwound."""

    def __init__(self) -> None:
        super().__init__(EXIT_SIGINT)


class ExecutionPlan:
    """
    Runs a list of steps, undoing completed ones on failure or Ctrl+C.

    Usage:
        plan = ExecutionPlan()
        plan.add(Step(name="Create directory", forward=make_dir,
                      compensate=Compensation(remove_dir, "Could not remove directory")))
        plan.add(Step(name="Write config", forward=write_config))
        plan.run(dry=False)

    A plan object can be run again after a previous run finished; the
    interrupt and rollback state is reset at the start of every run.
    Concurrent runs of the same plan are not supported.
    """

    def __init__(
        self,
        reporter: Optional[Reporter] = None,
        force_exit: Callable[[int], Any] = terminate_process,
    ):
        """
        Args:
            reporter: Receives rollback / interrupt notifications
                (defaults to the shared CLI printer)
            force_exit: Called with status 130 on a second interrupt
        """
        if reporter is None:
            from schemactl.printer import printer as reporter
        self._reporter = reporter
        self._steps: list[Step] = []
        self._rolling_back = False
        self._interrupt = InterruptCoordinator(
            reporter,
            is_rolling_back=lambda: self._rolling_back,
            force_exit=force_exit,
        )

    def add(self, step: Step) -> "ExecutionPlan":
        """
        Append a step to the plan.

        Returns:
            The plan itself, for chaining
        """
        self._steps.append(step)
        return self

    def __len__(self) -> int:
        return len(self._steps)

    def run(self, dry: bool = False) -> None:
        """
        Execute the plan.

        Args:
            dry: Simulate only; no forward action, compensation or
                signal handler is touched

        Raises:
            Exception: The error of the failing forward / on_step_success
                hook, after completed steps were rolled back
            PlanCancelled: After a Ctrl+C requested cancellation was unwound
        """
        if dry:
            self._run_dry()
            return

        self._run_real()

    def _run_dry(self) -> None:
        for step in self._steps:
            if step.simulate is not None:
                step.simulate()

    def _run_real(self) -> None:
        queue = RollbackQueue()
        plan_success_hooks: list[tuple[str, Action]] = []

        self._rolling_back = False
        self._interrupt.reset()
        self._interrupt.install()

        try:
            for step in self._steps:
                if self._interrupt.interrupted:
                    logger.debug(f"Cancellation requested before step: {step.name}")
                    self._cancel(queue)

                logger.debug(f"Running step: {step.name}")
                try:
                    step.forward()
                except BaseException:
                    logger.debug(f"Step failed: {step.name}", exc_info=True)
                    self._fail(queue)
                    raise

                if self._interrupt.interrupted:
                    logger.debug(f"Cancellation requested during step: {step.name}")
                    queue.register(step)
                    self._cancel(queue)

                queue.register(step)

                if step.on_plan_success is not None:
                    plan_success_hooks.append((step.name, step.on_plan_success))

                if step.on_step_success is not None:
                    try:
                        step.on_step_success()
                    except BaseException:
                        logger.debug(f"on_step_success failed: {step.name}", exc_info=True)
                        self._fail(queue)
                        raise

            self._run_plan_success_hooks(plan_success_hooks)
        finally:
            self._interrupt.uninstall()

    def _fail(self, queue: RollbackQueue) -> None:
        # A forced exit abandons the unwind
        if not self._interrupt.forced:
            self._unwind(queue)

    def _cancel(self, queue: RollbackQueue) -> None:
        self._unwind(queue)
        raise PlanCancelled()

    def _unwind(self, queue: RollbackQueue) -> None:
        """Run queued compensations most-recent-first, collecting failures."""
        entries = queue.drain()
        if not entries:
            return

        self._rolling_back = True
        self._reporter.rollback_start()

        failures: list[str] = []
        for entry in entries:
            logger.debug(f"Compensating step: {entry.name}")
            try:
                entry.action()
            except Exception as e:
                logger.warning(f"Compensation for '{entry.name}' failed: {e}")
                failures.append(entry.failure_message)

        self._rolling_back = False

        if failures:
            self._reporter.rollback_warning(failures)
        else:
            self._reporter.rollback_complete()

    def _run_plan_success_hooks(self, hooks: list[tuple[str, Action]]) -> None:
        for name, hook in hooks:
            try:
                hook()
            except Exception as e:
                logger.debug(f"Plan success hook for '{name}' failed: {e}", exc_info=True)
                self._reporter.warning(f"A cleanup hook failed to execute ({name})")
