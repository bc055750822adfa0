"""
Interrupt coordinator - two-stage Ctrl+C handling for an execution plan.

State machine:
    IDLE --SIGINT--> REQUESTED --SIGINT--> FORCED
    IDLE --SIGINT while rolling back--> FORCED

REQUESTED only sets a flag and notifies; the plan polls `interrupted`
between steps and unwinds cooperatively. FORCED terminates the process
immediately with the cancellation status, abandoning any in-flight
unwind.

The handler never touches the rollback queue. Python runs signal
handlers in the main thread between bytecodes, and blocking calls
interrupted by a signal are resumed afterwards, so a step that is
waiting on I/O still finishes normally after the first Ctrl+C.
"""

import logging
import os
import signal
import sys
import threading
from enum import Enum
from typing import Any, Callable, Optional

from schemactl.errors import EXIT_SIGINT

from .reporter import Reporter

logger = logging.getLogger(__name__)


class InterruptState(str, Enum):
    IDLE = "idle"
    REQUESTED = "requested"
    FORCED = "forced"


def terminate_process(status: int) -> None:
    """Flush standard streams and exit without running cleanup handlers."""
    for stream in (sys.stdout, sys.stderr):
        try:
            stream.flush()
        except (OSError, ValueError):
            pass
    os._exit(status)


class InterruptCoordinator:
    """
    Owns the SIGINT handler for the duration of one plan run.

    Usage:
        coordinator = InterruptCoordinator(reporter, is_rolling_back=lambda: plan_rolling_back)
        with coordinator:
            ...  # poll coordinator.interrupted between steps
    """

    def __init__(
        self,
        reporter: Reporter,
        is_rolling_back: Callable[[], bool],
        force_exit: Callable[[int], Any] = terminate_process,
    ):
        """
        Args:
            reporter: Receives abort_detected / force_exit notifications
            is_rolling_back: Returns True while the owner is unwinding
            force_exit: Called with the exit status on the second interrupt
        """
        self._reporter = reporter
        self._is_rolling_back = is_rolling_back
        self._force_exit = force_exit
        self._state = InterruptState.IDLE
        self._previous_handler: Any = None
        self._installed = False

    @property
    def state(self) -> InterruptState:
        return self._state

    @property
    def interrupted(self) -> bool:
        """True once a cancellation has been requested."""
        return self._state is not InterruptState.IDLE

    @property
    def forced(self) -> bool:
        """True once a second interrupt forced the process to exit."""
        return self._state is InterruptState.FORCED

    @property
    def installed(self) -> bool:
        return self._installed

    def reset(self) -> None:
        self._state = InterruptState.IDLE

    def handle_signal(self, signum: Optional[int] = None, frame: Any = None) -> None:
        """
        React to one interrupt.

        The first interrupt outside of a rollback requests cancellation.
        Any later interrupt, or one arriving mid-rollback, forces exit.
        """
        if self._state is InterruptState.IDLE and not self._is_rolling_back():
            self._state = InterruptState.REQUESTED
            logger.debug("Interrupt received, cancellation requested")
            self._reporter.abort_detected()
            return

        self._state = InterruptState.FORCED
        logger.debug("Second interrupt received, forcing exit")
        self._reporter.force_exit()
        self._force_exit(EXIT_SIGINT)

    def install(self) -> bool:
        """
        Register handle_signal for SIGINT, remembering the previous handler.

        Returns:
            True if installed. Signal handlers can only be set from the
            main thread; elsewhere nothing is installed and False is returned.
        """
        if self._installed:
            return True
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, interrupt handling disabled for this run")
            return False

        self._previous_handler = signal.getsignal(signal.SIGINT)
        signal.signal(signal.SIGINT, self.handle_signal)
        self._installed = True
        return True

    def uninstall(self) -> None:
        """Restore the handler that was active before install()."""
        if not self._installed:
            return
        previous = self._previous_handler
        if previous is None:
            # Installed from outside Python; fall back to the interpreter default
            previous = signal.default_int_handler
        signal.signal(signal.SIGINT, previous)
        self._previous_handler = None
        self._installed = False

    def __enter__(self) -> "InterruptCoordinator":
        self.install()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.uninstall()
