"""
Reporter protocol - the notifications an execution plan emits.

schemactl.printer.Printer implements it for the CLI; tests pass a
recording implementation. Calls are fire-and-forget, the plan never
inspects return values.
"""

from typing import Protocol


class Reporter(Protocol):

    def rollback_start(self) -> None: ...

    def rollback_complete(self) -> None: ...

    def rollback_warning(self, failures: list[str]) -> None: ...

    def abort_detected(self) -> None: ...

    def force_exit(self) -> None: ...

    def warning(self, message: str) -> None: ...

    def step(self, message: str) -> None:
        """Report one "would do" line; called from a step's simulate."""
