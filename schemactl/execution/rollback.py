"""
Rollback queue - compensations of completed steps, most recent first.
"""

from dataclasses import dataclass
from typing import Iterator

from .step import Action, Step


@dataclass(frozen=True)
class RollbackEntry:
    """A queued compensation."""
    name: str
    action: Action
    failure_message: str


class RollbackQueue:
    """
    LIFO queue of compensations.

    Entries are prepended as steps complete, so iteration order is the
    unwind order. drain() hands the entries out exactly once; a second
    unwind over the same queue finds nothing to do.
    """

    def __init__(self) -> None:
        self._entries: list[RollbackEntry] = []

    def register(self, step: Step) -> None:
        """Prepend the step's compensation. Steps without one are skipped."""
        if step.compensate is None:
            return
        self._entries.insert(
            0,
            RollbackEntry(
                name=step.name,
                action=step.compensate.action,
                failure_message=step.compensate.failure_message,
            ),
        )

    def drain(self) -> list[RollbackEntry]:
        """Remove and return all entries in unwind order."""
        entries, self._entries = self._entries, []
        return entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RollbackEntry]:
        return iter(list(self._entries))
