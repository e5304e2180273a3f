"""
Compensation journal for in-memory adapters.

In-memory repositories have no transaction to roll back, so every mutation
they perform registers an undo action with the journal of the current
context. Leaving a ``compensating()`` block with an exception runs those
actions in reverse order; leaving it normally hands them to the enclosing
block (if any), the same way a savepoint is released into its transaction.
"""
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Callable, Iterator, List, Optional

logger = logging.getLogger(__name__)

Compensation = Callable[[], None]

_current_journal: ContextVar[Optional["CompensationJournal"]] = ContextVar(
    "compensation_journal", default=None
)


class CompensationJournal:
    """Ordered list of undo actions for one unit of work."""

    def __init__(self):
        self._actions: List[Compensation] = []

    def __len__(self) -> int:
        return len(self._actions)

    def record(self, action: Compensation) -> None:
        """Register an undo action."""
        self._actions.append(action)

    def absorb(self, other: "CompensationJournal") -> None:
        """Take over the actions of a finished nested journal."""
        self._actions.extend(other._actions)
        other._actions = []

    def compensate(self) -> None:
        """Run undo actions newest first."""
        actions, self._actions = self._actions, []
        for action in reversed(actions):
            action()
        if actions:
            logger.debug("Compensated %d in-memory mutation(s)", len(actions))


def record_compensation(action: Compensation) -> None:
    """
    Register an undo action with the active journal.

    Outside a ``compensating()`` block a mutation is final and the action
    is dropped.
    """
    journal = _current_journal.get()
    if journal is not None:
        journal.record(action)


@contextmanager
def compensating() -> Iterator[CompensationJournal]:
    """Open a (possibly nested) all-or-nothing block."""
    parent = _current_journal.get()
    journal = CompensationJournal()
    token = _current_journal.set(journal)
    try:
        yield journal
    except BaseException:
        journal.compensate()
        raise
    finally:
        _current_journal.reset(token)
    if parent is not None:
        parent.absorb(journal)
