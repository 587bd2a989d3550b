"""
Abstract base class every statement store backend implements.

Stores are append-only: a saved statement is never altered or removed, and
ids are unique across the store. When a clock is handed to ``save_many`` the
store stamps ``stored`` while it holds its write lock, so ``stored`` never
decreases along insertion order.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

from openlrs.model.filters import FilterCriteria
from openlrs.model.statement import Statement

Clock = Callable[[], datetime]


def format_instant(value: datetime) -> str:
    """ISO-8601 UTC instant with millisecond precision, e.g. 2014-06-01T10:00:00.000Z."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def stamp_stored(
    statements: List[Statement],
    clock: Clock,
    last_stored: Optional[str],
) -> List[Statement]:
    """
    Copies of ``statements`` with ``stored`` set from ``clock``.

    The value is clamped to ``last_stored`` so a clock step backwards cannot
    make ``stored`` run against insertion order. Formatted instants compare
    correctly as strings.
    """
    stored = format_instant(clock())
    if last_stored is not None and stored < last_stored:
        stored = last_stored
    return [s.model_copy(update={"stored": stored}) for s in statements]


@dataclass
class StatementPage:
    """Statements in store order plus the sequence to resume after, if any."""
    statements: List[Statement] = field(default_factory=list)
    next_after: Optional[int] = None


class StatementStore(ABC):
    """Contract for statement persistence backends."""

    @abstractmethod
    def find_by_id(self, statement_id: str) -> Statement:
        """
        Return the statement with the given id.

        Raises:
            StatementNotFoundError if no such statement exists
            MalformedStatementError if the stored record cannot be decoded
            StoreUnavailableError if the store cannot be read
        """
        ...

    @abstractmethod
    def find_by_filter(
        self,
        criteria: FilterCriteria,
        limit: int,
        after: Optional[int] = None,
    ) -> StatementPage:
        """
        Return up to ``limit`` statements matching every set criterion.

        Statements come back in insertion order, starting after sequence
        ``after``. ``next_after`` is set only when more matches remain.
        """
        ...

    @abstractmethod
    def save_many(self, statements: List[Statement], clock: Optional[Clock] = None) -> None:
        """
        Persist completed statements, all or none.

        With ``clock`` set, ``stored`` is stamped on every statement inside
        the store's write lock, clamped to the last stored value.

        Raises:
            StatementConflictError if any id is already stored
            StoreWriteError if the write was not durably accepted
        """
        ...

    def save(self, statement: Statement, clock: Optional[Clock] = None) -> None:
        """Persist a single completed statement."""
        self.save_many([statement], clock=clock)

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored statements."""
        ...

    def health_check(self) -> bool:
        """Return True when the store is reachable."""
        return True
