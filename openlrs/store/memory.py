"""
Volatile in-memory statement store.

Statements are kept in insertion order; data is lost when the process exits.
Suitable for tests and short-lived processes.
"""

import threading
from typing import Dict, List, Optional

from openlrs.model.filters import FilterCriteria
from openlrs.model.statement import Statement
from openlrs.shared.exceptions import StatementConflictError, StatementNotFoundError
from openlrs.store.interface import Clock, StatementPage, StatementStore, stamp_stored


class MemoryStatementStore(StatementStore):
    """In-memory, non-persistent StatementStore implementation."""

    def __init__(self) -> None:
        self._statements: List[Statement] = []
        self._by_id: Dict[str, Statement] = {}
        self._lock = threading.Lock()

    def find_by_id(self, statement_id: str) -> Statement:
        with self._lock:
            statement = self._by_id.get(statement_id)
        if statement is None:
            raise StatementNotFoundError(statement_id)
        return statement.model_copy(deep=True)

    def find_by_filter(
        self,
        criteria: FilterCriteria,
        limit: int,
        after: Optional[int] = None,
    ) -> StatementPage:
        with self._lock:
            snapshot = list(self._statements)

        # Sequence numbers are 1-based positions in insertion order
        start = after or 0
        matches = []
        for seq, statement in enumerate(snapshot[start:], start=start + 1):
            if criteria.actor is not None and statement.actor_id != criteria.actor:
                continue
            if criteria.activity is not None and statement.activity_id != criteria.activity:
                continue
            matches.append((seq, statement))
            if len(matches) > limit:
                break

        page = matches[:limit]
        next_after = page[-1][0] if len(matches) > limit else None
        return StatementPage(
            statements=[s.model_copy(deep=True) for _, s in page],
            next_after=next_after,
        )

    def save_many(self, statements: List[Statement], clock: Optional[Clock] = None) -> None:
        with self._lock:
            seen = set()
            for statement in statements:
                if statement.id in self._by_id or statement.id in seen:
                    raise StatementConflictError(statement.id)
                seen.add(statement.id)
            if clock is not None:
                last_stored = self._statements[-1].stored if self._statements else None
                statements = stamp_stored(statements, clock, last_stored)
            for statement in statements:
                stored = statement.model_copy(deep=True)
                self._statements.append(stored)
                self._by_id[stored.id] = stored

    def count(self) -> int:
        with self._lock:
            return len(self._statements)
