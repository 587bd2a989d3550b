"""
SqliteStatementStore: SQLite + WAL mode durable statement storage.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional

from openlrs.model.filters import FilterCriteria
from openlrs.model.statement import Statement
from openlrs.shared.config import settings
from openlrs.shared.exceptions import (
    MalformedStatementError,
    StatementConflictError,
    StatementEncodingError,
    StatementNotFoundError,
    StatementValidationError,
    StoreUnavailableError,
    StoreWriteError,
)
from openlrs.shared.logging import get_logger
from openlrs.store.interface import Clock, StatementPage, StatementStore, stamp_stored

logger = get_logger(__name__)


class SqliteStatementStore(StatementStore):
    """Append-only statement store on SQLite in WAL mode."""

    def __init__(self, db_path: Optional[Path] = None, timeout: Optional[float] = None):
        self.db_path = Path(db_path or settings.store.db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.timeout = timeout if timeout is not None else settings.store.busy_timeout_seconds

        self._init_database()

    def _init_database(self):
        """Initialize database schema."""
        try:
            with self._get_connection() as conn:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.executescript("""
                    CREATE TABLE IF NOT EXISTS statements (
                        seq INTEGER PRIMARY KEY AUTOINCREMENT,
                        id TEXT NOT NULL UNIQUE,
                        actor_id TEXT,
                        activity_id TEXT,
                        stored TEXT NOT NULL,
                        body TEXT NOT NULL
                    );

                    CREATE INDEX IF NOT EXISTS idx_statements_actor ON statements(actor_id, seq);
                    CREATE INDEX IF NOT EXISTS idx_statements_activity ON statements(activity_id, seq);
                """)
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Cannot initialize statement store at {self.db_path}: {e}") from e

    @contextmanager
    def _get_connection(self):
        """Get database connection; commits on success, rolls back on error."""
        conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _decode(self, row: sqlite3.Row) -> Statement:
        try:
            return Statement.from_json(row["body"])
        except StatementValidationError as e:
            logger.error(f"Stored statement {row['id']} cannot be decoded: {e}")
            raise MalformedStatementError(f"Stored statement {row['id']} is malformed") from e

    def find_by_id(self, statement_id: str) -> Statement:
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT id, body FROM statements WHERE id = ?",
                    (statement_id,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Statement lookup failed: {e}")
            raise StoreUnavailableError(f"Statement store unavailable: {e}") from e

        if row is None:
            raise StatementNotFoundError(statement_id)
        return self._decode(row)

    def find_by_filter(
        self,
        criteria: FilterCriteria,
        limit: int,
        after: Optional[int] = None,
    ) -> StatementPage:
        clauses = ["seq > ?"]
        params: list = [after or 0]
        if criteria.actor is not None:
            clauses.append("actor_id = ?")
            params.append(criteria.actor)
        if criteria.activity is not None:
            clauses.append("activity_id = ?")
            params.append(criteria.activity)

        # One extra row tells us whether another page exists
        params.append(limit + 1)
        query = (
            "SELECT seq, id, body FROM statements WHERE "
            + " AND ".join(clauses)
            + " ORDER BY seq ASC LIMIT ?"
        )

        try:
            with self._get_connection() as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Statement query failed: {e}")
            raise StoreUnavailableError(f"Statement store unavailable: {e}") from e

        page = rows[:limit]
        next_after = page[-1]["seq"] if len(rows) > limit else None
        return StatementPage(
            statements=[self._decode(row) for row in page],
            next_after=next_after,
        )

    def _encode(self, statements: List[Statement]) -> list:
        records = []
        for statement in statements:
            try:
                body = statement.to_json()
            except StatementEncodingError as e:
                raise StoreWriteError(f"Statement {statement.id} could not be encoded") from e
            records.append(
                (statement.id, statement.actor_id, statement.activity_id, statement.stored, body)
            )
        return records

    def save_many(self, statements: List[Statement], clock: Optional[Clock] = None) -> None:
        if clock is None:
            records = self._encode(statements)

        try:
            with self._get_connection() as conn:
                # Write lock held from here until commit
                conn.execute("BEGIN IMMEDIATE")
                if clock is not None:
                    row = conn.execute(
                        "SELECT stored FROM statements ORDER BY seq DESC LIMIT 1"
                    ).fetchone()
                    last_stored = row["stored"] if row is not None else None
                    records = self._encode(stamp_stored(statements, clock, last_stored))
                for record in records:
                    try:
                        conn.execute(
                            """INSERT INTO statements (id, actor_id, activity_id, stored, body)
                               VALUES (?, ?, ?, ?, ?)""",
                            record
                        )
                    except sqlite3.IntegrityError as e:
                        raise StatementConflictError(record[0]) from e
        except sqlite3.Error as e:
            logger.error(f"Statement write failed: {e}")
            raise StoreWriteError(f"Statement store rejected the write: {e}") from e

    def count(self) -> int:
        try:
            with self._get_connection() as conn:
                return conn.execute("SELECT COUNT(*) FROM statements").fetchone()[0]
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Statement store unavailable: {e}") from e

    def health_check(self) -> bool:
        try:
            with self._get_connection() as conn:
                conn.execute("SELECT 1").fetchone()
            return True
        except sqlite3.Error:
            return False
