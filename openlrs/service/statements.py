"""
StatementService: completes statements on write and resolves filtered reads.
"""

import base64
import binascii
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Union

from pydantic import AwareDatetime, TypeAdapter, ValidationError

from openlrs.model.filters import FilterCriteria
from openlrs.model.statement import Actor, Statement, StatementResult
from openlrs.shared.config import StatementConfig, settings
from openlrs.shared.exceptions import StatementValidationError
from openlrs.shared.logging import get_logger, log_with_context
from openlrs.store.interface import Clock, StatementStore

logger = get_logger(__name__)

_instant_adapter = TypeAdapter(AwareDatetime)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_statement_id(value: str) -> str:
    """
    Canonical lowercase hyphenated form of a UUID statement id.

    Raises:
        StatementValidationError if ``value`` is not a UUID
    """
    try:
        return str(uuid.UUID(value))
    except (ValueError, TypeError) as e:
        raise StatementValidationError(f"id: not a UUID: {value}") from e


def validate_instant(value: str) -> None:
    """
    Require a full ISO-8601 date-time with a UTC offset.

    Date-only values and naive date-times are rejected.
    """
    if len(value) < 11 or value[10] not in "Tt":
        raise StatementValidationError(f"timestamp: not an ISO-8601 instant: {value}")
    try:
        _instant_adapter.validate_python(value)
    except ValidationError as e:
        raise StatementValidationError(f"timestamp: not an ISO-8601 instant: {value}") from e


def encode_cursor(after: int) -> str:
    return base64.urlsafe_b64encode(f"seq:{after}".encode()).decode().rstrip("=")


def decode_cursor(cursor: str) -> int:
    """
    Decode a continuation token produced by encode_cursor.

    Raises:
        StatementValidationError if the token is not one of ours
    """
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        raw = base64.urlsafe_b64decode(padded.encode()).decode()
        prefix, _, value = raw.partition(":")
        after = int(value)
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise StatementValidationError(f"Invalid cursor: {cursor}") from e
    if prefix != "seq" or after < 0:
        raise StatementValidationError(f"Invalid cursor: {cursor}")
    return after


def validate_statement(statement: Statement) -> None:
    """
    Check the fields a statement needs before it may be stored.

    Raises:
        StatementValidationError describing the first problem found
    """
    for field in ("actor", "verb", "object"):
        if getattr(statement, field) is None:
            raise StatementValidationError(f"{field}: field required")

    if statement.actor.identifier is None:
        if statement.actor.object_type != "Group" or not statement.actor.member:
            raise StatementValidationError(
                "actor: an agent needs one of mbox, mbox_sha1sum, openid or account"
            )

    if not statement.verb.id:
        raise StatementValidationError("verb.id: must not be empty")

    if isinstance(statement.object, Actor) and statement.object.identifier is None:
        raise StatementValidationError("object: agent object has no identifier")
    if not isinstance(statement.object, Actor) and not statement.object.id:
        raise StatementValidationError("object.id: must not be empty")

    if statement.id:
        normalize_statement_id(statement.id)

    if statement.timestamp:
        validate_instant(statement.timestamp)


class StatementService:
    """
    Mediates between the request layer and the statement store.

    Holds no statement state between calls; the store is the only place
    statements live.
    """

    def __init__(
        self,
        store: StatementStore,
        config: Optional[StatementConfig] = None,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.config = config or settings.statements
        self.clock = clock or utc_now

    def get_statement(self, statement_id: str) -> Statement:
        """
        Look up one statement by id.

        Raises:
            StatementValidationError if the id is empty
            StatementNotFoundError if no statement has this id
            MalformedStatementError / StoreUnavailableError from the store
        """
        if not statement_id or not statement_id.strip():
            raise StatementValidationError("statementId: must not be empty")
        try:
            statement_id = normalize_statement_id(statement_id)
        except StatementValidationError:
            # Not a UUID, so nothing can be stored under it; the store reports not-found
            pass
        log_with_context(logger, logging.DEBUG, "Fetching statement",
                         statement_id=statement_id, action="get")
        return self.store.find_by_id(statement_id)

    def get_statements(
        self,
        criteria: FilterCriteria,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> StatementResult:
        """
        Return one page of statements matching every set criterion.

        ``more`` on the result carries the cursor for the next page and is
        absent on the last one.
        """
        if limit is None:
            limit = self.config.default_page_size
        if limit < 1:
            raise StatementValidationError("limit: must be a positive integer")
        limit = min(limit, self.config.max_page_size)
        after = decode_cursor(cursor) if cursor else None

        log_with_context(logger, logging.DEBUG, "Querying statements",
                         actor=criteria.actor, action="query",
                         activity=criteria.activity, limit=limit)

        page = self.store.find_by_filter(criteria, limit=limit, after=after)
        more = encode_cursor(page.next_after) if page.next_after is not None else None
        return StatementResult(statements=page.statements, more=more)

    def post_statements(
        self,
        statements: Union[Statement, Sequence[Statement]],
    ) -> List[str]:
        """
        Complete and store one or more statements.

        Every statement is validated before the store is touched, and the
        batch is saved all-or-nothing. Returns the ids in submission order.
        """
        if isinstance(statements, Statement):
            statements = [statements]
        statements = list(statements)
        if not statements:
            raise StatementValidationError("No statements submitted")

        supplied_ids = set()
        for statement in statements:
            validate_statement(statement)
            if statement.id:
                statement_id = normalize_statement_id(statement.id)
                if statement_id in supplied_ids:
                    raise StatementValidationError(f"id: duplicate in batch: {statement.id}")
                supplied_ids.add(statement_id)

        completed = [self._complete(statement) for statement in statements]

        # The store stamps ``stored`` under its write lock
        self.store.save_many(completed, clock=self.clock)

        for statement in completed:
            log_with_context(logger, logging.INFO, "Statement stored",
                             statement_id=statement.id, actor=statement.actor_id,
                             action="post")
        return [statement.id for statement in completed]

    def post_statement(self, statement: Statement) -> List[str]:
        """Store a single statement; returns a one-element id list."""
        return self.post_statements([statement])

    def _complete(self, statement: Statement) -> Statement:
        """Copy of ``statement`` with id, version and authority filled in."""
        update = {
            "id": normalize_statement_id(statement.id) if statement.id else str(uuid.uuid4()),
            "version": statement.version or self.config.xapi_version,
        }
        if not statement.authority and self.config.default_authority:
            update["authority"] = self.config.default_authority
        return statement.model_copy(update=update, deep=True)
