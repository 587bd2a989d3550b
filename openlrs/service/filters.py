"""
Translate request parameters into statement filter criteria.
"""

import json
from typing import Optional

from openlrs.model.filters import FilterCriteria
from openlrs.model.statement import Actor
from openlrs.shared.exceptions import StatementValidationError


def resolve_actor_identifier(actor: str) -> str:
    """
    Resolve an actor query value to its canonical identifier.

    Accepts either a raw identifier (``mailto:a@example.org``) or a
    JSON-encoded agent object as xAPI clients send it.
    """
    value = actor.strip()
    if not value.startswith("{"):
        return value
    try:
        data = json.loads(value)
    except json.JSONDecodeError as e:
        raise StatementValidationError(f"actor: invalid JSON agent: {e.msg}") from e
    try:
        identifier = Actor.model_validate(data).identifier
    except ValueError as e:
        raise StatementValidationError(f"actor: invalid agent: {e}") from e
    if identifier is None:
        raise StatementValidationError("actor: agent has no identifier")
    return identifier


def create_statement_filter(
    statement_id: Optional[str] = None,
    actor: Optional[str] = None,
    activity: Optional[str] = None,
) -> FilterCriteria:
    """
    Build FilterCriteria from query parameters, dropping empty values.

    ``statement_id`` is recorded on the criteria but stores do not filter
    on it; callers holding an id use StatementService.get_statement.
    """
    return FilterCriteria(
        actor=resolve_actor_identifier(actor) if actor else None,
        activity=activity.strip() if activity else None,
        statement_id=statement_id or None,
    )
