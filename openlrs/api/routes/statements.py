"""
xAPI statement resource.
See https://github.com/adlnet/xAPI-Spec/blob/master/xAPI-Communication.md#stmtres
"""

import json
from typing import Any, List, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Body, Query, Request
from fastapi.responses import Response

from openlrs.api.dependencies import StatementServiceDep
from openlrs.model.statement import Statement
from openlrs.service.filters import create_statement_filter
from openlrs.shared.exceptions import StatementValidationError
from openlrs.shared.logging import get_logger

logger = get_logger(__name__)

XAPI_CONTENT_TYPE = "application/json; charset=utf-8"

router = APIRouter(prefix="/xAPI/statements", tags=["statements"])


class XAPIResponse(Response):
    """Response carrying text already in canonical JSON form."""
    media_type = XAPI_CONTENT_TYPE


def _more_url(request: Request, cursor: str) -> str:
    """Relative URL fetching the next page of the current query."""
    params = dict(request.query_params)
    params["cursor"] = cursor
    return f"{request.url.path}?{urlencode(params)}"


@router.get("", response_class=XAPIResponse)
def get_statements(
    request: Request,
    service: StatementServiceDep,
    statement_id: Optional[str] = Query(default=None, alias="statementId"),
    actor: Optional[str] = Query(default=None),
    activity: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    cursor: Optional[str] = Query(default=None),
):
    """
    Get one statement by statementId, or a page of statements filtered by
    actor and/or activity.
    """
    if statement_id is not None:
        if actor or activity or cursor:
            raise StatementValidationError(
                "statementId cannot be combined with actor, activity or cursor"
            )
        statement = service.get_statement(statement_id)
        return XAPIResponse(content=statement.to_json())

    logger.debug(f"getStatements with actor: {actor} and activity: {activity}")
    criteria = create_statement_filter(actor=actor, activity=activity)
    result = service.get_statements(criteria, limit=limit, cursor=cursor)
    if result.more:
        result = result.model_copy(update={"more": _more_url(request, result.more)})
    return XAPIResponse(content=result.to_json())


@router.post("", response_class=XAPIResponse)
def post_statements(service: StatementServiceDep, body: Any = Body(...)):
    """Store one statement or an array of statements; returns their ids."""
    if isinstance(body, list):
        statements = [Statement.from_dict(item) for item in body]
    else:
        statements = [Statement.from_dict(body)]
    ids: List[str] = service.post_statements(statements)
    return XAPIResponse(content=json.dumps(ids))
