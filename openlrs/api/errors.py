"""
Map OpenLRS exceptions to HTTP responses.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from openlrs.shared.exceptions import (
    LRSError,
    MalformedStatementError,
    StatementConflictError,
    StatementEncodingError,
    StatementNotFoundError,
    StatementValidationError,
    StoreError,
)
from openlrs.shared.logging import get_logger

logger = get_logger(__name__)

STATUS_BY_ERROR = {
    StatementValidationError: 400,
    StatementNotFoundError: 404,
    StatementConflictError: 409,
    MalformedStatementError: 500,
    StatementEncodingError: 500,
    StoreError: 503,
}


def status_for(exc: LRSError) -> int:
    """HTTP status for an OpenLRS error (500 when unmapped)."""
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return 500


async def lrs_error_handler(request: Request, exc: LRSError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(
            f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}",
            extra={"status_code": status_code},
        )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"detail": details})


def register_exception_handlers(app: FastAPI):
    """Install the error handlers on ``app``."""
    app.add_exception_handler(LRSError, lrs_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
