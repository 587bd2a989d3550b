"""
Health check endpoint.
"""

import time
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from openlrs.api.dependencies import StatementStoreDep
from openlrs.shared.exceptions import StoreError

router = APIRouter(tags=["health"])

# Track startup time for uptime
_start_time: Optional[float] = None


def set_start_time(t: float):
    """Set application start time."""
    global _start_time
    _start_time = t


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    store_connected: bool
    statement_count: int
    uptime_seconds: float


@router.get("/health", response_model=HealthResponse)
def health_check(store: StatementStoreDep):
    """
    Service health check.
    Returns status, store connectivity, stored statement count, uptime.
    """
    store_connected = store.health_check()

    statement_count = 0
    if store_connected:
        try:
            statement_count = store.count()
        except StoreError:
            store_connected = False

    uptime_seconds = 0.0
    if _start_time:
        uptime_seconds = round(time.time() - _start_time, 2)

    return HealthResponse(
        status="healthy" if store_connected else "degraded",
        store_connected=store_connected,
        statement_count=statement_count,
        uptime_seconds=uptime_seconds,
    )
