"""
FastAPI dependency injection for OpenLRS services.
"""

from typing import Annotated

from fastapi import Depends, Request

from openlrs.service.statements import StatementService
from openlrs.store.interface import StatementStore


def get_statement_store(request: Request) -> StatementStore:
    """Get StatementStore singleton from lifespan state."""
    return request.app.state.statement_store


def get_statement_service(request: Request) -> StatementService:
    """Get StatementService singleton from lifespan state."""
    return request.app.state.statement_service


StatementStoreDep = Annotated[StatementStore, Depends(get_statement_store)]
StatementServiceDep = Annotated[StatementService, Depends(get_statement_service)]
