"""
OpenLRS FastAPI application.
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from openlrs.api.errors import register_exception_handlers
from openlrs.api.middleware.rate_limit import RateLimitMiddleware
from openlrs.api.routes import health, statements
from openlrs.service.statements import StatementService
from openlrs.shared.config import LRSSettings, settings
from openlrs.shared.logging import get_logger
from openlrs.store.factory import create_store
from openlrs.store.interface import StatementStore

logger = get_logger(__name__)

XAPI_VERSION_HEADER = "X-Experience-API-Version"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    logger.info("Starting OpenLRS API")
    app_settings: LRSSettings = app.state.settings

    # A store handed to create_app wins over the configured backend
    store = getattr(app.state, "statement_store", None)
    if store is None:
        store = create_store(app_settings.store)
    app.state.statement_store = store
    app.state.statement_service = StatementService(store, app_settings.statements)

    health.set_start_time(time.time())

    logger.info("OpenLRS API ready")
    yield

    logger.info("OpenLRS API stopped")


def create_app(
    store: Optional[StatementStore] = None,
    app_settings: Optional[LRSSettings] = None,
    rate_limit_rpm: Optional[int] = None,
    trust_rate_limit_key_header: Optional[bool] = None,
) -> FastAPI:
    """Create and configure FastAPI application."""
    app_settings = app_settings or settings
    app = FastAPI(
        title="OpenLRS",
        description="Learning Record Store - xAPI statement endpoint",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    if store is not None:
        app.state.statement_store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[XAPI_VERSION_HEADER],
    )

    # Rate limiting (after CORS so CORS headers applied first)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_minute=rate_limit_rpm or app_settings.api.rate_limit_requests_per_minute,
        trust_key_header=(
            trust_rate_limit_key_header
            if trust_rate_limit_key_header is not None
            else app_settings.api.trust_rate_limit_key_header
        ),
    )

    @app.middleware("http")
    async def add_xapi_version(request: Request, call_next):
        response = await call_next(request)
        response.headers[XAPI_VERSION_HEADER] = app_settings.statements.xapi_version
        return response

    register_exception_handlers(app)

    app.include_router(statements.router)
    app.include_router(health.router)

    @app.get("/")
    async def root():
        return {"service": "openlrs", "status": "running"}

    return app


app = create_app()


def main():
    """CLI entry point for uvicorn."""
    import uvicorn

    uvicorn.run(
        "openlrs.api.app:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
