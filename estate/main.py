"""FastAPI application instance and startup hooks."""
from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from estate.core import get_logger, get_settings
from estate.core.exceptions import (
    LedgerError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ValidationError,
)
from estate.core.logger import LoggingConfig, init_logging, shutdown_logging
from estate.routers import ledger_router
from estate.web.dependencies import get_tenant_scope

LOGGER = get_logger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[LedgerError], int], ...] = (
    (ValidationError, 422),
    (NotFoundError, 404),
    (PermissionDeniedError, 403),
    (PersistenceError, 502),
)


def status_for(exc: LedgerError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        LOGGER.info("%s %s rejected (%s): %s", request.method, request.url.path, status_code, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@asynccontextmanager
async def lifespan(app: FastAPI):
    scope = get_tenant_scope()
    if not scope.fully_enforced:
        LOGGER.warning("Running with legacy tables: %s", ", ".join(sorted(scope.legacy_tables)))
    try:
        yield
    finally:
        LOGGER.info("Shutting down")
        shutdown_logging()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    init_logging(LoggingConfig.from_settings(settings))

    app = FastAPI(title="Tea Estate Wage Ledger", version="0.1.0", lifespan=lifespan)
    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.include_router(ledger_router)

    @app.get("/health", include_in_schema=False)
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


def run() -> None:
    """Serve the API with uvicorn; host and port come from ``API_HOST``/``API_PORT``."""

    import uvicorn

    uvicorn.run(
        "estate.main:app",
        host=os.getenv("API_HOST", "127.0.0.1"),
        port=int(os.getenv("API_PORT", "8000")),
    )


app = create_app()
