"""FastAPI application factory for nomadops.

Usage::

    from nomadops.api.app import create_app

    app = create_app(
        change_log=change_log,
        nomad_address=client.address,
        watcher=watcher,
    )

The factory is used by both the production bootstrap (``nomadops.app``)
and unit tests.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from nomadops.api.routes import router
from nomadops.api.schemas import ErrorResponse
from nomadops.collector.change_log import JobChangeLog

_log = structlog.get_logger(component="api.app")

_API_PREFIX = "/api/v1"


def create_app(
    change_log: JobChangeLog,
    nomad_address: str = "",
    watcher: Any = None,
) -> FastAPI:
    """Create and configure the nomadops status API.

    Args:
        change_log:    JobChangeLog fed by the watcher.
        nomad_address: Address of the Nomad agent, reported by ``/status``.
        watcher:       Optional JobChangeWatcher; None when watching is disabled.
    """
    from nomadops import __version__

    app = FastAPI(
        title="nomadops",
        summary="GitOps reconciliation status for Nomad",
        version=__version__,
        docs_url="/api/v1/docs",
        redoc_url="/api/v1/redoc",
        openapi_url="/api/v1/openapi.json",
    )

    app.state.change_log = change_log
    app.state.nomad_address = nomad_address
    app.state.watcher = watcher

    app.include_router(router, prefix=_API_PREFIX)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = exc.errors()
        first_msg = str(errors[0].get("msg", "")) if errors else ""
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error="INVALID_REQUEST", detail=first_msg).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions; never expose stack traces."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                detail="An unexpected error occurred.",
            ).model_dump(),
        )

    return app
