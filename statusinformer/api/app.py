"""FastAPI application factory for the health endpoints.

Usage::

    from statusinformer.api.app import create_app

    app = create_app(informer=informer, resource="clusters.v1beta1.cluster.x-k8s.io")

Used by the production bootstrap (``statusinformer.app``) and by tests.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from statusinformer.api.routes import router
from statusinformer.api.schemas import ErrorResponse
from statusinformer.observability.logging import get_logger

_log = get_logger("api.app")


def create_app(informer: Any, resource: str = "") -> FastAPI:
    """Create the health API.

    Args:
        informer: StatusInformer whose ``synced`` / ``state`` back ``/readyz``.
        resource: Watched resource, echoed in readiness responses.
    """
    from statusinformer import __version__

    app = FastAPI(
        title="status-informer",
        summary="Status condition event informer",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.state.informer = informer
    app.state.resource = resource

    app.include_router(router)

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
