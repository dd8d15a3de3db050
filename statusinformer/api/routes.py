"""Liveness and readiness routes."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from statusinformer.api.schemas import ErrorResponse, HealthResponse, ReadinessResponse

router = APIRouter()


@router.get("/healthz", response_model=HealthResponse)
async def healthz() -> HealthResponse:
    """Liveness: the process is up and serving."""
    return HealthResponse(status="ok")


@router.get(
    "/readyz",
    response_model=ReadinessResponse,
    responses={503: {"model": ErrorResponse}},
)
async def readyz(request: Request) -> ReadinessResponse | JSONResponse:
    """Readiness: 200 once the watch cache has synced, 503 before and after."""
    informer = request.app.state.informer
    resource = request.app.state.resource
    if informer is None or not informer.synced:
        state = informer.state.value if informer is not None else "not_started"
        return JSONResponse(
            status_code=503,
            content=ErrorResponse(
                error="NOT_READY",
                detail=f"caches for {resource} not synced (pipeline {state})",
            ).model_dump(),
        )
    return ReadinessResponse(status="ready", resource=resource, pipeline=informer.state.value)
