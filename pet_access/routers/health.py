"""Health check endpoints for container orchestration."""

from typing import Any

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=None)
async def health_check(request: Request) -> Response:
    """
    Health check endpoint with grant store status.

    Returns:
        {"status": "healthy", "grant_store": "connected"} when the store is reachable
        {"status": "degraded", "grant_store": "disconnected"} otherwise
    """
    store = request.app.state.grant_service.store
    if await store.check_connection():
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"status": "healthy", "grant_store": "connected"},
        )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "degraded", "grant_store": "disconnected"},
    )


@router.get("/health/live")
async def liveness_probe() -> dict[str, Any]:
    """
    Liveness probe.

    Returns success if the application process is running. Does not
    check the grant store.
    """
    return {"status": "alive"}
