import os

from fastapi import APIRouter, Request

from server.models.responses import HealthResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health(request: Request) -> HealthResponse:
    """Liveness probe; does not require authentication."""
    document_store = request.app.state.document_store
    return HealthResponse(
        status="ok",
        version=os.getenv("APP_VERSION", "unknown"),
        documents=len(await document_store.list_all()),
    )
