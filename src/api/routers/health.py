"""Health check endpoints."""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from services.exceptions import StoreUnavailableError
from services.storage import Stores, get_stores


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    storage: str
    database: str


@router.get("/health", response_model=HealthResponse)
async def health_check(stores: Stores = Depends(get_stores)) -> HealthResponse:
    """Check application and storage health. Never fails; reports degraded instead."""
    db_status = "healthy"
    try:
        await stores.notes.ping()
        await stores.users.ping()
    except StoreUnavailableError:
        logger.exception("Storage health check failed")
        db_status = "unhealthy"

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        storage=stores.backend,
        database=db_status,
    )
