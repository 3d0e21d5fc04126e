# /health endpoint

# eproc_portal/api/endpoints/health.py

import logging

from fastapi import APIRouter, status
from pydantic import BaseModel

from eproc_portal.core.config import settings

logger = logging.getLogger(__name__)
router = APIRouter()


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Perform a Health Check",
    response_description="Returns the health status of the API.",
)
async def health_check():
    """
    Liveness check. Does not touch Supabase so that it stays fast.
    """
    return HealthResponse(status="ok", version=settings.VERSION)
