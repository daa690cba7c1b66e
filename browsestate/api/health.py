"""
Service status endpoints.

`/health` answers as long as the process serves requests. `/ready` also
requires both storage tables to answer, since resolving a page load reads
snapshots and preferences from them.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from browsestate.config import settings
from browsestate.db import count_storage_rows
from browsestate.db.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Liveness response."""

    status: str
    service: str


class ReadinessResponse(BaseModel):
    """Readiness response with the state of the storage tables."""

    status: str
    storage_rows: dict[str, int] = Field(
        default_factory=dict,
        description="Rows per storage table; empty when storage is unreachable",
    )


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="healthy", service=settings.app_name)


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ReadinessResponse:
    """
    Readiness probe.

    Counts the rows of the snapshot and preference tables. Returns 503
    when either query fails.
    """
    try:
        counts = await count_storage_rows(session)
    except SQLAlchemyError as e:
        logger.warning("storage_not_ready", extra={"reason": str(e)})
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(status="not ready")
    return ReadinessResponse(status="ready", storage_rows=counts)
