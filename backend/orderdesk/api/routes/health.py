"""Health endpoint."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from orderdesk.api.schemas import HealthResponse
from orderdesk.utils.time import utc_now

log = structlog.get_logger()

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Report whether the order database answers."""
    db_status = "healthy"
    try:
        async with request.app.state.session_factory() as session:
            await session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        db_status = "unhealthy"
        log.error("health_check_failed", component="database", error=str(exc))

    return HealthResponse(
        status="operational" if db_status == "healthy" else "degraded",
        database=db_status,
        timestamp=utc_now(),
    )
