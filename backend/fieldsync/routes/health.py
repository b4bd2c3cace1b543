"""
FieldSync Backend: Health Check Routes
=======================================

What:  GET / (plain-text banner) and GET /health (datastore probe).
Who:   Render/Docker health checks, load balancers, humans with a browser.

Status levels:
    - healthy:   datastore answers SELECT 1 (HTTP 200)
    - unhealthy: datastore unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Response
from fastapi.responses import PlainTextResponse
from sqlalchemy import text

from fieldsync import __version__
from fieldsync.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root() -> str:
    return "FieldSync backend conectado a la base de datos y funcionando."


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Datastore unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    """
    Probe the datastore with SELECT 1 on a fresh pooled connection.

    Returns HTTP 503 when the probe fails so load balancers stop routing here.
    """
    db_status = "connected"
    overall = "healthy"

    try:
        from fieldsync.database import init_engine
        async with init_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", str(e))

    response.headers["Cache-Control"] = "no-store"
    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
