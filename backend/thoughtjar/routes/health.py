"""
ThoughtJar Backend — Health Check Route
=========================================

What:  Public health endpoint for container probes and load balancers.
How:   Runs SELECT 1 against the engine and asks the identity verifier
       whether it can currently check tokens.

Status levels:
    - healthy:   database reachable and verifier ready
    - degraded:  database reachable, verifier unconfigured or its keys
                 unavailable (every resource request would get 401)
    - unhealthy: database unreachable
"""

import logging
import time

from fastapi import APIRouter, Depends
from sqlalchemy import text

from thoughtjar import __version__
from thoughtjar.database import engine
from thoughtjar.middleware.auth import get_identity_verifier
from thoughtjar.schemas.common import HealthResponse
from thoughtjar.services.identity_base import IdentityVerifier

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Identity Provider ───────────────────────────────────────────
    if not verifier.is_configured:
        identity_status = "not_configured"
    elif await verifier.health_check():
        identity_status = "available"
    else:
        identity_status = "unavailable"

    if identity_status != "available" and overall == "healthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        identity_provider=identity_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
