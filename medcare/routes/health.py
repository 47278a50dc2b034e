"""
MedCare Backend: Health Check Route
=====================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs SELECT 1 against the database and reads the payment gateway's
       circuit state (no call to Stripe, so probes cost nothing).

Status levels:
    healthy:   database reachable, gateway circuit closed (HTTP 200)
    degraded:  database reachable, gateway circuit open or unconfigured (HTTP 200)
    unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text

from medcare import __version__
from medcare.database import engine
from medcare.dependencies import get_payment_gateway
from medcare.schemas.common import HealthResponse
from medcare.services.payment_base import PaymentGateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
    summary="Service health check",
)
async def health_check(gateway: PaymentGateway = Depends(get_payment_gateway)):
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    gateway_status = gateway.status()
    if gateway_status != "available" and overall == "healthy":
        overall = "degraded"

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        payment_gateway=gateway_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
