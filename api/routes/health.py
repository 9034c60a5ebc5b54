"""
Health check and monitoring routes
"""

import asyncio
import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import structlog

from mealgen.orchestrator import RequestOrchestrator
from ..dependencies import get_orchestrator
from ..models import HealthResponse

logger = structlog.get_logger()
router = APIRouter(tags=["Health & Monitoring"])

# Track service start time for uptime calculation
SERVICE_START_TIME = time.time()
HEALTH_CHECK_TIMEOUT = 10.0


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request, orchestrator: RequestOrchestrator = Depends(get_orchestrator)):
    """
    Provider health plus cache and usage statistics.
    Healthy when every provider answers, degraded when some do, 503 when none do.
    """
    start_time = time.time()
    settings = request.app.state.settings

    try:
        checks = await asyncio.wait_for(orchestrator.health_check(), timeout=HEALTH_CHECK_TIMEOUT)
    except asyncio.TimeoutError:
        logger.warning("Health check timeout")
        checks = {name: False for name in orchestrator.provider_names}

    healthy = sum(1 for ok in checks.values() if ok)
    if checks and healthy == len(checks):
        status = "healthy"
    elif healthy:
        status = "degraded"
    else:
        status = "unhealthy"

    stats = orchestrator.get_stats()
    response = HealthResponse(
        status=status,
        service="mealgen-ai-service",
        version=settings.app_version,
        checks=checks,
        cache=stats["cache"],
        usage=stats["usage"],
        uptime=round(time.time() - SERVICE_START_TIME, 2),
    )

    logger.info(
        "Health check completed",
        status=status,
        checks=checks,
        check_duration=round(time.time() - start_time, 3),
    )

    return JSONResponse(
        status_code=503 if status == "unhealthy" else 200,
        content=response.model_dump(mode="json", by_alias=True),
    )


@router.get("/ping")
async def ping():
    """Simple ping endpoint for basic connectivity testing"""
    return {"status": "ok", "timestamp": time.time()}
