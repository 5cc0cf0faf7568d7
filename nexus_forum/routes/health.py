"""
Nexus Forum Backend — Health Check Route
=========================================

What:  Health check endpoint (/health, also /api/health) for monitoring
       and load balancer probes.
How:   Counts categories through the active store. A store that cannot
       answer marks the service unhealthy.
Who:   Called by Docker health checks, load balancers, and monitoring systems.

Status levels:
    - healthy:   store reachable ({"database": "connected", "categories": n})
    - unhealthy: store raised   ({"database": "error", "error": "..."})

The raw error text is only included when EXPOSE_ERROR_DETAILS is enabled.
"""

import logging

from fastapi import APIRouter, Depends

from nexus_forum.config import settings
from nexus_forum.dependencies import get_store
from nexus_forum.schemas.common import HealthResponse
from nexus_forum.services.store_base import ForumStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    response_model_exclude_none=True,
    summary="Service health check",
)
@router.get(
    "/api/health",
    response_model=HealthResponse,
    response_model_exclude_none=True,
    include_in_schema=False,
)
async def health_check(store: ForumStore = Depends(get_store)) -> HealthResponse:
    try:
        categories = await store.health_check()
    except Exception as e:
        logger.warning("Health check: store unreachable: %s", str(e))
        return HealthResponse(
            status="unhealthy",
            database="error",
            error=str(e) if settings.expose_error_details else None,
        )
    return HealthResponse(status="healthy", database="connected", categories=categories)
