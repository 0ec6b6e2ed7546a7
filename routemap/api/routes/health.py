"""Health & Readiness Probes — liveness and readiness endpoints.

Invariants:
    - GET /api/v1/health/ always returns 200 if process is up (liveness)
    - GET /api/v1/health/ready returns 503 if a configured database is unreachable

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from
      load balancer
    - No database configured → ready (requests run untransacted by design)
"""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {"status": "healthy", "service": "routemap"}


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness probe — includes database connectivity when one is configured."""
    provider = getattr(request.app.state, "transaction_provider", None)
    if provider is None:
        return {"status": "ready", "checks": {"database": "not_configured"}}
    if not await provider.health_check():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {"status": "ready", "checks": {"database": "healthy"}}
