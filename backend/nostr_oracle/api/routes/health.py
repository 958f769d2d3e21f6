"""Health & Readiness Probes — liveness and readiness endpoints.

Invariants:
    - GET /api/v1/health/ always returns 200 if the process is up (liveness)
    - GET /api/v1/health/ready returns 503 if the database is unreachable (readiness)

Design Decisions:
    - Separate liveness/readiness: liveness failures restart the container, readiness
      failures only remove it from the load balancer
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from nostr_oracle.api.dependencies import get_oracle
from nostr_oracle.services.context import OracleContext

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    return {"status": "healthy", "service": "nostr-oracle", "version": "1.0.0"}


@router.get("/ready")
async def readiness_check(oracle: OracleContext = Depends(get_oracle)):
    """Readiness probe — includes database connectivity."""
    db_ok = await oracle.db.health_check() if oracle.db else False
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {"status": "ready", "checks": {"database": "healthy"}}
