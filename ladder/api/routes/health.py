"""Health & Readiness Checks — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 unless the database answers, the ladder
      service is wired and the spoiler unlock client is still open
    - Every readiness answer lists each check, so a 503 names what failed

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from load balancer
    - Singletons read at call time: they are only set once the lifespan ran
    - Unlock client reported but only its closed state fails readiness: the remote
      API being slow must not pull the intake out of rotation
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from ladder.infrastructure import database
from ladder.infrastructure.unlock_client import SpoilerUnlockClient
from ladder.services import ladder_service as ladder_service_module

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Liveness check."""
    return {"status": "healthy", "service": "race-ladder", "version": "1.0.0"}


@router.get("/ready")
async def readiness_check():
    """Readiness check over the database, the service wiring and the unlock client."""
    checks = {}
    failures = []

    manager = database.db_manager
    if manager and await manager.health_check():
        checks["database"] = "healthy"
    else:
        checks["database"] = "unavailable"
        failures.append("database_unavailable")

    service = ladder_service_module.ladder_service
    if service is None:
        checks["ladder_service"] = "not_initialized"
        failures.append("ladder_service_not_initialized")
    else:
        checks["ladder_service"] = "ready"
        checks["pending_unlocks"] = service.unlock_scheduler.pending
        if isinstance(service.unlocker, SpoilerUnlockClient):
            if service.unlocker.is_closed:
                checks["unlock_client"] = "closed"
                failures.append("unlock_client_closed")
            else:
                checks["unlock_client"] = "open"

    if failures:
        logger.warning(f"Readiness check failed: {', '.join(failures)}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reasons": failures, "checks": checks},
        )
    return {"status": "ready", "checks": checks}
