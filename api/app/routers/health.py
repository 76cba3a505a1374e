"""
Health router: GET /health endpoint.

Used by liveness/readiness probes and load balancer health checks.
"""

from fastapi import APIRouter

from app.core.telemetry import SERVICE_NAME

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Return a simple health status for probes."""
    return {"status": "healthy", "service": SERVICE_NAME}
