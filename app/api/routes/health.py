from __future__ import annotations

from fastapi import APIRouter

from app.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe for load balancers and uptime checks.

    Sits outside the ``/api`` prefix so probes never consume a client's
    rate-limit budget.
    """

    return {"status": "ok", "environment": settings.app_env}
