"""Health check endpoint."""
from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from aio_checker.config.settings import VERSION
from aio_checker.engine import AnalysisEngine
from app.api.models.responses import HealthResponse
from app.api.v1.deps import get_engine

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check API health and service status.",
)
def health_check(analysis_engine: AnalysisEngine = Depends(get_engine)) -> HealthResponse:
    """Return API health status."""
    checks = {
        "engine": analysis_engine is not None,
        "persistence": analysis_engine.persistence is not None,
        "learning": analysis_engine.learning is not None,
    }
    overall_status = "healthy" if checks["engine"] else "unhealthy"
    if overall_status == "healthy" and not all(checks.values()):
        overall_status = "degraded"

    return HealthResponse(
        status=overall_status,
        version=VERSION,
        timestamp=datetime.now(UTC),
        checks=checks,
    )
