"""API dependencies."""
from __future__ import annotations

from fastapi import HTTPException, status

from aio_checker.engine import AnalysisEngine, engine
from aio_checker.learning.loop import LearningLoop
from app.api.models.errors import ErrorCodes, error_detail


def get_engine() -> AnalysisEngine:
    """The process-wide analysis engine (overridable in tests)."""
    return engine


def get_learning(analysis_engine: AnalysisEngine) -> LearningLoop:
    """The engine's learning loop, or 404 when learning is disabled."""
    if analysis_engine.learning is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail(ErrorCodes.LEARNING_DISABLED, "Weight learning is not enabled"),
        )
    return analysis_engine.learning
