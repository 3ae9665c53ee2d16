"""Weight version endpoints for the learning loop."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from aio_checker.engine import AnalysisEngine
from aio_checker.learning.store import InMemoryWeightStore
from aio_checker.scoring.weights import RubricType
from app.api.models.errors import ErrorCodes, ErrorResponse, error_detail
from app.api.models.requests import LearnRequest
from app.api.models.responses import AlgorithmVersionResponse, LearnResponse
from app.api.v1.deps import get_engine, get_learning

router = APIRouter(prefix="/algorithms", tags=["Algorithms"])


def _versioned_store(analysis_engine: AnalysisEngine) -> InMemoryWeightStore:
    store = get_learning(analysis_engine).store
    if not isinstance(store, InMemoryWeightStore):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail(ErrorCodes.LEARNING_DISABLED, "Weight store does not keep version history"),
        )
    return store


@router.get(
    "/{rubric}/versions",
    response_model=list[AlgorithmVersionResponse],
    responses={404: {"model": ErrorResponse, "description": "Learning disabled"}},
    summary="List weight versions",
)
def list_versions(
    rubric: RubricType,
    analysis_engine: AnalysisEngine = Depends(get_engine),
) -> list[AlgorithmVersionResponse]:
    """All stored weight versions of a rubric, oldest first."""
    store = _versioned_store(analysis_engine)
    return [AlgorithmVersionResponse.model_validate(v.to_dict()) for v in store.history(rubric)]


@router.post(
    "/{rubric}/learn",
    response_model=LearnResponse,
    responses={404: {"model": ErrorResponse, "description": "Learning disabled"}},
    summary="Apply buffered rewards to the rubric weights",
)
def learn(
    rubric: RubricType,
    body: LearnRequest | None = None,
    analysis_engine: AnalysisEngine = Depends(get_engine),
) -> LearnResponse:
    """Run the update strategy and activate the resulting version."""
    learning = get_learning(analysis_engine)
    version = learning.update(rubric, force=body.force if body else False)
    if version is not None:
        analysis_engine.resolver.invalidate(rubric)

    return LearnResponse(
        rubric=rubric.value,
        updated=version is not None,
        pending_samples=learning.pending(rubric),
        version=AlgorithmVersionResponse.model_validate(version.to_dict()) if version else None,
    )


@router.post(
    "/versions/{version_id}/activate",
    response_model=AlgorithmVersionResponse,
    responses={404: {"model": ErrorResponse, "description": "Version not found"}},
    summary="Roll back to a stored weight version",
)
def activate_version(
    version_id: str,
    analysis_engine: AnalysisEngine = Depends(get_engine),
) -> AlgorithmVersionResponse:
    """Make an existing version the active one."""
    store = _versioned_store(analysis_engine)
    try:
        version = store.activate(version_id)
    except KeyError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail(ErrorCodes.NOT_FOUND, "Version not found", version_id=version_id),
        ) from e

    analysis_engine.resolver.invalidate(version.rubric)
    return AlgorithmVersionResponse.model_validate(version.to_dict())
