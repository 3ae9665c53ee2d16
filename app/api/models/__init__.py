"""API Pydantic models."""
from app.api.models.errors import ErrorCodes, ErrorDetail, ErrorResponse, error_detail
from app.api.models.requests import AnalyzeRequest, LearnRequest
from app.api.models.responses import (
    AlgorithmVersionResponse,
    AnalysisResponse,
    HealthResponse,
    LearnResponse,
)

__all__ = [
    "AnalyzeRequest",
    "LearnRequest",
    "AnalysisResponse",
    "AlgorithmVersionResponse",
    "LearnResponse",
    "HealthResponse",
    "ErrorResponse",
    "ErrorDetail",
    "ErrorCodes",
    "error_detail",
]
