"""Analysis endpoint."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from aio_checker.engine import AnalysisEngine
from aio_checker.fetcher.html_fetcher import FetchError, fetch_html
from aio_checker.scoring.weights import ContentProfile
from app.api.models.errors import ErrorCodes, ErrorResponse, error_detail
from app.api.models.requests import AnalyzeRequest
from app.api.models.responses import AnalysisResponse
from app.api.v1.deps import get_engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Analysis"])

_PROFILES: dict[str, ContentProfile | None] = {
    "auto": None,
    "blog": ContentProfile.BLOG,
    "site": ContentProfile.GENERAL_SITE,
}


@router.post(
    "/analyze",
    response_model=AnalysisResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid URL"},
        502: {"model": ErrorResponse, "description": "URL not accessible"},
    },
    summary="Analyze a page",
    description="""
Score a page for SEO, AEO and GEO, estimate per-model AI citation
probability (ChatGPT, Perplexity, Grok, Gemini, Claude) and analyze its
outbound citations.

Send either `url` (fetched server-side) or raw `html`.
`weight_overrides` adjusts the AIO weights for this request only.
""",
)
def analyze_page(
    body: AnalyzeRequest,
    analysis_engine: AnalysisEngine = Depends(get_engine),
) -> AnalysisResponse:
    """Run the full analysis synchronously."""
    url_str = str(body.url) if body.url is not None else ""

    if body.html:
        html = body.html
    else:
        try:
            html = fetch_html(url_str)
        except FetchError as e:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=error_detail(ErrorCodes.URL_NOT_ACCESSIBLE, str(e), url=url_str),
            ) from e
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=error_detail(ErrorCodes.INVALID_URL, str(e), url=url_str),
            ) from e

    result = analysis_engine.analyze(
        html,
        url_str,
        profile=_PROFILES[body.profile],
        aio_overrides=body.weight_overrides,
        previous_scores=body.previous_scores,
    )
    logger.info("Analyzed %s: overall %d", url_str or "<html>", result.overall_score)
    return AnalysisResponse.model_validate(result.to_dict())
