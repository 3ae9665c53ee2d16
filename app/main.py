"""FastAPI entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aio_checker.config.settings import VERSION, settings
from aio_checker.engine import engine
from app.api.models.errors import ErrorCodes, error_detail
from app.api.v1.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    yield
    if engine.persistence is not None:
        engine.persistence.shutdown(wait=True)


app = FastAPI(
    title="AIO Checker API",
    description="""
API for scoring web pages for AI search visibility.

## Features

- **Rubric scores**: SEO, AEO (answer engines) and GEO (generative engines), 0-100
- **AIO scores**: citation probability for ChatGPT, Perplexity, Grok, Gemini and Claude
- **Citation analysis**: outbound links, domain authority, opportunities, quality issues
- **Weight learning**: analysis rewards feed versioned, rollback-able weight maps
""",
    version=VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.api.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": error_detail(ErrorCodes.INTERNAL_ERROR, "Internal server error")},
    )


app.include_router(api_router, prefix="/api/v1")
