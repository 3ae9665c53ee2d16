"""API v1 router aggregation."""
from __future__ import annotations

from fastapi import APIRouter

from app.api.v1.endpoints import algorithms, analyze, health

router = APIRouter()

router.include_router(analyze.router)
router.include_router(algorithms.router)
router.include_router(health.router)
