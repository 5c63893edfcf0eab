"""
api/routes/health.py
--------------------
Health-check endpoint, used by load balancers and container probes.
"""
from __future__ import annotations

from fastapi import APIRouter

import config

router = APIRouter()


@router.get("/health", summary="Health check")
def health() -> dict:
    """Returns 200 OK when the service is running, plus the active data mode."""
    return {
        "status": "ok",
        "service": "localvibe-planner",
        "data_source": "stub" if config.USE_STUB_EXPERIENCES else "live",
        "scoring_strategy": config.SCORING_STRATEGY,
    }
