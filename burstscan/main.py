"""burstscan — burst-cluster detection and scoring service.

This is the application entry point.  It configures logging and wires the
analysis endpoints into the FastAPI app.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from burstscan.api.analyze import create_analyze_router
from burstscan.config import settings

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

# ── App ──────────────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.app_name,
    description="Event burst clustering, permutation significance and site scoring",
    version="0.1.0",
    debug=settings.debug,
)

# ── Routes ───────────────────────────────────────────────────────────────────

app.include_router(create_analyze_router(settings))


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health")
async def health() -> dict:
    return {
        "status": "ok",
        "alpha": settings.alpha,
        "num_random_permutations": settings.num_random_permutations,
        "max_inter_event_time": settings.max_inter_event_time,
        "significance_scopes": [s.value for s in settings.significance_scopes],
    }
