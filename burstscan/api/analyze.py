"""REST endpoints for burst-cluster analysis.

Paths:
    POST /api/analyze         JSON event records
    POST /api/analyze/table   tab-delimited event table as a string

Both build a Dataset, run ClusterAnalyzer with the configured parameters
(optionally overridden per request) and return the full AnalysisReport.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response
from pydantic import ValidationError

from burstscan.config import Settings
from burstscan.core.analyzer import ClusterAnalyzer
from burstscan.core.options import AnalysisConfig
from burstscan.ingest.table import parse_event_table
from burstscan.models.report import AnalysisReport
from burstscan.models.request import AnalysisOverrides, AnalysisRequest, TableAnalysisRequest
from burstscan.store.dataset import Dataset

logger = logging.getLogger(__name__)


def create_analyze_router(settings: Settings) -> APIRouter:
    """Factory that wires the analyze endpoints to the application settings."""

    router = APIRouter(prefix="/api", tags=["analysis"])

    def _run(dataset: Dataset, overrides: AnalysisOverrides) -> Response:
        try:
            config = AnalysisConfig.from_settings(settings, **overrides.as_overrides())
        except ValidationError as exc:
            raise HTTPException(
                status_code=422,
                detail=exc.errors(include_url=False, include_context=False),
            ) from exc

        logger.info(
            "Analyzing %d experiment(s), %d site(s), %d event(s)",
            dataset.num_experiments, dataset.num_sites, dataset.num_events,
        )
        report: AnalysisReport = ClusterAnalyzer(config).analyze(dataset)
        # Infinite scores serialize as null
        return Response(report.model_dump_json(), media_type="application/json")

    @router.post("/analyze")
    def analyze_records(request: AnalysisRequest) -> Response:
        try:
            dataset = Dataset.from_records(request.records)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _run(dataset, request)

    @router.post("/analyze/table")
    def analyze_table(request: TableAnalysisRequest) -> Response:
        try:
            records = parse_event_table(request.table.splitlines())
            if not records:
                raise ValueError("Event table has no rows")
            dataset = Dataset.from_records(records)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _run(dataset, request)

    return router
