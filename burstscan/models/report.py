"""Pydantic models for the output of one analysis run."""

from __future__ import annotations

from pydantic import BaseModel, Field

from burstscan.core.cutoffs import CutoffTable
from burstscan.core.summary import ClusterSummary, ConsecutiveEventComparison
from burstscan.domain.cluster import ClusterRecord
from burstscan.domain.enums import SignificanceScope
from burstscan.domain.score import SiteScore


class SkippedUnit(BaseModel):
    """A site or experiment whose processing failed and was skipped."""

    stage: str = Field(..., description="Which step failed, e.g. 'site_score'")
    experiment_name: str
    site_id: str | None = None
    error: str


class AnalysisReport(BaseModel):
    """Everything one invocation exposes to the outside world."""

    alpha: float
    max_inter_event_time: float
    num_random_permutations: int
    raw_clusters: list[ClusterRecord] = Field(default_factory=list)
    significant_clusters: dict[SignificanceScope, list[ClusterRecord]] = Field(default_factory=dict)
    cutoff_tables: dict[SignificanceScope, list[CutoffTable]] = Field(default_factory=dict)
    site_scores: list[SiteScore] = Field(default_factory=list)
    cluster_summaries: list[ClusterSummary] = Field(default_factory=list)
    consecutive_events: list[ConsecutiveEventComparison] = Field(default_factory=list)
    skipped: list[SkippedUnit] = Field(default_factory=list)
