"""Pydantic models for analysis requests received over HTTP."""

from __future__ import annotations

from pydantic import BaseModel, Field

from burstscan.domain.enums import SignificanceScope
from burstscan.domain.record import EventRecord


class AnalysisOverrides(BaseModel):
    """Optional per-request overrides of the configured analysis parameters."""

    alpha: float | None = Field(None, gt=0.0, lt=1.0)
    max_inter_event_time: float | None = Field(None, gt=0.0)
    num_random_permutations: int | None = Field(None, ge=1)
    scopes: list[SignificanceScope] | None = None
    random_seed: int | None = Field(None, ge=0)
    consecutive_time_span: float | None = Field(None, gt=0.0)

    def as_overrides(self) -> dict:
        values = self.model_dump(include=set(AnalysisOverrides.model_fields), exclude_none=True)
        if "scopes" in values:
            values["scopes"] = tuple(values["scopes"])
        return values


class AnalysisRequest(AnalysisOverrides):
    records: list[EventRecord] = Field(..., min_length=1)


class TableAnalysisRequest(AnalysisOverrides):
    table: str = Field(..., min_length=1, description="Tab-delimited event table with header")
