"""SiteScore — goodness-of-fit summary of one site's inter-event times.

A read-only record.  The p-value comes from a chi-squared test of the
site's inter-event times against an exponential waiting-time model; the
score is log10(p-value).  A p-value of exactly zero has no finite log, so
the score is left unset and ``score_defined`` is False.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, Field, model_validator


class SiteScore(BaseModel):
    """Immutable clusteriness score of a single site."""

    experiment_name: str
    site_id: str
    num_events: int = Field(..., ge=1)
    avg_time_per_event: float = Field(..., gt=0.0, description="Total time / number of events")
    chi_squared: float = Field(..., ge=0.0, description="Pearson statistic (may be inf)")
    degrees_of_freedom: int = Field(..., ge=1)
    p_value: float = Field(..., ge=0.0, le=1.0)
    score: float | None = Field(
        None, le=0.0, description="log10(p_value); None when p_value is 0"
    )

    model_config = {"frozen": True}

    @property
    def score_defined(self) -> bool:
        return self.score is not None

    @model_validator(mode="after")
    def score_matches_p_value(self) -> SiteScore:
        if self.p_value == 0.0:
            if self.score is not None:
                raise ValueError("score must be unset when p_value is 0")
        elif self.score is None or not math.isclose(self.score, math.log10(self.p_value)):
            raise ValueError("score must equal log10(p_value)")
        return self

    def to_row(self) -> str:
        score = "NA" if self.score is None else str(self.score)
        return f"{self.site_id}\t{self.avg_time_per_event}\t{self.p_value}\t{score}"
