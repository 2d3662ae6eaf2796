"""AnalysisConfig — validated, immutable parameters for one analysis run.

Validation happens at construction, so an invalid alpha, permutation count
or gap cutoff is rejected before any computation starts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from burstscan.domain.enums import SignificanceScope

if TYPE_CHECKING:
    from burstscan.config import Settings


class AnalysisConfig(BaseModel):
    alpha: float = Field(0.05, gt=0.0, lt=1.0, description="False-positive rate for cutoffs")
    max_inter_event_time: float = Field(
        30.0, gt=0.0, allow_inf_nan=False, description="Largest gap allowed inside a cluster"
    )
    num_random_permutations: int = Field(10_000, ge=1)
    scopes: tuple[SignificanceScope, ...] = (
        SignificanceScope.SITE,
        SignificanceScope.EXPERIMENT,
    )
    random_seed: int | None = Field(None, ge=0, description="Root seed; None draws fresh entropy")
    gof_num_bins: int = Field(10, ge=3, description="Histogram bins for the goodness-of-fit test")
    consecutive_time_span: float = Field(1.0, gt=0.0, allow_inf_nan=False)
    max_workers: int | None = Field(None, ge=1)
    force_serial: bool = False

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, settings: Settings, **overrides) -> AnalysisConfig:
        values = {
            "alpha": settings.alpha,
            "max_inter_event_time": settings.max_inter_event_time,
            "num_random_permutations": settings.num_random_permutations,
            "scopes": tuple(settings.significance_scopes),
            "random_seed": settings.random_seed,
            "gof_num_bins": settings.gof_num_bins,
            "consecutive_time_span": settings.consecutive_time_span,
            "max_workers": settings.max_workers,
            "force_serial": settings.force_serial,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)
