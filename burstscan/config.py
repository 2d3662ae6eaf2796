"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

from burstscan.domain.enums import SignificanceScope


class Settings(BaseSettings):
    app_name: str = "burstscan"
    debug: bool = False
    log_level: str = "INFO"

    # Significance testing
    alpha: float = Field(0.05, gt=0.0, lt=1.0)
    num_random_permutations: int = Field(10_000, ge=1)
    significance_scopes: list[SignificanceScope] = [
        SignificanceScope.SITE,
        SignificanceScope.EXPERIMENT,
    ]
    random_seed: int | None = Field(None, ge=0)

    # Clustering
    max_inter_event_time: float = Field(30.0, gt=0.0)

    # Site goodness-of-fit
    gof_num_bins: int = Field(10, ge=3)

    # Consecutive-event comparison
    consecutive_time_span: float = Field(1.0, gt=0.0)

    # Worker pool
    max_workers: int | None = Field(None, ge=1)
    force_serial: bool = False

    model_config = {"env_prefix": "BURSTSCAN_"}


settings = Settings()
