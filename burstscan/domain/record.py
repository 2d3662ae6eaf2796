"""EventRecord — one parsed input row, the contract with the ingestion layer."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class EventRecord(BaseModel):
    """(experiment, total time, site, relative time, centroid) as read from input."""

    experiment_name: str = Field(..., min_length=1)
    total_time: float = Field(..., gt=0.0, allow_inf_nan=False)
    site_id: str = Field(..., min_length=1)
    relative_time: float = Field(..., ge=0.0, allow_inf_nan=False)
    centroid_x: float = 0.0
    centroid_y: float = 0.0

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def time_within_experiment(self) -> EventRecord:
        if self.relative_time > self.total_time:
            raise ValueError(
                f"relative_time {self.relative_time} exceeds total_time {self.total_time}"
            )
        return self
