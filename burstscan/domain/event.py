"""Event — a single timestamped occurrence at one site of one experiment.

Identity is the (experiment, site, time) triple.  Two events at the same
site with the same time compare equal; a site may still hold both, since
sites keep duplicates.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Event(BaseModel):
    """Immutable event record.  Time is relative to the experiment start."""

    experiment_name: str = Field(..., min_length=1)
    site_id: str = Field(..., min_length=1)
    time: float = Field(..., ge=0.0, allow_inf_nan=False, description="Relative time of the event")

    model_config = {"frozen": True}

    @property
    def sort_key(self) -> tuple[str, str, float]:
        return (self.experiment_name, self.site_id, self.time)

    def __lt__(self, other: Event) -> bool:
        return self.sort_key < other.sort_key

    def __str__(self) -> str:
        return f"experiment_name:{self.experiment_name};site_name:{self.site_id};rel_time:{self.time}"
