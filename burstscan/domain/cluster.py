"""EventCluster — a contiguous run of events from one site.

Clusters are ephemeral: they are produced by gap scanning or fixed-size
window enumeration, scored, filtered and collapsed, then discarded.

Score:
    score = 1 / (last_time - first_time)

Tighter clusters score higher.  A cluster of a single event scores 0.  A
cluster whose events share one timestamp has zero span and an infinite
score.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from pydantic import BaseModel, Field

from burstscan.domain.event import Event


class ClusterRecord(BaseModel):
    """Flat, serialisable view of a cluster for reports."""

    experiment_name: str
    site_id: str
    size: int = Field(..., ge=1)
    times: list[float]
    span: float
    score: float
    max_inter_event_time: float

    model_config = {"frozen": True}


class EventCluster:
    """An ordered, non-empty group of events belonging to a single site."""

    __slots__ = ("experiment_name", "site_id", "_events")

    def __init__(self, events: Iterable[Event]) -> None:
        ordered = tuple(sorted(events))
        if not ordered:
            raise ValueError("An event cluster needs at least one event")
        first = ordered[0]
        for event in ordered:
            if (event.experiment_name, event.site_id) != (first.experiment_name, first.site_id):
                raise ValueError(
                    f"Cluster mixes sites: {first.site_id!r} and {event.site_id!r}"
                )
        self.experiment_name: str = first.experiment_name
        self.site_id: str = first.site_id
        self._events: tuple[Event, ...] = ordered

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def events(self) -> tuple[Event, ...]:
        return self._events

    @property
    def size(self) -> int:
        return len(self._events)

    @property
    def times(self) -> list[float]:
        return [e.time for e in self._events]

    @property
    def first_time(self) -> float:
        return self._events[0].time

    @property
    def last_time(self) -> float:
        return self._events[-1].time

    @property
    def span(self) -> float:
        """Time from the first event to the last."""
        return self.last_time - self.first_time

    @property
    def inter_event_times(self) -> list[float]:
        times = self.times
        return [times[i + 1] - times[i] for i in range(len(times) - 1)]

    @property
    def max_inter_event_time(self) -> float:
        """Largest gap between consecutive members (the span for a singleton)."""
        gaps = self.inter_event_times
        return max(gaps) if gaps else self.span

    @property
    def min_inter_event_time(self) -> float:
        gaps = self.inter_event_times
        return min(gaps) if gaps else self.span

    @property
    def score(self) -> float:
        if self.size <= 1:
            return 0.0
        span = self.span
        if span == 0.0:
            return float("inf")
        return 1.0 / span

    def is_nested_inside(self, other: EventCluster) -> bool:
        """True if every member of this cluster is also a member of *other*.

        Membership is counted, so a site holding two events at the same time
        is handled correctly.
        """
        if (self.experiment_name, self.site_id) != (other.experiment_name, other.site_id):
            return False
        mine = Counter(self._events)
        theirs = Counter(other._events)
        return all(theirs[event] >= count for event, count in mine.items())

    # ── Conversion ───────────────────────────────────────────────────────

    def to_record(self) -> ClusterRecord:
        return ClusterRecord(
            experiment_name=self.experiment_name,
            site_id=self.site_id,
            size=self.size,
            times=self.times,
            span=self.span,
            score=self.score,
            max_inter_event_time=self.max_inter_event_time,
        )

    # ── Dunder ───────────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._events)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EventCluster):
            return NotImplemented
        return self._events == other._events

    def __hash__(self) -> int:
        return hash(self._events)

    def __str__(self) -> str:
        # Tab-delimited row: site id followed by member times
        return "\t".join([self.site_id, *(str(t) for t in self.times)])

    def __repr__(self) -> str:
        return (
            f"EventCluster(site={self.site_id!r}, size={self.size}, "
            f"times={self.times})"
        )
