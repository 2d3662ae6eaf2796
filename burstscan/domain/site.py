"""Site — the ordered events recorded at one spatial location of one experiment.

A Site knows its experiment only by name and total observation time; there
is no back-reference to an Experiment object.  Events are kept sorted by
time and duplicates are retained.

Every time-based query (gaps, clusters, windows) requires at least one
event and raises EmptySiteError otherwise.

Clustering:
    clusters_by_inter_event_time(max_gap)
        Single linear scan.  Consecutive events whose gap is <= max_gap
        (inclusive) are joined; runs of one event are not clusters.
    windows_of_size(k)
        Every run of k consecutive events, with no gap constraint.  This
        feeds the permutation null model.
"""

from __future__ import annotations

import math
from bisect import insort

import numpy as np

from burstscan.domain.cluster import EventCluster
from burstscan.domain.event import Event
from burstscan.foundation.errors import AmbiguousOrderingError, EmptySiteError

RANDOMIZED_SUFFIX = "_randomized_times"


class Site:
    """A mutable-during-load, then read-only, collection of events."""

    __slots__ = ("experiment_name", "site_id", "total_time", "x_coord", "y_coord", "_events")

    def __init__(
        self,
        experiment_name: str,
        site_id: str,
        total_time: float,
        x_coord: float = 0.0,
        y_coord: float = 0.0,
    ) -> None:
        if not math.isfinite(total_time) or total_time <= 0:
            raise ValueError(f"total_time must be a positive finite number, got {total_time}")
        self.experiment_name = experiment_name
        self.site_id = site_id
        self.total_time = float(total_time)
        self.x_coord = float(x_coord)
        self.y_coord = float(y_coord)
        self._events: list[Event] = []

    # ── Mutation ─────────────────────────────────────────────────────────

    def add_event(self, time: float) -> Event:
        """Insert an event at *time*, keeping events ordered."""
        if not 0.0 <= time <= self.total_time:
            raise ValueError(
                f"Event time {time} outside [0, {self.total_time}] "
                f"for site '{self.site_id}' in experiment '{self.experiment_name}'"
            )
        event = Event(experiment_name=self.experiment_name, site_id=self.site_id, time=time)
        insort(self._events, event)
        return event

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def events(self) -> tuple[Event, ...]:
        return tuple(self._events)

    @property
    def num_events(self) -> int:
        return len(self._events)

    @property
    def event_times(self) -> list[float]:
        return [e.time for e in self._events]

    def times_array(self) -> np.ndarray:
        self._require_events()
        return np.fromiter((e.time for e in self._events), dtype=float, count=len(self._events))

    def consecutive_gaps(self) -> list[float]:
        """Gaps between consecutive events, in time order."""
        times = self._require_events()
        return [times[i + 1] - times[i] for i in range(len(times) - 1)]

    def inter_event_times(self) -> list[float]:
        """Consecutive gaps plus one wraparound gap.

        The wraparound gap is the time to the first event plus the time
        remaining after the last.  A single event yields [total_time].
        """
        times = self._require_events()
        wraparound = times[0] + (self.total_time - times[-1])
        return self.consecutive_gaps() + [wraparound]

    def shortest_inter_event_time(self) -> float:
        return min(self.inter_event_times())

    def longest_inter_event_time(self) -> float:
        return max(self.inter_event_times())

    # ── Clustering ───────────────────────────────────────────────────────

    def clusters_by_inter_event_time(self, max_inter_event_time: float) -> list[EventCluster]:
        """All runs of more than one event whose consecutive gaps are <= the cutoff."""
        self._require_events()
        clusters: list[EventCluster] = []
        current: list[Event] = []
        for event in self._events:
            if current and event.time - current[-1].time <= max_inter_event_time:
                current.append(event)
                continue
            if len(current) > 1:
                clusters.append(EventCluster(current))
            current = [event]
        if len(current) > 1:
            clusters.append(EventCluster(current))
        return clusters

    def largest_cluster_size(self, max_inter_event_time: float) -> int:
        """Size of the largest gap-constrained cluster, 0 if there is none."""
        clusters = self.clusters_by_inter_event_time(max_inter_event_time)
        return max((c.size for c in clusters), default=0)

    def windows_of_size(self, size: int) -> list[EventCluster]:
        """Every run of exactly *size* consecutive events, one per starting event."""
        self._require_events()
        if size < 1:
            raise ValueError(f"Window size must be positive, got {size}")
        n = len(self._events)
        return [EventCluster(self._events[i:i + size]) for i in range(n - size + 1)]

    def max_cluster_score(self, size: int) -> float:
        """Highest score of any window of *size* events (0 if none exist)."""
        return max((c.score for c in self.windows_of_size(size)), default=0.0)

    # ── Permutation ──────────────────────────────────────────────────────

    def randomized(self, rng: np.random.Generator) -> Site:
        """A copy with the same event count and times redrawn uniformly over [0, total_time)."""
        self._require_events()
        replica = Site(
            self.experiment_name,
            self.site_id + RANDOMIZED_SUFFIX,
            self.total_time,
            self.x_coord,
            self.y_coord,
        )
        for t in rng.uniform(0.0, self.total_time, size=self.num_events):
            replica.add_event(float(t))
        return replica

    # ── Internals ────────────────────────────────────────────────────────

    def _require_events(self) -> list[float]:
        if not self._events:
            raise EmptySiteError(self.experiment_name, self.site_id)
        return self.event_times

    # ── Ordering / identity ──────────────────────────────────────────────

    @property
    def sort_key(self) -> tuple[str, str, int]:
        return (self.experiment_name, self.site_id, self.num_events)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Site):
            return NotImplemented
        return self.sort_key == other.sort_key and self._events == other._events

    def __hash__(self) -> int:
        return hash((self.experiment_name, self.site_id))

    def __lt__(self, other: Site) -> bool:
        if self == other:
            return False
        if self.sort_key == other.sort_key:
            raise AmbiguousOrderingError(
                f"Can't order distinct sites with same experiment, ID and event count: "
                f"{self!r} / {other!r}"
            )
        return self.sort_key < other.sort_key

    def __repr__(self) -> str:
        return (
            f"Site(experiment={self.experiment_name!r}, id={self.site_id!r}, "
            f"events={self.num_events})"
        )
