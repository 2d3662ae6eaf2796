"""PermutationSet — randomized replicas of an experiment or a single site.

Each replica keeps every site's event count and redraws every event time
uniformly over [0, total_time).  Replicas are stored as one sorted time
matrix per site (rows = replicas, columns = events), so the max cluster
score of every replica can be computed in a single vectorized pass.
Individual replicas can still be materialized as Site / Experiment
objects for inspection.

Max window score per replica, for windows of k events:
    spans[r, i] = t[r, i + k - 1] - t[r, i]
    max_score[r] = 1 / min_i spans[r, i]
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from burstscan.domain.experiment import Experiment
from burstscan.domain.site import RANDOMIZED_SUFFIX, Site

logger = logging.getLogger(__name__)


def max_window_scores(sorted_times: np.ndarray, size: int) -> np.ndarray:
    """Per-row max score over all windows of *size* consecutive events.

    Rows with fewer than *size* events have no window and score 0.
    """
    n_rows, n_events = sorted_times.shape
    if size < 2 or size > n_events:
        return np.zeros(n_rows)
    spans = sorted_times[:, size - 1:] - sorted_times[:, : n_events - size + 1]
    min_span = spans.min(axis=1)
    with np.errstate(divide="ignore"):
        return 1.0 / min_span


class PermutationSet:
    """Immutable set of replicas drawn from one generator."""

    __slots__ = ("experiment_name", "total_time", "num_permutations", "_times", "_coords")

    def __init__(
        self,
        experiment_name: str,
        total_time: float,
        num_permutations: int,
        times: dict[str, np.ndarray],
        coords: dict[str, tuple[float, float]] | None = None,
    ) -> None:
        for site_id, matrix in times.items():
            if matrix.ndim != 2 or matrix.shape[0] != num_permutations:
                raise ValueError(
                    f"Time matrix for site '{site_id}' has shape {matrix.shape}, "
                    f"expected ({num_permutations}, n)"
                )
            matrix.setflags(write=False)
        self.experiment_name = experiment_name
        self.total_time = total_time
        self.num_permutations = num_permutations
        self._times = times
        self._coords = coords or {}

    @classmethod
    def draw(
        cls,
        experiment_name: str,
        total_time: float,
        sites: Sequence[Site],
        num_permutations: int,
        rng: np.random.Generator,
    ) -> PermutationSet:
        """Draw *num_permutations* replicas of *sites* (in the given order)."""
        if num_permutations < 1:
            raise ValueError(f"num_permutations must be >= 1, got {num_permutations}")
        logger.info(
            "Generating %d random permutations of experiment %s (%d site(s))",
            num_permutations, experiment_name, len(sites),
        )
        times: dict[str, np.ndarray] = {}
        coords: dict[str, tuple[float, float]] = {}
        for site in sites:
            if site.num_events == 0:
                # Surface the empty-site invariant before drawing
                site.times_array()
            matrix = rng.uniform(0.0, total_time, size=(num_permutations, site.num_events))
            matrix.sort(axis=1)
            times[site.site_id] = matrix
            coords[site.site_id] = (site.x_coord, site.y_coord)
        return cls(experiment_name, total_time, num_permutations, times, coords)

    @classmethod
    def for_experiment(
        cls, experiment: Experiment, num_permutations: int, rng: np.random.Generator
    ) -> PermutationSet:
        return cls.draw(
            experiment.name, experiment.total_time, experiment.sites, num_permutations, rng
        )

    @classmethod
    def for_site(cls, site: Site, num_permutations: int, rng: np.random.Generator) -> PermutationSet:
        return cls.draw(site.experiment_name, site.total_time, [site], num_permutations, rng)

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def site_ids(self) -> list[str]:
        return list(self._times)

    def site_times(self, site_id: str) -> np.ndarray:
        """Read-only (num_permutations, n_events) matrix of sorted times."""
        return self._times[site_id]

    def event_counts(self) -> dict[str, int]:
        return {site_id: m.shape[1] for site_id, m in self._times.items()}

    @property
    def max_events_per_site(self) -> int:
        return max((m.shape[1] for m in self._times.values()), default=0)

    def max_cluster_scores(self, size: int, site_id: str | None = None) -> np.ndarray:
        """Max window score of each replica, over one site or over all sites."""
        if site_id is not None:
            return max_window_scores(self._times[site_id], size)
        best = np.zeros(self.num_permutations)
        for matrix in self._times.values():
            np.maximum(best, max_window_scores(matrix, size), out=best)
        return best

    # ── Materialization ──────────────────────────────────────────────────

    def replica_site(self, index: int, site_id: str) -> Site:
        x_coord, y_coord = self._coords.get(site_id, (0.0, 0.0))
        site = Site(
            self.experiment_name, site_id + RANDOMIZED_SUFFIX, self.total_time, x_coord, y_coord
        )
        for t in self._times[site_id][index]:
            site.add_event(float(t))
        return site

    def replica(self, index: int) -> Experiment:
        experiment = Experiment(self.experiment_name, self.total_time)
        for site_id in self._times:
            experiment.add_site(self.replica_site(index, site_id))
        return experiment

    def __len__(self) -> int:
        return self.num_permutations

    def __repr__(self) -> str:
        return (
            f"PermutationSet(experiment={self.experiment_name!r}, "
            f"replicas={self.num_permutations}, sites={len(self._times)})"
        )
