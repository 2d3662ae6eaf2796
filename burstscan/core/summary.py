"""Descriptive summaries of gap-constrained clusters and consecutive events.

These are observations over a whole experiment, not significance tests:

    ClusterSummary
        how many sites have no cluster / a longest cluster of 2, 3, 4, 5,
        more than 5 events, and how many sites have 0, 1, 2, 3, more than
        3 clusters.

    ConsecutiveEventComparison
        fraction of events followed by another event at the same site
        within a time span, in the real data versus in randomized replicas,
        and the relative increase (real - randomized) / randomized.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np
from pydantic import BaseModel, Field

from burstscan.core.permutation import PermutationSet
from burstscan.domain.experiment import Experiment

LONGEST_CLUSTER_BUCKETS = ("0", "2", "3", "4", "5", ">5")
CLUSTER_COUNT_BUCKETS = ("0", "1", "2", "3", ">3")

ALL_EXPERIMENTS_LABEL = "all_experiments"


class ClusterSummary(BaseModel):
    experiment_name: str
    total_sites: int = Field(..., ge=0)
    sites_by_longest_cluster: dict[str, int]
    sites_by_cluster_count: dict[str, int]

    model_config = {"frozen": True}


class ConsecutiveEventComparison(BaseModel):
    label: str = Field(..., description="Experiment name or 'all_experiments'")
    time_span: float
    real_fraction: float = Field(..., ge=0.0, le=1.0)
    randomized_fraction: float = Field(..., ge=0.0, le=1.0)
    relative_increase: float | None = Field(
        None, description="None when the randomized fraction is zero"
    )

    model_config = {"frozen": True}


def _bucket(value: int, last_exact: int) -> str:
    return str(value) if value <= last_exact else f">{last_exact}"


def summarize_clusters(experiment: Experiment, max_inter_event_time: float) -> ClusterSummary:
    by_longest = dict.fromkeys(LONGEST_CLUSTER_BUCKETS, 0)
    by_count = dict.fromkeys(CLUSTER_COUNT_BUCKETS, 0)
    for site in experiment.sites:
        clusters = site.clusters_by_inter_event_time(max_inter_event_time)
        longest = max((c.size for c in clusters), default=0)
        by_longest[_bucket(longest, 5)] += 1
        by_count[_bucket(len(clusters), 3)] += 1
    return ClusterSummary(
        experiment_name=experiment.name,
        total_sites=experiment.num_sites,
        sites_by_longest_cluster=by_longest,
        sites_by_cluster_count=by_count,
    )


# ── Consecutive events ───────────────────────────────────────────────────────


def consecutive_event_counts(experiment: Experiment, time_span: float) -> tuple[int, int]:
    """(events followed within *time_span*, total events) for the real data."""
    followed = 0
    for site in experiment.sites:
        followed += sum(1 for gap in site.consecutive_gaps() if gap <= time_span)
    return followed, experiment.num_events


def randomized_consecutive_event_counts(
    permutations: PermutationSet, time_span: float
) -> tuple[int, int]:
    """(events followed within *time_span*, total events) summed over all replicas."""
    followed = 0
    total = 0
    for site_id in permutations.site_ids:
        matrix = permutations.site_times(site_id)
        followed += int(np.count_nonzero(np.diff(matrix, axis=1) <= time_span))
        total += matrix.size
    return followed, total


def _comparison(
    label: str, time_span: float, real: tuple[int, int], randomized: tuple[int, int]
) -> ConsecutiveEventComparison:
    real_fraction = real[0] / real[1] if real[1] else 0.0
    rand_fraction = randomized[0] / randomized[1] if randomized[1] else 0.0
    increase = (real_fraction - rand_fraction) / rand_fraction if rand_fraction > 0 else None
    return ConsecutiveEventComparison(
        label=label,
        time_span=time_span,
        real_fraction=real_fraction,
        randomized_fraction=rand_fraction,
        relative_increase=increase,
    )


def compare_consecutive_events(
    experiments: Iterable[tuple[Experiment, tuple[int, int]]], time_span: float
) -> list[ConsecutiveEventComparison]:
    """One comparison per experiment followed by the combined comparison.

    Each experiment comes with its randomized (followed, total) counts, as
    returned by randomized_consecutive_event_counts.
    """
    results: list[ConsecutiveEventComparison] = []
    real_all = [0, 0]
    rand_all = [0, 0]
    for experiment, randomized in experiments:
        real = consecutive_event_counts(experiment, time_span)
        results.append(_comparison(experiment.name, time_span, real, randomized))
        real_all[0] += real[0]
        real_all[1] += real[1]
        rand_all[0] += randomized[0]
        rand_all[1] += randomized[1]
    if results:
        results.append(
            _comparison(ALL_EXPERIMENTS_LABEL, time_span, tuple(real_all), tuple(rand_all))
        )
    return results
