"""Tests for cluster summaries and the consecutive-event comparison."""

import numpy as np
import pytest

from burstscan.core.permutation import PermutationSet
from burstscan.core.summary import (
    ALL_EXPERIMENTS_LABEL,
    compare_consecutive_events,
    consecutive_event_counts,
    randomized_consecutive_event_counts,
    summarize_clusters,
)
from burstscan.domain.experiment import Experiment

from tests.test_permutation import _experiment


def _perms(times: dict[str, list[list[float]]]) -> PermutationSet:
    matrices = {k: np.array(v) for k, v in times.items()}
    n = next(iter(matrices.values())).shape[0]
    return PermutationSet("E1", 100.0, n, matrices)


class TestClusterSummary:
    def test_buckets(self) -> None:
        summary = summarize_clusters(_experiment(), 5.0)
        assert summary.total_sites == 2
        assert summary.sites_by_longest_cluster == {
            "0": 1, "2": 0, "3": 1, "4": 0, "5": 0, ">5": 0,
        }
        assert summary.sites_by_cluster_count == {"0": 1, "1": 1, "2": 0, "3": 0, ">3": 0}

    def test_large_values_fall_in_overflow_buckets(self) -> None:
        experiment = Experiment("E9", 100.0)
        site = experiment.site("S1")
        # One run of seven events, then three separate pairs
        for t in [1.0, 1.1, 1.2, 1.3, 1.4, 1.5, 1.6, 20.0, 20.1, 40.0, 40.1, 60.0, 60.1]:
            site.add_event(t)
        summary = summarize_clusters(experiment, 0.5)
        assert summary.sites_by_longest_cluster[">5"] == 1
        assert summary.sites_by_cluster_count[">3"] == 1


class TestConsecutiveEvents:
    def test_real_counts(self) -> None:
        # S1 gaps 2, 1, 77 and S2 gaps 45, 45: only the gap of 1 qualifies
        assert consecutive_event_counts(_experiment(), 1.0) == (1, 7)

    def test_randomized_counts(self) -> None:
        perms = _perms({"S1": [[0.0, 0.5, 3.0], [1.0, 5.0, 5.5]]})
        assert randomized_consecutive_event_counts(perms, 1.0) == (2, 6)

    def test_comparison(self) -> None:
        perms = _perms({
            "S1": [[0.0, 0.5, 3.0, 50.0], [1.0, 5.0, 5.5, 70.0]],
            "S2": [[10.0, 20.0, 30.0], [40.0, 60.0, 80.0]],
        })
        results = compare_consecutive_events(
            [(_experiment(), randomized_consecutive_event_counts(perms, 1.0))], 1.0
        )
        assert [r.label for r in results] == ["E1", ALL_EXPERIMENTS_LABEL]
        e1 = results[0]
        assert e1.real_fraction == pytest.approx(1 / 7)
        assert e1.randomized_fraction == pytest.approx(2 / 14)
        assert e1.relative_increase == pytest.approx(0.0)
        assert results[1].real_fraction == pytest.approx(e1.real_fraction)

    def test_zero_randomized_fraction_leaves_increase_unset(self) -> None:
        perms = _perms({"S1": [[0.0, 50.0, 99.0, 99.9]], "S2": [[10.0, 20.0, 30.0]]})
        (e1, _) = compare_consecutive_events(
            [(_experiment(), randomized_consecutive_event_counts(perms, 0.5))], 0.5
        )
        assert e1.randomized_fraction == 0.0
        assert e1.relative_increase is None

    def test_no_experiments(self) -> None:
        assert compare_consecutive_events([], 1.0) == []
