"""Tests for PermutationSet: replica shape, range, determinism."""

import numpy as np
import pytest

from burstscan.core.permutation import PermutationSet, max_window_scores
from burstscan.domain.experiment import Experiment
from burstscan.domain.site import RANDOMIZED_SUFFIX
from burstscan.foundation.errors import EmptySiteError
from burstscan.foundation.seeding import unit_generator


# ── Helpers ──────────────────────────────────────────────────────────────────


def _experiment() -> Experiment:
    experiment = Experiment("E1", 100.0)
    for site_id, times in {"S1": [10.0, 12.0, 13.0, 90.0], "S2": [5.0, 50.0, 95.0]}.items():
        site = experiment.site(site_id)
        for t in times:
            site.add_event(t)
    return experiment


# ── Drawing ──────────────────────────────────────────────────────────────────


class TestPermutationDraw:
    def test_event_counts_preserved(self) -> None:
        perms = PermutationSet.for_experiment(_experiment(), 50, np.random.default_rng(0))
        assert len(perms) == 50
        assert perms.event_counts() == {"S1": 4, "S2": 3}
        assert perms.max_events_per_site == 4

    def test_times_sorted_and_within_range(self) -> None:
        perms = PermutationSet.for_experiment(_experiment(), 50, np.random.default_rng(0))
        for site_id in perms.site_ids:
            matrix = perms.site_times(site_id)
            assert np.all(np.diff(matrix, axis=1) >= 0)
            assert matrix.min() >= 0.0
            assert matrix.max() < 100.0

    def test_matrices_are_read_only(self) -> None:
        perms = PermutationSet.for_experiment(_experiment(), 5, np.random.default_rng(0))
        with pytest.raises(ValueError):
            perms.site_times("S1")[0, 0] = 1.0

    def test_same_seed_same_replicas(self) -> None:
        a = PermutationSet.for_experiment(_experiment(), 20, unit_generator(42, "experiment", "E1"))
        b = PermutationSet.for_experiment(_experiment(), 20, unit_generator(42, "experiment", "E1"))
        np.testing.assert_array_equal(a.site_times("S1"), b.site_times("S1"))

    def test_different_unit_labels_differ(self) -> None:
        a = PermutationSet.for_experiment(_experiment(), 20, unit_generator(42, "experiment", "E1"))
        b = PermutationSet.for_experiment(_experiment(), 20, unit_generator(42, "experiment", "E2"))
        assert not np.array_equal(a.site_times("S1"), b.site_times("S1"))

    def test_site_scope_holds_one_site(self) -> None:
        site = _experiment().get_site("S2")
        perms = PermutationSet.for_site(site, 10, np.random.default_rng(0))
        assert perms.site_ids == ["S2"]

    def test_empty_site_fails_fast(self) -> None:
        experiment = _experiment()
        experiment.site("S3")
        with pytest.raises(EmptySiteError):
            PermutationSet.for_experiment(experiment, 10, np.random.default_rng(0))

    def test_zero_permutations_rejected(self) -> None:
        with pytest.raises(ValueError):
            PermutationSet.for_experiment(_experiment(), 0, np.random.default_rng(0))


# ── Scores ───────────────────────────────────────────────────────────────────


class TestMaxWindowScores:
    def test_known_matrix(self) -> None:
        times = np.array([[0.0, 1.0, 5.0], [0.0, 2.0, 3.0]])
        np.testing.assert_allclose(max_window_scores(times, 2), [1.0, 1.0])
        np.testing.assert_allclose(max_window_scores(times, 3), [0.2, 1.0 / 3.0])

    def test_no_window_scores_zero(self) -> None:
        times = np.array([[0.0, 1.0]])
        np.testing.assert_array_equal(max_window_scores(times, 3), [0.0])
        np.testing.assert_array_equal(max_window_scores(times, 1), [0.0])

    def test_matches_materialized_replicas(self) -> None:
        perms = PermutationSet.for_experiment(_experiment(), 30, np.random.default_rng(5))
        vectorized = perms.max_cluster_scores(3)
        for i in range(len(perms)):
            assert vectorized[i] == pytest.approx(perms.replica(i).max_cluster_score(3))

    def test_experiment_max_over_sites(self) -> None:
        perms = PermutationSet.for_experiment(_experiment(), 30, np.random.default_rng(5))
        expected = np.maximum(
            perms.max_cluster_scores(2, site_id="S1"),
            perms.max_cluster_scores(2, site_id="S2"),
        )
        np.testing.assert_allclose(perms.max_cluster_scores(2), expected)


class TestReplicaMaterialization:
    def test_replica_site(self) -> None:
        perms = PermutationSet.for_experiment(_experiment(), 3, np.random.default_rng(0))
        site = perms.replica_site(1, "S1")
        assert site.site_id == "S1" + RANDOMIZED_SUFFIX
        assert site.event_times == list(perms.site_times("S1")[1])

    def test_replica_experiment(self) -> None:
        perms = PermutationSet.for_experiment(_experiment(), 3, np.random.default_rng(0))
        replica = perms.replica(0)
        assert replica.name == "E1"
        assert replica.num_sites == 2
        assert replica.num_events == 7
