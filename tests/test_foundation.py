"""Tests for seed splitting and the worker pool helpers."""

from unittest.mock import patch

import numpy as np

from burstscan.foundation import parallel
from burstscan.foundation.parallel import get_optimal_workers, run_parallel, should_use_parallel
from burstscan.foundation.seeding import root_entropy, unit_generator


def _square(x: int) -> int:
    return x * x


class TestSeeding:
    def test_fixed_seed_is_its_own_entropy(self) -> None:
        assert root_entropy(7) == 7

    def test_unseeded_entropy_varies(self) -> None:
        assert root_entropy(None) != root_entropy(None)

    def test_same_labels_same_stream(self) -> None:
        a = unit_generator(7, "site", "E1", "S1").uniform(size=5)
        b = unit_generator(7, "site", "E1", "S1").uniform(size=5)
        np.testing.assert_array_equal(a, b)

    def test_different_labels_independent_streams(self) -> None:
        a = unit_generator(7, "site", "E1", "S1").uniform(size=5)
        b = unit_generator(7, "site", "E1", "S2").uniform(size=5)
        assert not np.array_equal(a, b)


class TestRunParallel:
    def test_serial_preserves_order(self) -> None:
        assert run_parallel(_square, [3, 1, 2], force_serial=True) == [9, 1, 4]

    def test_empty(self) -> None:
        assert run_parallel(_square, []) == []

    def test_small_job_runs_serially(self) -> None:
        with patch.object(parallel, "get_cpu_count", return_value=16):
            assert not should_use_parallel(3)
            assert should_use_parallel(100)

    def test_single_cpu_is_serial(self) -> None:
        with patch.object(parallel, "get_cpu_count", return_value=1):
            assert get_optimal_workers() == 1
            assert not should_use_parallel(1_000)

    def test_worker_cap(self) -> None:
        with patch.object(parallel, "get_cpu_count", return_value=16):
            assert get_optimal_workers() == 14
            assert get_optimal_workers(max_workers=4) == 4
