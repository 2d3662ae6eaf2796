"""Tests for the chi-squared goodness-of-fit site score."""

import math
from unittest.mock import patch

import numpy as np
import pytest
from pydantic import ValidationError
from scipy import stats

from burstscan.core import goodness_of_fit
from burstscan.core.goodness_of_fit import (
    compute_site_score,
    expected_frequencies,
    pearson_chi_squared,
)
from burstscan.domain.score import SiteScore

from tests.test_site import _site


def _random_site(n: int = 40, seed: int = 0):
    rng = np.random.default_rng(seed)
    return _site(list(rng.uniform(0.0, 100.0, size=n)))


class TestPearsonChiSquared:
    def test_plain_statistic(self) -> None:
        observed = np.array([3.0, 1.0])
        expected = np.array([2.0, 2.0])
        assert pearson_chi_squared(observed, expected) == pytest.approx(1.0)

    def test_empty_zero_expected_bins_are_skipped(self) -> None:
        observed = np.array([0.0, 2.0])
        expected = np.array([0.0, 1.0])
        assert pearson_chi_squared(observed, expected) == pytest.approx(1.0)

    def test_occupied_zero_expected_bin_is_infinite(self) -> None:
        observed = np.array([1.0, 2.0])
        expected = np.array([0.0, 3.0])
        assert math.isinf(pearson_chi_squared(observed, expected))


class TestExpectedFrequencies:
    def test_bin_masses_follow_the_exponential_cdf(self) -> None:
        edges = np.linspace(1.0, 77.0, 11)
        masses = expected_frequencies(edges, 25.0)
        assert masses.sum() == pytest.approx(math.exp(-1.0 / 25.0) - math.exp(-77.0 / 25.0))
        assert masses[0] == pytest.approx(math.exp(-1.0 / 25.0) - math.exp(-8.6 / 25.0))

    def test_masses_are_not_scaled_to_the_sample(self) -> None:
        masses = expected_frequencies(np.linspace(0.0, 20.0, 6), 5.0)
        assert masses.sum() < 1.0
        assert np.all(np.diff(masses) < 0)


class TestComputeSiteScore:
    def test_fields(self) -> None:
        site = _random_site()
        score = compute_site_score(site)
        assert score.num_events == 40
        assert score.avg_time_per_event == pytest.approx(2.5)
        assert score.degrees_of_freedom == 8
        assert 0.0 <= score.p_value <= 1.0

    def test_hand_computed_statistic(self) -> None:
        # Gaps 2, 1, 77 and wraparound 20; ten bins of width 7.6 over [1, 77]
        site = _site([10.0, 12.0, 13.0, 90.0])
        observed = [2, 0, 1, 0, 0, 0, 0, 0, 0, 1]
        statistic = 0.0
        for i, count in enumerate(observed):
            start = 1.0 + 7.6 * i
            end = start + 7.6
            expected = math.exp(-start / 25.0) - math.exp(-end / 25.0)
            statistic += (count - expected) ** 2 / expected

        score = compute_site_score(site)
        assert score.avg_time_per_event == 25.0
        assert score.chi_squared == pytest.approx(statistic)
        assert score.chi_squared == pytest.approx(77.33, abs=0.01)
        assert score.p_value == pytest.approx(stats.chi2.sf(statistic, 8))
        assert 0.0 < score.p_value < 1e-12

    def test_score_is_log10_of_p(self) -> None:
        score = compute_site_score(_site([10.0, 12.0, 13.0, 90.0]))
        assert score.p_value > 0.0
        assert score.score_defined
        assert score.score == pytest.approx(math.log10(score.p_value))

    def test_bursty_site_scores_lower_than_uniform(self) -> None:
        bursty = _site([10.0 + 0.01 * i for i in range(20)] + [60.0 + 0.01 * i for i in range(20)])
        uniform = _random_site(seed=4)
        b = compute_site_score(bursty)
        u = compute_site_score(uniform)
        assert b.p_value <= u.p_value

    def test_zero_p_value_flags_score(self) -> None:
        with patch.object(goodness_of_fit.stats.chi2, "sf", return_value=0.0):
            score = compute_site_score(_random_site())
        assert score.p_value == 0.0
        assert score.score is None
        assert not score.score_defined

    def test_custom_bin_count(self) -> None:
        assert compute_site_score(_random_site(), num_bins=6).degrees_of_freedom == 4

    def test_too_few_bins_rejected(self) -> None:
        with pytest.raises(ValueError):
            compute_site_score(_random_site(), num_bins=2)


class TestSiteScoreModel:
    def _kwargs(self, **overrides) -> dict:
        values = {
            "experiment_name": "E1", "site_id": "S1", "num_events": 4,
            "avg_time_per_event": 25.0, "chi_squared": 3.0, "degrees_of_freedom": 8,
            "p_value": 0.1, "score": -1.0,
        }
        values.update(overrides)
        return values

    def test_valid(self) -> None:
        assert SiteScore(**self._kwargs()).to_row() == "S1\t25.0\t0.1\t-1.0"

    def test_score_must_match_p_value(self) -> None:
        with pytest.raises(ValidationError):
            SiteScore(**self._kwargs(score=-2.0))

    def test_zero_p_value_requires_unset_score(self) -> None:
        with pytest.raises(ValidationError):
            SiteScore(**self._kwargs(p_value=0.0, score=-300.0))
        row = SiteScore(**self._kwargs(p_value=0.0, score=None)).to_row()
        assert row.endswith("\tNA")

    def test_immutable(self) -> None:
        score = SiteScore(**self._kwargs())
        with pytest.raises(ValidationError):
            score.p_value = 0.5
