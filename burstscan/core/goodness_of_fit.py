"""Goodness-of-fit site score: inter-event times vs. an exponential model.

Steps for one site:
    1. gaps = consecutive inter-event times + one wraparound gap
    2. histogram of gaps with a fixed number of equal-width bins spanning
       [min(gap), max(gap)]
    3. expected value of each bin = F(bin_end) - F(bin_start) for
       F the Exponential(mean = avg) CDF, where avg = total_time / num_events
       (not the mean observed gap).  The observed counts are compared with
       these bin probabilities directly, unscaled.
    4. Pearson chi-squared statistic, df = num_bins - 2
    5. p = P(X >= statistic) for X ~ chi2(df);  score = log10(p)

Bins with zero expected probability contribute nothing when they are also empty
and make the statistic infinite (p = 0) otherwise.
"""

from __future__ import annotations

import logging
import math

import numpy as np
from scipy import stats

from burstscan.domain.score import SiteScore
from burstscan.domain.site import Site

logger = logging.getLogger(__name__)

DEFAULT_NUM_BINS = 10

# One for the fitted rate, one for the fixed total count
DEGREES_OF_FREEDOM_REDUCTION = 2


def pearson_chi_squared(observed: np.ndarray, expected: np.ndarray) -> float:
    """Pearson statistic, tolerant of bins with zero expected count."""
    empty = expected <= 0.0
    if np.any(observed[empty] > 0):
        return math.inf
    obs = observed[~empty]
    exp = expected[~empty]
    return float(np.sum((obs - exp) ** 2 / exp))


def expected_frequencies(edges: np.ndarray, avg_time_per_event: float) -> np.ndarray:
    """Probability mass of each bin under the fitted exponential model."""
    return np.diff(stats.expon.cdf(edges, scale=avg_time_per_event))


def compute_site_score(site: Site, num_bins: int = DEFAULT_NUM_BINS) -> SiteScore:
    """Chi-squared goodness-of-fit score of *site* against an exponential model."""
    if num_bins <= DEGREES_OF_FREEDOM_REDUCTION:
        raise ValueError(f"num_bins must exceed {DEGREES_OF_FREEDOM_REDUCTION}, got {num_bins}")

    gaps = np.asarray(site.inter_event_times(), dtype=float)
    avg_time_per_event = site.total_time / site.num_events

    observed, edges = np.histogram(gaps, bins=num_bins)
    expected = expected_frequencies(edges, avg_time_per_event)

    statistic = pearson_chi_squared(observed.astype(float), expected)
    dof = num_bins - DEGREES_OF_FREEDOM_REDUCTION
    p_value = float(stats.chi2.sf(statistic, dof))
    p_value = min(max(p_value, 0.0), 1.0)
    score = math.log10(p_value) if p_value > 0.0 else None

    if score is None:
        logger.debug(
            "Site %s of experiment %s has p-value 0; score undefined",
            site.site_id, site.experiment_name,
        )

    return SiteScore(
        experiment_name=site.experiment_name,
        site_id=site.site_id,
        num_events=site.num_events,
        avg_time_per_event=avg_time_per_event,
        chi_squared=statistic,
        degrees_of_freedom=dof,
        p_value=p_value,
        score=score,
    )
