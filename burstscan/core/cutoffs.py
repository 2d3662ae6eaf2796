"""Score cutoff tables derived from permutation null models.

For each cluster size k from 2 up to the largest event count in scope,
the cutoff is the empirical (1 - alpha) quantile of the per-replica max
cluster score of size-k windows.  A real cluster of size k is significant
when its score exceeds that cutoff.

Two scopes:
    SITE        replicas of one site; sizes 2..site.num_events
    EXPERIMENT  replicas of the whole experiment; max over all sites;
                sizes 2..max events at any site
"""

from __future__ import annotations

import logging

import numpy as np
from pydantic import BaseModel, Field

from burstscan.core.permutation import PermutationSet
from burstscan.domain.enums import SignificanceScope
from burstscan.domain.experiment import Experiment
from burstscan.domain.site import Site

logger = logging.getLogger(__name__)


class CutoffTable(BaseModel):
    """Immutable mapping of cluster size to significance cutoff."""

    scope: SignificanceScope
    experiment_name: str
    site_id: str | None = Field(None, description="Set for site-wide tables only")
    alpha: float = Field(..., gt=0.0, lt=1.0)
    num_permutations: int = Field(..., ge=1)
    cutoffs: dict[int, float] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def sizes(self) -> list[int]:
        return sorted(self.cutoffs)

    def cutoff_for(self, size: int) -> float:
        try:
            return self.cutoffs[size]
        except KeyError:
            raise KeyError(
                f"No {self.scope.value}-wide cutoff for cluster size {size} "
                f"in experiment '{self.experiment_name}'"
            ) from None


def empirical_cutoff(max_scores: np.ndarray, alpha: float) -> float:
    """The (1 - alpha) quantile of the replica maxima."""
    return float(np.quantile(np.sort(max_scores), 1.0 - alpha))


def compute_cutoffs(
    permutations: PermutationSet,
    max_size: int,
    alpha: float,
    site_id: str | None = None,
) -> dict[int, float]:
    cutoffs: dict[int, float] = {}
    for size in range(2, max_size + 1):
        scores = permutations.max_cluster_scores(size, site_id=site_id)
        cutoffs[size] = empirical_cutoff(scores, alpha)
    return cutoffs


def site_cutoff_table(
    site: Site, permutations: PermutationSet, alpha: float
) -> CutoffTable:
    """Cutoffs from replicas of one site only."""
    logger.info(
        "Calculating site-wide cluster score cutoffs for site %s of experiment %s",
        site.site_id, site.experiment_name,
    )
    return CutoffTable(
        scope=SignificanceScope.SITE,
        experiment_name=site.experiment_name,
        site_id=site.site_id,
        alpha=alpha,
        num_permutations=permutations.num_permutations,
        cutoffs=compute_cutoffs(permutations, site.num_events, alpha, site_id=site.site_id),
    )


def experiment_cutoff_table(
    experiment: Experiment, permutations: PermutationSet, alpha: float
) -> CutoffTable:
    """Cutoffs from replicas of the whole experiment (max over sites)."""
    logger.info(
        "Calculating experiment-wide cluster score cutoffs for experiment %s",
        experiment.name,
    )
    return CutoffTable(
        scope=SignificanceScope.EXPERIMENT,
        experiment_name=experiment.name,
        alpha=alpha,
        num_permutations=permutations.num_permutations,
        cutoffs=compute_cutoffs(permutations, experiment.max_events_per_site, alpha),
    )
