"""SignificanceEngine — permutation caches, cutoff tables and significant clusters.

The engine owns every lazily computed artefact so domain objects stay
read-only:

    permutation sets   keyed by (scope, experiment, site, num_permutations)
    cutoff tables      keyed by (scope, experiment, site, num_permutations, alpha)
    consecutive counts keyed by (scope, experiment, site, num_permutations, time_span)

A request with a different permutation count or alpha is a cache miss and
produces a fresh entry; nothing computed for another count is reused.

Random streams are split per unit from the root seed (see
burstscan.foundation.seeding), so a cutoff table computed in a worker
process is identical to one computed in-process.

Significant clusters for a site:
    for k in 2..num_events:
        keep every size-k window with
            score > cutoff[k]  and  max_inter_event_time <= max gap
    then drop windows fully nested inside another survivor.
"""

from __future__ import annotations

import logging

from burstscan.core.cutoffs import CutoffTable, experiment_cutoff_table, site_cutoff_table
from burstscan.core.nesting import collapse_nested_clusters
from burstscan.core.options import AnalysisConfig
from burstscan.core.permutation import PermutationSet
from burstscan.core.summary import randomized_consecutive_event_counts
from burstscan.domain.cluster import EventCluster
from burstscan.domain.enums import SignificanceScope
from burstscan.domain.experiment import Experiment
from burstscan.domain.site import Site
from burstscan.foundation.seeding import root_entropy, unit_generator

logger = logging.getLogger(__name__)

PermutationKey = tuple[str, str, str, int]
CutoffKey = tuple[str, str, str, int, float]
ConsecutiveKey = tuple[str, str, str, int, float]


def significant_event_clusters(
    site: Site, table: CutoffTable, max_inter_event_time: float
) -> list[EventCluster]:
    """Windows of *site* beating *table*'s cutoffs within the gap limit, nesting collapsed."""
    candidates: list[EventCluster] = []
    for size in range(2, site.num_events + 1):
        cutoff = table.cutoff_for(size)
        for cluster in site.windows_of_size(size):
            if cluster.score > cutoff and cluster.max_inter_event_time <= max_inter_event_time:
                candidates.append(cluster)
    return collapse_nested_clusters(candidates)


class SignificanceEngine:
    """Memoizing front end for the permutation null models of one run."""

    def __init__(self, config: AnalysisConfig | None = None, entropy: int | None = None) -> None:
        self._config = config or AnalysisConfig()
        self._entropy = entropy if entropy is not None else root_entropy(self._config.random_seed)
        self._permutations: dict[PermutationKey, PermutationSet] = {}
        self._cutoffs: dict[CutoffKey, CutoffTable] = {}
        self._consecutive: dict[ConsecutiveKey, tuple[int, int]] = {}

    @property
    def config(self) -> AnalysisConfig:
        return self._config

    @property
    def entropy(self) -> int:
        return self._entropy

    # ── Permutations ─────────────────────────────────────────────────────

    def experiment_permutations(
        self, experiment: Experiment, num_permutations: int | None = None
    ) -> PermutationSet:
        n = num_permutations or self._config.num_random_permutations
        key = (SignificanceScope.EXPERIMENT.value, experiment.name, "", n)
        cached = self._permutations.get(key)
        if cached is None:
            rng = unit_generator(self._entropy, SignificanceScope.EXPERIMENT.value, experiment.name)
            cached = PermutationSet.for_experiment(experiment, n, rng)
            self._permutations[key] = cached
        return cached

    def site_permutations(self, site: Site, num_permutations: int | None = None) -> PermutationSet:
        n = num_permutations or self._config.num_random_permutations
        key = (SignificanceScope.SITE.value, site.experiment_name, site.site_id, n)
        cached = self._permutations.get(key)
        if cached is None:
            rng = unit_generator(
                self._entropy, SignificanceScope.SITE.value, site.experiment_name, site.site_id
            )
            cached = PermutationSet.for_site(site, n, rng)
            self._permutations[key] = cached
        return cached

    def permutations(
        self, scope: SignificanceScope, experiment: Experiment, site: Site | None = None
    ) -> PermutationSet:
        if scope == SignificanceScope.EXPERIMENT:
            return self.experiment_permutations(experiment)
        if site is None:
            raise ValueError("A site is required for site-wide permutations")
        return self.site_permutations(site)

    # ── Consecutive events ───────────────────────────────────────────────

    def randomized_consecutive_counts(
        self, scope: SignificanceScope, experiment: Experiment, site: Site | None = None
    ) -> tuple[int, int]:
        """(followed, total) event counts over the replicas of one unit."""
        key = self._consecutive_key(scope, experiment.name, site.site_id if site else None)
        cached = self._consecutive.get(key)
        if cached is None:
            cached = randomized_consecutive_event_counts(
                self.permutations(scope, experiment, site), self._config.consecutive_time_span
            )
            self._consecutive[key] = cached
        return cached

    def install_randomized_consecutive_counts(
        self,
        scope: SignificanceScope,
        experiment_name: str,
        site_id: str | None,
        counts: tuple[int, int],
    ) -> None:
        self._consecutive[self._consecutive_key(scope, experiment_name, site_id)] = counts

    # ── Cutoffs ──────────────────────────────────────────────────────────

    def experiment_cutoffs(self, experiment: Experiment) -> CutoffTable:
        key = self._cutoff_key(SignificanceScope.EXPERIMENT, experiment.name, None)
        cached = self._cutoffs.get(key)
        if cached is None:
            permutations = self.experiment_permutations(experiment)
            cached = experiment_cutoff_table(experiment, permutations, self._config.alpha)
            self._cutoffs[key] = cached
        return cached

    def site_cutoffs(self, site: Site) -> CutoffTable:
        key = self._cutoff_key(SignificanceScope.SITE, site.experiment_name, site.site_id)
        cached = self._cutoffs.get(key)
        if cached is None:
            permutations = self.site_permutations(site)
            cached = site_cutoff_table(site, permutations, self._config.alpha)
            self._cutoffs[key] = cached
        return cached

    def cutoffs(
        self, scope: SignificanceScope, experiment: Experiment, site: Site | None = None
    ) -> CutoffTable:
        if scope == SignificanceScope.EXPERIMENT:
            return self.experiment_cutoffs(experiment)
        if site is None:
            raise ValueError("A site is required for site-wide cutoffs")
        return self.site_cutoffs(site)

    def install_cutoffs(self, table: CutoffTable) -> None:
        """Adopt a table computed elsewhere (e.g. by a worker process)."""
        if table.alpha != self._config.alpha:
            raise ValueError(
                f"Cutoff table alpha {table.alpha} does not match engine alpha {self._config.alpha}"
            )
        key = (
            table.scope.value,
            table.experiment_name,
            table.site_id or "",
            table.num_permutations,
            table.alpha,
        )
        self._cutoffs[key] = table

    def has_cutoffs(
        self, scope: SignificanceScope, experiment_name: str, site_id: str | None = None
    ) -> bool:
        return self._cutoff_key(scope, experiment_name, site_id) in self._cutoffs

    # ── Significant clusters ─────────────────────────────────────────────

    def significant_clusters(
        self, scope: SignificanceScope, experiment: Experiment, site: Site
    ) -> list[EventCluster]:
        table = self.cutoffs(scope, experiment, site)
        clusters = significant_event_clusters(site, table, self._config.max_inter_event_time)
        logger.debug(
            "Site %s of experiment %s: %d %s-wide significant cluster(s)",
            site.site_id, experiment.name, len(clusters), scope.value,
        )
        return clusters

    # ── Internals ────────────────────────────────────────────────────────

    def _cutoff_key(
        self, scope: SignificanceScope, experiment_name: str, site_id: str | None
    ) -> CutoffKey:
        return (
            scope.value,
            experiment_name,
            site_id or "",
            self._config.num_random_permutations,
            self._config.alpha,
        )

    def _consecutive_key(
        self, scope: SignificanceScope, experiment_name: str, site_id: str | None
    ) -> ConsecutiveKey:
        return (
            scope.value,
            experiment_name,
            site_id or "",
            self._config.num_random_permutations,
            self._config.consecutive_time_span,
        )
