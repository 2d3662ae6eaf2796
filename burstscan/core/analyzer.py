"""ClusterAnalyzer — batch driver over a whole dataset.

Pipeline:
    1. raw clusters        gap-constrained clusters of every site
    2. cutoff tables       precomputed for every unit on a worker pool
                           (one unit = one experiment, or one site)
    3. significant         windows beating the cutoffs, nesting collapsed,
                           once per configured scope
    4. site scores         goodness-of-fit score of every site
    5. summaries           cluster summary + consecutive-event comparison,
                           the latter reusing the replicas drawn in step 2
                           (experiment-wide when configured, else site-wide)

Failure policy:
    A unit that raises while being processed is logged, recorded as a
    SkippedUnit and skipped; the batch continues.  InvariantViolation is
    never skipped and always propagates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from burstscan.core.cutoffs import CutoffTable
from burstscan.core.goodness_of_fit import compute_site_score
from burstscan.core.options import AnalysisConfig
from burstscan.core.significance import SignificanceEngine
from burstscan.core.summary import (
    ConsecutiveEventComparison,
    compare_consecutive_events,
    summarize_clusters,
)
from burstscan.domain.cluster import ClusterRecord
from burstscan.domain.enums import SignificanceScope
from burstscan.domain.experiment import Experiment
from burstscan.domain.score import SiteScore
from burstscan.domain.site import Site
from burstscan.foundation.errors import InvariantViolation
from burstscan.foundation.parallel import run_parallel
from burstscan.models.report import AnalysisReport, SkippedUnit
from burstscan.store.dataset import Dataset

logger = logging.getLogger(__name__)


# ── Worker-side cutoff computation ───────────────────────────────────────────


@dataclass(frozen=True)
class CutoffTask:
    """One unit of cutoff work, picklable for the worker pool."""

    config: AnalysisConfig
    entropy: int
    scope: SignificanceScope
    experiment: Experiment
    site: Site | None = None


@dataclass(frozen=True)
class CutoffOutcome:
    """A unit's cutoff table plus its randomized consecutive-event counts."""

    table: CutoffTable
    randomized_consecutive: tuple[int, int]


def compute_cutoff_task(task: CutoffTask) -> CutoffOutcome | SkippedUnit:
    """Compute one unit from a single replica set.

    Ordinary failures come back as a SkippedUnit.
    """
    engine = SignificanceEngine(task.config, entropy=task.entropy)
    try:
        table = engine.cutoffs(task.scope, task.experiment, task.site)
        counts = engine.randomized_consecutive_counts(task.scope, task.experiment, task.site)
        return CutoffOutcome(table=table, randomized_consecutive=counts)
    except InvariantViolation:
        raise
    except Exception as exc:
        logger.exception(
            "Skipping %s-wide cutoffs for experiment %s site %s",
            task.scope.value, task.experiment.name, task.site.site_id if task.site else "-",
        )
        return SkippedUnit(
            stage=f"{task.scope.value}_cutoffs",
            experiment_name=task.experiment.name,
            site_id=task.site.site_id if task.site else None,
            error=f"{type(exc).__name__}: {exc}",
        )


# ── Analyzer ─────────────────────────────────────────────────────────────────


class ClusterAnalyzer:
    """Runs the full detection and scoring pipeline for a Dataset.

    Args:
        config: Validated analysis parameters.
        engine: Optional pre-built SignificanceEngine (shares its caches).
    """

    def __init__(
        self,
        config: AnalysisConfig | None = None,
        engine: SignificanceEngine | None = None,
    ) -> None:
        self._config = config or (engine.config if engine else AnalysisConfig())
        self._engine = engine or SignificanceEngine(self._config)

    @property
    def engine(self) -> SignificanceEngine:
        return self._engine

    # ── Public API ───────────────────────────────────────────────────────

    def analyze(self, dataset: Dataset) -> AnalysisReport:
        cfg = self._config
        skipped: list[SkippedUnit] = []

        raw = self.raw_clusters(dataset, skipped)
        tables = self.precompute_cutoffs(dataset, skipped)
        significant = {
            scope: self.significant_clusters(dataset, scope, skipped) for scope in cfg.scopes
        }
        scores = self.site_scores(dataset, skipped)
        summaries = [
            summarize_clusters(exp, cfg.max_inter_event_time) for exp in dataset.experiments
        ]
        consecutive = self.consecutive_events(dataset)

        logger.info(
            "Analysis complete: %d raw cluster(s), %s, %d site score(s), %d skipped unit(s)",
            len(raw),
            ", ".join(f"{len(v)} {k.value}-wide significant" for k, v in significant.items()),
            len(scores),
            len(skipped),
        )

        return AnalysisReport(
            alpha=cfg.alpha,
            max_inter_event_time=cfg.max_inter_event_time,
            num_random_permutations=cfg.num_random_permutations,
            raw_clusters=raw,
            significant_clusters=significant,
            cutoff_tables=tables,
            site_scores=scores,
            cluster_summaries=summaries,
            consecutive_events=consecutive,
            skipped=skipped,
        )

    def raw_clusters(
        self, dataset: Dataset, skipped: list[SkippedUnit] | None = None
    ) -> list[ClusterRecord]:
        records: list[ClusterRecord] = []
        for experiment, site in self._each_site(dataset):
            try:
                clusters = site.clusters_by_inter_event_time(self._config.max_inter_event_time)
            except InvariantViolation:
                raise
            except Exception as exc:
                self._skip(skipped, "raw_clusters", experiment, site, exc)
                continue
            records.extend(c.to_record() for c in clusters)
        return records

    def precompute_cutoffs(
        self, dataset: Dataset, skipped: list[SkippedUnit] | None = None
    ) -> dict[SignificanceScope, list[CutoffTable]]:
        """Fill the engine's cutoff cache for every unit of every configured scope."""
        tasks: list[CutoffTask] = []
        for scope in self._config.scopes:
            for experiment in dataset.experiments:
                if scope == SignificanceScope.EXPERIMENT:
                    tasks.append(self._task(scope, experiment))
                else:
                    tasks.extend(self._task(scope, experiment, site) for site in experiment.sites)

        pending = [
            t for t in tasks
            if not self._engine.has_cutoffs(
                t.scope, t.experiment.name, t.site.site_id if t.site else None
            )
        ]
        logger.info("Computing %d cutoff table(s)", len(pending))
        results = run_parallel(
            compute_cutoff_task,
            pending,
            max_workers=self._config.max_workers,
            force_serial=self._config.force_serial,
        )
        for result in results:
            if isinstance(result, SkippedUnit):
                if skipped is not None:
                    skipped.append(result)
                continue
            self._engine.install_cutoffs(result.table)
            self._engine.install_randomized_consecutive_counts(
                result.table.scope,
                result.table.experiment_name,
                result.table.site_id,
                result.randomized_consecutive,
            )

        tables: dict[SignificanceScope, list[CutoffTable]] = {s: [] for s in self._config.scopes}
        for task in tasks:
            site_id = task.site.site_id if task.site else None
            if self._engine.has_cutoffs(task.scope, task.experiment.name, site_id):
                tables[task.scope].append(
                    self._engine.cutoffs(task.scope, task.experiment, task.site)
                )
        return tables

    def significant_clusters(
        self,
        dataset: Dataset,
        scope: SignificanceScope,
        skipped: list[SkippedUnit] | None = None,
    ) -> list[ClusterRecord]:
        records: list[ClusterRecord] = []
        for experiment, site in self._each_site(dataset):
            site_id = site.site_id if scope == SignificanceScope.SITE else None
            if not self._engine.has_cutoffs(scope, experiment.name, site_id):
                # Cutoffs were skipped (already recorded) or never precomputed
                if skipped is not None and any(
                    s.experiment_name == experiment.name
                    and s.site_id == site_id
                    and s.stage == f"{scope.value}_cutoffs"
                    for s in skipped
                ):
                    continue
            try:
                clusters = self._engine.significant_clusters(scope, experiment, site)
            except InvariantViolation:
                raise
            except Exception as exc:
                self._skip(skipped, f"{scope.value}_significant_clusters", experiment, site, exc)
                continue
            records.extend(c.to_record() for c in clusters)
        return records

    def site_scores(
        self, dataset: Dataset, skipped: list[SkippedUnit] | None = None
    ) -> list[SiteScore]:
        scores: list[SiteScore] = []
        for experiment, site in self._each_site(dataset):
            try:
                scores.append(compute_site_score(site, self._config.gof_num_bins))
            except InvariantViolation:
                raise
            except Exception as exc:
                self._skip(skipped, "site_score", experiment, site, exc)
        return scores

    def consecutive_events(self, dataset: Dataset) -> list[ConsecutiveEventComparison]:
        """Real vs randomized consecutive events, from replicas already drawn for cutoffs.

        Experiment-wide replicas are used when that scope is configured,
        otherwise the site-wide replicas of every site are pooled.  An
        experiment with a skipped unit is left out of the comparison.
        """
        scopes = self._config.scopes
        if not scopes:
            return []
        scope = (
            SignificanceScope.EXPERIMENT
            if SignificanceScope.EXPERIMENT in scopes
            else SignificanceScope.SITE
        )

        pairs: list[tuple[Experiment, tuple[int, int]]] = []
        for experiment in dataset.experiments:
            units = [None] if scope == SignificanceScope.EXPERIMENT else experiment.sites
            if not all(
                self._engine.has_cutoffs(scope, experiment.name, site.site_id if site else None)
                for site in units
            ):
                logger.warning(
                    "No %s-wide replicas for experiment %s; omitted from consecutive events",
                    scope.value, experiment.name,
                )
                continue
            followed = total = 0
            for site in units:
                counts = self._engine.randomized_consecutive_counts(scope, experiment, site)
                followed += counts[0]
                total += counts[1]
            pairs.append((experiment, (followed, total)))

        return compare_consecutive_events(pairs, self._config.consecutive_time_span)

    # ── Internals ────────────────────────────────────────────────────────

    def _task(
        self, scope: SignificanceScope, experiment: Experiment, site: Site | None = None
    ) -> CutoffTask:
        return CutoffTask(
            config=self._config,
            entropy=self._engine.entropy,
            scope=scope,
            experiment=experiment,
            site=site,
        )

    @staticmethod
    def _each_site(dataset: Dataset):
        for experiment in dataset.experiments:
            for site in experiment.sites:
                yield experiment, site

    @staticmethod
    def _skip(
        skipped: list[SkippedUnit] | None,
        stage: str,
        experiment: Experiment,
        site: Site,
        exc: Exception,
    ) -> None:
        logger.exception(
            "Skipping %s for site %s of experiment %s", stage, site.site_id, experiment.name
        )
        if skipped is not None:
            skipped.append(
                SkippedUnit(
                    stage=stage,
                    experiment_name=experiment.name,
                    site_id=site.site_id,
                    error=f"{type(exc).__name__}: {exc}",
                )
            )
