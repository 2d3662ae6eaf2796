"""In-memory Experiment/Site/Event graph built from parsed records.

Design notes:
    - Find-or-create: one Experiment per distinct name, one Site per
      distinct site id within an experiment.
    - The centroid of a site is taken from the first record seen for it.
    - A record whose total time disagrees with its experiment's is
      rejected; the graph never holds two durations for one experiment.
    - The dataset does NOT compute anything.  Analysis lives in
      burstscan.core.
"""

from __future__ import annotations

import logging
from typing import Iterable

from burstscan.domain.event import Event
from burstscan.domain.experiment import Experiment
from burstscan.domain.record import EventRecord

logger = logging.getLogger(__name__)


class Dataset:
    """A collection of experiments keyed by name."""

    def __init__(self) -> None:
        self._experiments: dict[str, Experiment] = {}

    @classmethod
    def from_records(cls, records: Iterable[EventRecord]) -> Dataset:
        dataset = cls()
        for record in records:
            dataset.add_record(record)
        logger.info(
            "Loaded %d experiment(s), %d site(s), %d event(s)",
            dataset.num_experiments, dataset.num_sites, dataset.num_events,
        )
        return dataset

    # ── Mutation ─────────────────────────────────────────────────────────

    def add_record(self, record: EventRecord) -> Event:
        """Attach *record* to its experiment and site, creating them if needed."""
        experiment = self._experiments.get(record.experiment_name)
        if experiment is None:
            experiment = Experiment(record.experiment_name, record.total_time)
            self._experiments[experiment.name] = experiment
            logger.debug("Created experiment %s (total time %s)", experiment.name, record.total_time)
        elif experiment.total_time != record.total_time:
            raise ValueError(
                f"Conflicting total time for experiment '{record.experiment_name}': "
                f"{experiment.total_time} vs {record.total_time}"
            )
        site = experiment.site(record.site_id, record.centroid_x, record.centroid_y)
        return site.add_event(record.relative_time)

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def experiments(self) -> list[Experiment]:
        """Experiments ordered by name."""
        return [self._experiments[k] for k in sorted(self._experiments)]

    def get(self, name: str) -> Experiment | None:
        return self._experiments.get(name)

    @property
    def num_experiments(self) -> int:
        return len(self._experiments)

    @property
    def num_sites(self) -> int:
        return sum(e.num_sites for e in self._experiments.values())

    @property
    def num_events(self) -> int:
        return sum(e.num_events for e in self._experiments.values())

    def __repr__(self) -> str:
        return f"Dataset(experiments={self.num_experiments}, sites={self.num_sites})"
