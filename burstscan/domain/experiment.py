"""Experiment — a timed observation session holding one or more sites.

Sites are unique by site id.  All event times lie in [0, total_time].
Caches of permutations and cutoffs are not held here; the significance
engine owns them, so an Experiment is read-only once loading finishes.
"""

from __future__ import annotations

import math

from burstscan.domain.cluster import EventCluster
from burstscan.domain.site import Site
from burstscan.foundation.errors import AmbiguousOrderingError


class Experiment:
    """Named collection of sites sharing one observation duration."""

    __slots__ = ("name", "total_time", "_sites")

    def __init__(self, name: str, total_time: float) -> None:
        if not name:
            raise ValueError("Experiment name must be non-empty")
        if not math.isfinite(total_time) or total_time <= 0:
            raise ValueError(f"total_time must be a positive finite number, got {total_time}")
        self.name = name
        self.total_time = float(total_time)
        self._sites: dict[str, Site] = {}

    # ── Mutation ─────────────────────────────────────────────────────────

    def site(self, site_id: str, x_coord: float = 0.0, y_coord: float = 0.0) -> Site:
        """Return the site with *site_id*, creating it if it does not exist yet."""
        existing = self._sites.get(site_id)
        if existing is not None:
            return existing
        created = Site(self.name, site_id, self.total_time, x_coord, y_coord)
        self._sites[site_id] = created
        return created

    def add_site(self, site: Site) -> None:
        if site.experiment_name != self.name or site.total_time != self.total_time:
            raise ValueError(f"Site {site!r} does not belong to experiment '{self.name}'")
        if site.site_id in self._sites:
            raise ValueError(f"Experiment '{self.name}' already has site '{site.site_id}'")
        self._sites[site.site_id] = site

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def sites(self) -> list[Site]:
        """Sites ordered by site id."""
        return [self._sites[k] for k in sorted(self._sites)]

    def get_site(self, site_id: str) -> Site | None:
        return self._sites.get(site_id)

    @property
    def num_sites(self) -> int:
        return len(self._sites)

    @property
    def num_events(self) -> int:
        return sum(s.num_events for s in self._sites.values())

    @property
    def max_events_per_site(self) -> int:
        return max((s.num_events for s in self._sites.values()), default=0)

    def find_event_clusters(self, max_inter_event_time: float) -> dict[str, list[EventCluster]]:
        """Gap-constrained clusters per site id, omitting sites without any."""
        found: dict[str, list[EventCluster]] = {}
        for site in self.sites:
            clusters = site.clusters_by_inter_event_time(max_inter_event_time)
            if clusters:
                found[site.site_id] = clusters
        return found

    def max_cluster_score(self, size: int) -> float:
        """Highest score of any window of *size* events at any site."""
        return max((s.max_cluster_score(size) for s in self.sites), default=0.0)

    # ── Ordering / identity ──────────────────────────────────────────────

    @property
    def sort_key(self) -> tuple[str, float, int]:
        return (self.name, self.total_time, self.num_sites)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Experiment):
            return NotImplemented
        return (
            self.name == other.name
            and self.total_time == other.total_time
            and self.sites == other.sites
        )

    def __hash__(self) -> int:
        return hash((self.name, self.total_time))

    def __lt__(self, other: Experiment) -> bool:
        if self == other:
            return False
        if self.sort_key == other.sort_key:
            raise AmbiguousOrderingError(
                f"Can't order distinct experiments with same name, total time and "
                f"number of sites: {self!r} / {other!r}"
            )
        return self.sort_key < other.sort_key

    def __repr__(self) -> str:
        return (
            f"Experiment(name={self.name!r}, total_time={self.total_time}, "
            f"sites={self.num_sites})"
        )
