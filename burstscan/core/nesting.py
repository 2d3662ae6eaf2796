"""Collapse clusters that are fully nested inside another cluster of the set.

The check is pairwise, O(n^2) in the number of candidate clusters.
Candidate sets are per site and small in practice.

When two clusters have identical membership only the first one is kept.
"""

from __future__ import annotations

from typing import Sequence

from burstscan.domain.cluster import EventCluster


def collapse_nested_clusters(clusters: Sequence[EventCluster]) -> list[EventCluster]:
    """Return *clusters* without the ones contained in another member, order preserved."""
    if len(clusters) <= 1:
        return list(clusters)

    keep = [True] * len(clusters)
    for i, inner in enumerate(clusters):
        for j, outer in enumerate(clusters):
            if i == j or not inner.is_nested_inside(outer):
                continue
            # Equal membership: the earlier cluster survives
            if outer.is_nested_inside(inner) and j > i:
                continue
            keep[i] = False
            break

    return [c for c, k in zip(clusters, keep) if k]
