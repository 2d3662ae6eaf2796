"""Tests for nested-cluster collapse."""

from burstscan.core.nesting import collapse_nested_clusters
from burstscan.domain.cluster import EventCluster

from tests.test_site import _site


class TestCollapseNestedClusters:
    def test_all_windows_collapse_to_maximal_ones(self) -> None:
        site = _site([1.0, 2.0, 3.0, 4.0])
        candidates = site.windows_of_size(2) + site.windows_of_size(3)
        result = collapse_nested_clusters(candidates)
        assert [c.times for c in result] == [[1.0, 2.0, 3.0], [2.0, 3.0, 4.0]]

    def test_no_survivor_nested_in_another(self) -> None:
        site = _site([1.0, 1.5, 2.0, 9.0, 9.2, 30.0])
        candidates = [w for k in range(2, 6) for w in site.windows_of_size(k)]
        result = collapse_nested_clusters(candidates)
        for i, a in enumerate(result):
            for j, b in enumerate(result):
                if i != j:
                    assert not a.is_nested_inside(b)

    def test_identical_membership_keeps_first(self) -> None:
        site = _site([1.0, 2.0])
        (window,) = site.windows_of_size(2)
        twin = EventCluster(window.events)
        result = collapse_nested_clusters([window, twin])
        assert len(result) == 1
        assert result[0] is window

    def test_disjoint_clusters_all_kept_in_order(self) -> None:
        site = _site([1.0, 2.0, 50.0, 51.0])
        a, _, b = site.windows_of_size(2)
        assert collapse_nested_clusters([b, a]) == [b, a]

    def test_empty_and_single(self) -> None:
        (window,) = _site([1.0, 2.0]).windows_of_size(2)
        assert collapse_nested_clusters([]) == []
        assert collapse_nested_clusters([window]) == [window]

    def test_strict_subset_discarded(self) -> None:
        site = _site([1.0, 2.0, 3.0, 4.0, 7.0, 8.0])
        a = site.windows_of_size(3)[0]
        b = site.windows_of_size(4)[0]
        c = site.windows_of_size(2)[4]
        assert [x.times for x in (a, b, c)] == [[1.0, 2.0, 3.0], [1.0, 2.0, 3.0, 4.0], [7.0, 8.0]]
        assert collapse_nested_clusters([a, b, c]) == [b, c]
