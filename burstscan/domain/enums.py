"""Controlled enumerations for the burstscan domain."""

from __future__ import annotations

from enum import Enum


class SignificanceScope(str, Enum):
    """Which null model a cluster score cutoff was derived from.

    SITE:        permutations of one site only.
    EXPERIMENT:  permutations of every site of the experiment; the cutoff
                 is the max over all sites.
    """

    SITE = "site"
    EXPERIMENT = "experiment"
