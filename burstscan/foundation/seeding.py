"""Seed-splitting for reproducible, worker-independent random streams.

Every unit of work (an experiment, or a single site) derives its own
SeedSequence from the run's root entropy and a tuple of stable labels.
Two runs with the same root seed draw identical permutations no matter how
units are distributed across workers.
"""

from __future__ import annotations

import zlib

import numpy as np


def root_entropy(seed: int | None) -> int:
    """Return the entropy integer for *seed* (fresh OS entropy when None)."""
    return int(np.random.SeedSequence(seed).entropy)


def unit_seed_sequence(entropy: int, *labels: str) -> np.random.SeedSequence:
    """Derive an independent SeedSequence for the unit identified by *labels*."""
    spawn_key = tuple(zlib.crc32(label.encode("utf-8")) for label in labels)
    return np.random.SeedSequence(entropy, spawn_key=spawn_key)


def unit_generator(entropy: int, *labels: str) -> np.random.Generator:
    return np.random.default_rng(unit_seed_sequence(entropy, *labels))
