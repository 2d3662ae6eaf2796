"""
Auto-tuning worker pool for per-unit batch computation.

This module provides:
- CPU detection
- Dynamic worker scaling based on available CPUs
- Automatic fallback to serial execution for small workloads
- Unified run_parallel() API

Usage:
    from burstscan.foundation.parallel import run_parallel

    results = run_parallel(process_fn, items)  # Auto-tunes workers
    results = run_parallel(process_fn, items, max_workers=4)  # Manual override
"""

from __future__ import annotations

import logging
import multiprocessing as mp
import os
import pickle
from typing import Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)

# Minimum items required to justify parallelization (per worker)
MIN_ITEMS_PER_WORKER = 2


def get_cpu_count() -> int:
    """
    Get the number of available CPUs.

    Prefers the scheduler affinity mask where the platform exposes one.

    Returns:
        Number of CPUs, minimum 1.
    """
    if hasattr(os, "sched_getaffinity"):
        return len(os.sched_getaffinity(0)) or 1
    return os.cpu_count() or 1


def get_optimal_workers(max_workers: Optional[int] = None) -> int:
    """
    Calculate optimal number of workers based on system resources.

    Heuristics:
    - 1-2 CPUs: 1 worker (serial execution)
    - 3-4 CPUs: 2 workers
    - 5+ CPUs: cpu_count - 2 (leave headroom for system)

    Args:
        max_workers: Optional maximum to cap the result.

    Returns:
        Optimal number of workers (>= 1).
    """
    cpu = get_cpu_count()

    if cpu <= 2:
        optimal = 1
    elif cpu <= 4:
        optimal = 2
    else:
        optimal = max(1, cpu - 2)

    if max_workers is not None:
        optimal = min(optimal, max_workers)

    return max(1, optimal)


def should_use_parallel(n_items: int, max_workers: Optional[int] = None) -> bool:
    """
    Determine if parallel execution should be used.

    Returns False if:
    - Optimal workers is 1
    - Number of items is too small to benefit from parallelization
    """
    workers = get_optimal_workers(max_workers)

    if workers <= 1:
        return False

    # Small job guard - need enough items to justify overhead
    if n_items < workers * MIN_ITEMS_PER_WORKER:
        return False

    return True


def run_parallel(
    fn: Callable[[T], R],
    items: Sequence[T],
    max_workers: Optional[int] = None,
    force_serial: bool = False,
) -> List[R]:
    """
    Execute a function over items in parallel with automatic tuning.

    Args:
        fn: Function to apply to each item. Must be picklable.
        items: Sequence of items to process.
        max_workers: Optional cap on number of workers.
        force_serial: If True, always use serial execution.

    Returns:
        List of results in same order as input items.

    Note:
        The function `fn` must be defined at module level (not a lambda
        or nested function) for multiprocessing to work correctly.
        Exceptions raised by `fn` propagate to the caller.
    """
    items_list = list(items)
    n_items = len(items_list)

    if n_items == 0:
        return []

    use_parallel = not force_serial and should_use_parallel(n_items, max_workers)

    if not use_parallel:
        return [fn(item) for item in items_list]

    workers = get_optimal_workers(max_workers)
    logger.debug("Running %d items on %d workers", n_items, workers)

    try:
        pool = mp.Pool(processes=workers)
    except OSError as exc:
        logger.warning("Could not start worker pool (%s); running serially", exc)
        return [fn(item) for item in items_list]

    try:
        with pool:
            return list(pool.map(fn, items_list))
    except pickle.PicklingError as exc:
        logger.warning("Work items are not picklable (%s); running serially", exc)
        return [fn(item) for item in items_list]
