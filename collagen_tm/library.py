"""
Library evaluation: score every helix of a collection, optionally in parallel.

The collection is split into contiguous, non-overlapping partitions; each
partition is scored in its own worker process and the scored copies are
adopted back into the caller's records. Parameters are read-only during a pass.
"""

from __future__ import annotations

import multiprocessing
import os
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .helix import TripleHelix
from .parameters import ParameterTable
from .scoring import score_helix

WORKERS_ENV = "COLLAGEN_TM_WORKERS"
# Records whose |deviation| exceeds this are listed as outliers
OUTLIER_DEVIATION = 9.0


def default_worker_count() -> int:
    """Worker processes for library rescoring: $COLLAGEN_TM_WORKERS, else the CPU count."""
    env = os.environ.get(WORKERS_ENV, "").strip()
    if env:
        return max(1, int(env))
    return max(1, os.cpu_count() or 2)


def score_library(
    params: ParameterTable,
    helices: Sequence[TripleHelix],
    start: int = 0,
    stop: Optional[int] = None,
) -> None:
    """Score helices[start:stop] in place."""
    stop = len(helices) if stop is None else stop
    for n in range(start, stop):
        score_helix(params, helices[n])


def _score_partition(params: ParameterTable, helices: List[TripleHelix]) -> List[TripleHelix]:
    """Worker entry point (module-level for pickling). Returns the scored records."""
    score_library(params, helices)
    return helices


def partition_bounds(total: int, parts: int) -> List[Tuple[int, int]]:
    """Contiguous [start, stop) ranges covering 0..total exactly once; empty ranges dropped."""
    parts = max(1, min(parts, total)) if total else 1
    edges = [total * k // parts for k in range(parts + 1)]
    return [(edges[k], edges[k + 1]) for k in range(parts) if edges[k] < edges[k + 1]]


def rescore_library(
    params: ParameterTable,
    helices: Sequence[TripleHelix],
    n_workers: Optional[int] = None,
    pool: Optional[Any] = None,
) -> None:
    """
    Score every helix. With a pool (or n_workers > 1) partitions run as
    independent tasks and this call blocks until all of them finish.
    """
    n_workers = default_worker_count() if n_workers is None else n_workers
    if pool is None and n_workers <= 1:
        score_library(params, helices)
        return
    if pool is None:
        with multiprocessing.Pool(n_workers) as own_pool:
            _rescore_with_pool(params, helices, own_pool, n_workers)
        return
    _rescore_with_pool(params, helices, pool, n_workers)


def _rescore_with_pool(params: ParameterTable, helices: Sequence[TripleHelix], pool: Any, parts: int) -> None:
    bounds = partition_bounds(len(helices), parts)
    pending = [
        pool.apply_async(_score_partition, (params, list(helices[start:stop])))
        for start, stop in bounds
    ]
    for (start, _), task in zip(bounds, pending):
        for offset, scored in enumerate(task.get()):
            helices[start + offset].adopt_scores(scored)


def sum_squared_deviation(helices: Sequence[TripleHelix]) -> float:
    total = 0.0
    for h in helices:
        total += h.deviation * h.deviation
    return total


def library_statistics(helices: Sequence[TripleHelix]) -> Dict[str, Any]:
    """Aggregate deviation metrics of an already scored library."""
    n = len(helices)
    if n == 0:
        return {"n": 0, "sum_deviation": 0.0, "sum_squared_deviation": 0.0,
                "mean_deviation": 0.0, "mean_squared_deviation": 0.0,
                "worst_index": -1, "worst_deviation": 0.0, "outliers": []}
    dev = np.array([h.deviation for h in helices], dtype=float)
    worst = int(np.argmax(np.abs(dev)))
    ssd = sum_squared_deviation(helices)
    return {
        "n": n,
        "sum_deviation": float(dev.sum()),
        "sum_squared_deviation": ssd,
        "mean_deviation": float(dev.sum()) / n,
        "mean_squared_deviation": ssd / n,
        "worst_index": worst,
        "worst_deviation": float(dev[worst]),
        "outliers": [i for i in range(n) if abs(dev[i]) > OUTLIER_DEVIATION],
    }
