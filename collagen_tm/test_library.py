"""
Unit tests for library evaluation: partitioning, parallel vs in-process
rescoring, and aggregate statistics.

Run: pytest collagen_tm/test_library.py -v
"""

from __future__ import annotations

import copy

import numpy as np

from .helix import TripleHelix
from .library import (
    WORKERS_ENV,
    default_worker_count,
    library_statistics,
    partition_bounds,
    rescore_library,
    score_library,
    sum_squared_deviation,
)
from .parameters import ParameterTable

LIBRARY_SEQUENCES = [
    (["PPG" * 8], 36.0),
    (["POG" * 8], 47.0),
    (["PKGEOG" * 4], 30.0),
    (["PPG" * 8, "POG" * 8], 40.0),
    (["PKGPOG" * 4, "PEGPOG" * 4, "POG" * 8], 35.0),
    (["EKG" * 10], -10.0),
]


def _library():
    return [TripleHelix.from_sequences(seqs, exp_tm=tm) for seqs, tm in LIBRARY_SEQUENCES]


def _params() -> ParameterTable:
    rng = np.random.default_rng(11)
    params = ParameterTable.zeros()
    params.length_a = 10.0
    params.propensity_x[:] = rng.normal(0.0, 1.0, size=params.propensity_x.shape)
    params.propensity_y[:] = rng.normal(0.0, 1.0, size=params.propensity_y.shape)
    params.axial[:] = rng.normal(0.0, 0.5, size=params.axial.shape)
    params.lateral[:] = rng.normal(0.0, 0.5, size=params.lateral.shape)
    return params


def test_partition_bounds_cover():
    """Partitions are contiguous, disjoint and cover every index exactly once."""
    assert partition_bounds(10, 2) == [(0, 5), (5, 10)]
    assert partition_bounds(3, 5) == [(0, 1), (1, 2), (2, 3)]
    assert partition_bounds(0, 4) == []
    for total in range(0, 30):
        for parts in range(1, 7):
            bounds = partition_bounds(total, parts)
            covered = [i for start, stop in bounds for i in range(start, stop)]
            assert covered == list(range(total))


def test_parallel_matches_in_process():
    params = _params()
    serial = _library()
    parallel = copy.deepcopy(serial)
    rescore_library(params, serial, n_workers=1)
    rescore_library(params, parallel, n_workers=2)
    for s, p in zip(serial, parallel):
        np.testing.assert_array_equal(s.tm, p.tm)
        assert s.best_register == p.best_register
        assert s.cc_register == p.cc_register
        assert s.deviation == p.deviation
    assert sum_squared_deviation(serial) == sum_squared_deviation(parallel)


def test_score_library_range():
    params = _params()
    helices = _library()
    score_library(params, helices, 1, 3)
    assert helices[0].best_register is None
    assert helices[1].best_register is not None
    assert helices[2].best_register is not None
    assert helices[3].best_register is None


def test_library_statistics():
    helices = _library()
    for h, dev in zip(helices, [1.0, -2.0, 0.5, 12.0, -3.0, 0.0]):
        h.deviation = dev
    stats = library_statistics(helices)
    assert stats["n"] == 6
    np.testing.assert_allclose(stats["sum_deviation"], 8.5)
    np.testing.assert_allclose(stats["sum_squared_deviation"], 1 + 4 + 0.25 + 144 + 9)
    assert stats["worst_index"] == 3
    assert stats["worst_deviation"] == 12.0
    assert stats["outliers"] == [3]
    assert library_statistics([])["n"] == 0


def test_worker_count_from_environment(monkeypatch):
    monkeypatch.setenv(WORKERS_ENV, "3")
    assert default_worker_count() == 3
    monkeypatch.setenv(WORKERS_ENV, "0")
    assert default_worker_count() == 1
    monkeypatch.delenv(WORKERS_ENV)
    assert default_worker_count() >= 1
