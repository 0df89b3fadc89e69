"""
Fitting of the Tm model against a library of measured helices.

  prepare_tunable(params, count_interactions(library))   # choose what may move
  fit_parameters(params, library)                         # coordinate descent
"""

from __future__ import annotations

from .flags import COUNT_THRESHOLD, flag_by_counts, lock_fixed_chemistry, prepare_tunable
from .optimizer import DELTA, MAX_ROUNDS, FitResult, fit_parameters, tune_parameter

__all__ = [
    "COUNT_THRESHOLD",
    "flag_by_counts",
    "lock_fixed_chemistry",
    "prepare_tunable",
    "DELTA",
    "MAX_ROUNDS",
    "FitResult",
    "fit_parameters",
    "tune_parameter",
]
