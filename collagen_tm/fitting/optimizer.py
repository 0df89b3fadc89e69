"""
Coordinate-descent fit of propensity and pairwise parameters.

Each round visits every tunable scalar in a fixed order. A parameter is first
tried at value - delta, then at value + delta; a trial is only scored when it
stays within max_dev of the parameter's reference value, and it is kept only
if the library's sum of squared deviations drops. Otherwise the original value
is restored exactly. Rounds repeat until one changes nothing or max_rounds is hit.
Length coefficients are not fitted (training libraries span too few lengths).
"""

from __future__ import annotations

import logging
import multiprocessing
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from ..helix import TripleHelix
from ..library import default_worker_count, rescore_library, sum_squared_deviation
from ..parameters import ParameterKey, ParameterTable

logger = logging.getLogger(__name__)

DELTA = 0.1
MAX_ROUNDS = 25


@dataclass
class FitResult:
    initial_ssd: float
    final_ssd: float
    rounds: int = 0
    converged: bool = False
    n_tunable: int = 0
    history: List[float] = field(default_factory=list)
    adjustments: List[Tuple[str, float, float]] = field(default_factory=list)
    elapsed_s: float = 0.0


def tune_parameter(
    params: ParameterTable,
    key: ParameterKey,
    delta: float,
    current_ssd: float,
    evaluate: Callable[[], float],
) -> Tuple[bool, float]:
    """
    Try key at value - delta, then value + delta. Returns (accepted, ssd).
    Out-of-bounds trials are skipped; a rejected parameter is restored bit-for-bit.
    """
    original = params.value(key)
    for trial in (original - delta, original + delta):
        if not params.within_bounds(key, trial):
            continue
        params.set_value(key, trial)
        new_ssd = evaluate()
        if new_ssd < current_ssd:
            return True, new_ssd
    params.set_value(key, original)
    return False, current_ssd


def fit_parameters(
    params: ParameterTable,
    helices: Sequence[TripleHelix],
    delta: float = DELTA,
    max_dev: Optional[float] = None,
    max_rounds: int = MAX_ROUNDS,
    n_workers: Optional[int] = None,
) -> FitResult:
    """
    Fit the tunable parameters of params (modified in place) against helices.
    Library rescoring runs on one worker pool kept open for the whole fit; when it
    returns, every helix is scored with the accepted parameters.
    """
    if max_dev is not None:
        params.max_dev = max_dev
    n_workers = default_worker_count() if n_workers is None else n_workers
    pool = multiprocessing.Pool(n_workers) if n_workers > 1 else None
    try:
        return _coordinate_descent(params, helices, delta, max_rounds, n_workers, pool)
    finally:
        if pool is not None:
            pool.close()
            pool.join()


def _coordinate_descent(
    params: ParameterTable,
    helices: Sequence[TripleHelix],
    delta: float,
    max_rounds: int,
    n_workers: int,
    pool,
) -> FitResult:
    def evaluate() -> float:
        rescore_library(params, helices, n_workers=n_workers, pool=pool)
        return sum_squared_deviation(helices)

    t0 = time.time()
    ssd = evaluate()
    result = FitResult(initial_ssd=ssd, final_ssd=ssd, n_tunable=params.n_tunable())
    n = max(len(helices), 1)
    logger.info(
        "Starting fit: %d helices, %d tunable parameters, SSDev = %.4f (avg %.4f); "
        "delta = %g, max deviation = %g, max rounds = %d",
        len(helices), result.n_tunable, ssd, ssd / n, delta, params.max_dev, max_rounds,
    )
    if not helices or result.n_tunable == 0:
        result.converged = True
        result.elapsed_s = time.time() - t0
        return result

    done = False
    while not done:
        improved_round = False
        for key in list(params.tunable_keys()):
            accepted, ssd = tune_parameter(params, key, delta, ssd, evaluate)
            if accepted:
                improved_round = True
                value = params.value(key)
                result.adjustments.append((params.label(key), value, ssd))
                logger.info("%s adjusted to %g. New SSDev = %.4f", params.label(key), value, ssd)
        result.rounds += 1
        result.history.append(ssd)
        logger.info("End round #%d. Avg of SSDev = %.4f", result.rounds, ssd / n)
        if not improved_round:
            result.converged = True
            done = True
        elif result.rounds >= max_rounds:
            done = True

    # The last trial may have been rejected; leave the library scored with accepted values.
    result.final_ssd = evaluate()
    result.elapsed_s = time.time() - t0
    logger.info("Fit finished after %d rounds in %.1f s. SSDev = %.4f", result.rounds, result.elapsed_s, result.final_ssd)
    return result
