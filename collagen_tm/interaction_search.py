"""
Best stabilizing pairwise sum along one interaction thread.

A thread is the run of Yaa positions between two adjacent strands. At each
position the helix can use no interaction, the lateral one or the axial one,
but never the same kind twice in a row. Only stabilizing (positive)
contributions count toward the optimum; destabilizing candidates are forced
into the score separately (forced_destabilizing).

The optimum depends only on (position, previous kind), so a 3-state forward
pass over the thread gives the same value as enumerating all 3^m choices.
"""

from __future__ import annotations

import itertools
from typing import Sequence

NONE = 0
LATERAL = 1
AXIAL = 2
KINDS = (NONE, LATERAL, AXIAL)


def _gain(kind: int, axial: float, lateral: float) -> float:
    if kind == AXIAL:
        return axial if axial > 0 else 0.0
    if kind == LATERAL:
        return lateral if lateral > 0 else 0.0
    return 0.0


def best_interaction_sum(axial: Sequence[float], lateral: Sequence[float]) -> float:
    """
    Maximum sum of stabilizing contributions with no kind repeated at consecutive
    positions. axial[i] / lateral[i] are the candidates at thread position i.
    Empty thread → 0.0.
    """
    m = min(len(axial), len(lateral))
    if m == 0:
        return 0.0
    # best[k]: best sum over positions 0..i with kind k chosen at i
    best = [_gain(k, float(axial[0]), float(lateral[0])) for k in KINDS]
    for i in range(1, m):
        a, l = float(axial[i]), float(lateral[i])
        best = [
            max(best[p] for p in KINDS if p != k) + _gain(k, a, l)
            for k in KINDS
        ]
    return max(best)


def best_interaction_sum_exhaustive(axial: Sequence[float], lateral: Sequence[float]) -> float:
    """Reference enumeration over every valid kind sequence. Exponential; for checking only."""
    m = min(len(axial), len(lateral))
    if m == 0:
        return 0.0
    best = None
    for choice in itertools.product(KINDS, repeat=m):
        if any(choice[i] == choice[i - 1] for i in range(1, m)):
            continue
        total = 0.0
        for i, k in enumerate(choice):
            total = total + _gain(k, float(axial[i]), float(lateral[i]))
        if best is None or total > best:
            best = total
    return best


def forced_destabilizing(axial: Sequence[float], lateral: Sequence[float]) -> float:
    """Sum of every negative candidate on the thread (always applied)."""
    total = 0.0
    for a, l in zip(axial, lateral):
        if a < 0:
            total += a
        if l < 0:
            total += l
    return total


def thread_contribution(axial: Sequence[float], lateral: Sequence[float]) -> float:
    """Optimal stabilizing selection plus all destabilizing candidates."""
    return best_interaction_sum(axial, lateral) + forced_destabilizing(axial, lateral)
