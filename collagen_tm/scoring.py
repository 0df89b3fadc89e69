"""
Tm scoring of a triple helix over every strand composition.

For each (leading, middle, trailing) assignment of the peptides:
  length       A + B·n + C·n² (n ≤ 50)
  termination  -1.8 per charged terminus (tags 'n' / 'c'); +3 per end capped by
               Tyr or Trp on all three strands; -1.8 if the first residue is not
               Xaa, -1.8 if the last residue is not Gly (lost terminal H-bonds)
  propensity   Σ Xaa / Yaa propensities, residues at the frayed ends at 1/3 weight
  charge       -(|net| - 6)/3 when |net charge| > 6
  pairwise     three strand-pair threads (lead→mid, mid→trail, trail→lead); best
               stabilizing selection plus all destabilizing candidates
Tm = propensity total + pairwise total.

Only the canonical register takes part in best / second-best / correct
composition selection. Staggered registers can be written into the tensors
(include_staggered=True) for inspection.
"""

from __future__ import annotations

import itertools
from typing import List, NamedTuple, Sequence, Tuple

import numpy as np

from .alphabet import CAPPING_RESIDUES, sequence_indices, residue_charges
from .helix import NO_TRANSITION_TM, Register, TripleHelix
from .interaction_search import thread_contribution
from .parameters import ParameterTable
from .registers import CANONICAL, N_OFFSETS, length_credit, trim_strands

TERMINUS_PENALTY = 1.8
CAPPING_BONUS = 3.0
TERMINAL_HBOND_PENALTY = 1.8
EDGE_WEIGHT = 1.0 / 3.0
NET_CHARGE_ALLOWANCE = 6
# Tags marking a free (charged) amine / carboxylate terminus
CHARGED_N_TERM = "n"
CHARGED_C_TERM = "c"
# Above this a no-transition record counts as over-predicted
NO_TRANSITION_CEILING = 10.0

# (donor strand, acceptor strand, axial reach, lateral reach), strands 0/1/2 =
# leading/middle/trailing. The third thread closes the ring back to the leading strand.
THREADS: Tuple[Tuple[int, int, int, int], ...] = (
    (0, 1, 2, -1),
    (1, 2, 2, -1),
    (2, 0, 5, 2),
)

# Selection sentinels (any real Tm replaces them)
_START_BEST = -1000.0
_START_SECOND = -2000.0
_START_CC = -1500.0


class RegisterScore(NamedTuple):
    propensity: float
    pairwise: float
    tm: float
    net_charge: int
    total_charge: int


def termination_adjustment(helix: TripleHelix, strands: Sequence[str], n_res: int) -> float:
    adj = 0.0
    if helix.n_term == CHARGED_N_TERM:
        adj -= TERMINUS_PENALTY
    if helix.c_term == CHARGED_C_TERM:
        adj -= TERMINUS_PENALTY
    for aa in CAPPING_RESIDUES:
        if all(s[0] == aa for s in strands):
            adj += CAPPING_BONUS
        if all(s[n_res - 1] == aa for s in strands):
            adj += CAPPING_BONUS
    if not helix.is_xaa(0):
        adj -= TERMINAL_HBOND_PENALTY
    if not helix.is_gly(n_res - 1):
        adj -= TERMINAL_HBOND_PENALTY
    return adj


def edge_weights(n_res: int) -> np.ndarray:
    """Per-position propensity weight: 1 in the body, EDGE_WEIGHT at the frayed ends."""
    w = np.full(n_res, EDGE_WEIGHT)
    w[3: max(n_res - 2, 3)] = 1.0
    return w


def propensity_sum(params: ParameterTable, helix: TripleHelix, strands: Sequence[str], n_res: int) -> float:
    xaa, yaa = helix.phase_masks(n_res)
    w = edge_weights(n_res)
    total = 0.0
    for s in strands:
        idx = sequence_indices(s)
        per_res = np.where(xaa, params.propensity_x[idx], 0.0) + np.where(yaa, params.propensity_y[idx], 0.0)
        total += float(np.sum(per_res * w))
    return total


def charge_counts(strands: Sequence[str]) -> Tuple[int, int]:
    """(net charge, number of charged residues) over all strands."""
    net = 0
    total = 0
    for s in strands:
        q = residue_charges(s)
        net += int(q.sum())
        total += int(np.count_nonzero(q))
    return net, total


def charge_penalty(net_charge: int) -> float:
    excess = abs(net_charge) - NET_CHARGE_ALLOWANCE
    return excess / 3.0 if excess > 0 else 0.0


def interaction_thread(
    params: ParameterTable,
    donor: str,
    acceptor: str,
    yaa_positions: np.ndarray,
    axial_reach: int,
    lateral_reach: int,
    n_res: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Axial and lateral candidates for each Yaa position x of the donor strand:
    axial[donor[x], acceptor[x + axial_reach]] and lateral[donor[x], acceptor[x + lateral_reach]],
    0 where the partner falls outside the strand.
    """
    d_idx = sequence_indices(donor)[yaa_positions]
    a_idx = sequence_indices(acceptor)

    def candidates(table: np.ndarray, reach: int) -> np.ndarray:
        j = yaa_positions + reach
        inside = (j >= 0) & (j < n_res)
        partner = a_idx[np.clip(j, 0, n_res - 1)]
        return np.where(inside, table[d_idx, partner], 0.0)

    return candidates(params.axial, axial_reach), candidates(params.lateral, lateral_reach)


def pairwise_sum(params: ParameterTable, helix: TripleHelix, strands: Sequence[str], n_res: int) -> float:
    _, yaa = helix.phase_masks(n_res)
    yaa_positions = np.nonzero(yaa)[0]
    total = 0.0
    for donor, acceptor, axial_reach, lateral_reach in THREADS:
        ax, lat = interaction_thread(
            params, strands[donor], strands[acceptor], yaa_positions, axial_reach, lateral_reach, n_res
        )
        total += thread_contribution(ax, lat)
    return total


def score_register(
    params: ParameterTable,
    helix: TripleHelix,
    a: int,
    b: int,
    c: int,
    offset: int = CANONICAL,
) -> RegisterScore:
    """Score one composition (peptides a, b, c in leading/middle/trailing) at one offset."""
    full = [helix.sequences[p][: helix.num_aa] for p in (a, b, c)]
    strands, n_res = trim_strands(full, offset)
    propensity = params.length_term(n_res + length_credit(offset))
    propensity += termination_adjustment(helix, strands, n_res)
    propensity += propensity_sum(params, helix, strands, n_res)
    net, total = charge_counts(strands)
    propensity -= charge_penalty(net)
    pairwise = pairwise_sum(params, helix, strands, n_res)
    return RegisterScore(propensity, pairwise, propensity + pairwise, net, total)


def deviation_from_experiment(best_tm: float, cc_tm: float, exp_tm: float, same_composition: bool) -> float:
    """
    Signed error of the prediction. No-transition records (exp_tm = -10) only
    penalize predictions above 10 °C. When the best composition is not the correct
    one the error uses the correct composition's Tm, widened by half the gap to the best Tm.
    """
    if exp_tm == NO_TRANSITION_TM:
        return 0.0 if best_tm <= NO_TRANSITION_CEILING else best_tm - NO_TRANSITION_CEILING
    if same_composition:
        return best_tm - exp_tm
    deviation = cc_tm - exp_tm
    gap = 0.5 * abs(cc_tm - best_tm)
    return deviation - gap if deviation < 0 else deviation + gap


def is_correct_composition(num_pep: int, a: int, b: int, c: int) -> bool:
    """Homotrimers accept anything; A2B needs two distinct peptides; ABC needs all three."""
    if num_pep == 1:
        return True
    if num_pep == 2:
        return a != b or a != c or b != c
    return a != b and a != c and b != c


def _record(helix: TripleHelix, reg: Register, score: RegisterScore) -> None:
    helix.propensity[reg] = score.propensity
    helix.pairwise[reg] = score.pairwise
    helix.tm[reg] = score.tm
    helix.net_charge[reg] = score.net_charge
    helix.total_charge[reg] = score.total_charge


def compositions(num_pep: int) -> List[Tuple[int, int, int]]:
    """All (leading, middle, trailing) assignments in enumeration order."""
    return list(itertools.product(range(num_pep), repeat=3))


def score_helix(params: ParameterTable, helix: TripleHelix, include_staggered: bool = False) -> TripleHelix:
    """
    Score every canonical composition of helix in place and fill the summary
    fields (best, second best, specificity, correct composition, deviation).
    Returns helix for chaining. Depends only on params and the record.
    """
    helix.reset_scores()
    best_tm, best_reg = _START_BEST, None
    second_tm, second_reg = _START_SECOND, None
    cc_tm, cc_reg = _START_CC, None

    for a, b, c in compositions(helix.num_pep):
        reg = (a, b, c, CANONICAL)
        score = score_register(params, helix, a, b, c, CANONICAL)
        _record(helix, reg, score)
        tm = score.tm
        if tm >= best_tm:
            second_tm, second_reg = best_tm, best_reg
            best_tm, best_reg = tm, reg
        elif tm >= second_tm:
            second_tm, second_reg = tm, reg
        if is_correct_composition(helix.num_pep, a, b, c) and tm >= cc_tm:
            cc_tm, cc_reg = tm, reg

    if include_staggered:
        for a, b, c in compositions(helix.num_pep):
            for offset in range(1, N_OFFSETS):
                _record(helix, (a, b, c, offset), score_register(params, helix, a, b, c, offset))

    helix.best_tm = best_tm
    helix.best_register = best_reg
    if best_reg is not None:
        helix.best_propensity = float(helix.propensity[best_reg])
        helix.best_pairwise = float(helix.pairwise[best_reg])
    helix.second_tm = second_tm
    helix.second_register = second_reg
    helix.specificity = best_tm - second_tm
    helix.cc_tm = cc_tm
    helix.cc_register = cc_reg
    same = cc_reg is not None and best_reg is not None and cc_reg[:3] == best_reg[:3]
    helix.deviation = deviation_from_experiment(best_tm, cc_tm, helix.exp_tm, same)
    return helix
