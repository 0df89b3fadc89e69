"""
Which parameters a fit may move.

A parameter becomes tunable when the training library exercises it more than
COUNT_THRESHOLD times. Known chemistry is then locked regardless of counts:
Pro at Xaa and Hyp at Yaa are the reference residues, Hyp pairs and pairs with
Pro as the trailing residue stay at their file values, as do axial pairs led by Pro.
"""

from __future__ import annotations

from ..alphabet import HYDROXYPROLINE, PROLINE, aa_index
from ..confidence import InteractionCounts
from ..parameters import ParameterTable

COUNT_THRESHOLD = 25


def flag_by_counts(params: ParameterTable, counts: InteractionCounts, threshold: int = COUNT_THRESHOLD) -> int:
    """Mark parameters seen more than threshold times as tunable. Returns how many were added."""
    before = params.n_tunable()
    params.opt_propensity_x |= counts.propensity_x > threshold
    params.opt_propensity_y |= counts.propensity_y > threshold
    params.opt_axial |= counts.axial > threshold
    params.opt_lateral |= counts.lateral > threshold
    return params.n_tunable() - before


def lock_fixed_chemistry(params: ParameterTable) -> None:
    pro = aa_index(PROLINE)
    hyp = aa_index(HYDROXYPROLINE)
    params.opt_propensity_x[pro] = False
    params.opt_propensity_y[hyp] = False
    for table in (params.opt_axial, params.opt_lateral):
        table[hyp, :] = False
        table[:, hyp] = False
        table[:, pro] = False
    params.opt_axial[pro, :] = False


def prepare_tunable(params: ParameterTable, counts: InteractionCounts, threshold: int = COUNT_THRESHOLD) -> int:
    """flag_by_counts followed by lock_fixed_chemistry; returns the final tunable count."""
    flag_by_counts(params, counts, threshold)
    lock_fixed_chemistry(params)
    return params.n_tunable()
