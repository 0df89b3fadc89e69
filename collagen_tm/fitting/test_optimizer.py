"""
Unit tests for fitting: count-based flags, chemistry locks, bounded coordinate
descent and exact restoration of rejected parameters.

Run: pytest collagen_tm/fitting/test_optimizer.py -v
"""

from __future__ import annotations

import numpy as np

from ..alphabet import aa_index
from ..confidence import count_interactions
from ..helix import TripleHelix
from ..parameters import AXIAL, LATERAL, PROPENSITY_X, PROPENSITY_Y, ParameterKey, ParameterTable
from .flags import flag_by_counts, lock_fixed_chemistry, prepare_tunable
from .optimizer import fit_parameters, tune_parameter

P = aa_index("P")
O = aa_index("O")
YAA_P = ParameterKey(PROPENSITY_Y, P)


def _single_parameter_problem(exp_tm: float = 2.5):
    """PPG homotrimer whose Tm is 20 x propensity_y[P] (6 body + 2 edge Yaa per strand)."""
    params = ParameterTable.zeros()
    params.set_tunable(YAA_P, True)
    helices = [TripleHelix.from_sequences(["PPG" * 8], exp_tm=exp_tm)]
    return params, helices


def test_fit_improves_and_converges():
    params, helices = _single_parameter_problem()
    result = fit_parameters(params, helices, n_workers=1)
    np.testing.assert_allclose(result.initial_ssd, 6.25)
    np.testing.assert_allclose(result.final_ssd, 0.25)
    # Round 1 accepts +0.1; round 2 finds nothing better and stops
    assert result.rounds == 2
    assert result.converged
    assert params.value(YAA_P) == 0.1
    assert [label for label, _, _ in result.adjustments] == ["YaaP"]
    np.testing.assert_allclose(helices[0].best_tm, 2.0)


def test_history_never_increases():
    params = ParameterTable.zeros()
    for letter in "PO":
        params.set_tunable(ParameterKey(PROPENSITY_X, aa_index(letter)), True)
        params.set_tunable(ParameterKey(PROPENSITY_Y, aa_index(letter)), True)
    params.set_tunable(ParameterKey(AXIAL, O, P), True)
    helices = [
        TripleHelix.from_sequences(["PPG" * 8], exp_tm=12.0),
        TripleHelix.from_sequences(["POG" * 8], exp_tm=25.0),
        TripleHelix.from_sequences(["OPG" * 8], exp_tm=-10.0),
    ]
    result = fit_parameters(params, helices, max_rounds=5, n_workers=1)
    trace = [result.initial_ssd] + result.history
    assert all(b <= a for a, b in zip(trace, trace[1:]))
    assert result.final_ssd <= result.initial_ssd
    assert result.rounds <= 5


def test_bounds_block_every_trial():
    """With max_dev below delta no trial is in bounds and nothing moves."""
    params, helices = _single_parameter_problem()
    result = fit_parameters(params, helices, max_dev=0.05, n_workers=1)
    assert params.value(YAA_P) == 0.0
    assert result.rounds == 1
    assert result.converged
    assert result.adjustments == []
    assert result.final_ssd == result.initial_ssd


def test_values_stay_within_reference_bounds():
    params, helices = _single_parameter_problem(exp_tm=500.0)
    fit_parameters(params, helices, max_dev=0.35, n_workers=1)
    assert abs(params.value(YAA_P) - params.reference(YAA_P)) <= 0.35


def test_rejected_parameter_restored_exactly():
    params = ParameterTable.zeros()
    params.set_value(YAA_P, 0.3)
    params.ref_propensity_y[P] = 0.3
    accepted, ssd = tune_parameter(params, YAA_P, 0.1, 1.0, lambda: 2.0)
    assert not accepted
    assert ssd == 1.0
    assert params.value(YAA_P) == 0.3


def test_plus_trial_starts_from_original():
    params = ParameterTable.zeros()
    params.set_value(YAA_P, 0.3)
    params.ref_propensity_y[P] = 0.3
    trials = []

    def evaluate():
        trials.append(params.value(YAA_P))
        return 0.5 if len(trials) == 2 else 2.0

    accepted, ssd = tune_parameter(params, YAA_P, 0.1, 1.0, evaluate)
    assert accepted and ssd == 0.5
    np.testing.assert_allclose(trials, [0.2, 0.4])
    assert params.value(YAA_P) == 0.3 + 0.1


def test_parallel_fit_matches_in_process():
    serial_params, serial = _single_parameter_problem()
    parallel_params, parallel = _single_parameter_problem()
    a = fit_parameters(serial_params, serial, n_workers=1)
    b = fit_parameters(parallel_params, parallel, n_workers=2)
    assert a.final_ssd == b.final_ssd
    assert serial_params.value(YAA_P) == parallel_params.value(YAA_P)


def test_flags_and_chemistry_locks():
    helices = [TripleHelix.from_sequences(["PPG" * 8]) for _ in range(2)]
    counts = count_interactions(helices)
    params = ParameterTable.zeros()
    added = flag_by_counts(params, counts, threshold=10)
    assert params.opt_propensity_x[P] and params.opt_propensity_y[P]
    assert params.opt_axial[P, P] and params.opt_lateral[P, P]
    assert added == 4

    lock_fixed_chemistry(params)
    assert not params.opt_propensity_x[P]
    assert params.opt_propensity_y[P]
    assert not params.opt_axial[P, P]
    assert not params.opt_lateral[P, P]


def test_hydroxyproline_locks():
    params = ParameterTable.zeros()
    params.opt_propensity_y[:] = True
    params.opt_axial[:] = True
    params.opt_lateral[:] = True
    lock_fixed_chemistry(params)
    assert not params.opt_propensity_y[O]
    assert not params.opt_axial[O, :].any() and not params.opt_axial[:, O].any()
    assert not params.opt_lateral[O, :].any() and not params.opt_lateral[:, O].any()
    assert not params.opt_lateral[:, P].any()
    assert not params.opt_axial[P, :].any()
    # Lateral pairs led by Pro stay tunable
    assert params.opt_lateral[P, aa_index("E")]
    assert params.is_tunable(ParameterKey(LATERAL, P, aa_index("K")))


def test_prepare_tunable_counts():
    helices = [TripleHelix.from_sequences(["PPG" * 8]) for _ in range(2)]
    params = ParameterTable.zeros()
    assert prepare_tunable(params, count_interactions(helices), threshold=10) == 1
