"""
Unit tests for the helix record, alphabet and parameter table: validation,
glycine phase, edits, summaries, key order and bounds.

Run: pytest collagen_tm/test_helix.py -v
"""

from __future__ import annotations

import logging

import numpy as np
import pytest

from .alphabet import N_SLOTS, aa_index, aa_letter, residue_charges, sequence_indices
from .helix import TripleHelix
from .parameters import AXIAL, LATERAL, PROPENSITY_X, PROPENSITY_Y, ParameterKey, ParameterTable
from .scoring import score_helix


def test_alphabet_slots():
    assert N_SLOTS == 27
    assert aa_index("A") == 1 and aa_index("Z") == 26
    assert aa_index("p") == aa_index("P")
    assert aa_index("-") == 0 and aa_index("") == 0
    assert aa_letter(16) == "P"
    assert aa_letter(0) == "?"
    with pytest.raises(IndexError):
        aa_letter(27)
    np.testing.assert_array_equal(sequence_indices("GPO"), [7, 16, 15])
    np.testing.assert_array_equal(residue_charges("KRDEG"), [1, 1, -1, -1, 0])


def test_from_sequences_validation():
    with pytest.raises(ValueError):
        TripleHelix.from_sequences(["PPG" * 6])  # 18 residues
    with pytest.raises(ValueError):
        TripleHelix.from_sequences(["PPG" * 17])  # 51 residues
    with pytest.raises(ValueError):
        TripleHelix.from_sequences(["PPG" * 8] * 4)
    with pytest.raises(ValueError):
        TripleHelix.from_sequences(["PPG" * 8, "PPG" * 9])
    h = TripleHelix.from_sequences(["ppg" * 8])
    assert h.sequences == ["PPG" * 8]
    assert (h.n_term, h.c_term) == ("Ac", "Am")


def test_glycine_phase():
    assert TripleHelix.from_sequences(["GPP" * 8]).xaa_pos == 1
    assert TripleHelix.from_sequences(["PGP" * 8]).xaa_pos == 2
    h = TripleHelix.from_sequences(["PPG" * 8])
    assert h.xaa_pos == 0
    assert h.is_xaa(0) and h.is_yaa(1) and h.is_gly(2)
    xaa, yaa = h.phase_masks()
    assert xaa.sum() == 8 and yaa.sum() == 8


def test_missing_glycine_phase_is_reported(caplog):
    with caplog.at_level(logging.WARNING):
        h = TripleHelix.from_sequences(["PPGPPA" * 4])
    assert "Gly every third residue" in caplog.text
    # Only four Gly, all at x % 3 == 2
    assert h.xaa_pos == 0


def test_mutate_and_rescore():
    params = ParameterTable.zeros()
    h = score_helix(params, TripleHelix.from_sequences(["PPG" * 8]))
    assert h.best_tm == 0.0
    h.mutate(0, 4, "k")
    assert h.sequences[0][4] == "K"
    score_helix(params, h)
    assert h.net_charge[h.best_register] == 3
    with pytest.raises(ValueError):
        h.mutate(1, 0, "A")
    with pytest.raises(ValueError):
        h.mutate(0, 24, "A")


def test_summary_and_dissect():
    h = score_helix(ParameterTable.zeros(), TripleHelix.from_sequences(["PPG" * 8, "POG" * 8], exp_tm=30.0))
    s = h.summary()
    assert s["num_pep"] == 2
    assert s["best_register"] == list(h.best_register)
    assert s["deviation"] == h.deviation
    text = h.dissect()
    assert "POG" * 8 in text
    assert "Best register" in text


def test_adopt_scores():
    params = ParameterTable.zeros()
    params.length_a = 4.0
    scored = score_helix(params, TripleHelix.from_sequences(["PPG" * 8]))
    target = TripleHelix.from_sequences(["PPG" * 8])
    target.adopt_scores(scored)
    assert target.best_tm == 4.0
    assert target.best_register == scored.best_register


def test_parameter_key_order_and_labels():
    keys = list(ParameterTable.zeros().all_keys())
    assert len(keys) == N_SLOTS * (2 + 2 * N_SLOTS)
    assert keys[0] == ParameterKey(PROPENSITY_X, 0)
    assert keys[1] == ParameterKey(PROPENSITY_Y, 0)
    assert keys[2] == ParameterKey(AXIAL, 0, 0)
    assert keys[3] == ParameterKey(LATERAL, 0, 0)
    assert ParameterTable.label(ParameterKey(AXIAL, aa_index("Y"), aa_index("P"))) == "axialY,P"
    assert ParameterTable.label(ParameterKey(PROPENSITY_X, aa_index("E"))) == "XaaE"


def test_parameter_bounds_and_copy():
    params = ParameterTable.zeros()
    key = ParameterKey(LATERAL, aa_index("E"), aa_index("K"))
    params.ref_lateral[key.first, key.second] = 1.0
    assert params.within_bounds(key, 3.0)
    assert params.within_bounds(key, -1.0)
    assert not params.within_bounds(key, 3.01)
    clone = params.copy()
    clone.set_value(key, 2.5)
    assert params.value(key) == 0.0
    assert clone.reference(key) == 1.0
    assert params.length_term(80) == params.length_term(50)
