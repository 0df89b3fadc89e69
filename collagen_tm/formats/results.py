"""
Result tables (pandas).

One table per composition class, written as space-separated text:
  A3.txt   homotrimers      n ExpTm A3 HighTm Dev
  A2B.txt  two peptides     n ExpTm A2B HighTm Dev
  ABC.txt  three peptides   n ExpTm ABC HighTm Dev
n is the record's index in the library; the class column is the correct-composition Tm.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Sequence, Union

import pandas as pd

from ..helix import TripleHelix
from ..registers import CANONICAL
from ..scoring import compositions, is_correct_composition

CLASS_NAMES = {1: "A3", 2: "A2B", 3: "ABC"}


def results_frame(helices: Sequence[TripleHelix], num_pep: int) -> pd.DataFrame:
    """Scored records with num_pep peptides, indexed rows in library order."""
    name = CLASS_NAMES[num_pep]
    rows = [
        {"n": n, "ExpTm": h.exp_tm, name: h.cc_tm, "HighTm": h.best_tm, "Dev": h.deviation}
        for n, h in enumerate(helices)
        if h.num_pep == num_pep
    ]
    return pd.DataFrame(rows, columns=["n", "ExpTm", name, "HighTm", "Dev"])


def write_result_tables(helices: Sequence[TripleHelix], out_dir: Union[str, Path] = ".") -> Dict[str, Path]:
    """Write A3.txt, A2B.txt and ABC.txt into out_dir. Returns {class name: path}."""
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    written: Dict[str, Path] = {}
    for num_pep, name in CLASS_NAMES.items():
        path = out / f"{name}.txt"
        results_frame(helices, num_pep).to_csv(path, sep=" ", index=False, float_format="%g")
        written[name] = path
    return written


def register_frame(helix: TripleHelix) -> pd.DataFrame:
    """Every canonical composition of a scored helix with its terms and selection flags."""
    rows = []
    for a, b, c in compositions(helix.num_pep):
        reg = (a, b, c, CANONICAL)
        rows.append({
            "leading": a,
            "middle": b,
            "trailing": c,
            "propensity": float(helix.propensity[reg]),
            "pairwise": float(helix.pairwise[reg]),
            "tm": float(helix.tm[reg]),
            "net_charge": int(helix.net_charge[reg]),
            "total_charge": int(helix.total_charge[reg]),
            "correct": is_correct_composition(helix.num_pep, a, b, c),
            "best": reg == helix.best_register,
            "second": reg == helix.second_register,
        })
    return pd.DataFrame(rows)
