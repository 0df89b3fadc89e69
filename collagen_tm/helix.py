"""
Triple-helix record: up to three peptides, terminal tags, experimental Tm and
the per-composition score tensors written by the scorer.

Tensors are indexed [leading, middle, trailing, offset]: the first three are
peptide ids (0..num_pep-1), offset 0 is the canonical register and 1..8 are the
staggered registers listed in registers.py.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .alphabet import GLYCINE

logger = logging.getLogger(__name__)

MAX_PEPTIDES = 3
MIN_RESIDUES = 21
MAX_RESIDUES = 48
N_OFFSETS = 9
# Experimental Tm recorded when no melting transition was observed
NO_TRANSITION_TM = -10.0

Register = Tuple[int, int, int, int]
_TENSOR_SHAPE = (MAX_PEPTIDES, MAX_PEPTIDES, MAX_PEPTIDES, N_OFFSETS)


def _tensor() -> np.ndarray:
    return np.zeros(_TENSOR_SHAPE, dtype=np.float64)


def _int_tensor() -> np.ndarray:
    return np.zeros(_TENSOR_SHAPE, dtype=int)


@dataclass
class TripleHelix:
    sequences: List[str]
    num_pep: int
    num_aa: int
    n_term: str = "initial"
    c_term: str = "initial"
    exp_tm: float = 0.0
    xaa_pos: int = 0

    propensity: np.ndarray = field(default_factory=_tensor)
    pairwise: np.ndarray = field(default_factory=_tensor)
    tm: np.ndarray = field(default_factory=_tensor)
    net_charge: np.ndarray = field(default_factory=_int_tensor)
    total_charge: np.ndarray = field(default_factory=_int_tensor)

    best_tm: float = 0.0
    second_tm: float = 0.0
    specificity: float = 0.0
    cc_tm: float = 0.0
    deviation: float = 0.0
    best_propensity: float = 0.0
    best_pairwise: float = 0.0
    best_register: Optional[Register] = None
    second_register: Optional[Register] = None
    cc_register: Optional[Register] = None

    @classmethod
    def from_sequences(
        cls,
        sequences: Sequence[str],
        n_term: str = "Ac",
        c_term: str = "Am",
        exp_tm: float = 0.0,
    ) -> "TripleHelix":
        """
        Build a record from 1-3 peptide sequences of equal length (21-48 residues).
        Sequences are upper-cased and the glycine phase is classified.
        Raises ValueError for out-of-range peptide or residue counts.
        """
        seqs = ["".join(s.split()).upper() for s in sequences]
        if not 1 <= len(seqs) <= MAX_PEPTIDES:
            raise ValueError(f"Number of unique peptides must be 1-{MAX_PEPTIDES}, got {len(seqs)}")
        n = len(seqs[0])
        if not MIN_RESIDUES <= n <= MAX_RESIDUES:
            raise ValueError(f"Peptides must have {MIN_RESIDUES}-{MAX_RESIDUES} residues, got {n}")
        if any(len(s) != n for s in seqs):
            raise ValueError(f"All peptides must have the same length; got {[len(s) for s in seqs]}")
        helix = cls(
            sequences=seqs,
            num_pep=len(seqs),
            num_aa=n,
            n_term=n_term,
            c_term=c_term,
            exp_tm=float(exp_tm),
        )
        helix.classify_phase()
        return helix

    # Triplet phase

    def _phase(self, position: int) -> int:
        return abs(position + (3 - self.xaa_pos)) % 3

    def is_xaa(self, position: int) -> bool:
        return self._phase(position) == 0

    def is_yaa(self, position: int) -> bool:
        return self._phase(position) == 1

    def is_gly(self, position: int) -> bool:
        return self._phase(position) == 2

    def classify_phase(self) -> bool:
        """
        Locate the every-third-residue glycine on the first peptide and set xaa_pos.
        A phase qualifies when it holds Gly at >= num_aa // 3 positions. Returns False
        (after logging a diagnostic dump) when no phase qualifies; xaa_pos is then the
        phase with the most glycines.
        """
        seq = self.sequences[0][: self.num_aa]
        counts = [0, 0, 0]
        for x, aa in enumerate(seq):
            if aa == GLYCINE:
                counts[x % 3] += 1
        # Gly at x % 3 == k puts the first Xaa at position (k + 1) % 3
        good = False
        for k in range(3):
            if counts[k] >= self.num_aa // 3:
                self.xaa_pos = (k + 1) % 3
                good = True
        if not good:
            k = int(np.argmax(counts))
            self.xaa_pos = (k + 1) % 3
            logger.warning(
                "This peptide does not appear to have a Gly every third residue!\n%s", self.dissect()
            )
        return good

    def phase_masks(self, n_res: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
        """Boolean (xaa, yaa) masks over residue positions 0..n_res-1."""
        n = self.num_aa if n_res is None else n_res
        phase = (np.arange(n) + (3 - self.xaa_pos)) % 3
        return phase == 0, phase == 1

    # Scores

    def reset_scores(self) -> None:
        for arr in (self.propensity, self.pairwise, self.tm, self.net_charge, self.total_charge):
            arr.fill(0)
        self.best_tm = self.second_tm = self.specificity = 0.0
        self.cc_tm = self.deviation = 0.0
        self.best_propensity = self.best_pairwise = 0.0
        self.best_register = self.second_register = self.cc_register = None

    def adopt_scores(self, other: "TripleHelix") -> None:
        """Copy every scored field from other (a scored copy of this record)."""
        self.propensity = other.propensity
        self.pairwise = other.pairwise
        self.tm = other.tm
        self.net_charge = other.net_charge
        self.total_charge = other.total_charge
        self.best_tm = other.best_tm
        self.second_tm = other.second_tm
        self.specificity = other.specificity
        self.cc_tm = other.cc_tm
        self.deviation = other.deviation
        self.best_propensity = other.best_propensity
        self.best_pairwise = other.best_pairwise
        self.best_register = other.best_register
        self.second_register = other.second_register
        self.cc_register = other.cc_register

    def mutate(self, peptide: int, position: int, letter: str) -> None:
        """Replace one residue (scores are not updated; rescore afterwards)."""
        if not 0 <= peptide < self.num_pep:
            raise ValueError(f"peptide must be 0..{self.num_pep - 1}, got {peptide}")
        if not 0 <= position < self.num_aa:
            raise ValueError(f"position must be 0..{self.num_aa - 1}, got {position}")
        if len(letter) != 1 or not letter.isalpha():
            raise ValueError(f"expected a one-letter amino-acid code, got {letter!r}")
        seq = self.sequences[peptide]
        self.sequences[peptide] = seq[:position] + letter.upper() + seq[position + 1:]
        self.classify_phase()

    def dissect(self) -> str:
        """Multi-line diagnostic dump of sequences and scored summary fields."""
        lines = [
            f"numPep = {self.num_pep}",
            f"numAA =  {self.num_aa}",
        ]
        lines.extend(s[: self.num_aa] for s in self.sequences[: self.num_pep])
        lines.extend([
            f"termination: {self.n_term} {self.c_term}",
            f"XaaPos = {self.xaa_pos}",
            f"expTm = {self.exp_tm:g}. CCTm = {self.cc_tm:g}. Deviation = {self.deviation:g}",
            f"CCregister = {_fmt_register(self.cc_register)}",
            f"High Tm = {self.best_tm:g} = {self.best_propensity:g} + {self.best_pairwise:g}",
            f"Best register = {_fmt_register(self.best_register)}",
            f"Second highest Tm = {self.second_tm:g}",
            f"Second Best register = {_fmt_register(self.second_register)}",
            f"Specificity = {self.specificity:g}.",
        ])
        return "\n".join(lines)

    def summary(self) -> Dict[str, Any]:
        """JSON-ready summary of the scored record."""
        def reg(r: Optional[Register]) -> Optional[List[int]]:
            return None if r is None else [int(v) for v in r]

        out: Dict[str, Any] = {
            "num_pep": self.num_pep,
            "num_aa": self.num_aa,
            "sequences": list(self.sequences),
            "n_term": self.n_term,
            "c_term": self.c_term,
            "exp_tm": self.exp_tm,
            "best_tm": float(self.best_tm),
            "best_register": reg(self.best_register),
            "second_tm": float(self.second_tm),
            "second_register": reg(self.second_register),
            "specificity": float(self.specificity),
            "cc_tm": float(self.cc_tm),
            "cc_register": reg(self.cc_register),
            "deviation": float(self.deviation),
        }
        if self.best_register is not None:
            out["best_net_charge"] = int(self.net_charge[self.best_register])
            out["best_total_charge"] = int(self.total_charge[self.best_register])
        return out


def _fmt_register(r: Optional[Register]) -> str:
    if r is None:
        return "-"
    return f"{r[0]},{r[1]},{r[2]}.{r[3]}"
