"""
Parameter table for the triple-helix Tm model.

Tm(composition) = length term + termination + Σ propensity + pairwise, where
  length term = A + B·n + C·n² (n capped at 50 residues)
  propensity  = per-letter contribution at Xaa and Yaa positions
  pairwise    = axial / lateral contributions between adjacent strands.

Every tunable scalar carries a reference ("experimental") value; fitting may
move a value at most max_dev away from its reference.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Iterator, NamedTuple

import numpy as np

from .alphabet import N_SLOTS, aa_letter

LENGTH_CAP = 50
MAX_DEV = 2.0

PROPENSITY_X = "propensity_x"
PROPENSITY_Y = "propensity_y"
AXIAL = "axial"
LATERAL = "lateral"
KINDS = (PROPENSITY_X, PROPENSITY_Y, AXIAL, LATERAL)


class ParameterKey(NamedTuple):
    """One scalar parameter: table kind, leading slot, trailing slot (0 for propensities)."""

    kind: str
    first: int
    second: int = 0


def _vector() -> np.ndarray:
    return np.zeros(N_SLOTS, dtype=np.float64)


def _matrix() -> np.ndarray:
    return np.zeros((N_SLOTS, N_SLOTS), dtype=np.float64)


def _vector_flags() -> np.ndarray:
    return np.zeros(N_SLOTS, dtype=bool)


def _matrix_flags() -> np.ndarray:
    return np.zeros((N_SLOTS, N_SLOTS), dtype=bool)


@dataclass
class ParameterTable:
    """
    Live values, reference values and tunable flags for the scoring model.

    axial[l1, l2] / lateral[l1, l2]: leading-residue slot l1, trailing-residue slot l2.
    propensity_x / propensity_y: per-slot contribution at Xaa / Yaa positions.
    charge, n_term_charge, c_term_charge are carried through files but unused by scoring.
    """

    axial: np.ndarray = field(default_factory=_matrix)
    lateral: np.ndarray = field(default_factory=_matrix)
    propensity_x: np.ndarray = field(default_factory=_vector)
    propensity_y: np.ndarray = field(default_factory=_vector)
    length_a: float = 0.0
    length_b: float = 0.0
    length_c: float = 0.0
    charge: float = 0.0
    n_term_charge: float = 0.0
    c_term_charge: float = 0.0

    opt_length: bool = False
    opt_axial: np.ndarray = field(default_factory=_matrix_flags)
    opt_lateral: np.ndarray = field(default_factory=_matrix_flags)
    opt_propensity_x: np.ndarray = field(default_factory=_vector_flags)
    opt_propensity_y: np.ndarray = field(default_factory=_vector_flags)

    ref_axial: np.ndarray = field(default_factory=_matrix)
    ref_lateral: np.ndarray = field(default_factory=_matrix)
    ref_propensity_x: np.ndarray = field(default_factory=_vector)
    ref_propensity_y: np.ndarray = field(default_factory=_vector)
    ref_length_a: float = 0.0
    ref_length_b: float = 0.0
    ref_length_c: float = 0.0
    ref_charge: float = 0.0
    ref_n_term_charge: float = 0.0
    ref_c_term_charge: float = 0.0

    max_dev: float = MAX_DEV

    @classmethod
    def zeros(cls) -> "ParameterTable":
        return cls()

    def copy(self) -> "ParameterTable":
        kwargs = {}
        for f in fields(self):
            v = getattr(self, f.name)
            kwargs[f.name] = v.copy() if isinstance(v, np.ndarray) else v
        return type(self)(**kwargs)

    def length_term(self, n_res: int) -> float:
        """Quadratic length contribution, n capped at LENGTH_CAP."""
        n = min(n_res, LENGTH_CAP)
        return self.length_a + self.length_b * n + self.length_c * n * n

    # Scalar access by key

    def _tables(self, kind: str):
        if kind == PROPENSITY_X:
            return self.propensity_x, self.ref_propensity_x, self.opt_propensity_x
        if kind == PROPENSITY_Y:
            return self.propensity_y, self.ref_propensity_y, self.opt_propensity_y
        if kind == AXIAL:
            return self.axial, self.ref_axial, self.opt_axial
        if kind == LATERAL:
            return self.lateral, self.ref_lateral, self.opt_lateral
        raise ValueError(f"Unknown parameter kind: {kind}")

    @staticmethod
    def _where(key: ParameterKey):
        if key.kind in (PROPENSITY_X, PROPENSITY_Y):
            return (key.first,)
        return (key.first, key.second)

    def value(self, key: ParameterKey) -> float:
        live, _, _ = self._tables(key.kind)
        return float(live[self._where(key)])

    def set_value(self, key: ParameterKey, value: float) -> None:
        live, _, _ = self._tables(key.kind)
        live[self._where(key)] = value

    def reference(self, key: ParameterKey) -> float:
        _, ref, _ = self._tables(key.kind)
        return float(ref[self._where(key)])

    def is_tunable(self, key: ParameterKey) -> bool:
        _, _, opt = self._tables(key.kind)
        return bool(opt[self._where(key)])

    def set_tunable(self, key: ParameterKey, flag: bool) -> None:
        _, _, opt = self._tables(key.kind)
        opt[self._where(key)] = flag

    def within_bounds(self, key: ParameterKey, value: float) -> bool:
        ref = self.reference(key)
        return ref - self.max_dev <= value <= ref + self.max_dev

    def all_keys(self) -> Iterator[ParameterKey]:
        """
        Every scalar in optimizer order: for each leading slot, Xaa then Yaa
        propensity, then for each trailing slot the axial cell followed by the lateral cell.
        """
        for first in range(N_SLOTS):
            yield ParameterKey(PROPENSITY_X, first)
            yield ParameterKey(PROPENSITY_Y, first)
            for second in range(N_SLOTS):
                yield ParameterKey(AXIAL, first, second)
                yield ParameterKey(LATERAL, first, second)

    def tunable_keys(self) -> Iterator[ParameterKey]:
        return (k for k in self.all_keys() if self.is_tunable(k))

    def n_tunable(self) -> int:
        return int(
            self.opt_propensity_x.sum() + self.opt_propensity_y.sum()
            + self.opt_axial.sum() + self.opt_lateral.sum()
        )

    @staticmethod
    def label(key: ParameterKey) -> str:
        if key.kind == PROPENSITY_X:
            return f"Xaa{aa_letter(key.first)}"
        if key.kind == PROPENSITY_Y:
            return f"Yaa{aa_letter(key.first)}"
        return f"{key.kind}{aa_letter(key.first)},{aa_letter(key.second)}"
