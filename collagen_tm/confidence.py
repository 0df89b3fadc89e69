"""
How well the training library covers each parameter.

Counts how often each Xaa/Yaa letter and each axial/lateral pair occurs in a
library (pairs over every canonical composition, using the scorer's thread
geometry). The counts decide which parameters are fitted and flag the
interactions of a new design that the model has rarely seen.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, Sequence, Tuple

import numpy as np

from .alphabet import N_SLOTS, aa_index, aa_letter
from .helix import TripleHelix
from .scoring import THREADS, compositions

LOW_CONFIDENCE_CUTOFF = 25


@dataclass
class InteractionCounts:
    propensity_x: np.ndarray = field(default_factory=lambda: np.zeros(N_SLOTS, dtype=int))
    propensity_y: np.ndarray = field(default_factory=lambda: np.zeros(N_SLOTS, dtype=int))
    axial: np.ndarray = field(default_factory=lambda: np.zeros((N_SLOTS, N_SLOTS), dtype=int))
    lateral: np.ndarray = field(default_factory=lambda: np.zeros((N_SLOTS, N_SLOTS), dtype=int))


def _pairs(helix: TripleHelix) -> Iterator[Tuple[str, int, int]]:
    """Every (kind, donor slot, acceptor slot) pair over all canonical compositions."""
    n = helix.num_aa
    for a, b, c in compositions(helix.num_pep):
        strands = [helix.sequences[p] for p in (a, b, c)]
        for x in range(n):
            if not helix.is_yaa(x):
                continue
            for donor, acceptor, axial_reach, lateral_reach in THREADS:
                d = aa_index(strands[donor][x])
                for kind, reach in (("axial", axial_reach), ("lateral", lateral_reach)):
                    j = x + reach
                    if 0 <= j < n:
                        yield kind, d, aa_index(strands[acceptor][j])


def count_interactions(helices: Sequence[TripleHelix]) -> InteractionCounts:
    counts = InteractionCounts()
    for helix in helices:
        for p in range(helix.num_pep):
            seq = helix.sequences[p]
            for x in range(helix.num_aa):
                if helix.is_xaa(x):
                    counts.propensity_x[aa_index(seq[x])] += 1
                elif helix.is_yaa(x):
                    counts.propensity_y[aa_index(seq[x])] += 1
        for kind, d, acc in _pairs(helix):
            getattr(counts, kind)[d, acc] += 1
    return counts


def low_confidence_interactions(
    helix: TripleHelix,
    counts: InteractionCounts,
    cutoff: int = LOW_CONFIDENCE_CUTOFF,
) -> Dict[str, object]:
    """
    Interactions of helix (over all canonical compositions) whose pair was seen
    fewer than cutoff times in training. Returns total and per-pair tallies keyed
    by 'Yaa,Xaa' letter pairs.
    """
    axial: Dict[str, int] = {}
    lateral: Dict[str, int] = {}
    total = 0
    for kind, d, acc in _pairs(helix):
        if getattr(counts, kind)[d, acc] >= cutoff:
            continue
        total += 1
        tally = axial if kind == "axial" else lateral
        label = f"{aa_letter(d)},{aa_letter(acc)}"
        tally[label] = tally.get(label, 0) + 1
    return {"total": total, "axial": axial, "lateral": lateral}
