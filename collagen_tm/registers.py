"""
Register offsets for a three-strand helix.

Offset 0 ({012}) is the canonical one-residue stagger. Offsets 1-8 shift the
middle and/or trailing strand by whole triplets; they are scored by trimming
the overhanging ends so the overlap is again a canonical helix.

  0 {012}  canonical
  1 {015}  trailing +1 triplet
  2 {042}  middle +1 triplet
  3 {045}  middle and trailing +1 triplet
  4 {018}  trailing +2 triplets
  5 {048}  middle +1, trailing +2 triplets
  6 {072}  middle +2 triplets
  7 {075}  middle +2, trailing +1 triplets
  8 {078}  middle and trailing +2 triplets
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

CANONICAL = 0

# Extra stagger (residues) of (leading, middle, trailing) strands per offset
OFFSET_STAGGERS: Tuple[Tuple[int, int, int], ...] = (
    (0, 0, 0),
    (0, 0, 3),
    (0, 3, 0),
    (0, 3, 3),
    (0, 0, 6),
    (0, 3, 6),
    (0, 6, 0),
    (0, 6, 3),
    (0, 6, 6),
)
OFFSET_LABELS = ("{012}", "{015}", "{042}", "{045}", "{018}", "{048}", "{072}", "{075}", "{078}")
N_OFFSETS = len(OFFSET_STAGGERS)


def triplet_shift(offset: int) -> int:
    """Number of triplets lost to trimming at this offset (0, 1 or 2)."""
    return max(OFFSET_STAGGERS[offset]) // 3


def length_credit(offset: int) -> int:
    """Residues credited back to the length model for a trimmed register."""
    return triplet_shift(offset)


def trim_strands(strands: Sequence[str], offset: int) -> Tuple[List[str], int]:
    """
    Trim (leading, middle, trailing) strands to their overlap at this offset.
    A strand staggered by s keeps residues [s_max - s, n - s). Returns the
    trimmed strands and their common length.
    """
    staggers = OFFSET_STAGGERS[offset]
    n = min(len(s) for s in strands)
    s_max = max(staggers)
    trimmed = [seq[s_max - s: n - s] for seq, s in zip(strands, staggers)]
    return trimmed, n - s_max
