"""
Amino-acid alphabet for letter-indexed parameter tables.

Tables are sized 27: slot 0 is the undefined sentinel, A..Z occupy 1..26.
Non-standard letters (O = hydroxyproline, and any other letter a library
chooses to use) get their own slot, so every table is a dense numpy array.

MIT License. Python 3.10+. Numpy only.
"""

from __future__ import annotations

import numpy as np
from typing import Dict

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
UNDEFINED = 0
N_SLOTS = len(ALPHABET) + 1

# Formal charges at neutral pH
AA_CHARGE: Dict[str, int] = {"K": +1, "R": +1, "D": -1, "E": -1}

GLYCINE = "G"
PROLINE = "P"
HYDROXYPROLINE = "O"
# Aromatic residues that cap a helix end when all three strands carry them
CAPPING_RESIDUES = ("Y", "W")


def aa_index(letter: str) -> int:
    """Table slot for a one-letter code; anything outside A..Z maps to UNDEFINED."""
    if len(letter) != 1:
        return UNDEFINED
    pos = ALPHABET.find(letter.upper())
    return pos + 1 if pos >= 0 else UNDEFINED


def aa_letter(index: int) -> str:
    """One-letter code for a table slot (slot 0 renders as '?')."""
    if not 0 <= index < N_SLOTS:
        raise IndexError(f"table slot {index} outside 0..{N_SLOTS - 1}")
    return "?" if index == UNDEFINED else ALPHABET[index - 1]


def sequence_indices(seq: str) -> np.ndarray:
    """Table slots for every residue of seq (int array, same length)."""
    return np.array([aa_index(c) for c in seq], dtype=np.intp)


def residue_charges(seq: str) -> np.ndarray:
    """Formal charge per residue (K/R +1, D/E -1, else 0)."""
    return np.array([AA_CHARGE.get(c, 0) for c in seq], dtype=int)
