"""
Sequence-library files.

  <title line>
  <number of records>
  then per record, whitespace separated:
    numPep (1-3)  numAA (21-48)  N-terminus tag  C-terminus tag  experimental Tm
    numPep sequences of numAA letters (read letter by letter, upper-cased)

Where a record's peptide count is expected, a token that is not a positive
integer starts a comment: the rest of that line is skipped (at most 50 times in
a row). A record outside the peptide or residue range aborts the whole load.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..helix import MAX_PEPTIDES, MAX_RESIDUES, MIN_RESIDUES, TripleHelix
from .tokens import TokenReader

logger = logging.getLogger(__name__)

MAX_COMMENT_SKIPS = 50


class LibraryFormatError(ValueError):
    """Malformed library; dump holds the diagnostic text of the offending records."""

    def __init__(self, message: str, dump: str = ""):
        super().__init__(message)
        self.dump = dump


def _positive_int(token: Optional[str]) -> Optional[int]:
    if token is None:
        return None
    try:
        v = int(token)
    except ValueError:
        return None
    return v if v > 0 else None


def _read_peptide_count(reader: TokenReader, index: int) -> int:
    skips = 0
    value = _positive_int(reader.next_token())
    while value is None:
        if reader.at_end() or skips >= MAX_COMMENT_SKIPS:
            raise LibraryFormatError(
                f"Problem reading record {index}. Likely problem: either the indicated number "
                f"of helices exceeds the actual number of helices or the commenting is malformed."
            )
        reader.read_line()
        value = _positive_int(reader.next_token())
        skips += 1
    return value


def _context(helices: List[TripleHelix], partial: str) -> str:
    parts = []
    if helices:
        parts.append(helices[-1].dissect())
    parts.append(partial)
    return "\n".join(parts)


def parse_library(text: str) -> Tuple[str, List[TripleHelix]]:
    """
    Parse library text into (title, helices). Raises LibraryFormatError on any
    malformed or out-of-range record.
    """
    reader = TokenReader(text)
    title = (reader.read_line() or "").strip()
    try:
        total = reader.next_int()
    except ValueError as e:
        raise LibraryFormatError(f"Missing record count: {e}") from None

    helices: List[TripleHelix] = []
    for n in range(total):
        num_pep = _read_peptide_count(reader, n)
        if num_pep > MAX_PEPTIDES:
            raise LibraryFormatError(
                f"Number of unique peptides in a helix must be 1-{MAX_PEPTIDES}. "
                f"Value read was Library[{n}].numPep = {num_pep}.",
                _context(helices, f"numPep = {num_pep}"),
            )
        try:
            num_aa = reader.next_int()
        except ValueError as e:
            raise LibraryFormatError(f"Library[{n}]: {e}", _context(helices, f"numPep = {num_pep}")) from None
        if not MIN_RESIDUES <= num_aa <= MAX_RESIDUES:
            raise LibraryFormatError(
                f"Number of amino acids in the peptide must be {MIN_RESIDUES}-{MAX_RESIDUES}. "
                f"Value read was Library[{n}].numAA = {num_aa}.",
                _context(helices, f"numPep = {num_pep}\nnumAA =  {num_aa}"),
            )
        n_term = reader.next_token()
        c_term = reader.next_token()
        try:
            exp_tm = reader.next_float()
        except ValueError as e:
            raise LibraryFormatError(f"Library[{n}]: {e}", _context(helices, f"numPep = {num_pep}")) from None

        sequences = []
        for p in range(num_pep):
            chars = []
            for _ in range(num_aa):
                ch = reader.next_char()
                if ch is None:
                    raise LibraryFormatError(
                        f"Library[{n}]: peptide {p} ends after {len(chars)} of {num_aa} residues",
                        _context(helices, f"numPep = {num_pep}\nnumAA =  {num_aa}"),
                    )
                chars.append(ch)
            sequences.append("".join(chars))
        helices.append(TripleHelix.from_sequences(sequences, n_term=n_term, c_term=c_term, exp_tm=exp_tm))
    return title, helices


def read_library(path: Union[str, Path]) -> List[TripleHelix]:
    """Load a library file. Returns [] (after logging a diagnostic) when it is missing or malformed."""
    p = Path(path)
    if not p.is_file():
        logger.warning("We couldn't open the library file %s.", p)
        return []
    try:
        title, helices = parse_library(p.read_text())
    except LibraryFormatError as e:
        logger.warning("%s Stopping now.\n%s", e, e.dump)
        return []
    logger.info("Sequence Library: %s (%d helices)", title, len(helices))
    return helices
