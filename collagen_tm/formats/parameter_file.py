"""
Parameter files.

Layout (first line is a free-text title, then sections in any order):

  Length            three numbers A B C
  XaaPropensity     26 lines "<letter> <value>"
  YaaPropensity     26 lines "<letter> <value>"
  PairwiseLateral   a column-letter header line, then 26 rows "<letter> v1 .. v26"
  PairwiseAxial     same as PairwiseLateral
  EOF

Matrix rows are the leading residue, columns the trailing residue. The same
layout holds current values, reference values, or tunable flags (1 = tunable);
a flags file's Length section uses its third number for the length flag.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np

from ..alphabet import ALPHABET, N_SLOTS, aa_index
from ..parameters import ParameterTable
from .tokens import TokenReader

logger = logging.getLogger(__name__)

VALUES = "values"
REFERENCE = "reference"
FLAGS = "flags"

DEFAULT_TITLE = "collagen_tm parameters"


def _targets(params: ParameterTable, target: str):
    if target == VALUES:
        return params.propensity_x, params.propensity_y, params.lateral, params.axial
    if target == REFERENCE:
        return params.ref_propensity_x, params.ref_propensity_y, params.ref_lateral, params.ref_axial
    if target == FLAGS:
        return params.opt_propensity_x, params.opt_propensity_y, params.opt_lateral, params.opt_axial
    raise ValueError(f"Unknown parameter target: {target}")


def _convert(raw: float, target: str):
    return raw == 1 if target == FLAGS else raw


def _read_length(reader: TokenReader) -> Tuple[float, float, float]:
    return reader.next_float(), reader.next_float(), reader.next_float()


def _store_length(params: ParameterTable, target: str, a: float, b: float, c: float) -> None:
    if target == VALUES:
        params.length_a, params.length_b, params.length_c = a, b, c
    elif target == REFERENCE:
        params.ref_length_a, params.ref_length_b, params.ref_length_c = a, b, c
    else:
        params.opt_length = c == 1


def _read_propensity(reader: TokenReader, table: np.ndarray, target: str) -> np.ndarray:
    scratch = np.zeros_like(table)
    for _ in range(N_SLOTS - 1):
        letter = reader.next_token()
        slot = aa_index(letter[0]) if letter else 0
        if slot == 0:
            raise ValueError(f"line {reader.line_no}: expected an amino-acid letter, found {letter!r}")
        scratch[slot] = _convert(reader.next_float(), target)
    return scratch


def _read_matrix(reader: TokenReader, table: np.ndarray, target: str) -> np.ndarray:
    scratch = np.zeros_like(table)
    reader.read_line()  # column letters
    for row in range(1, N_SLOTS):
        reader.next_token()  # row letter
        for col in range(1, N_SLOTS):
            scratch[row, col] = _convert(reader.next_float(), target)
    return scratch


def parse_parameter_text(text: str, params: ParameterTable, target: str = VALUES) -> str:
    """
    Fill one layer of params (VALUES, REFERENCE or FLAGS) from text in place.
    Returns the title line.

    Each section is stored only once it has been read completely. A malformed
    section is logged and set to zero, and reading resumes at the next section
    header.
    """
    prop_x, prop_y, lateral, axial = _targets(params, target)
    tables = {
        "XaaPropensity": (prop_x, _read_propensity),
        "YaaPropensity": (prop_y, _read_propensity),
        "PairwiseLateral": (lateral, _read_matrix),
        "PairwiseAxial": (axial, _read_matrix),
    }
    reader = TokenReader(text)
    title = (reader.read_line() or "").strip()
    while not reader.at_end():
        name = reader.read_line().strip()
        if name == "EOF":
            break
        if name != "Length" and name not in tables:
            continue
        mark = reader.mark()
        try:
            if name == "Length":
                _store_length(params, target, *_read_length(reader))
            else:
                table, read = tables[name]
                table[...] = read(reader, table, target)
        except ValueError as e:
            logger.warning("Malformed %s section (%s), left at zero: %s", name, target, e)
            if name == "Length":
                _store_length(params, target, 0.0, 0.0, 0.0)
            else:
                tables[name][0][...] = 0
            reader.reset(mark)
    return title


def load_parameter_file(
    path: Union[str, Path],
    params: Optional[ParameterTable] = None,
    target: str = VALUES,
) -> ParameterTable:
    """Read one parameter file into params (a zero table if None). Missing files and malformed sections are logged."""
    params = ParameterTable.zeros() if params is None else params
    p = Path(path)
    if not p.is_file():
        logger.warning("We couldn't open the parameter file %s; %s stay at their defaults.", p, target)
        return params
    title = parse_parameter_text(p.read_text(), params, target)
    logger.info("Parameter file (%s): %s", target, title)
    return params


def load_parameter_table(
    current: Union[str, Path],
    reference: Optional[Union[str, Path]] = None,
    flags: Optional[Union[str, Path]] = None,
) -> ParameterTable:
    """
    Build a table from a current-values file, a reference-values file (defaults
    to the current file) and an optional tunable-flags file.
    """
    params = load_parameter_file(current, target=VALUES)
    load_parameter_file(current if reference is None else reference, params, REFERENCE)
    if flags is not None:
        load_parameter_file(flags, params, FLAGS)
    return params


def _fmt(v, target: str) -> str:
    if target == FLAGS:
        return "1" if v else "0"
    return f"{float(v):g}"


def format_parameter_text(params: ParameterTable, title: str = DEFAULT_TITLE, target: str = VALUES) -> str:
    prop_x, prop_y, lateral, axial = _targets(params, target)
    if target == VALUES:
        length = (params.length_a, params.length_b, params.length_c)
    elif target == REFERENCE:
        length = (params.ref_length_a, params.ref_length_b, params.ref_length_c)
    else:
        length = (params.opt_length, params.opt_length, params.opt_length)

    lines: List[str] = [title, "Length"]
    lines.extend(_fmt(v, target) for v in length)
    for name, table in (("XaaPropensity", prop_x), ("YaaPropensity", prop_y)):
        lines.append(name)
        lines.extend(f"{ALPHABET[i - 1]}\t{_fmt(table[i], target)}" for i in range(1, N_SLOTS))
    for name, table in (("PairwiseLateral", lateral), ("PairwiseAxial", axial)):
        lines.append(name)
        lines.append("".join(f"\t{ch}" for ch in ALPHABET))
        for row in range(1, N_SLOTS):
            cells = "\t".join(_fmt(table[row, col], target) for col in range(1, N_SLOTS))
            lines.append(f"{ALPHABET[row - 1]}\t{cells}")
    lines.append("EOF")
    return "\n".join(lines) + "\n"


def write_parameter_file(
    params: ParameterTable,
    path: Union[str, Path],
    title: str = DEFAULT_TITLE,
    target: str = VALUES,
) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(format_parameter_text(params, title, target))
    return out
