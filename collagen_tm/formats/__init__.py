"""
Text formats: parameter files, sequence libraries and result tables.
"""

from __future__ import annotations

from .library_file import LibraryFormatError, parse_library, read_library
from .parameter_file import (
    FLAGS,
    REFERENCE,
    VALUES,
    format_parameter_text,
    load_parameter_file,
    load_parameter_table,
    parse_parameter_text,
    write_parameter_file,
)
from .results import CLASS_NAMES, register_frame, results_frame, write_result_tables

__all__ = [
    "LibraryFormatError",
    "parse_library",
    "read_library",
    "FLAGS",
    "REFERENCE",
    "VALUES",
    "format_parameter_text",
    "load_parameter_file",
    "load_parameter_table",
    "parse_parameter_text",
    "write_parameter_file",
    "CLASS_NAMES",
    "register_frame",
    "results_frame",
    "write_result_tables",
]
