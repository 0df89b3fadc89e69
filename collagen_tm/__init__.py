# collagen_tm: melting-temperature prediction for collagen triple helices.
# MIT License. Python 3.10+. numpy for scoring, pandas for result tables.

from .alphabet import ALPHABET, N_SLOTS, aa_index, aa_letter
from .parameters import MAX_DEV, ParameterKey, ParameterTable
from .helix import NO_TRANSITION_TM, TripleHelix
from .interaction_search import best_interaction_sum, thread_contribution
from .registers import OFFSET_LABELS, length_credit, trim_strands
from .scoring import (
    RegisterScore,
    deviation_from_experiment,
    is_correct_composition,
    score_helix,
    score_register,
)
from .library import (
    library_statistics,
    partition_bounds,
    rescore_library,
    score_library,
    sum_squared_deviation,
)
from .confidence import InteractionCounts, count_interactions, low_confidence_interactions
from .fitting import FitResult, fit_parameters, prepare_tunable
from .formats import (
    LibraryFormatError,
    load_parameter_table,
    parse_library,
    read_library,
    write_parameter_file,
    write_result_tables,
)

__version__ = "1.2.0"

__all__ = [
    "ALPHABET",
    "N_SLOTS",
    "aa_index",
    "aa_letter",
    "MAX_DEV",
    "ParameterKey",
    "ParameterTable",
    "NO_TRANSITION_TM",
    "TripleHelix",
    "best_interaction_sum",
    "thread_contribution",
    "OFFSET_LABELS",
    "length_credit",
    "trim_strands",
    "RegisterScore",
    "deviation_from_experiment",
    "is_correct_composition",
    "score_helix",
    "score_register",
    "library_statistics",
    "partition_bounds",
    "rescore_library",
    "score_library",
    "sum_squared_deviation",
    "InteractionCounts",
    "count_interactions",
    "low_confidence_interactions",
    "FitResult",
    "fit_parameters",
    "prepare_tunable",
    "LibraryFormatError",
    "load_parameter_table",
    "parse_library",
    "read_library",
    "write_parameter_file",
    "write_result_tables",
]
