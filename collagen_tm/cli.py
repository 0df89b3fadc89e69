"""
Command line for the collagen triple-helix Tm model.

Usage:
  collagen-tm fit --parameters parameters.txt --flags flags.txt --library seq_input.txt
  collagen-tm score --parameters newParameters.txt --library user_lib.txt
  collagen-tm helix GPOGPOGPOGPOGPOGPOGPOGPO --parameters newParameters.txt --mutate 0:10:K
  collagen-tm helix SEQ_A SEQ_B SEQ_C --training seq_input.txt --registers

fit writes newParameters.txt and the A3 / A2B / ABC result tables into --out-dir.
Mutations are PEP:POS:AA with zero-based peptide and residue indices.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

from .confidence import LOW_CONFIDENCE_CUTOFF, count_interactions, low_confidence_interactions
from .fitting import COUNT_THRESHOLD, DELTA, MAX_ROUNDS, fit_parameters, lock_fixed_chemistry, prepare_tunable
from .formats import load_parameter_table, read_library, register_frame, write_parameter_file, write_result_tables
from .helix import TripleHelix
from .library import library_statistics, rescore_library
from .parameters import MAX_DEV, ParameterTable
from .scoring import is_correct_composition, score_helix

DEFAULT_PARAMETERS = "parameters.txt"
DEFAULT_LIBRARY = "seq_input.txt"
FITTED_PARAMETERS = "newParameters.txt"


def parse_mutation(text: str) -> Tuple[int, int, str]:
    """'PEP:POS:AA' -> (peptide, position, letter)."""
    parts = text.split(":")
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(f"mutation must be PEP:POS:AA, got {text!r}")
    try:
        peptide, position = int(parts[0]), int(parts[1])
    except ValueError:
        raise argparse.ArgumentTypeError(f"peptide and position must be integers, got {text!r}") from None
    letter = parts[2].strip()
    if len(letter) != 1 or not letter.isalpha():
        raise argparse.ArgumentTypeError(f"expected a one-letter amino-acid code, got {parts[2]!r}")
    return peptide, position, letter.upper()


def format_user_report(helix: TripleHelix) -> str:
    """Readable report of a scored helix (best composition, charges, deviation)."""
    best = helix.best_register
    lines = [
        "-" * 58,
        f"Number of peptides: {helix.num_pep}",
        f"Number of amino acids: {helix.num_aa}",
        f"{helix.n_term}...peptide...{helix.c_term}",
        f"Experimental Tm = {helix.exp_tm:g}",
        f"Deviation (Tm(predicted) - Tm(experimental)) = {helix.cc_tm - helix.exp_tm:g}",
        "",
    ]
    if best is not None:
        label = f"{{{best[0]}{best[1]}{best[2]}}}"
        lines.append(f"The most stable register/composition is {label}. Tm = {helix.best_tm:g}.")
        lines.append(f"Total charge on {label} = {int(helix.total_charge[best])}")
        lines.append(f"Net charge on {label} = {int(helix.net_charge[best])}")
        if not is_correct_composition(helix.num_pep, *best[:3]):
            lines.append("WARNING: The most stable register/composition does not include all the peptides you input.")
    lines.append(f"Specificity = {helix.specificity:g}")
    return "\n".join(lines)


def format_low_confidence(report: dict) -> str:
    lines = [
        f"Total Number of low confidence interactions in user helix: {report['total']}.",
        "Note: this count is based on all possible interactions in all possible canonical compositions.",
    ]
    for kind in ("axial", "lateral"):
        tally = report[kind]
        if tally:
            lines.append(f"Low confidence {kind.capitalize()} Interactions (shown as Yaa,Xaa):")
            lines.extend(f"{pair}: {n}" for pair, n in sorted(tally.items()))
    return "\n".join(lines)


def _load_parameters(args: argparse.Namespace) -> ParameterTable:
    return load_parameter_table(args.parameters, args.reference, getattr(args, "flags", None))


def cmd_fit(args: argparse.Namespace) -> int:
    params = _load_parameters(args)
    helices = read_library(args.library)
    if not helices:
        print(f"No helices read from {args.library}. Stopping.", file=sys.stderr)
        return 1
    counts = count_interactions(helices)
    if args.no_auto_flag:
        lock_fixed_chemistry(params)
        n_tunable = params.n_tunable()
    else:
        n_tunable = prepare_tunable(params, counts, args.threshold)
    print(f"Fitting {n_tunable} parameters against {len(helices)} helices", flush=True)

    t0 = time.time()
    result = fit_parameters(
        params,
        helices,
        delta=args.delta,
        max_dev=args.max_dev,
        max_rounds=args.max_rounds,
        n_workers=args.workers,
    )
    n = len(helices)
    print(f"Total time required: {time.time() - t0:.1f} s", flush=True)
    print(f"Rounds: {result.rounds} (converged: {result.converged})", flush=True)
    print(f"Sum of Squared Deviation = {result.final_ssd:g} (initial {result.initial_ssd:g})", flush=True)
    print(f"Average of Squared Deviations = {result.final_ssd / n:g}", flush=True)

    out_dir = Path(args.out_dir)
    path = write_parameter_file(params, out_dir / FITTED_PARAMETERS, title=f"Fitted against {args.library}")
    print(f"  Wrote {path}", flush=True)
    for written in write_result_tables(helices, out_dir).values():
        print(f"  Wrote {written}", flush=True)
    return 0


def cmd_score(args: argparse.Namespace) -> int:
    params = _load_parameters(args)
    helices = read_library(args.library)
    if not helices:
        print(f"No helices read from {args.library}. Stopping.", file=sys.stderr)
        return 1
    rescore_library(params, helices, n_workers=args.workers)
    for n, helix in enumerate(helices):
        print(f"User Helix #{n + 1}", flush=True)
        print(helix.dissect() if args.dissect else format_user_report(helix), flush=True)
    stats = library_statistics(helices)
    print(
        f"{stats['n']} helices. Sum of Squared Deviation = {stats['sum_squared_deviation']:g}. "
        f"Worst: #{stats['worst_index'] + 1} ({stats['worst_deviation']:g})",
        flush=True,
    )
    if args.out_dir:
        for written in write_result_tables(helices, args.out_dir).values():
            print(f"  Wrote {written}", flush=True)
    return 0


def cmd_helix(args: argparse.Namespace) -> int:
    params = _load_parameters(args)
    try:
        helix = TripleHelix.from_sequences(args.sequences, n_term=args.n_term, c_term=args.c_term, exp_tm=args.exp_tm)
    except ValueError as e:
        print(f"Invalid helix: {e}", file=sys.stderr)
        return 2
    score_helix(params, helix)
    print(helix.dissect(), flush=True)
    print(format_user_report(helix), flush=True)
    if args.registers:
        print(register_frame(helix).to_string(index=False), flush=True)

    if args.training:
        training = read_library(args.training)
        if training:
            report = low_confidence_interactions(helix, count_interactions(training), args.cutoff)
            print(format_low_confidence(report), flush=True)

    for peptide, position, letter in args.mutate or []:
        before = helix.best_tm
        try:
            helix.mutate(peptide, position, letter)
        except ValueError as e:
            print(f"Invalid mutation {peptide}:{position}:{letter}: {e}", file=sys.stderr)
            return 2
        score_helix(params, helix)
        print(f"\nMutation {peptide}:{position}:{letter}  Tm {before:g} -> {helix.best_tm:g}", flush=True)
        print(format_user_report(helix), flush=True)
    return 0


def _add_parameter_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--parameters", default=DEFAULT_PARAMETERS, metavar="PATH", help="Parameter file (current values)")
    p.add_argument("--reference", default=None, metavar="PATH", help="Reference-value parameter file (default: --parameters)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="collagen-tm", description="Collagen triple-helix Tm prediction and fitting.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    fit = sub.add_parser("fit", help="Fit parameters against a training library")
    _add_parameter_args(fit)
    fit.add_argument("--flags", default=None, metavar="PATH", help="Tunable-flag file (1 = tunable)")
    fit.add_argument("--library", default=DEFAULT_LIBRARY, metavar="PATH", help="Training library")
    fit.add_argument("--out-dir", default=".", metavar="DIR", help="Where to write newParameters.txt and result tables")
    fit.add_argument("--delta", type=float, default=DELTA, help="Step per trial")
    fit.add_argument("--max-dev", type=float, default=MAX_DEV, help="Max distance from reference values")
    fit.add_argument("--max-rounds", type=int, default=MAX_ROUNDS)
    fit.add_argument("--threshold", type=int, default=COUNT_THRESHOLD, help="Observations needed to auto-flag a parameter")
    fit.add_argument("--no-auto-flag", action="store_true", help="Use only the flags file (chemistry locks still apply)")
    fit.add_argument("--workers", type=int, default=None, help="Worker processes (default: $COLLAGEN_TM_WORKERS or CPU count)")
    fit.set_defaults(func=cmd_fit)

    score = sub.add_parser("score", help="Score every helix of a library")
    _add_parameter_args(score)
    score.add_argument("--library", required=True, metavar="PATH")
    score.add_argument("--out-dir", default=None, metavar="DIR", help="Also write A3 / A2B / ABC tables here")
    score.add_argument("--dissect", action="store_true", help="Print full diagnostic dumps")
    score.add_argument("--workers", type=int, default=None)
    score.set_defaults(func=cmd_score)

    helix = sub.add_parser("helix", help="Score one helix given on the command line")
    _add_parameter_args(helix)
    helix.add_argument("sequences", nargs="+", help="1-3 peptide sequences of equal length")
    helix.add_argument("--n-term", default="Ac", help="N-terminus tag ('n' = charged)")
    helix.add_argument("--c-term", default="Am", help="C-terminus tag ('c' = charged)")
    helix.add_argument("--exp-tm", type=float, default=0.0)
    helix.add_argument("--mutate", type=parse_mutation, action="append", metavar="PEP:POS:AA",
                       help="Single-residue edit, rescored after each (repeatable)")
    helix.add_argument("--training", default=None, metavar="PATH", help="Training library for low-confidence interactions")
    helix.add_argument("--cutoff", type=int, default=LOW_CONFIDENCE_CUTOFF)
    helix.add_argument("--registers", action="store_true", help="Print every canonical composition")
    helix.set_defaults(func=cmd_helix)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
