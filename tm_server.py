"""
HTTP server for triple-helix Tm prediction.
POST /score with JSON {"sequences": [...], "n_term": "Ac", "c_term": "Am", "exp_tm": 0}
or form (sequence= repeated, n_term=, c_term=, exp_tm=) → helix summary JSON.
POST /score-library with a sequence-library file as the body → list of summaries.
GET /health → 200 OK.
Env: COLLAGEN_TM_PARAMETERS (default ./parameters.txt), COLLAGEN_TM_REFERENCE (default: same file),
COLLAGEN_TM_TRAINING (optional training library; adds low-confidence interactions to /score).
Run from repo root: gunicorn -w 1 -b 127.0.0.1:8060 tm_server:app
"""

from __future__ import annotations

import json
import os
import sys
from typing import Any, Dict, List, Optional

from flask import Flask, request, Response

# Ensure repo root is on path when run via gunicorn
if __name__ != "__main__":
    _root = os.path.dirname(os.path.abspath(__file__))
    if _root not in sys.path:
        sys.path.insert(0, _root)

from collagen_tm import ParameterTable, TripleHelix, score_helix
from collagen_tm.confidence import InteractionCounts, count_interactions, low_confidence_interactions
from collagen_tm.formats import LibraryFormatError, load_parameter_table, parse_library, read_library
from collagen_tm.library import library_statistics, rescore_library

PARAMETERS_PATH = os.environ.get("COLLAGEN_TM_PARAMETERS") or "parameters.txt"
REFERENCE_PATH = os.environ.get("COLLAGEN_TM_REFERENCE") or None
TRAINING_PATH = os.environ.get("COLLAGEN_TM_TRAINING") or None

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = 2 * 1024 * 1024  # 2 MB max library

# Loaded on first request; tests may assign these directly
PARAMETERS: Optional[ParameterTable] = None
TRAINING_COUNTS: Optional[InteractionCounts] = None


def _parameters() -> ParameterTable:
    global PARAMETERS
    if PARAMETERS is None:
        PARAMETERS = load_parameter_table(PARAMETERS_PATH, REFERENCE_PATH)
    return PARAMETERS


def _training_counts() -> Optional[InteractionCounts]:
    global TRAINING_COUNTS
    if TRAINING_COUNTS is None and TRAINING_PATH:
        training = read_library(TRAINING_PATH)
        if training:
            TRAINING_COUNTS = count_interactions(training)
        else:
            app.logger.warning("Training library %s is empty; low-confidence report disabled", TRAINING_PATH)
    return TRAINING_COUNTS


def _json(payload: Any, status: int = 200) -> Response:
    return Response(json.dumps(payload), status=status, mimetype="application/json")


def _text(body: str, status: int) -> Response:
    return Response(body, status=status, mimetype="text/plain")


def _helix_request() -> Dict[str, Any]:
    """Sequences and tags from JSON or form."""
    fields: Dict[str, Any] = {}
    if request.is_json:
        data = request.get_json(silent=True) or {}
        seq = data.get("sequences") or data.get("sequence")
        if isinstance(seq, list):
            fields["sequences"] = [str(s).strip() for s in seq if s and str(s).strip()]
        elif seq:
            fields["sequences"] = [str(seq).strip()]
        for key in ("n_term", "c_term", "exp_tm"):
            if data.get(key) is not None:
                fields[key] = data[key]
    elif request.form:
        seqs = request.form.getlist("sequence") or request.form.getlist("sequences")
        fields["sequences"] = [s.strip() for s in seqs if s and s.strip()]
        for key in ("n_term", "c_term", "exp_tm"):
            if request.form.get(key):
                fields[key] = request.form.get(key)
    return fields


@app.route("/health", methods=["GET"])
def health():
    return Response("OK\n", status=200, mimetype="text/plain")


@app.route("/score", methods=["POST"])
def score():
    """Score one helix; 400 with a text message for missing or invalid input."""
    fields = _helix_request()
    sequences: List[str] = fields.get("sequences") or []
    if not sequences:
        return _text("Missing sequences in JSON or form 'sequence'\n", 400)
    try:
        helix = TripleHelix.from_sequences(
            sequences,
            n_term=str(fields.get("n_term", "Ac")),
            c_term=str(fields.get("c_term", "Am")),
            exp_tm=float(fields.get("exp_tm", 0.0)),
        )
    except (TypeError, ValueError) as e:
        return _text(f"Invalid helix: {e}\n", 400)
    score_helix(_parameters(), helix)
    out = helix.summary()
    counts = _training_counts()
    if counts is not None:
        out["low_confidence"] = low_confidence_interactions(helix, counts)
    return _json(out)


@app.route("/score-library", methods=["POST"])
def score_library_route():
    """Body = sequence-library text. Scored in-process."""
    raw = request.get_data(as_text=True)
    if not raw or not raw.strip():
        return _text("Missing library text in body\n", 400)
    try:
        title, helices = parse_library(raw)
    except LibraryFormatError as e:
        app.logger.warning("Rejected library: %s", e)
        return _text(f"{e}\n{e.dump}\n", 400)
    rescore_library(_parameters(), helices, n_workers=1)
    stats = library_statistics(helices)
    return _json({
        "title": title,
        "helices": [h.summary() for h in helices],
        "sum_squared_deviation": stats["sum_squared_deviation"],
        "mean_squared_deviation": stats["mean_squared_deviation"],
    })


@app.route("/help", methods=["GET"])
def help_page():
    body = """Collagen triple-helix Tm server - help

Endpoints:
  GET  /health        - liveness
  GET  /help          - this message
  POST /score         - JSON {"sequences": [A, B, C], "n_term": "Ac", "c_term": "Am", "exp_tm": 0}
                        or form sequence=...&sequence=...; 1-3 peptides of 21-48 residues
  POST /score-library - body is a sequence-library file (title, count, records)

Termini: 'n' / 'c' mark charged (unprotected) ends.
Response: best / second-best / correct-composition Tm, registers, specificity, deviation.
"""
    return Response(body, status=200, mimetype="text/plain")


if __name__ == "__main__":
    app.run(host="127.0.0.1", port=8060, threaded=True)
