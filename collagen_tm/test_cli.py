"""Command-line subcommands run end to end on small files."""

from __future__ import annotations

import argparse

import pytest

from .cli import main, parse_mutation
from .formats import write_parameter_file
from .parameters import ParameterTable

SEQ = "PPG" * 8

LIBRARY = """cli library
3
1 24 Ac Am 36
PPGPPGPPGPPGPPGPPGPPGPPG
1 24 Ac Am 47
POGPOGPOGPOGPOGPOGPOGPOG
2 24 Ac Am 41
PPGPPGPPGPPGPPGPPGPPGPPG
POGPOGPOGPOGPOGPOGPOGPOG
"""


@pytest.fixture
def files(tmp_path):
    params = ParameterTable.zeros()
    params.length_a = 30.0
    param_path = write_parameter_file(params, tmp_path / "parameters.txt", title="cli test")
    lib_path = tmp_path / "seq_input.txt"
    lib_path.write_text(LIBRARY)
    return param_path, lib_path


def test_parse_mutation():
    assert parse_mutation("1:2:x") == (1, 2, "X")
    with pytest.raises(argparse.ArgumentTypeError):
        parse_mutation("1:2")
    with pytest.raises(argparse.ArgumentTypeError):
        parse_mutation("a:2:K")
    with pytest.raises(argparse.ArgumentTypeError):
        parse_mutation("0:2:KK")


def test_helix_command(files, capsys):
    param_path, lib_path = files
    code = main([
        "helix", SEQ, "--parameters", str(param_path),
        "--mutate", "0:4:K", "--training", str(lib_path), "--registers",
    ])
    assert code == 0
    out = capsys.readouterr().out
    assert "High Tm = 30" in out
    assert "Mutation 0:4:K  Tm 30 -> 30" in out
    assert "low confidence interactions" in out


def test_helix_command_rejects_short_peptide(files, capsys):
    param_path, _ = files
    assert main(["helix", "PPG" * 5, "--parameters", str(param_path)]) == 2
    assert "Invalid helix" in capsys.readouterr().err


def test_score_command(files, tmp_path, capsys):
    param_path, lib_path = files
    out_dir = tmp_path / "tables"
    code = main(["score", "--parameters", str(param_path), "--library", str(lib_path),
                 "--workers", "1", "--out-dir", str(out_dir)])
    assert code == 0
    out = capsys.readouterr().out
    assert "User Helix #3" in out
    assert (out_dir / "A2B.txt").is_file()


def test_fit_command(files, tmp_path, capsys):
    param_path, lib_path = files
    out_dir = tmp_path / "fit"
    code = main([
        "fit", "--parameters", str(param_path), "--library", str(lib_path),
        "--out-dir", str(out_dir), "--workers", "1", "--max-rounds", "2", "--threshold", "0",
    ])
    assert code == 0
    assert (out_dir / "newParameters.txt").read_text().startswith("Fitted against")
    for name in ("A3", "A2B", "ABC"):
        assert (out_dir / f"{name}.txt").is_file()
    assert "Sum of Squared Deviation" in capsys.readouterr().out


def test_fit_command_without_library(files, tmp_path):
    param_path, _ = files
    assert main(["fit", "--parameters", str(param_path), "--library", str(tmp_path / "none.txt")]) == 1
