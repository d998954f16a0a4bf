"""Tests for the command-line interface."""

from __future__ import annotations

import json

import pandas as pd
import pytest
from cli import main

from lex_preprocessing import load_lineage


@pytest.fixture
def dirty_csv(dirty_data, temp_dir):
    path = temp_dir / "data.csv"
    dirty_data.to_csv(path, index=False)
    return path


class TestAnalyze:
    """Tests for the analyze command."""

    def test_text_report(self, dirty_csv, capsys):
        """Issues and proposed rules are listed."""
        assert main(["analyze", str(dirty_csv), "-l", "target"]) == 0

        out = capsys.readouterr().out
        assert "Loaded 100 rows, 5 columns" in out
        assert "Quality issues" in out
        assert "dedupe_rows:*" in out

    def test_json_report(self, dirty_csv, capsys):
        """--json prints a machine-readable report."""
        assert main(["analyze", str(dirty_csv), "--json"]) == 0

        payload = json.loads(capsys.readouterr().out)
        assert payload["rows"] == 100
        assert payload["issues"][0]["type"] == "duplicate_rows"
        assert payload["rules"][0]["kind"] == "dedupe_rows"

    def test_clean_file(self, clean_data, temp_dir, capsys):
        """Clean data reports no issues."""
        path = temp_dir / "clean.csv"
        clean_data.to_csv(path, index=False)

        assert main(["analyze", str(path), "-l", "target"]) == 0
        assert "No quality issues found." in capsys.readouterr().out

    def test_missing_file(self, temp_dir, capsys):
        """A missing dataset exits with 1."""
        assert main(["analyze", str(temp_dir / "nope.csv")]) == 1
        assert "Dataset file not found" in capsys.readouterr().out

    def test_unknown_label(self, dirty_csv, capsys):
        """An unknown label exits with 1."""
        assert main(["analyze", str(dirty_csv), "-l", "nope"]) == 1
        assert "Label column 'nope' not found" in capsys.readouterr().out


class TestClean:
    """Tests for the clean command."""

    @pytest.mark.integration
    def test_clean_writes_data_and_lineage(self, dirty_csv, temp_dir, capsys):
        """A converged run writes the cleaned CSV and its lineage."""
        output = temp_dir / "out" / "clean.csv"

        assert main(["clean", str(dirty_csv), "-l", "target", "-o", str(output)]) == 0

        cleaned = pd.read_csv(output)
        assert len(cleaned) == 95
        assert "constant" not in cleaned.columns

        lineage = load_lineage(temp_dir / "out" / "clean.lineage.json")
        assert lineage["converged"] is True
        assert "Status: converged" in capsys.readouterr().out

    def test_default_output_paths(self, dirty_csv, temp_dir):
        """Outputs default to <stem>.clean.csv next to the input."""
        main(["clean", str(dirty_csv), "-l", "target"])

        assert (temp_dir / "data.clean.csv").exists()
        assert (temp_dir / "data.clean.lineage.json").exists()

    def test_not_converged_exits_with_2(self, temp_dir, capsys):
        """A run that cannot fix everything exits with 2."""
        path = temp_dir / "constant_label.csv"
        pd.DataFrame({"x": range(10), "y": ["a"] * 10}).to_csv(path, index=False)

        assert main(["clean", str(path), "-l", "y"]) == 2

        out = capsys.readouterr().out
        assert "Status: not converged (plateau)" in out
        assert "remaining:" in out

    def test_invalid_option(self, dirty_csv, capsys):
        """Invalid configuration values exit with 1."""
        assert main(["clean", str(dirty_csv), "--max-iterations", "0"]) == 1
        assert "Invalid configuration" in capsys.readouterr().out


def test_no_command(capsys):
    """Running without a command prints help and exits with 1."""
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out.lower()
