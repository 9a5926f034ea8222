"""Tests for the crapcov command line."""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from crapcov.cli.main import cli
from crapcov.core.errors import CoverageError

runner = CliRunner()

SOURCE = "/repo/Sources/Engine.swift"


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a stray .crapcov.yml or CRAPCOV__ env var from leaking in."""
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.upper().startswith("CRAPCOV__"):
            monkeypatch.delenv(key)


@pytest.fixture
def units_file(tmp_path: Path) -> Path:
    path = tmp_path / "units.json"
    path.write_text(
        json.dumps(
            [
                {"name": "run()", "file": SOURCE, "start_line": 1, "end_line": 6, "complexity": 5},
                {"name": "stop()", "file": SOURCE, "start_line": 3, "end_line": 4, "complexity": 2},
                {
                    "name": "other()",
                    "file": "/repo/Sources/Other.swift",
                    "start_line": 1,
                    "end_line": 2,
                    "complexity": 1,
                },
            ]
        )
    )
    return path


@pytest.fixture
def llvm_export(tmp_path: Path) -> Path:
    path = tmp_path / "export.json"
    path.write_text(
        json.dumps(
            {
                "data": [
                    {
                        "files": [
                            {
                                "filename": SOURCE,
                                "segments": [
                                    [1, 1, 5, True, True],
                                    [3, 1, 0, True, True],
                                    [5, 1, 3, True, True],
                                    [7, 1, 0, False, False],
                                ],
                            }
                        ]
                    }
                ]
            }
        )
    )
    return path


class TestScoreCommand:
    def test_without_coverage_everything_is_covered(self, units_file: Path) -> None:
        result = runner.invoke(cli, ["score", str(units_file)])

        assert result.exit_code == 0, result.output
        entries = json.loads(result.stdout)
        assert [e["coverage"] for e in entries] == [100.0, 100.0, 100.0]
        assert [e["crap"] for e in entries] == [5.0, 2.0, 1.0]

    def test_with_segment_export(self, units_file: Path, llvm_export: Path) -> None:
        result = runner.invoke(cli, ["score", str(units_file), "--llvm-cov-json", str(llvm_export)])

        assert result.exit_code == 0, result.output
        run, stop, other = json.loads(result.stdout)
        assert run["coverage"] == pytest.approx(66.667, abs=0.01)
        assert stop["coverage"] == 0.0
        assert stop["crap"] == pytest.approx(6.0)
        assert other["coverage"] == 0.0

    def test_config_file_selects_source(
        self, tmp_path: Path, units_file: Path, llvm_export: Path
    ) -> None:
        (tmp_path / ".crapcov.yml").write_text(f"llvm-cov-json: {llvm_export.name}\n")

        result = runner.invoke(cli, ["score", str(units_file)])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)[1]["coverage"] == 0.0

    def test_export_failure_aborts_with_output(self, units_file: Path) -> None:
        error = CoverageError.export_failed("xcrun xccov", 65, "error: bundle is corrupt")
        with patch("crapcov.orchestrator.export_function_report", side_effect=error):
            result = runner.invoke(cli, ["score", str(units_file), "--xcresult", "Run.xcresult"])

        assert result.exit_code != 0
        assert "exit code 65" in result.output
        assert "error: bundle is corrupt" in result.output

    def test_incomplete_llvm_options(self, units_file: Path) -> None:
        result = runner.invoke(cli, ["score", str(units_file), "--profdata", "x.profdata"])

        assert result.exit_code != 0
        assert "binary" in result.output

    def test_invalid_units_file(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text('{"not": "a list"}')

        result = runner.invoke(cli, ["score", str(bad)])

        assert result.exit_code != 0
        assert "COVERAGE_DECODE_FAILED" in result.output


class TestQueryCommand:
    def test_prints_percentage(self, llvm_export: Path) -> None:
        result = runner.invoke(
            cli, ["query", SOURCE, "1", "6", "--llvm-cov-json", str(llvm_export)]
        )
        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == "66.7%"

    def test_prints_no_data(self, llvm_export: Path) -> None:
        result = runner.invoke(
            cli, ["query", SOURCE, "10", "20", "--llvm-cov-json", str(llvm_export)]
        )
        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == "no data"

    def test_requires_a_source(self) -> None:
        result = runner.invoke(cli, ["query", SOURCE, "1", "6"])
        assert result.exit_code == 2
        assert "No coverage source configured" in result.output


def test_version() -> None:
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "crapcov" in result.output
