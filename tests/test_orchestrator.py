"""Tests for coverage-source selection and the default-coverage policy."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from crapcov.config.models import CoverageConfig
from crapcov.core.errors import ConfigError, CoverageError
from crapcov.coverage import CodeUnit, FunctionCoverageIndex, SegmentCoverageIndex
from crapcov.orchestrator import (
    CoverageSourceKind,
    build_provider,
    coverage_for,
    score_units,
    select_source,
)

XCCOV_REPORT = {
    "targets": [
        {
            "files": [
                {
                    "path": "/repo/Sources/A.swift",
                    "lineCoverage": 0.5,
                    "functions": [
                        {"name": "f()", "lineCoverage": 0.8, "lineNumber": 10, "executionCount": 2}
                    ],
                }
            ]
        }
    ]
}

LLVM_EXPORT = {
    "data": [
        {
            "files": [
                {
                    "filename": "/repo/Sources/A.swift",
                    "segments": [
                        [1, 1, 5, 1, 1],
                        [3, 1, 0, 1, 1],
                        [5, 1, 3, 1, 1],
                        [7, 1, 0, 0, 0],
                    ],
                }
            ]
        }
    ]
}


def _unit(
    start: int, end: int, complexity: int = 4, file: str = "/repo/Sources/A.swift"
) -> CodeUnit:
    return CodeUnit(name="f()", file=file, start_line=start, end_line=end, complexity=complexity)


class _NoData:
    def coverage(self, file: str, start_line: int, end_line: int) -> float | None:
        return None


class TestSelectSource:
    def test_nothing_configured(self) -> None:
        assert select_source(CoverageConfig()) is CoverageSourceKind.NONE

    def test_xcresult(self) -> None:
        config = CoverageConfig(xcresult="Run.xcresult")
        assert select_source(config) is CoverageSourceKind.FUNCTION_REPORT

    def test_profdata_and_binary(self) -> None:
        config = CoverageConfig(profdata="x.profdata", binary="AppTests")
        assert select_source(config) is CoverageSourceKind.SEGMENT_STREAM

    def test_report_wins_over_segments(self) -> None:
        config = CoverageConfig(xcresult="Run.xcresult", profdata="x.profdata", binary="b")
        assert select_source(config) is CoverageSourceKind.FUNCTION_REPORT

    def test_pre_exported_payloads(self) -> None:
        assert (
            select_source(CoverageConfig(xccov_json="r.json"))
            is CoverageSourceKind.FUNCTION_REPORT
        )
        assert (
            select_source(CoverageConfig(llvm_cov_json="e.json"))
            is CoverageSourceKind.SEGMENT_STREAM
        )

    @pytest.mark.parametrize(
        ("config", "missing"),
        [
            (CoverageConfig(profdata="x.profdata"), "binary"),
            (CoverageConfig(binary="AppTests"), "profdata"),
        ],
    )
    def test_incomplete_llvm_source(self, config: CoverageConfig, missing: str) -> None:
        with pytest.raises(ConfigError) as exc_info:
            select_source(config)
        assert exc_info.value.details["field"] == missing


class TestBuildProvider:
    def test_none_when_unconfigured(self) -> None:
        assert build_provider(CoverageConfig()) is None

    def test_function_index_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "report.json"
        path.write_text(json.dumps(XCCOV_REPORT))
        provider = build_provider(CoverageConfig(xccov_json=str(path)))
        assert isinstance(provider, FunctionCoverageIndex)

    def test_segment_index_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "export.json"
        path.write_text(json.dumps(LLVM_EXPORT))
        provider = build_provider(CoverageConfig(llvm_cov_json=str(path)))
        assert isinstance(provider, SegmentCoverageIndex)

    def test_runs_xccov_once(self) -> None:
        payload = json.dumps(XCCOV_REPORT).encode()
        with patch("crapcov.orchestrator.export_function_report", return_value=payload) as export:
            config = CoverageConfig(xcresult="Run.xcresult", xcrun="/usr/bin/xcrun")
            provider = build_provider(config)
        export.assert_called_once_with("Run.xcresult", xcrun="/usr/bin/xcrun", timeout_sec=300.0)
        assert isinstance(provider, FunctionCoverageIndex)

    def test_runs_llvm_cov_once(self) -> None:
        payload = json.dumps(LLVM_EXPORT).encode()
        with patch("crapcov.orchestrator.export_segments", return_value=payload) as export:
            provider = build_provider(
                CoverageConfig(profdata="x.profdata", binary="AppTests", export_timeout_sec=10)
            )
        export.assert_called_once_with("x.profdata", "AppTests", xcrun="xcrun", timeout_sec=10.0)
        assert isinstance(provider, SegmentCoverageIndex)

    def test_bad_payload_is_fatal(self, tmp_path: Path) -> None:
        path = tmp_path / "export.json"
        path.write_text("[]")
        with pytest.raises(CoverageError):
            build_provider(CoverageConfig(llvm_cov_json=str(path)))


class TestDefaultCoveragePolicy:
    def test_no_source_means_fully_covered(self) -> None:
        assert coverage_for(None, _unit(1, 5)) == 100.0

    def test_source_without_data_means_uncovered(self) -> None:
        assert coverage_for(_NoData(), _unit(1, 5)) == 0.0

    def test_unknown_file_with_source_scores_worst_case(self) -> None:
        index = SegmentCoverageIndex.from_payload(json.dumps(LLVM_EXPORT))
        (entry,) = score_units([_unit(1, 5, complexity=3, file="/repo/Other.swift")], index)
        assert entry.coverage == 0.0
        assert entry.crap == pytest.approx(12.0)


class TestScoreUnits:
    def test_entries_in_input_order(self) -> None:
        index = SegmentCoverageIndex.from_payload(json.dumps(LLVM_EXPORT))
        units = [_unit(3, 4, complexity=2), _unit(1, 6, complexity=5), _unit(5, 6, complexity=1)]
        entries = score_units(units, index)
        assert [e.line for e in entries] == [3, 1, 5]
        assert entries[0].coverage == 0.0
        assert entries[0].crap == pytest.approx(6.0)
        assert entries[1].coverage == pytest.approx(66.667, abs=0.01)
        assert entries[2].crap == pytest.approx(1.0)

    def test_without_coverage_scores_complexity(self) -> None:
        entries = score_units([_unit(1, 5, complexity=9)], None)
        assert entries[0].coverage == 100.0
        assert entries[0].crap == 9.0

    def test_function_report_entry_fields(self) -> None:
        index = FunctionCoverageIndex.from_payload(json.dumps(XCCOV_REPORT))
        (entry,) = score_units([_unit(10, 20, complexity=8)], index)
        assert entry.name == "f()"
        assert entry.file == "/repo/Sources/A.swift"
        assert entry.line == 10
        assert entry.complexity == 8
        assert entry.coverage == pytest.approx(80.0)
