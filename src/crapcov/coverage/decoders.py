"""Raw coverage payload decoding.

Two export formats are supported:

- xccov function report (``xcrun xccov view --report --json``)::

    {"targets": [{"files": [{"path": str, "lineCoverage": 0..1,
                             "functions": [{"name": str, "lineCoverage": 0..1,
                                            "lineNumber": int,
                                            "executionCount": int}]}]}]}

- llvm-cov segment export (``xcrun llvm-cov export --format=text``)::

    {"data": [{"files": [{"filename": str,
                          "segments": [[line, col, count, hasCount, isRegionEntry], ...]}]}]}

A payload that does not match its schema is fatal. Individual segment tuples
are decoded leniently: the trailing flags may be ints or bools, and anything
unparseable decodes as zero/false.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ValidationError

from crapcov.core.errors import CoverageError
from crapcov.coverage.models import FileRecord, FunctionRecord, Segment

FUNCTION_REPORT_FORMAT = "xccov"
SEGMENT_EXPORT_FORMAT = "llvm-cov"

_SEGMENT_FIELDS = 5


class _XccovFunction(BaseModel):
    name: str
    lineCoverage: float
    lineNumber: int
    executionCount: int


class _XccovFile(BaseModel):
    path: str
    lineCoverage: float
    functions: list[_XccovFunction] | None = None


class _XccovTarget(BaseModel):
    files: list[_XccovFile]


class _XccovReport(BaseModel):
    targets: list[_XccovTarget]


class _LlvmFile(BaseModel):
    filename: str
    segments: list[Any]


class _LlvmDataEntry(BaseModel):
    files: list[_LlvmFile]


class _LlvmExport(BaseModel):
    data: list[_LlvmDataEntry]


def _percent(fraction: float) -> float:
    """Scale a 0..1 fraction to a percentage clamped to [0, 100]."""
    return min(max(fraction * 100.0, 0.0), 100.0)


def decode_function_report(payload: bytes | str) -> list[FileRecord]:
    """Decode an xccov report into one FileRecord per (target, file) entry.

    Raises:
        CoverageError: If the payload is not valid JSON or does not match the schema.
    """
    try:
        report = _XccovReport.model_validate_json(payload)
    except ValidationError as e:
        raise CoverageError.decode_failed(FUNCTION_REPORT_FORMAT, str(e)) from e

    records: list[FileRecord] = []
    for target in report.targets:
        for file in target.files:
            functions = tuple(
                FunctionRecord(
                    line_number=fn.lineNumber,
                    coverage_percent=_percent(fn.lineCoverage),
                )
                for fn in file.functions or ()
            )
            records.append(
                FileRecord(
                    path=file.path,
                    coverage_percent=_percent(file.lineCoverage),
                    functions=functions,
                )
            )
    return records


def _segment_int(value: Any) -> int:
    # bool before int: bool is an int subclass, but be explicit about it
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, int):
        return value
    return 0


def decode_segment(raw: Any) -> Segment | None:
    """Decode one ``[line, col, count, hasCount, isRegionEntry, ...]`` tuple.

    Returns None for non-array values and tuples with fewer than five
    elements. Extra elements (e.g. a trailing gap-region flag) are ignored.
    """
    if not isinstance(raw, list) or len(raw) < _SEGMENT_FIELDS:
        return None
    line, column, count, has_count, is_entry = (_segment_int(v) for v in raw[:_SEGMENT_FIELDS])
    return Segment(
        line=line,
        column=column,
        count=count,
        has_count=has_count != 0,
        is_region_entry=is_entry != 0,
    )


def decode_segment_export(payload: bytes | str) -> list[tuple[str, tuple[Segment, ...]]]:
    """Decode an llvm-cov export into ``(filename, segments)`` pairs in payload order.

    Raises:
        CoverageError: If the payload is not valid JSON or does not match the schema.
    """
    try:
        export = _LlvmExport.model_validate_json(payload)
    except ValidationError as e:
        raise CoverageError.decode_failed(SEGMENT_EXPORT_FORMAT, str(e)) from e

    files: list[tuple[str, tuple[Segment, ...]]] = []
    for entry in export.data:
        for file in entry.files:
            segments = tuple(
                seg for seg in (decode_segment(raw) for raw in file.segments) if seg is not None
            )
            files.append((file.filename, segments))
    return files
