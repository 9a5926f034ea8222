"""Coverage and risk data model.

Code units come from the analysis side, risk entries go to reporting.
Index entries are built once per run and never mutated afterwards, so
queries are safe from any number of threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class CodeUnit:
    """A function, method or accessor to score.

    Lines are 1-based and inclusive.
    """

    name: str
    file: str
    start_line: int
    end_line: int
    complexity: int


@dataclass(frozen=True, slots=True)
class RiskEntry:
    """Scored code unit handed to reporting."""

    name: str
    file: str
    line: int
    complexity: int
    coverage: float  # 0.0 - 100.0
    crap: float


@dataclass(frozen=True, slots=True)
class Segment:
    """Point in a file where an execution count begins.

    Sparse instrumentation exporters emit these instead of per-line data.
    """

    line: int
    column: int
    count: int
    has_count: bool
    is_region_entry: bool


@dataclass(frozen=True, slots=True)
class FunctionRecord:
    """Function-level coverage from a function report."""

    line_number: int
    coverage_percent: float


@dataclass(frozen=True, slots=True)
class FileRecord:
    """One (target, file) record from a function report, percentages 0-100."""

    path: str
    coverage_percent: float
    functions: tuple[FunctionRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class FunctionIndexEntry:
    """Merged per-file function coverage.

    ``line_numbers`` and ``coverages`` are parallel, sorted ascending by line,
    one entry per distinct line.
    """

    file_coverage: float
    line_numbers: tuple[int, ...]
    coverages: tuple[float, ...]


@dataclass(frozen=True, slots=True)
class SegmentIndexEntry:
    """Per-file prefix sums over lines 0..max_line.

    ``instrumented[n]`` and ``covered[n]`` count lines 1..n; index 0 is 0.
    """

    max_line: int
    instrumented: tuple[int, ...]
    covered: tuple[int, ...]


class CoverageProvider(Protocol):
    """Anything that can answer line-range coverage queries."""

    def coverage(self, file: str, start_line: int, end_line: int) -> float | None:
        """Coverage percentage (0-100) of ``[start_line, end_line]``, or None for no data."""
        ...
