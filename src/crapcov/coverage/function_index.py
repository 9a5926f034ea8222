"""Function/file coverage index built from an xccov function report.

A report lists every (target, file) pair separately, so the same source file
can appear once per test target. Records for the same normalized path are
merged with max semantics:

- file coverage = max(file coverage across records)
- function coverage at line L = max(function coverage at L across records)

A line is as covered as the best-covered target that exercised it.

Queries prefer the first function starting inside the range and fall back
to file-level coverage.
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Iterable, Mapping
from types import MappingProxyType

import structlog

from crapcov.coverage.decoders import decode_function_report
from crapcov.coverage.models import FileRecord, FunctionIndexEntry
from crapcov.coverage.paths import PathResolver, normalize

log = structlog.get_logger(__name__)


def _merge_records(records: Iterable[FileRecord]) -> dict[str, FunctionIndexEntry]:
    """Fold raw records into one frozen entry per normalized path."""
    file_coverage: dict[str, float] = {}
    functions: dict[str, dict[int, float]] = {}

    for record in records:
        path = normalize(record.path)
        file_coverage[path] = max(file_coverage.get(path, 0.0), record.coverage_percent)
        by_line = functions.setdefault(path, {})
        for fn in record.functions:
            by_line[fn.line_number] = max(by_line.get(fn.line_number, 0.0), fn.coverage_percent)

    entries: dict[str, FunctionIndexEntry] = {}
    for path, coverage in file_coverage.items():
        ordered = sorted(functions[path].items())
        entries[path] = FunctionIndexEntry(
            file_coverage=coverage,
            line_numbers=tuple(line for line, _ in ordered),
            coverages=tuple(cov for _, cov in ordered),
        )
    return entries


class FunctionCoverageIndex:
    """Read-only per-file function coverage, queryable by line range."""

    __slots__ = ("_entries", "_resolver")

    def __init__(self, entries: Mapping[str, FunctionIndexEntry]) -> None:
        self._entries: Mapping[str, FunctionIndexEntry] = MappingProxyType(dict(entries))
        self._resolver = PathResolver(self._entries.keys())

    @classmethod
    def build(cls, records: Iterable[FileRecord]) -> FunctionCoverageIndex:
        """Build the index from decoded (target, file) records."""
        entries = _merge_records(records)
        log.info(
            "function_index_built",
            files=len(entries),
            functions=sum(len(e.line_numbers) for e in entries.values()),
        )
        return cls(entries)

    @classmethod
    def from_payload(cls, payload: bytes | str) -> FunctionCoverageIndex:
        """Decode a raw xccov JSON report and build the index.

        Raises:
            CoverageError: If the payload does not match the report schema.
        """
        return cls.build(decode_function_report(payload))

    @property
    def files(self) -> frozenset[str]:
        return self._resolver.candidates

    def entry(self, file: str) -> FunctionIndexEntry | None:
        path = self._resolver.resolve(file)
        if path is None:
            return None
        return self._entries[path]

    def coverage(self, file: str, start_line: int, end_line: int) -> float | None:
        """Coverage percentage for the code unit spanning ``[start_line, end_line]``.

        Returns the coverage of the first function whose line number falls in
        the range, else the file's coverage. None only when the file is not in
        the report.
        """
        entry = self.entry(file)
        if entry is None:
            return None

        pos = bisect_left(entry.line_numbers, start_line)
        if pos < len(entry.line_numbers) and entry.line_numbers[pos] <= end_line:
            return entry.coverages[pos]
        return entry.file_coverage
