"""Line-range coverage index built from llvm-cov segments.

Segments mark where an execution count begins. After sorting by
(line, column), a segment with a count owns the half-open line interval
``[segment.line, next_segment.line)``; the last segment owns only its own
line. Each owned line is instrumented, and covered when the count is
positive. Segments without a count still bound the previous interval.

Per file, two prefix-sum arrays over lines 0..max_line make every range
query O(1):

    instrumented(a, b) = instrumented[b] - instrumented[a - 1]
    covered(a, b)      = covered[b] - covered[a - 1]
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from itertools import accumulate
from types import MappingProxyType

import structlog

from crapcov.coverage.decoders import decode_segment_export
from crapcov.coverage.models import Segment, SegmentIndexEntry
from crapcov.coverage.paths import PathResolver, normalize

log = structlog.get_logger(__name__)

_EMPTY_ENTRY = SegmentIndexEntry(max_line=0, instrumented=(0,), covered=(0,))


def build_entry(segments: Sequence[Segment]) -> SegmentIndexEntry:
    """Build prefix sums for one file's segments."""
    ordered = sorted(segments, key=lambda s: (s.line, s.column))

    line_counts: dict[int, int] = {}
    for i, seg in enumerate(ordered):
        if not seg.has_count:
            continue
        next_boundary = ordered[i + 1].line if i + 1 < len(ordered) else seg.line + 1
        for line in range(max(seg.line, 1), next_boundary):
            line_counts[line] = seg.count

    if not line_counts:
        return _EMPTY_ENTRY

    max_line = max(line_counts)
    instrumented = [0] * (max_line + 1)
    covered = [0] * (max_line + 1)
    for line, count in line_counts.items():
        instrumented[line] = 1
        if count > 0:
            covered[line] = 1

    return SegmentIndexEntry(
        max_line=max_line,
        instrumented=tuple(accumulate(instrumented)),
        covered=tuple(accumulate(covered)),
    )


class SegmentCoverageIndex:
    """Read-only per-file prefix sums, queryable by line range in O(1)."""

    __slots__ = ("_entries", "_resolver")

    def __init__(self, entries: Mapping[str, SegmentIndexEntry]) -> None:
        self._entries: Mapping[str, SegmentIndexEntry] = MappingProxyType(dict(entries))
        self._resolver = PathResolver(self._entries.keys())

    @classmethod
    def build(cls, files: Iterable[tuple[str, Sequence[Segment]]]) -> SegmentCoverageIndex:
        """Build the index from ``(filename, segments)`` pairs.

        A file listed more than once keeps its last segment list.
        """
        latest: dict[str, Sequence[Segment]] = {}
        for filename, segments in files:
            latest[normalize(filename)] = segments

        entries = {path: build_entry(segments) for path, segments in latest.items()}
        log.info(
            "segment_index_built",
            files=len(entries),
            instrumented_lines=sum(e.instrumented[-1] for e in entries.values()),
        )
        return cls(entries)

    @classmethod
    def from_payload(cls, payload: bytes | str) -> SegmentCoverageIndex:
        """Decode a raw llvm-cov export and build the index.

        Raises:
            CoverageError: If the payload does not match the export schema.
        """
        return cls.build(decode_segment_export(payload))

    @property
    def files(self) -> frozenset[str]:
        return self._resolver.candidates

    def entry(self, file: str) -> SegmentIndexEntry | None:
        path = self._resolver.resolve(file)
        if path is None:
            return None
        return self._entries[path]

    def coverage(self, file: str, start_line: int, end_line: int) -> float | None:
        """Percentage of instrumented lines in ``[start_line, end_line]`` that ran.

        None when the file is unknown, or the range holds no instrumented line.
        """
        entry = self.entry(file)
        if entry is None:
            return None

        start = max(start_line, 1)
        end = min(end_line, entry.max_line)
        if start > end:
            return None

        instrumented = entry.instrumented[end] - entry.instrumented[start - 1]
        if instrumented == 0:
            return None
        covered = entry.covered[end] - entry.covered[start - 1]
        return covered / instrumented * 100.0
