"""Coverage resolution: path matching, coverage indexes and export.

Usage:
    from crapcov.coverage import FunctionCoverageIndex, SegmentCoverageIndex

    index = SegmentCoverageIndex.from_payload(export_json)
    index.coverage("/abs/Sources/Parser.swift", 12, 40)  # -> 66.67 or None

Supported formats:
    - xccov: per-function/per-file report from ``xcrun xccov view --report --json``
    - llvm-cov: sparse segments from ``xcrun llvm-cov export --format=text``
"""

from crapcov.coverage.decoders import (
    decode_function_report,
    decode_segment,
    decode_segment_export,
)
from crapcov.coverage.function_index import FunctionCoverageIndex
from crapcov.coverage.models import (
    CodeUnit,
    CoverageProvider,
    FileRecord,
    FunctionIndexEntry,
    FunctionRecord,
    RiskEntry,
    Segment,
    SegmentIndexEntry,
)
from crapcov.coverage.paths import PathResolver, normalize, resolve
from crapcov.coverage.segment_index import SegmentCoverageIndex

__all__ = [
    # Models
    "CodeUnit",
    "CoverageProvider",
    "FileRecord",
    "FunctionIndexEntry",
    "FunctionRecord",
    "RiskEntry",
    "Segment",
    "SegmentIndexEntry",
    # Paths
    "PathResolver",
    "normalize",
    "resolve",
    # Decoding
    "decode_function_report",
    "decode_segment",
    "decode_segment_export",
    # Indexes
    "FunctionCoverageIndex",
    "SegmentCoverageIndex",
]
