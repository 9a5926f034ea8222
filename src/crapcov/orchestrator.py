"""Run orchestration: pick one coverage source, query it per unit, score.

Default-coverage policy:

- No coverage source configured: every unit counts as 100% covered.
- Source configured but no data for a unit: the unit counts as 0% covered.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

import structlog

from crapcov.config.models import CoverageConfig
from crapcov.core.errors import ConfigError, InternalError
from crapcov.coverage.exporters import export_function_report, export_segments, read_payload
from crapcov.coverage.function_index import FunctionCoverageIndex
from crapcov.coverage.models import CodeUnit, CoverageProvider, RiskEntry
from crapcov.coverage.segment_index import SegmentCoverageIndex
from crapcov.scoring import crap_score

log = structlog.get_logger(__name__)

UNMEASURED_COVERAGE = 100.0
MISSING_COVERAGE = 0.0


class CoverageSourceKind(Enum):
    FUNCTION_REPORT = "function_report"
    SEGMENT_STREAM = "segment_stream"
    NONE = "none"


def select_source(config: CoverageConfig) -> CoverageSourceKind:
    """Pick the single coverage source for this run.

    Raises:
        ConfigError: If only one of profdata/binary is set and nothing else
            provides coverage.
    """
    has_report = bool(config.xcresult or config.xccov_json)
    has_profdata = bool(config.profdata)
    has_binary = bool(config.binary)

    if has_profdata != has_binary and not (has_report or config.llvm_cov_json):
        raise ConfigError.missing_required("binary" if has_profdata else "profdata")
    has_segments = (has_profdata and has_binary) or bool(config.llvm_cov_json)

    if has_report:
        if has_segments:
            log.warning(
                "multiple_coverage_sources",
                using=CoverageSourceKind.FUNCTION_REPORT.value,
                ignored=CoverageSourceKind.SEGMENT_STREAM.value,
            )
        return CoverageSourceKind.FUNCTION_REPORT
    if has_segments:
        return CoverageSourceKind.SEGMENT_STREAM
    return CoverageSourceKind.NONE


def build_provider(config: CoverageConfig) -> CoverageProvider | None:
    """Export (or read) the selected coverage data and build its index.

    Pre-exported payload files take precedence over running the export tool.

    Raises:
        ConfigError: On an incomplete source configuration.
        CoverageError: If the export fails or its payload cannot be decoded.
    """
    kind = select_source(config)
    log.info("coverage_source_selected", source=kind.value)

    if kind is CoverageSourceKind.FUNCTION_REPORT:
        if config.xccov_json:
            payload = read_payload(config.xccov_json)
        else:
            if config.xcresult is None:
                raise InternalError.unexpected("function report selected without xcresult")
            payload = export_function_report(
                config.xcresult,
                xcrun=config.xcrun,
                timeout_sec=config.export_timeout_sec,
            )
        return FunctionCoverageIndex.from_payload(payload)

    if kind is CoverageSourceKind.SEGMENT_STREAM:
        if config.llvm_cov_json:
            payload = read_payload(config.llvm_cov_json)
        else:
            if config.profdata is None or config.binary is None:
                raise InternalError.unexpected("segment stream selected without profdata/binary")
            payload = export_segments(
                config.profdata,
                config.binary,
                xcrun=config.xcrun,
                timeout_sec=config.export_timeout_sec,
            )
        return SegmentCoverageIndex.from_payload(payload)

    return None


def coverage_for(provider: CoverageProvider | None, unit: CodeUnit) -> float:
    """Coverage percentage for ``unit`` after applying the default policy."""
    if provider is None:
        return UNMEASURED_COVERAGE
    cov = provider.coverage(unit.file, unit.start_line, unit.end_line)
    if cov is None:
        log.debug("coverage_missing", unit=unit.name, file=unit.file)
        return MISSING_COVERAGE
    return cov


def score_unit(provider: CoverageProvider | None, unit: CodeUnit) -> RiskEntry:
    cov = coverage_for(provider, unit)
    return RiskEntry(
        name=unit.name,
        file=unit.file,
        line=unit.start_line,
        complexity=unit.complexity,
        coverage=cov,
        crap=crap_score(unit.complexity, cov),
    )


def score_units(units: Iterable[CodeUnit], provider: CoverageProvider | None) -> list[RiskEntry]:
    """Score every unit against one provider, preserving input order."""
    entries = [score_unit(provider, unit) for unit in units]
    log.info("units_scored", units=len(entries), coverage=provider is not None)
    return entries
