"""JSON contracts at the system boundary.

Code units arrive from the analysis side as a JSON array::

    [{"name": "parse(_:)", "file": "/abs/Sources/Parser.swift",
      "start_line": 12, "end_line": 40, "complexity": 7}, ...]

Risk entries leave as a JSON array in the same order, with keys
``name, file, line, complexity, coverage, crap``. Sorting and filtering
belong to reporting.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import asdict
from pathlib import Path

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, model_validator

from crapcov.core.errors import CoverageError
from crapcov.coverage.models import CodeUnit, RiskEntry

UNITS_FORMAT = "units"


class _CodeUnitIn(BaseModel):
    name: str
    file: str
    start_line: int = Field(ge=1)
    end_line: int = Field(ge=1)
    complexity: int = Field(ge=1)

    @model_validator(mode="after")
    def _check_range(self) -> _CodeUnitIn:
        if self.end_line < self.start_line:
            raise ValueError(f"end_line {self.end_line} before start_line {self.start_line}")
        return self


_UNITS_ADAPTER = TypeAdapter(list[_CodeUnitIn])


def parse_code_units(payload: bytes | str) -> list[CodeUnit]:
    """Decode a JSON array of code units.

    Raises:
        CoverageError: If the payload does not match the schema.
    """
    try:
        raw_units = _UNITS_ADAPTER.validate_json(payload)
    except ValidationError as e:
        raise CoverageError.decode_failed(UNITS_FORMAT, str(e)) from e
    return [
        CodeUnit(
            name=u.name,
            file=u.file,
            start_line=u.start_line,
            end_line=u.end_line,
            complexity=u.complexity,
        )
        for u in raw_units
    ]


def load_code_units(path: Path) -> list[CodeUnit]:
    """Read and decode a code-units JSON file."""
    try:
        payload = path.read_bytes()
    except OSError as e:
        raise CoverageError.decode_failed(UNITS_FORMAT, f"cannot read {path}: {e}") from e
    return parse_code_units(payload)


def dump_risk_entries(entries: Iterable[RiskEntry], *, indent: int | None = 2) -> str:
    return json.dumps([asdict(e) for e in entries], indent=indent)
