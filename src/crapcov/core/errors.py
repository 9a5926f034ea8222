"""crapcov error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Coverage
- 9xxx: Internal

Coverage data is static for the duration of a run, so nothing here is
retryable.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003
    CONFIG_FILE_NOT_FOUND = 2004

    # Coverage (3xxx)
    COVERAGE_EXPORT_FAILED = 3001
    COVERAGE_EXPORT_TIMEOUT = 3002
    COVERAGE_TOOL_NOT_FOUND = 3003
    COVERAGE_DECODE_FAILED = 3004

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class CrapcovError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CrapcovError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required config field: {field}",
            details={"field": field},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class CoverageError(CrapcovError):
    """Coverage export and decoding errors. Always fatal for the run."""

    @classmethod
    def export_failed(cls, tool: str, exit_code: int, output: str) -> "CoverageError":
        return cls(
            code=ErrorCode.COVERAGE_EXPORT_FAILED,
            message=f"{tool} failed with exit code {exit_code}",
            details={"tool": tool, "exit_code": exit_code, "output": output},
        )

    @classmethod
    def export_timeout(cls, tool: str, timeout_sec: float) -> "CoverageError":
        return cls(
            code=ErrorCode.COVERAGE_EXPORT_TIMEOUT,
            message=f"{tool} timed out after {timeout_sec}s",
            details={"tool": tool, "timeout_sec": timeout_sec},
        )

    @classmethod
    def tool_not_found(cls, tool: str) -> "CoverageError":
        return cls(
            code=ErrorCode.COVERAGE_TOOL_NOT_FOUND,
            message=f"Coverage export tool not found: {tool}",
            details={"tool": tool},
        )

    @classmethod
    def decode_failed(cls, fmt: str, reason: str) -> "CoverageError":
        return cls(
            code=ErrorCode.COVERAGE_DECODE_FAILED,
            message=f"Failed to decode {fmt} payload: {reason}",
            details={"format": fmt, "reason": reason},
        )


class InternalError(CrapcovError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
