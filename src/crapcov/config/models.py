"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config() (CLI flags)
2. Environment variables (CRAPCOV__SECTION__KEY)
3. Repo YAML (.crapcov.yml)
4. Built-in defaults (this file)

Environment Variable Format:
    CRAPCOV__<SECTION>__<KEY>=<VALUE>

Examples:
    CRAPCOV__LOGGING__LEVEL=DEBUG
    CRAPCOV__COVERAGE__XCRESULT=build/Test.xcresult
    CRAPCOV__COVERAGE__EXPORT_TIMEOUT_SEC=120
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CRAPCOV__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. Scoring output goes to stdout, logs to stderr.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class CoverageConfig(BaseModel):
    """Coverage source configuration.

    At most one source family is used per run. A function report
    (xcresult / xccov_json) wins over a segment export (profdata+binary /
    llvm_cov_json).

    Env vars:
        CRAPCOV__COVERAGE__XCRESULT: Path to .xcresult bundle
        CRAPCOV__COVERAGE__PROFDATA: Path to .profdata file
        CRAPCOV__COVERAGE__BINARY: Path to instrumented binary
        CRAPCOV__COVERAGE__EXPORT_TIMEOUT_SEC: Export subprocess timeout
    """

    xcresult: str | None = Field(
        default=None,
        description="Path to .xcresult bundle, exported with 'xcrun xccov'.",
    )
    profdata: str | None = Field(
        default=None,
        description="Path to .profdata file, exported with 'xcrun llvm-cov'. Requires binary.",
    )
    binary: str | None = Field(
        default=None,
        description="Path to the instrumented binary. Requires profdata.",
    )
    xccov_json: str | None = Field(
        default=None,
        description="Pre-exported 'xccov view --report --json' payload. Skips the subprocess.",
    )
    llvm_cov_json: str | None = Field(
        default=None,
        description="Pre-exported 'llvm-cov export --format=text' payload. Skips the subprocess.",
    )
    xcrun: str = Field(
        default="xcrun",
        description="Executable used to invoke xccov and llvm-cov.",
    )
    export_timeout_sec: float = Field(
        default=300.0,
        description="Timeout for the coverage export subprocess. "
        "RISK: Large binaries can take minutes to export.",
    )

    @field_validator("export_timeout_sec")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v


class CrapcovConfig(BaseModel):
    """Root configuration for crapcov."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    coverage: CoverageConfig = Field(default_factory=CoverageConfig)
