"""Core module exports."""

from crapcov.core.errors import (
    ConfigError,
    CoverageError,
    CrapcovError,
    ErrorCode,
    InternalError,
)
from crapcov.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "ConfigError",
    "CoverageError",
    "CrapcovError",
    "ErrorCode",
    "InternalError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
