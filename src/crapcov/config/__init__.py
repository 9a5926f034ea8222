"""Config module exports."""

from crapcov.config.loader import CONFIG_FILE_NAME, load_config
from crapcov.config.models import (
    CoverageConfig,
    CrapcovConfig,
    LoggingConfig,
    LogOutputConfig,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "load_config",
    "CoverageConfig",
    "CrapcovConfig",
    "LoggingConfig",
    "LogOutputConfig",
]
