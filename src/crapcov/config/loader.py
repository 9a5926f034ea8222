"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (CRAPCOV__SECTION__KEY)
3. Repo config (.crapcov.yml)
4. Built-in defaults (lowest priority)

The repo config keeps the flat, dashed keys users already write:

    xcresult: build/Test.xcresult
    profdata: build/default.profdata
    binary: build/MyAppTests
    export-timeout: 120
    log-level: DEBUG
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from crapcov.config.models import CoverageConfig, CrapcovConfig, LoggingConfig
from crapcov.core.errors import ConfigError

CONFIG_FILE_NAME = ".crapcov.yml"

# Flat repo-config key -> (section, field)
_REPO_KEYS: dict[str, tuple[str, str]] = {
    "xcresult": ("coverage", "xcresult"),
    "profdata": ("coverage", "profdata"),
    "binary": ("coverage", "binary"),
    "xccov-json": ("coverage", "xccov_json"),
    "llvm-cov-json": ("coverage", "llvm_cov_json"),
    "xcrun": ("coverage", "xcrun"),
    "export-timeout": ("coverage", "export_timeout_sec"),
    "log-level": ("logging", "level"),
}


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level value must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _repo_config_to_sections(flat: dict[str, Any], base_dir: Path) -> dict[str, Any]:
    """Map flat repo-config keys into the sectioned internal structure.

    Relative coverage paths are resolved against the config file's directory.
    Nested section mappings (``coverage:`` / ``logging:``) pass through as-is.
    """
    sections: dict[str, Any] = {}
    for key, value in flat.items():
        if key in ("coverage", "logging") and isinstance(value, dict):
            sections = _deep_merge(sections, {key: value})
            continue
        mapped = _REPO_KEYS.get(key)
        if mapped is None:
            raise ConfigError.invalid_value(key, value, "unknown config key")
        section, field_name = mapped
        if (
            section == "coverage"
            and field_name not in ("xcrun", "export_timeout_sec")
            and isinstance(value, str)
        ):
            value = str(base_dir / Path(value).expanduser())
        sections.setdefault(section, {})[field_name] = value
    return sections


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class with instance-based YAML source."""

    class CrapcovSettings(BaseSettings):
        """Root config. Env vars: CRAPCOV__LOGGING__LEVEL, CRAPCOV__COVERAGE__XCRESULT, etc."""

        model_config = SettingsConfigDict(
            env_prefix="CRAPCOV__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        coverage: CoverageConfig = CoverageConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml file
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return CrapcovSettings


def load_config(repo_root: Path | None = None, **kwargs: Any) -> CrapcovConfig:
    """Load config: defaults < .crapcov.yml < env vars < kwargs.

    Args:
        repo_root: Directory containing .crapcov.yml.
                   Defaults to current working directory.
        **kwargs: Section overrides, e.g. ``coverage={"xcresult": "..."}``.

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: If an explicit repo_root does not exist, or on invalid
            YAML syntax, unknown keys or validation errors.
    """
    if repo_root is None:
        repo_root = Path.cwd()
    elif not repo_root.is_dir():
        raise ConfigError.file_not_found(str(repo_root / CONFIG_FILE_NAME))
    flat = _load_yaml(repo_root / CONFIG_FILE_NAME)
    yaml_config = _repo_config_to_sections(flat, repo_root)

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return CrapcovConfig.model_validate(settings.model_dump())
