# === NAVMAP v1 ===
# {
#   "module": "AssetKit.WebJars.config",
#   "purpose": "Typed settings, branding values, and YAML/environment loading",
#   "sections": [
#     {
#       "id": "brandingvalues",
#       "name": "BrandingValues",
#       "anchor": "class-brandingvalues",
#       "kind": "class"
#     },
#     {
#       "id": "loggingconfiguration",
#       "name": "LoggingConfiguration",
#       "anchor": "class-loggingconfiguration",
#       "kind": "class"
#     },
#     {
#       "id": "webjarsettings",
#       "name": "WebJarSettings",
#       "anchor": "class-webjarsettings",
#       "kind": "class"
#     },
#     {
#       "id": "load-raw-yaml",
#       "name": "load_raw_yaml",
#       "anchor": "function-load-raw-yaml",
#       "kind": "function"
#     },
#     {
#       "id": "load-settings",
#       "name": "load_settings",
#       "anchor": "function-load-settings",
#       "kind": "function"
#     },
#     {
#       "id": "get-default-settings",
#       "name": "get_default_settings",
#       "anchor": "function-get-default-settings",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Configuration models, parsing, and validation helpers.

Settings are resolved from three layers: field defaults, an optional YAML file,
and ``WEBJARS_*`` environment variables (highest precedence).  Branding values
are carried as an explicit :class:`BrandingValues` object that callers hand to
the placeholder substitutor and override resolver; nothing in the extraction
path reads configuration from process-wide state.
"""

from __future__ import annotations

import logging
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from . import __version__
from .errors import ConfigError

__all__ = [
    "BrandingValues",
    "LoggingConfiguration",
    "WebJarSettings",
    "DEFAULT_PROTECTED_FILES",
    "load_raw_yaml",
    "load_settings",
    "get_default_settings",
    "invalidate_default_settings",
]

LOGGER = logging.getLogger("AssetKit.WebJars")

DEFAULT_PROTECTED_FILES: Tuple[str, ...] = ("logo.png", "favicon.ico", "style.css")
_VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


class BrandingValues(BaseModel):
    """Runtime values substituted into branding style sheets."""

    application_name: str = ""
    application_version: str = ""
    tool_version: str = __version__

    model_config = {"frozen": True}


class LoggingConfiguration(BaseModel):
    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    max_log_size_mb: int = Field(default=20, gt=0, description="Maximum size of rotated log files")
    retention_days: int = Field(default=14, ge=1, description="Retention period for log files")
    json_file: bool = Field(default=False, description="Also write JSON lines to a log file")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in _VALID_LEVELS:
            raise ValueError(f"level must be one of {sorted(_VALID_LEVELS)}")
        return upper

    model_config = {"validate_assignment": True}


class WebJarSettings(BaseSettings):
    """Effective settings for extraction, collection, and branding."""

    temp_root: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))
    cache_namespace: str = Field(default="webjars", min_length=1)
    branding_folder: str = Field(default="META-INF/branding/")
    protected_files: List[str] = Field(default_factory=lambda: list(DEFAULT_PROTECTED_FILES))
    snapshot_marker: str = Field(default="-SNAPSHOT", min_length=1)
    stylesheet_suffix: str = Field(default=".css", min_length=1)
    bundled_package: str = Field(default="AssetKit.WebJars")
    bundled_folder: str = Field(default="branding")
    application_name: str = ""
    application_version: str = ""
    tool_version: str = __version__
    logging: LoggingConfiguration = Field(default_factory=LoggingConfiguration)

    model_config = SettingsConfigDict(
        env_prefix="WEBJARS_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # Values loaded from YAML arrive as init kwargs; the environment wins over them.
        return env_settings, init_settings

    @field_validator("branding_folder")
    @classmethod
    def normalize_branding_folder(cls, value: str) -> str:
        normalized = value.replace("\\", "/").lstrip("/")
        if normalized and not normalized.endswith("/"):
            normalized += "/"
        return normalized

    @field_validator("protected_files")
    @classmethod
    def validate_protected_files(cls, value: List[str]) -> List[str]:
        cleaned = [item.strip() for item in value if item and item.strip()]
        if not cleaned:
            raise ValueError("protected_files must list at least one file name")
        return cleaned

    def branding(self) -> BrandingValues:
        return BrandingValues(
            application_name=self.application_name,
            application_version=self.application_version,
            tool_version=self.tool_version,
        )


def _format_validation_error(exc: PydanticValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = " -> ".join(str(part) for part in error["loc"]) or "<root>"
        messages.append(f"{location}: {error['msg']}")
    return "Configuration validation failed:\n  " + "\n  ".join(messages)


def load_raw_yaml(config_path: Path) -> Mapping[str, Any]:
    """Return the mapping stored in ``config_path``."""

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Configuration file '{config_path}' contains invalid YAML") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError("Configuration file must contain a mapping at the root")
    return data


def load_settings(config_path: Optional[Path] = None, **overrides: Any) -> WebJarSettings:
    """Build settings from an optional YAML file, explicit overrides, and the environment."""

    raw: Dict[str, Any] = {}
    if config_path is not None:
        raw.update(load_raw_yaml(Path(config_path)))
        LOGGER.debug(
            "loaded settings file",
            extra={"stage": "config", "config_path": str(config_path)},
        )
    raw.update(overrides)
    try:
        return WebJarSettings(**raw)
    except PydanticValidationError as exc:
        raise ConfigError(_format_validation_error(exc)) from exc


_DEFAULT_SETTINGS_LOCK = threading.Lock()
_DEFAULT_SETTINGS: Optional[WebJarSettings] = None


def get_default_settings(*, copy: bool = False) -> WebJarSettings:
    """Return memoised settings built from defaults and the environment."""

    global _DEFAULT_SETTINGS  # noqa: PLW0603

    with _DEFAULT_SETTINGS_LOCK:
        if _DEFAULT_SETTINGS is None:
            _DEFAULT_SETTINGS = load_settings()
        cached = _DEFAULT_SETTINGS
    if copy:
        return cached.model_copy(deep=True)
    return cached


def invalidate_default_settings() -> None:
    """Forget memoised settings so the next call re-reads the environment."""

    global _DEFAULT_SETTINGS  # noqa: PLW0603

    with _DEFAULT_SETTINGS_LOCK:
        _DEFAULT_SETTINGS = None
