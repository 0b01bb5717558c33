from __future__ import annotations

import datetime as dt
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .logging_utils import render_fields_block
from .utils import dump_yaml_file, load_yaml_file

LOGGER = logging.getLogger(__name__)

CONFIG_ENV_VAR = "QUEUECAST_CONFIG"
SYMLINK_DIR_ENV_VAR = "QUEUECAST_SYMLINK_DIR"
DEFAULT_CONFIG_PATH = Path("~/.config/queuecast/config.yaml")
DATABASE_FILENAME = "queuecast.db"

DEFAULT_VIDEO_EXTENSIONS = (".mkv", ".mp4", ".avi", ".mov", ".m4v", ".webm", ".ts")

# Keys accepted by ``queuecast config``; dashes and underscores are interchangeable.
CONFIG_KEYS = ("symlink_dir", "cadence_days", "video_extensions", "database_path")


@dataclass
class Settings:
    symlink_dir: Path | None = None
    cadence_days: float = 7.0
    video_extensions: list[str] = field(default_factory=lambda: list(DEFAULT_VIDEO_EXTENSIONS))
    database_path: Path | None = None

    @property
    def cadence(self) -> dt.timedelta:
        return dt.timedelta(days=self.cadence_days)

    def to_dict(self) -> dict[str, Any]:
        return {
            "symlink_dir": str(self.symlink_dir) if self.symlink_dir is not None else None,
            "cadence_days": self.cadence_days,
            "video_extensions": list(self.video_extensions),
            "database_path": str(self.database_path) if self.database_path is not None else None,
        }


def resolve_config_path(explicit: Path | None = None) -> Path:
    if explicit is not None:
        return explicit.expanduser()
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


def _parse_optional_path(value: Any, *, field_name: str) -> Path | None:
    if value is None:
        return None
    if not isinstance(value, (str, os.PathLike)):
        raise ConfigError(f"'{field_name}' must be a path string")
    text = os.fspath(value).strip()
    if not text:
        return None
    return Path(text).expanduser()


def _parse_cadence_days(value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigError("'cadence_days' must be a positive number")
    try:
        days = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError("'cadence_days' must be a positive number") from exc
    if days <= 0:
        raise ConfigError("'cadence_days' must be a positive number")
    return days


def _normalize_extension(value: str) -> str:
    ext = value.strip().lower()
    if not ext:
        raise ConfigError("'video_extensions' entries must not be empty")
    return ext if ext.startswith(".") else f".{ext}"


def _parse_extensions(value: Any) -> list[str]:
    if isinstance(value, str):
        items: list[Any] = [part for part in value.replace(",", " ").split() if part]
    elif isinstance(value, list):
        items = value
    else:
        raise ConfigError("'video_extensions' must be a list of file suffixes")
    extensions: list[str] = []
    for item in items:
        if not isinstance(item, str):
            raise ConfigError("'video_extensions' entries must be strings")
        ext = _normalize_extension(item)
        if ext not in extensions:
            extensions.append(ext)
    if not extensions:
        raise ConfigError("'video_extensions' must list at least one suffix")
    return extensions


def build_settings(data: dict[str, Any]) -> Settings:
    unknown = sorted(set(data) - set(CONFIG_KEYS))
    if unknown:
        LOGGER.warning(
            render_fields_block(
                "Ignoring Unknown Config Keys",
                {"Keys": unknown},
            )
        )

    defaults = Settings()
    cadence_raw = data.get("cadence_days")
    extensions_raw = data.get("video_extensions")

    return Settings(
        symlink_dir=_parse_optional_path(data.get("symlink_dir"), field_name="symlink_dir"),
        cadence_days=_parse_cadence_days(cadence_raw) if cadence_raw is not None else defaults.cadence_days,
        video_extensions=_parse_extensions(extensions_raw) if extensions_raw is not None else defaults.video_extensions,
        database_path=_parse_optional_path(data.get("database_path"), field_name="database_path"),
    )


def normalize_key(key: str) -> str:
    normalized = key.strip().lower().replace("-", "_")
    if normalized not in CONFIG_KEYS:
        allowed = ", ".join(name.replace("_", "-") for name in CONFIG_KEYS)
        raise ConfigError(f"Unknown config key '{key}' (expected one of: {allowed})")
    return normalized


def set_config_value(settings: Settings, key: str, value: str) -> Settings:
    """Return a copy of ``settings`` with ``key`` parsed from ``value``."""
    name = normalize_key(key)
    if name == "symlink_dir":
        return replace(settings, symlink_dir=_parse_optional_path(value, field_name=name))
    if name == "cadence_days":
        return replace(settings, cadence_days=_parse_cadence_days(value))
    if name == "video_extensions":
        return replace(settings, video_extensions=_parse_extensions(value))
    return replace(settings, database_path=_parse_optional_path(value, field_name=name))


def apply_env_overrides(settings: Settings) -> Settings:
    symlink_dir = os.getenv(SYMLINK_DIR_ENV_VAR)
    if symlink_dir:
        return replace(settings, symlink_dir=Path(symlink_dir).expanduser())
    return settings


class ConfigStore:
    """Loads and saves :class:`Settings` as a YAML document."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> Settings:
        if not self.path.exists():
            LOGGER.debug(render_fields_block("Config Not Found, Using Defaults", {"Path": self.path}))
            settings = Settings()
        else:
            try:
                data = load_yaml_file(self.path)
            except (OSError, ValueError, yaml.YAMLError) as exc:
                raise ConfigError(f"Unable to read config {self.path}: {exc}") from exc
            settings = build_settings(data)
        if settings.database_path is None:
            settings.database_path = self.path.parent / DATABASE_FILENAME
        return settings

    def save(self, settings: Settings) -> None:
        try:
            dump_yaml_file(self.path, settings.to_dict())
        except OSError as exc:
            raise ConfigError(f"Unable to write config {self.path}: {exc}") from exc
        LOGGER.debug(render_fields_block("Config Saved", {"Path": self.path}))
