"""Configuration for diagbus.

Provides the application configuration object and the diagnostics
enablement gate consulted by producers before they emit.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_TRUTHY = ("1", "true", "yes")


@dataclass(frozen=True)
class DiagnosticsConfig:
    """Diagnostics settings block."""

    enabled: bool = False
    flags: tuple[str, ...] = ()


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    base_dir: Path
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False
    log_dir: Path | None = None
    events_log_level: str | None = None

    @classmethod
    def from_env(cls, base_dir: Path | None = None) -> AppConfig:
        """Load configuration from environment variables.

        Values in ``config/diagnostics.env`` under *base_dir* are used as
        defaults; process environment variables take precedence.

        Args:
            base_dir: Base directory (detected if not provided)

        Returns:
            AppConfig instance
        """
        if base_dir is None:
            base_dir = cls._detect_base_dir()

        values = cls._load_env_file(base_dir / "config" / "diagnostics.env")
        for key, value in os.environ.items():
            if key.startswith("DIAGBUS_"):
                values[key] = value

        flags = tuple(
            flag.strip()
            for flag in values.get("DIAGBUS_DIAGNOSTICS_FLAGS", "").split(",")
            if flag.strip()
        )
        log_dir = values.get("DIAGBUS_LOG_DIR")
        events_log_level = values.get("DIAGBUS_EVENTS_LOG_LEVEL")

        return cls(
            base_dir=base_dir,
            diagnostics=DiagnosticsConfig(
                enabled=_parse_bool(values.get("DIAGBUS_DIAGNOSTICS", "")),
                flags=flags,
            ),
            log_level=values.get("DIAGBUS_LOG_LEVEL", "INFO").upper(),
            json_logs=_parse_bool(values.get("DIAGBUS_JSON_LOGS", "")),
            log_dir=Path(log_dir) if log_dir else None,
            events_log_level=events_log_level.upper() if events_log_level else None,
        )

    @staticmethod
    def _detect_base_dir() -> Path:
        """Detect base directory from environment or cwd."""
        if base := os.environ.get("DIAGBUS_BASE_DIR"):
            return Path(base)
        return Path.cwd()

    @staticmethod
    def _load_env_file(path: Path) -> dict[str, str]:
        """Load a KEY=value env file."""
        if not path.exists():
            return {}

        values: dict[str, str] = {}
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("export "):
                line = line[7:]
            if "=" in line:
                key, value = line.split("=", 1)
                values[key.strip()] = value.strip().strip('"').strip("'")

        return values


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUTHY


def _lookup(obj: Any, key: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def is_diagnostics_enabled(config: Any = None) -> bool:
    """Return True when ``diagnostics.enabled`` is set to True in *config*.

    Accepts an ``AppConfig``, a nested mapping or ``None``. Anything that
    is missing, malformed, or not literally ``True`` counts as disabled.
    """
    try:
        enabled = _lookup(_lookup(config, "diagnostics"), "enabled")
    except Exception:
        return False
    return enabled is True


# Global config instance
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get global application config (loaded on first call)."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset global config (for testing)."""
    global _config
    _config = None
