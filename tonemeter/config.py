"""Runtime configuration.

Settings are resolved in three layers: built-in defaults, an optional YAML
file named by ``TONEMETER_CONFIG``, then environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from tonemeter.llm.client import DEFAULT_MODEL

DEFAULT_DAILY_QUOTA = 20
DEFAULT_CLASSIFIER_TIMEOUT = 8.0


class ConfigError(ValueError):
    """Raised when a configuration value cannot be interpreted."""


@dataclass
class Settings:
    """Resolved service settings."""

    home: Path = field(default_factory=lambda: Path.home() / ".tonemeter")
    anthropic_api_key: str = ""
    classifier_model: str = DEFAULT_MODEL
    classifier_timeout: float = DEFAULT_CLASSIFIER_TIMEOUT
    daily_quota: int = DEFAULT_DAILY_QUOTA
    log_level: str = "INFO"
    aggressive_terms: list[str] = field(default_factory=list)

    # -- derived paths -------------------------------------------------------

    @property
    def moderation_dir(self) -> Path:
        return self.home / "moderation"

    @property
    def messages_dir(self) -> Path:
        return self.home / "messages"

    @property
    def auth_dir(self) -> Path:
        return self.home / "auth"

    @property
    def audit_dir(self) -> Path:
        return self.home / "audit_logs"


def _as_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


def _as_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}") from None


def _load_yaml(path: str | Path) -> dict:
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")
    return data


def load_settings(
    path: str | Path | None = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build :class:`Settings` from YAML (optional) and the environment."""
    env = os.environ if environ is None else environ
    settings = Settings()

    config_path = path or env.get("TONEMETER_CONFIG")
    if config_path:
        data = _load_yaml(config_path)
        if "home" in data:
            settings.home = Path(data["home"]).expanduser()
        if "classifier_model" in data:
            settings.classifier_model = str(data["classifier_model"])
        if "classifier_timeout" in data:
            settings.classifier_timeout = _as_float("classifier_timeout", data["classifier_timeout"])
        if "daily_quota" in data:
            settings.daily_quota = _as_int("daily_quota", data["daily_quota"])
        if "log_level" in data:
            settings.log_level = str(data["log_level"])
        terms = data.get("aggressive_terms") or []
        if not isinstance(terms, list):
            raise ConfigError("aggressive_terms must be a list of strings")
        settings.aggressive_terms = [str(t).lower() for t in terms]

    if env.get("TONEMETER_HOME"):
        settings.home = Path(env["TONEMETER_HOME"]).expanduser()
    if env.get("ANTHROPIC_API_KEY"):
        settings.anthropic_api_key = env["ANTHROPIC_API_KEY"]
    if env.get("TONEMETER_MODEL"):
        settings.classifier_model = env["TONEMETER_MODEL"]
    if env.get("TONEMETER_CLASSIFIER_TIMEOUT"):
        settings.classifier_timeout = _as_float(
            "TONEMETER_CLASSIFIER_TIMEOUT", env["TONEMETER_CLASSIFIER_TIMEOUT"]
        )
    if env.get("TONEMETER_DAILY_QUOTA"):
        settings.daily_quota = _as_int("TONEMETER_DAILY_QUOTA", env["TONEMETER_DAILY_QUOTA"])
    if env.get("TONEMETER_LOG_LEVEL"):
        settings.log_level = env["TONEMETER_LOG_LEVEL"]

    return settings
