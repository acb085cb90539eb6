"""Configuration management for ccguard."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import GuardConfig
from .resolver import ENV_PREFIX, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.ccguard/config.yaml")
PROJECT_CONFIG_NAMES = (
    ".ccguard.yaml",
    ".ccguard.yml",
    ".ccguard.config.json",
    "ccguard.config.json",
)
_CONFIG_HEADER = textwrap.dedent(
    """\
    # ccguard configuration file
    # Generated automatically; manage via `ccguard config set`.
    # Project-level overrides may live in .ccguard.yaml at the repository root.
    """
)


def find_project_config(start: Path) -> Path | None:
    """Return the nearest project configuration file at or above ``start``."""
    current = start.expanduser().resolve()
    for directory in [current, *current.parents]:
        for name in PROJECT_CONFIG_NAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


class ConfigManager:
    """Load and persist configuration data, applying precedence rules."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        project_root: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._project_root = project_root
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved user configuration path."""
        return self._config_path

    @property
    def project_config_path(self) -> Path | None:
        """Return the project configuration file in effect, if any."""
        if self._project_root is None:
            return None
        return find_project_config(self._project_root)

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> GuardConfig:
        """Load configuration data from disk, applying precedence rules."""
        if ensure_file:
            self.ensure_exists()

        file_data = self._read_yaml(self._config_path)
        project_path = self.project_config_path
        project_data = self._read_yaml(project_path) if project_path else None

        env_data: Mapping[str, str] | None
        if include_env:
            env_data = env_overrides if env_overrides is not None else self._env
        else:
            env_data = None

        return resolve_with_precedence(
            defaults=GuardConfig(),
            file_overrides=file_data,
            project_overrides=project_data,
            env_overrides=self._extract_env(env_data) if env_data else None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return raw overrides stored in the user configuration file."""
        return self._read_yaml(self._config_path)

    def save(self, config: GuardConfig | Mapping[str, Any]) -> None:
        """Persist configuration data to the user configuration file."""
        if isinstance(config, GuardConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        self._write_file(data)

    def ensure_exists(self) -> Path:
        """Create a configuration file with defaults if one does not exist."""
        path = self._config_path
        if not path.exists():
            self._write_file(GuardConfig().model_dump(mode="python"))
        return path

    def read_text(self) -> str:
        """Return the current user configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    # Internal helpers -------------------------------------------------

    def _read_yaml(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}

        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file {path}: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError(f"Configuration file {path} must contain a mapping at the top level.")

        return raw

    def _write_file(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        serialized = yaml.safe_dump(dict(data), sort_keys=False)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        timestamp = f"# Last updated: {stamp}\n"
        self._config_path.write_text(_CONFIG_HEADER + timestamp + serialized, encoding="utf-8")

    def _extract_env(self, env: Mapping[str, str]) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for key, raw_value in env.items():
            if not key.startswith(ENV_PREFIX):
                continue
            path = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
            if not path:
                continue
            try:
                parsed_value: Any = yaml.safe_load(raw_value)
            except yaml.YAMLError:
                parsed_value = raw_value
            self._assign_nested(overrides, path, parsed_value)

        return overrides

    def _assign_nested(self, target: dict[str, Any], path: list[str], value: Any) -> None:
        current = target
        for segment in path[:-1]:
            existing = current.get(segment)
            if not isinstance(existing, dict):
                existing = {}
                current[segment] = existing
            current = existing
        current[path[-1]] = value


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "PROJECT_CONFIG_NAMES",
    "GuardConfig",
    "find_project_config",
    "resolve_with_precedence",
    "ConfigError",
]
