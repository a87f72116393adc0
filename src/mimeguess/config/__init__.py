"""Configuration management for mimeguess."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .exceptions import ConfigError
from .models import MimeGuessConfig
from .resolver import ENV_PREFIX, flatten_for_env, merge_mappings, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.mimeguess/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # mimeguess configuration file
    # Generated automatically; manage via `mimeguess config edit` or `mimeguess config set`.
    """
)


class ConfigManager:
    """Read and write the YAML settings file and apply override precedence."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        *,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Optional[Mapping[str, Any]] = None,
        include_env: bool = True,
        ensure_file: bool = False,
        env_overrides: Optional[Mapping[str, str]] = None,
    ) -> MimeGuessConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Highest-precedence overrides, usually from CLI flags.
            include_env: Whether ``MIMEGUESS__*`` variables are consulted.
            ensure_file: Create the file with defaults when it is missing.
            env_overrides: Environment mapping to use instead of ``os.environ``.

        Returns:
            MimeGuessConfig: Validated configuration.

        Raises:
            ConfigError: If the file or any override is invalid.
        """
        if ensure_file:
            self.ensure_exists()

        env_layer = None
        if include_env:
            env_layer = self.parse_env(env_overrides if env_overrides is not None else self._env)

        return resolve_with_precedence(
            defaults=MimeGuessConfig(),
            file_overrides=self.load_file_overrides(),
            env_overrides=env_layer or None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored on disk, or an empty mapping."""
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def save(self, config: MimeGuessConfig | Mapping[str, Any]) -> None:
        """Write ``config`` to disk with a header and timestamp."""
        if isinstance(config, MimeGuessConfig):
            data = config.model_dump(mode="json")
        else:
            data = dict(config)

        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(data, sort_keys=False)
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{body}", encoding="utf-8"
        )

    def ensure_exists(self) -> Path:
        """Create the configuration file with defaults if it does not exist."""
        if not self._config_path.exists():
            self.save(MimeGuessConfig())
        return self._config_path

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    @staticmethod
    def parse_env(env: Mapping[str, str]) -> dict[str, Any]:
        """Collect ``MIMEGUESS__SECTION__KEY`` variables into a nested mapping.

        Values are parsed as YAML so booleans, numbers and lists survive.
        """
        overrides: dict[str, Any] = {}
        for key, raw_value in env.items():
            if not key.startswith(ENV_PREFIX):
                continue
            path = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
            if not path:
                continue
            try:
                value: Any = yaml.safe_load(raw_value)
            except yaml.YAMLError:
                value = raw_value

            nested: Any = value
            for segment in reversed(path):
                nested = {segment: nested}
            overrides = merge_mappings(overrides, nested)
        return overrides


__all__ = [
    "ConfigManager",
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "MimeGuessConfig",
    "flatten_for_env",
    "resolve_with_precedence",
]
