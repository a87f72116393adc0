"""Merge configuration layers into a validated ``MimeGuessConfig``."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import MimeGuessConfig

ENV_PREFIX = "MIMEGUESS__"

# Lowest precedence first.
_LAYER_ORDER = ("file", "environment", "cli")


def resolve_with_precedence(
    *,
    defaults: MimeGuessConfig,
    file_overrides: Optional[Mapping[str, Any]] = None,
    env_overrides: Optional[Mapping[str, Any]] = None,
    cli_overrides: Optional[Mapping[str, Any]] = None,
) -> MimeGuessConfig:
    """Layer overrides on top of ``defaults`` and validate the result.

    Precedence, lowest to highest: defaults, file, environment, CLI. Keys in
    any layer may be dotted (``probe.timeout_seconds``) or nested mappings.

    Raises:
        ConfigError: If a layer is malformed or the merged values fail validation.
    """
    layers = {
        "file": file_overrides,
        "environment": env_overrides,
        "cli": cli_overrides,
    }
    merged = defaults.model_dump(mode="json")
    for name in _LAYER_ORDER:
        layer = layers[name]
        if layer is None:
            continue
        merged = merge_mappings(merged, expand_dotted(layer, source=name))

    try:
        return MimeGuessConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: MimeGuessConfig) -> Dict[str, str]:
    """Render ``config`` as ``MIMEGUESS__SECTION__KEY`` environment variables."""
    flat: Dict[str, str] = {}
    for section, values in config.model_dump(mode="json").items():
        for key, value in values.items():
            env_key = f"{ENV_PREFIX}{section.upper()}__{key.upper()}"
            flat[env_key] = _render_env_value(value)
    return flat


def expand_dotted(overrides: Mapping[str, Any], *, source: str = "override") -> dict[str, Any]:
    """Expand dotted keys in ``overrides`` into nested dictionaries.

    Raises:
        ConfigError: If ``overrides`` is not a mapping, a key is not a string,
            or a dotted key descends into a non-mapping value.
    """
    label = source.capitalize()
    if not isinstance(overrides, MappingABC):
        raise ConfigError(f"{label} overrides must be a mapping.")

    expanded: dict[str, Any] = {}
    for key, value in overrides.items():
        if not isinstance(key, str):
            raise ConfigError(f"{label} override keys must be strings.")
        *parents, leaf = key.split(".")
        node = expanded
        for segment in parents:
            child = node.setdefault(segment, {})
            if not isinstance(child, dict):
                raise ConfigError(f"{label} override for {key} conflicts with an existing value.")
            node = child
        if isinstance(value, MappingABC):
            existing = node.get(leaf)
            if not isinstance(existing, MappingABC):
                existing = {}
            value = merge_mappings(existing, expand_dotted(value, source=source))
        node[leaf] = value
    return expanded


def merge_mappings(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Return a deep copy of ``base`` with ``overrides`` merged in recursively."""
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            merged[key] = merge_mappings(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


def _render_env_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return yaml.safe_dump(value, default_flow_style=True).strip()
    return str(value)


__all__ = [
    "ENV_PREFIX",
    "resolve_with_precedence",
    "flatten_for_env",
    "expand_dotted",
    "merge_mappings",
]
