"""Errors raised while loading or validating mimeguess settings."""


class ConfigError(Exception):
    """Raised when configuration data cannot be parsed or validated."""
