"""Errors raised while reading casebook settings."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting is present but unusable (wrong type, out of range)."""


class MissingConfigurationError(ConfigurationError):
    """One or more required settings are unset or blank."""
