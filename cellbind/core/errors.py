"""Custom exceptions used by the cellbind application layer."""

from cellbind_io.errors import ConfigurationError


class ProfileError(ConfigurationError):
    """Template profile configuration is missing or invalid."""


class AllowListError(ConfigurationError):
    """Coverage allow-list file is missing or invalid."""
