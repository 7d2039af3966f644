"""Errors raised while reading stored compensation configuration."""


class ConfigurationError(Exception):
    """A stored plan or rule block cannot be evaluated as configured."""


class TierConfigurationError(ConfigurationError):
    """A tier set breaks the ordering/non-overlap rules."""
