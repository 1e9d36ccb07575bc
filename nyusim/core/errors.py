"""
Exception hierarchy for the channel modeling framework.
"""


class ChannelModelError(Exception):
    """Base class for all errors raised by the channel models."""


class ConfigurationError(ChannelModelError, ValueError):
    """Invalid or unsupported configuration, raised at construction time."""


class PreconditionError(ChannelModelError, ValueError):
    """Caller misuse detected at call time (missing mobility, antenna, ...)."""
