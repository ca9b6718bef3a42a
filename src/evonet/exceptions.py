"""
Exception hierarchy for evonet.

Errors that callers are expected to handle are raised as typed exceptions.
Each also derives from the builtin it specialises (ValueError, RuntimeError),
so code catching the builtin keeps working.
"""

from typing import Any


class EvonetError(Exception):
    """Base class for all evonet specific exceptions."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class InvalidTopology(EvonetError, ValueError):
    """Raised when a network is requested with fewer than 2 layers or an empty layer."""


class MalformedNetworkData(EvonetError, ValueError):
    """Raised when serialized network data is missing fields or dimensionally inconsistent."""


class EmptyPopulationSave(EvonetError, RuntimeError):
    """Raised when the best agent is to be saved but no agent has finished a trial yet."""


class ConfigError(EvonetError, ValueError):
    """Raised for configuration values outside their allowed range."""


__all__ = [
    "EvonetError",
    "InvalidTopology",
    "MalformedNetworkData",
    "EmptyPopulationSave",
    "ConfigError",
]
