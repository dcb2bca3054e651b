"""Error types raised by the game engine."""
from typing import Any, Optional


class DescriboError(Exception):
    """Base class for game errors."""


class LoadFailure(DescriboError):
    """A word list could not be loaded.

    The affected category is unavailable until the load is retried.
    """

    def __init__(self, kind: str, key: Any, reason: Optional[str] = None):
        self.kind = kind
        self.key = key
        self.reason = reason
        message = f"Failed to load {kind} {key!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class PoolExhausted(DescriboError):
    """No unsolved words remain in the enabled categories."""

    def __init__(self, message: str = "No words left!"):
        super().__init__(message)


class InvalidSetting(DescriboError):
    """A persisted setting has a malformed value."""

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Invalid value for {field}: {value!r}")
