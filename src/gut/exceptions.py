"""Custom exceptions for gut"""

from typing import Optional


class GutError(Exception):
    """Base exception for all gut errors."""


class InvalidFormat(GutError):
    """Raised for a malformed version token or branch name."""

    def __init__(self, value: str, message: Optional[str] = None) -> None:
        self.value = value
        super().__init__(message or f"Invalid format: '{value}'")


class InvalidArgument(GutError):
    """Raised when arguments violate the branch creation rules."""

    def __init__(self, argument: str, message: str) -> None:
        self.argument = argument
        super().__init__(f"Argument {argument} {message}")


class IllegalTransition(GutError):
    """Raised when a branch kind may not be created from the current one."""

    def __init__(self, current: str, requested: str, message: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot create a {requested} branch from a {current} branch: {message}")


class ConfigError(GutError):
    """Raised for missing or unreadable options."""
