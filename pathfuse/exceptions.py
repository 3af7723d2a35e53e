"""Exception types raised by pathfuse entry points."""

from __future__ import annotations

from typing import Any


class PathfuseError(Exception):
    """Base class for all pathfuse errors.

    Carries an optional ``details`` mapping (offending column, value, ...)
    that is appended to the message when rendered.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class InputValidationError(PathfuseError, ValueError):
    """Scores, directions, groups or background failed validation."""


class ConfigurationError(PathfuseError, ValueError):
    """Unknown method names, bad thresholds or inconsistent settings."""
