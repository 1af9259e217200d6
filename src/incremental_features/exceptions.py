"""Typed errors raised by the feature engine.

Configuration and precondition problems abort the whole call before any
feature is computed. Short history windows are not errors: they surface as
missing values in the affected columns.
"""

from typing import Any


class FeatureEngineError(Exception):
    """Base class for all feature engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigError(FeatureEngineError):
    """Malformed feature spec (bad lags, periods, stats, direction, ...)."""


class PreconditionError(FeatureEngineError):
    """Input table is missing something the caller must provide, e.g. the rank column."""
