"""Error hierarchy for flood_stats."""

from __future__ import annotations

from typing import Any, Mapping, Optional


class FloodStatsError(Exception):
    """Base exception for flood_stats failures."""

    def __init__(
        self,
        message: str,
        *,
        user_message: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.user_message = message if user_message is None else user_message
        self.context = dict(context) if context else {}

    def log_message(self) -> str:
        if not self.context:
            return str(self)
        return f"{self}: {self.context}"


class ConfigError(FloodStatsError):
    """Configuration loading or validation error."""


class InvalidMetric(ConfigError):
    """Metric name is not one of the recognized display metrics."""


class InvalidUnit(ConfigError):
    """Per-segment length is not a finite positive number."""


class InvalidCategoryLimit(ConfigError):
    """Category limit is neither a positive integer nor the unlimited sentinel."""


class ValidationError(FloodStatsError):
    """Validation error for input rows or derived structures."""


class InvalidCount(ValidationError):
    """Segment count is negative, fractional or not numeric."""


__all__ = [
    "FloodStatsError",
    "ConfigError",
    "InvalidMetric",
    "InvalidUnit",
    "InvalidCategoryLimit",
    "ValidationError",
    "InvalidCount",
]
