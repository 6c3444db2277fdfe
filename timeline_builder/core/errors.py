"""Domain exceptions raised by the timeline manager and validators.

The data store itself never raises for unknown ids; it returns ``None`` or
``False`` and leaves the decision to the caller.
"""

from __future__ import annotations


class TimelineBuilderError(Exception):
    """Base class for all timeline-builder domain errors."""


class PeriodValidationError(TimelineBuilderError):
    """Raised when a period string does not match the timeline's timeframe mode."""

    def __init__(self, mode: str, value: str, expected: str) -> None:
        self.mode = mode
        self.value = value
        self.expected = expected
        super().__init__(f"Invalid format for '{mode}' mode. Expected: {expected}")


class DuplicateNameError(TimelineBuilderError):
    """Raised when a tag or color label collides case-insensitively with another."""

    def __init__(self, kind: str, label: str) -> None:
        self.kind = kind
        self.label = label
        super().__init__(f'{kind.capitalize()} "{label}" already exists.')


class LastColorError(TimelineBuilderError):
    """Raised when deleting the only remaining palette color."""

    def __init__(self) -> None:
        super().__init__("Cannot delete the last color. At least one color is required.")


class NotPrivilegedError(TimelineBuilderError):
    """Raised when a non-GM viewer asks for a GM-only surface."""

    def __init__(self, message: str = "Only the GM can manage timelines.") -> None:
        super().__init__(message)
