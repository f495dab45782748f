"""Engine exception types."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised when a static lookup table or engine config is invalid."""


class MalformedRecordError(ValueError):
    """Raised for a record that cannot be used without corrupting totals."""

    def __init__(self, message: str, record=None):
        super().__init__(message)
        self.record = record
