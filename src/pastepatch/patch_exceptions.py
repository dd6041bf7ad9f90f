"""Custom exceptions for patch operations."""

from typing import Any


class PatchError(Exception):
    """Base exception for patch operations."""

    def __init__(self, message: str, error_details: dict[str, Any] | None = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            error_details: Optional dictionary with detailed error information
        """
        super().__init__(message)
        self.error_details = error_details


class PatchBufferError(PatchError):
    """Raised when a text buffer is given an invalid line or offset."""


class PatchApplicationError(PatchError):
    """Raised when an edit cannot be written to the buffer."""


class PatchSettingsError(PatchError):
    """Raised when patch settings cannot be loaded or saved."""
