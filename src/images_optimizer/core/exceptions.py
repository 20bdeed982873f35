"""Custom exceptions for the images optimizer."""

from __future__ import annotations

from typing import Optional


class ImagesOptimizerError(Exception):
    """Base exception for all images optimizer errors."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class EnumerationError(ImagesOptimizerError):
    """Error raised when the source key list cannot be obtained or parsed.

    This is the only whole-run fatal error: the run stops before any stage starts.
    """


class FetchError(ImagesOptimizerError):
    """Error raised when an original cannot be resolved or downloaded."""


class TranscodeError(ImagesOptimizerError):
    """Error raised when decoding, resizing or encoding an original fails."""


class PublishError(ImagesOptimizerError):
    """Error raised when uploading an artifact to the destination store fails."""


class ConfigurationError(ImagesOptimizerError):
    """Error raised for invalid configuration options."""
