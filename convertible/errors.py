"""Error types for the convertible package."""

from typing import Optional


class ConvertibleError(Exception):
    """Base exception for all convertible errors."""


class DecodeError(ConvertibleError, ValueError):
    """Raised when JSON text or bytes cannot be decoded into the expected shape."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class EncodeError(ConvertibleError, ValueError):
    """Raised when a JSON tree cannot be rendered to text."""
