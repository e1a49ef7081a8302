"""tracemodel error hierarchy and exceptions."""

from __future__ import annotations


class TraceModelError(Exception):
    """Base exception for all tracemodel errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class LengthError(TraceModelError, ValueError):
    """Raised when an identifier string exceeds its maximum hex length."""
    pass


class FormatError(TraceModelError, ValueError):
    """Raised when a quoted wrapper is malformed or a hex payload does not parse."""
    pass


class UnknownValueError(TraceModelError, ValueError):
    """Raised when an enum name is not one of the recognized values."""
    pass


class UnsupportedMethodError(TraceModelError, NotImplementedError):
    """Raised when a deliberately disabled encoding entry point is invoked."""
    pass
