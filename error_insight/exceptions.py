"""
error_insight/exceptions.py - Diagnostic pipeline exceptions

Only ConfigError is allowed to reach the operator. Backend and capture
faults are recorded on the explanation or logged, never raised out of the
pipeline.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class InsightError(Exception):
    """Base exception for error_insight."""

    def __init__(self, message: str, recoverable: bool = False):
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "recoverable": self.recoverable,
        }


class ConfigError(InsightError):
    """Raised when an override value has the wrong type."""

    def __init__(
        self,
        key: str,
        expected: str,
        actual: Any = None,
    ):
        message = (
            f"Invalid value for '{key}': expected {expected}, "
            f"got {type(actual).__name__}"
        )
        super().__init__(message, recoverable=False)
        self.key = key
        self.expected = expected
        self.actual = actual


class BackendError(InsightError):
    """Non-fatal failure of a backend strategy."""

    def __init__(
        self,
        message: str,
        backend: str = "",
        status_code: Optional[int] = None,
        recoverable: bool = False,
    ):
        super().__init__(message, recoverable=recoverable)
        self.backend = backend
        self.status_code = status_code

    def __str__(self) -> str:
        if self.backend:
            return f"{self.backend}: {self.message}"
        return self.message


class TransientBackendError(BackendError):
    """Network-level failure that may succeed on retry."""

    def __init__(
        self,
        message: str,
        backend: str = "",
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, backend=backend, recoverable=True)
        self.original_error = original_error


class BackendTimeoutError(TransientBackendError):
    """Backend did not answer within the deadline."""

    def __init__(self, timeout_seconds: float, backend: str = ""):
        super().__init__(f"request timed out after {timeout_seconds:g}s", backend=backend)
        self.timeout_seconds = timeout_seconds


class CaptureFault(InsightError):
    """Failure while collecting local state from a frame."""

    def __init__(
        self,
        message: str,
        frame: str = "",
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, recoverable=True)
        self.frame = frame
        self.original_error = original_error

    def __str__(self) -> str:
        if self.frame:
            return f"state capture failed in {self.frame}: {self.message}"
        return f"state capture failed: {self.message}"
