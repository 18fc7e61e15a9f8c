"""Custom exceptions for modelconv."""

from pathlib import Path
from typing import Any, Optional


class ModelConvError(Exception):
    """Base exception for modelconv."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(ModelConvError):
    """Raised when configuration is invalid."""

    pass


class UsageError(ModelConvError):
    """Raised when command-line arguments are malformed or missing."""

    def __init__(self, message: str, token: Optional[str] = None):
        super().__init__(message, {"token": token} if token is not None else None)
        self.token = token


class InputNotFoundError(ModelConvError, FileNotFoundError):
    """Raised when the input path is not an existing regular file."""

    def __init__(self, path: Path):
        super().__init__(f"cannot open file <{path}>")
        self.path = path


class InvalidOutputError(ModelConvError):
    """Raised when the output format or extension cannot be resolved."""

    pass


class UnsupportedFormatError(ModelConvError):
    """Raised when no format or handler is registered for a token."""

    def __init__(self, token: str, role: str = "format"):
        super().__init__(f"Unsupported {role}: {token}")
        self.token = token
        self.role = role


class InputReadError(ModelConvError, IOError):
    """Raised when the input file cannot be read."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Failed to read input file '{path}': {reason}")
        self.path = path
        self.reason = reason


class OutputWriteError(ModelConvError, IOError):
    """Raised when the output file cannot be written."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Failed to write output file '{path}': {reason}")
        self.path = path
        self.reason = reason


class DecodeError(ModelConvError):
    """Raised when a decoder fails on its input."""

    def __init__(self, format_token: str, reason: str):
        super().__init__(f"Failed to decode {format_token} input: {reason}")
        self.format_token = format_token
        self.reason = reason


class EncodeError(ModelConvError):
    """Raised when an encoder fails to produce output."""

    def __init__(self, format_token: str, reason: str):
        super().__init__(f"Failed to encode {format_token} output: {reason}")
        self.format_token = format_token
        self.reason = reason


class ScriptValidationError(ModelConvError):
    """Raised when a model script fails security validation."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Script validation failed: {reason}")
        self.source = source
        self.reason = reason


class ScriptExecutionError(ModelConvError):
    """Raised when model script execution fails."""

    def __init__(self, source: str, error: str):
        super().__init__(f"Script execution failed: {error}")
        self.source = source
        self.error = error


class TimeoutError(ModelConvError):
    """Raised when operation times out."""

    def __init__(self, operation: str, timeout: int):
        super().__init__(f"{operation} timed out after {timeout} seconds")
        self.operation = operation
        self.timeout = timeout
