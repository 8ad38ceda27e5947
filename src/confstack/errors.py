"""
Exception hierarchy for confstack.

Every error raised by the library derives from ConfstackError and carries:
- code: stable taxonomy name (e.g. "ConfigFileSyntaxError")
- retryable: metadata only; nothing in confstack retries
- context: optional free-form detail (a path, a key, a variable name)

Absence of a configuration source is never an error. Everything below is
fatal to the enclosing load() call.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import pathlib as _pathlib
import typing as _typing


class ConfstackError(Exception):
    """Base class for all confstack errors."""

    code: _typing.ClassVar[str] = "ConfstackError"
    default_message: _typing.ClassVar[str] = "Configuration error"
    retryable: _typing.ClassVar[bool] = False

    def __init__(self, message: str | None = None, *, context: str | None = None) -> None:
        self.context = context
        super().__init__(message or self.default_message)


class ConfigFileError(ConfstackError):
    """Error tied to a specific configuration file."""

    default_message = "Configuration file error"

    def __init__(self, path: _pathlib.Path, message: str | None = None) -> None:
        self.path = path
        detail = message or self.default_message
        super().__init__(f"Error in config file {path}: {detail}", context=str(path))


class ConfigFileNotFound(ConfigFileError):
    """An explicitly requested file does not exist."""

    code = "ConfigFileNotFound"
    default_message = "Configuration file not found"


class ConfigFileInvalid(ConfigFileError):
    """File could not be read or does not hold a valid configuration value."""

    code = "ConfigFileInvalid"
    default_message = "Configuration file is invalid"


class ConfigFilePermissionDenied(ConfigFileError):
    """File exists but cannot be read by this process."""

    code = "ConfigFilePermissionDenied"
    default_message = "Permission denied accessing configuration file"
    retryable = True


class ConfigFileSyntaxError(ConfigFileError):
    """File content failed to decode."""

    code = "ConfigFileSyntaxError"
    default_message = "Syntax error in configuration file"

    def __init__(
        self,
        path: _pathlib.Path,
        message: str | None = None,
        *,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.line = line
        self.column = column
        if message and line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(path, message)


class ConfigValidationFailed(ConfstackError):
    """Resolved value does not satisfy the requested model."""

    code = "ConfigValidationFailed"
    default_message = "Configuration validation failed"


class CircularReferenceDetected(ConfstackError):
    """A merge re-entered an object that is already being merged."""

    code = "CircularReferenceDetected"
    default_message = "Circular reference detected in configuration"


class MergeStrategyInvalid(ConfstackError, ValueError):
    """Unrecognized array merge strategy."""

    code = "MergeStrategyInvalid"
    default_message = "Invalid merge strategy"


@_dataclasses.dataclass(frozen=True)
class ErrorInfo:
    """Serializable summary of a ConfstackError."""

    code: str
    message: str
    context: str | None = None
    retryable: bool = False


def error_info(exc: ConfstackError) -> ErrorInfo:
    """Summarize an error for display or structured output."""
    return ErrorInfo(
        code=exc.code,
        message=str(exc),
        context=exc.context,
        retryable=exc.retryable,
    )
