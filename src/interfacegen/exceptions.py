"""Errors raised while generating accessor interfaces.

Analysis errors include the source location, when known, so they can be
reported without a traceback.
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from interfacegen._analyzer.declarations import SourceLocation

__all__ = [
    "AnalysisError",
    "ConfigurationError",
    "Diagnostic",
    "InterfaceGenError",
    "MetadataParseError",
    "Severity",
    "SourceParseError",
    "TypeResolutionError",
    "UnsupportedMemberShapeError",
]


class InterfaceGenError(Exception):
    """Base exception for all interfacegen exceptions."""

    def __init__(self, /, *args, extra: Mapping[str, Any] | None = None):
        super().__init__(*args)
        self.extra = extra


class ConfigurationError(InterfaceGenError):
    """Invalid or unreadable configuration."""


class AnalysisError(InterfaceGenError):
    """Base class for static analysis errors."""

    def __init__(
        self,
        message: str,
        *,
        location: SourceLocation | None = None,
        extra: Mapping[str, Any] | None = None,
    ):
        self.location = location
        if location:
            message = f"{location}: {message}"
        super().__init__(message, extra=extra)


class SourceParseError(AnalysisError):
    """Error parsing a source file into declarations."""


class TypeResolutionError(AnalysisError):
    """A heritage or settings type reference could not be resolved."""

    def __init__(
        self,
        message: str,
        *,
        reference: str | None = None,
        location: SourceLocation | None = None,
        extra: Mapping[str, Any] | None = None,
    ):
        self.reference = reference
        if reference:
            message = f"{message}\n  reference: {reference}"
        super().__init__(message, location=location, extra=extra)


class MetadataParseError(AnalysisError):
    """The metadata block of a class could not be parsed."""


class UnsupportedMemberShapeError(AnalysisError):
    """A metadata entry is neither a shorthand scalar nor a record.

    Recoverable: the member is skipped and the rest of the class is processed.
    """


class Severity(enum.Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclasses.dataclass(slots=True, frozen=True)
class Diagnostic:
    """A reportable outcome that didn't abort processing of its unit."""

    severity: Severity
    code: str
    message: str
    module: str | None = None
    class_name: str | None = None
    member: str | None = None

    def __str__(self) -> str:
        where = ".".join(p for p in (self.module, self.class_name, self.member) if p)
        if where:
            return f"{where}: {self.message}"
        return self.message
