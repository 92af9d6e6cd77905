"""Intermediate representation of class declarations.

These immutable dataclasses are the contract between a language front end
(see ``loader``) and the discovery/locator stages, so discovery never depends
on a particular syntax tree.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Source code location for error reporting."""

    file: Path
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


@dataclass(frozen=True, slots=True)
class TypeRef:
    """A type reference as written, plus the module it was written in."""

    text: str  # e.g. "Control", "core.Control"
    module: str  # Qualified name of the referencing module

    def __str__(self) -> str:
        return self.text


class TypeNodeKind(enum.Enum):
    STRING = "string"
    REFERENCE = "reference"
    UNION = "union"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class TypeNode:
    """Shape of a declared parameter type."""

    kind: TypeNodeKind
    text: str
    ref: TypeRef | None = None  # Only for REFERENCE
    members: tuple[TypeNode, ...] = ()  # Only for UNION


@dataclass(frozen=True, slots=True)
class ParameterDecl:
    name: str
    type: TypeNode | None
    optional: bool = False


@dataclass(frozen=True, slots=True)
class ConstructorDecl:
    """A constructor declaration or implementation."""

    parameters: tuple[ParameterDecl, ...]
    has_body: bool
    location: SourceLocation | None = None


@dataclass(frozen=True, slots=True)
class FieldDecl:
    """A field member of a class.

    ``is_static`` is True for owner-level (class) fields and False for
    instance-level ones. ``initializer`` holds the initializer's source text.
    """

    name: str
    is_static: bool
    initializer: str | None = None
    location: SourceLocation | None = None


@dataclass(frozen=True, slots=True)
class ClassDecl:
    name: str
    module: str
    heritage: tuple[TypeRef, ...] = ()
    fields: tuple[FieldDecl, ...] = ()
    constructors: tuple[ConstructorDecl, ...] = ()
    doc: str | None = None
    location: SourceLocation | None = None


@dataclass(frozen=True, slots=True)
class ModuleDecl:
    """Top-level class declarations of one source unit, in source order."""

    name: str
    source: Path
    classes: tuple[ClassDecl, ...] = field(default=())
