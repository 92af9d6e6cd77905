"""Static analysis of managed-object classes.

Finds classes deriving from a foundational base type, locates their metadata
block and normalizes it into a ClassInfo, without importing any code.

Usage:
    from interfacegen._analyzer import discover_candidates, locate_metadata, normalize

    result = discover_candidates(module, oracle, registry)
    for candidate in result.candidates:
        raw = locate_metadata(candidate.declaration, LiteralParser())
        if raw is not None:
            info = normalize(raw, candidate.class_name, default_element_type=...)
"""

from interfacegen._analyzer.declarations import (
    ClassDecl,
    ConstructorDecl,
    FieldDecl,
    ModuleDecl,
    ParameterDecl,
    SourceLocation,
    TypeNode,
    TypeNodeKind,
    TypeRef,
)
from interfacegen._analyzer.discovery import (
    DiscoveryResult,
    ManagedObjectInfo,
    ResolvedType,
    Tier,
    TypeOracle,
    discover_candidates,
    discover_class,
)
from interfacegen._analyzer.locator import LiteralParser, MetadataParser, locate_metadata
from interfacegen._analyzer.metadata import (
    Aggregation,
    Association,
    Cardinality,
    ClassInfo,
    Event,
    EventParameter,
    Property,
    SpecialSetting,
)
from interfacegen._analyzer.normalize import normalize
from interfacegen._analyzer.plural import singular_of
from interfacegen._analyzer.shorthand import expand

__all__ = [
    "Aggregation",
    "Association",
    "Cardinality",
    "ClassDecl",
    "ClassInfo",
    "ConstructorDecl",
    "DiscoveryResult",
    "Event",
    "EventParameter",
    "FieldDecl",
    "LiteralParser",
    "ManagedObjectInfo",
    "MetadataParser",
    "ModuleDecl",
    "ParameterDecl",
    "Property",
    "ResolvedType",
    "SourceLocation",
    "SpecialSetting",
    "Tier",
    "TypeNode",
    "TypeNodeKind",
    "TypeOracle",
    "TypeRef",
    "discover_candidates",
    "discover_class",
    "expand",
    "locate_metadata",
    "normalize",
    "singular_of",
]
