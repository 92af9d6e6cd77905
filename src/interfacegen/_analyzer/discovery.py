"""Discovery of managed-object classes.

A class is a candidate for interface generation when its ancestry reaches one
of the foundational base types listed in a registry. Type references are
resolved through a ``TypeOracle``, so discovery works on any front end that
produces the declaration IR.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Protocol

from interfacegen._analyzer.declarations import (
    ClassDecl,
    ConstructorDecl,
    ModuleDecl,
    TypeNode,
    TypeNodeKind,
    TypeRef,
)
from interfacegen.exceptions import AnalysisError, Diagnostic, Severity

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64


class Tier(str, enum.Enum):
    """Foundational base types, from the most generic to the most specific."""

    MANAGED_OBJECT = "ManagedObject"
    EVENT_PROVIDER = "EventProvider"
    ELEMENT = "Element"
    CONTROL = "Control"


@dataclasses.dataclass(slots=True, frozen=True)
class ResolvedType:
    """What the oracle knows about a referenced type."""

    fully_qualified_name: str
    base_type_refs: tuple[TypeRef, ...] = ()
    constructors: tuple[ConstructorDecl, ...] = ()


class TypeOracle(Protocol):
    """Resolves type references to fully-qualified types.

    Must be deterministic within one run. Unresolvable references raise
    ``TypeResolutionError``.
    """

    def resolve(self, ref: TypeRef) -> ResolvedType: ...


@dataclasses.dataclass(slots=True, frozen=True)
class ManagedObjectInfo:
    """A candidate class and what was inferred about it."""

    source: Path
    module: str
    class_name: str
    declaration: ClassDecl
    tier: Tier
    settings_type: str | None
    constructor_signatures_available: bool
    missing_signatures: tuple[str, ...] = ()


@dataclasses.dataclass(slots=True)
class DiscoveryResult:
    candidates: list[ManagedObjectInfo] = dataclasses.field(default_factory=list)
    failures: dict[str, AnalysisError] = dataclasses.field(default_factory=dict)
    diagnostics: list[Diagnostic] = dataclasses.field(default_factory=list)


def discover_candidates(
    module: ModuleDecl,
    oracle: TypeOracle,
    registry: Mapping[str, Tier],
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> DiscoveryResult:
    """Find the classes of a module that derive from a foundational type.

    A class whose references can't be resolved is recorded as a failure
    without affecting the other classes of the module.
    """
    result = DiscoveryResult()
    for decl in module.classes:
        try:
            info = discover_class(
                decl,
                oracle,
                registry,
                source=module.source,
                max_depth=max_depth,
            )
        except AnalysisError as e:
            logger.error("%s: failed to analyze class %s: %s", module.name, decl.name, e)
            result.failures[decl.name] = e
            continue
        if info is None:
            continue
        if info.missing_signatures:
            result.diagnostics.append(
                Diagnostic(
                    severity=Severity.INFO,
                    code="missing-constructor-signatures",
                    message=(
                        "missing required constructor signatures: "
                        + ", ".join(info.missing_signatures)
                    ),
                    module=module.name,
                    class_name=decl.name,
                )
            )
        result.candidates.append(info)
    return result


def discover_class(
    decl: ClassDecl,
    oracle: TypeOracle,
    registry: Mapping[str, Tier],
    *,
    source: Path,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ManagedObjectInfo | None:
    """Return the candidate info of a class, or None if it isn't one.

    The first heritage reference that leads to a foundational type wins.
    """
    for ref in decl.heritage:
        resolved = oracle.resolve(ref)
        tier = foundational_tier(resolved, oracle, registry, max_depth=max_depth)
        if tier is None:
            continue

        settings_type = infer_settings_type(resolved.constructors, oracle)
        missing = missing_constructor_signatures(decl.constructors)
        if missing:
            logger.info(
                "%s is missing required constructor signatures:%s",
                decl.name,
                "".join(f"\n- {m}" for m in missing),
            )
        logger.debug(
            "Class %s inherits from %s (settings type: %s)",
            decl.name,
            tier.value,
            settings_type,
        )
        return ManagedObjectInfo(
            source=source,
            module=decl.module,
            class_name=decl.name,
            declaration=decl,
            tier=tier,
            settings_type=settings_type,
            constructor_signatures_available=not missing,
            missing_signatures=missing,
        )
    return None


def foundational_tier(
    resolved: ResolvedType,
    oracle: TypeOracle,
    registry: Mapping[str, Tier],
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Tier | None:
    """Walk a type's ancestry depth-first for a registered foundational type."""
    return _walk(resolved, oracle, registry, set(), 0, max_depth)


def _walk(
    resolved: ResolvedType,
    oracle: TypeOracle,
    registry: Mapping[str, Tier],
    visited: set[str],
    depth: int,
    max_depth: int,
) -> Tier | None:
    name = resolved.fully_qualified_name
    if tier := registry.get(name):
        return tier
    if name in visited:
        logger.debug("Cyclic ancestry through %s", name)
        return None
    if depth >= max_depth:
        logger.debug("Ancestry deeper than %d levels at %s", max_depth, name)
        return None
    visited.add(name)
    for ref in resolved.base_type_refs:
        base = oracle.resolve(ref)
        if tier := _walk(base, oracle, registry, visited, depth + 1, max_depth):
            return tier
    return None


def infer_settings_type(
    constructors: Iterable[ConstructorDecl],
    oracle: TypeOracle,
) -> str | None:
    """Find the settings type taken by a base type's constructors.

    Looks at the last parameter of every constructor and keeps the last
    plain named reference found. Different constructors disagreeing on it
    isn't checked.
    """
    settings: TypeNode | None = None
    for ctor in constructors:
        if not ctor.parameters:
            continue
        last = ctor.parameters[-1].type
        if last is not None and last.kind is TypeNodeKind.REFERENCE:
            settings = last
    if settings is None or settings.ref is None:
        return None
    return oracle.resolve(settings.ref).fully_qualified_name


SINGLE_PARAMETER_DECLARATION = "constructor declaration with single parameter"
DOUBLE_PARAMETER_DECLARATION = "constructor declaration with two parameters"
DOUBLE_PARAMETER_IMPLEMENTATION = "constructor implementation with two parameters"


def missing_constructor_signatures(
    constructors: Iterable[ConstructorDecl],
) -> tuple[str, ...]:
    """Check a class for the standard constructor signatures.

    Returns the descriptions of the missing ones. A complete class has:

    - a declaration (no body) of a single optional parameter typed as
      ``str | Settings``;
    - a declaration of two parameters, a ``str`` and a settings reference;
    - an implementation with the same two parameters.
    """
    single = double = implementation = False
    for ctor in constructors:
        params = ctor.parameters
        if len(params) == 1 and not ctor.has_body:
            param = params[0]
            if (
                param.optional
                and param.type is not None
                and param.type.kind is TypeNodeKind.UNION
                and len(param.type.members) == 2
                and _is_id_and_settings(*param.type.members)
            ):
                single = True
        elif len(params) == 2:
            if _is_id_and_settings(params[0].type, params[1].type):
                if ctor.has_body:
                    implementation = True
                else:
                    double = True
        else:
            logger.debug(
                "Unexpected constructor signature with %d parameters at %s",
                len(params),
                ctor.location,
            )

    missing = []
    if not single:
        missing.append(SINGLE_PARAMETER_DECLARATION)
    if not double:
        missing.append(DOUBLE_PARAMETER_DECLARATION)
    if not implementation:
        missing.append(DOUBLE_PARAMETER_IMPLEMENTATION)
    return tuple(missing)


def _is_id_and_settings(first: TypeNode | None, second: TypeNode | None) -> bool:
    if first is None or second is None:
        return False
    kinds = {first.kind, second.kind}
    return kinds == {TypeNodeKind.STRING, TypeNodeKind.REFERENCE}
