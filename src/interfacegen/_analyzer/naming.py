"""Accessor method names derived from member names.

The verb set depends only on the member kind, its cardinality and whether it
is bindable. Each verb applies either to the member name itself or to its
singular name.
"""

from __future__ import annotations

import enum
from typing import Final

from interfacegen._analyzer.metadata import Cardinality


class MemberKind(enum.Enum):
    PROPERTY = "property"
    AGGREGATION = "aggregation"
    ASSOCIATION = "association"
    EVENT = "event"


# Which name a verb is applied to.
_NAME: Final = "name"
_SINGULAR: Final = "singular"

_VERBS: Final[dict[tuple[MemberKind, Cardinality | None], tuple[tuple[str, str], ...]]] = {
    (MemberKind.PROPERTY, None): (
        ("get", _NAME),
        ("set", _NAME),
    ),
    (MemberKind.AGGREGATION, Cardinality.ONE): (
        ("get", _NAME),
        ("destroy", _NAME),
        ("set", _NAME),
    ),
    (MemberKind.AGGREGATION, Cardinality.MANY): (
        ("get", _NAME),
        ("destroy", _NAME),
        ("insert", _SINGULAR),
        ("add", _SINGULAR),
        ("remove", _SINGULAR),
        ("indexOf", _SINGULAR),
        ("removeAll", _NAME),
    ),
    (MemberKind.ASSOCIATION, Cardinality.ONE): (
        ("get", _NAME),
        ("set", _NAME),
    ),
    (MemberKind.ASSOCIATION, Cardinality.MANY): (
        ("get", _NAME),
        ("add", _SINGULAR),
        ("remove", _SINGULAR),
        ("removeAll", _NAME),
    ),
    (MemberKind.EVENT, None): (
        ("attach", _NAME),
        ("detach", _NAME),
        ("fire", _NAME),
    ),
}

_BINDING_VERBS: Final = (("bind", _NAME), ("unbind", _NAME))

# Kinds that get binding accessors when declared bindable.
_BINDABLE_KINDS: Final = frozenset({MemberKind.PROPERTY, MemberKind.AGGREGATION})


def upper_first(name: str) -> str:
    """Uppercase the first character, leave the rest as is."""
    return name[:1].upper() + name[1:]


def accessor_names(
    kind: MemberKind,
    name: str,
    *,
    cardinality: Cardinality | None = None,
    singular_name: str | None = None,
    bindable: bool = False,
) -> dict[str, str]:
    """Return the accessor method names of a member, keyed by verb.

    Properties and events have no cardinality. Aggregations and associations
    with a "0..n" cardinality need a singular name.
    """
    if kind in (MemberKind.PROPERTY, MemberKind.EVENT):
        cardinality = None
    elif cardinality is None:
        msg = f"{kind.value} '{name}' needs a cardinality"
        raise ValueError(msg)

    verbs = _VERBS[(kind, cardinality)]
    if bindable and kind in _BINDABLE_KINDS:
        verbs += _BINDING_VERBS

    stems = {
        _NAME: upper_first(name),
        _SINGULAR: upper_first(singular_name or name),
    }
    return {verb: verb + stems[target] for verb, target in verbs}
