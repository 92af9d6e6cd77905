"""Canonical description of a managed-object class.

These classes represent the structured output of metadata normalization and
are the single source of truth for surface synthesis.
"""

from __future__ import annotations

import dataclasses
import enum
from typing import Any


class Cardinality(str, enum.Enum):
    ONE = "0..1"
    MANY = "0..n"


@dataclasses.dataclass(slots=True)
class SpecialSetting:
    """A construction-only setting, no accessors are derived for it."""

    name: str
    type: str = "any"
    visibility: str = "public"
    doc: str | None = None
    deprecation: str | None = None
    since: str | None = None
    experimental: str | None = None


@dataclasses.dataclass(slots=True)
class Property:
    name: str
    type: str = "string"
    default_value: Any | None = None
    bindable: bool = False
    visibility: str = "public"
    methods: dict[str, str] = dataclasses.field(default_factory=dict)
    doc: str | None = None
    deprecation: str | None = None
    since: str | None = None
    experimental: str | None = None


@dataclasses.dataclass(slots=True)
class Aggregation:
    name: str
    type: str
    singular_name: str
    cardinality: Cardinality = Cardinality.MANY
    alt_types: list[str] | None = None
    bindable: bool = False
    visibility: str = "public"
    methods: dict[str, str] = dataclasses.field(default_factory=dict)
    doc: str | None = None
    deprecation: str | None = None
    since: str | None = None
    experimental: str | None = None


@dataclasses.dataclass(slots=True)
class Association:
    name: str
    type: str
    singular_name: str
    cardinality: Cardinality = Cardinality.ONE
    visibility: str = "public"
    methods: dict[str, str] = dataclasses.field(default_factory=dict)
    doc: str | None = None
    deprecation: str | None = None
    since: str | None = None
    experimental: str | None = None


@dataclasses.dataclass(slots=True)
class EventParameter:
    name: str
    type: str = ""
    doc: str | None = None
    deprecation: str | None = None
    since: str | None = None
    experimental: str | None = None


@dataclasses.dataclass(slots=True)
class Event:
    name: str
    allow_prevent_default: bool = False
    enable_event_bubbling: bool = False
    parameters: dict[str, EventParameter] = dataclasses.field(default_factory=dict)
    visibility: str = "public"
    methods: dict[str, str] = dataclasses.field(default_factory=dict)
    doc: str | None = None
    deprecation: str | None = None
    since: str | None = None
    experimental: str | None = None


@dataclasses.dataclass(slots=True)
class ClassInfo:
    """Normalized metadata of one class.

    Member maps are keyed by member name.
    """

    name: str

    # Class documentation
    doc: str | None = None
    deprecation: str | None = None
    since: str | None = None
    experimental: str | None = None

    # Top-level metadata
    stereotype: str | None = None
    library: str | None = None
    interfaces: list[str] = dataclasses.field(default_factory=list)
    abstract: bool = False
    final: bool = False
    default_property: str | None = None
    default_aggregation: str | None = None
    designtime: str | bool | None = None

    # Members
    special_settings: dict[str, SpecialSetting] = dataclasses.field(
        default_factory=dict
    )
    properties: dict[str, Property] = dataclasses.field(default_factory=dict)
    aggregations: dict[str, Aggregation] = dataclasses.field(default_factory=dict)
    associations: dict[str, Association] = dataclasses.field(default_factory=dict)
    events: dict[str, Event] = dataclasses.field(default_factory=dict)

    @property
    def has_accessors(self) -> bool:
        return any((self.properties, self.aggregations, self.associations, self.events))
