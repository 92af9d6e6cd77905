"""Synthesis of the typed API surface of a class.

Turns the accessor names of a ClassInfo into method signatures and its
members into the fields of a construction-time settings shape, collecting the
imports the annotations need along the way.
"""

from __future__ import annotations

import dataclasses
import keyword
import logging
from collections.abc import Iterator
from typing import Final

from graphql.pyutils import camel_to_snake

from interfacegen._analyzer.metadata import (
    Aggregation,
    Association,
    Cardinality,
    ClassInfo,
    Event,
    Property,
)
from interfacegen._analyzer.naming import upper_first

logger = logging.getLogger(__name__)

# Metadata type names with a direct Python counterpart.
# Values are (origin, name) of the import they need, or a builtin annotation.
_PRIMITIVES: Final[dict[str, str | tuple[str, str]]] = {
    "string": "str",
    "int": "int",
    "float": "float",
    "number": "float",
    "boolean": "bool",
    "void": "None",
    "any": ("typing", "Any"),
    "": ("typing", "Any"),
    "object": "dict[str, {Any}]",
    "function": "{Callable}[..., {Any}]",
}


@dataclasses.dataclass(slots=True, frozen=True)
class Import:
    origin: str
    name: str
    local_name: str

    def __str__(self) -> str:
        if self.local_name == self.name:
            return self.name
        return f"{self.name} as {self.local_name}"


class ImportTable:
    """Imports required by a declaration unit.

    Deduplicated by (origin, exported name). A name clashing with another
    import or a reserved local name is imported under an alias.
    """

    def __init__(self):
        self._imports: dict[tuple[str, str], Import] = {}
        self._taken: set[str] = set()

    def reserve(self, name: str) -> None:
        """Keep a local name, like a declared class, from being imported."""
        self._taken.add(name)

    def require(self, origin: str, name: str) -> str:
        """Require an import and return its local name."""
        key = (origin, name)
        if key in self._imports:
            return self._imports[key].local_name
        local = name
        n = 1
        while local in self._taken:
            local = f"{name}_{n}"
            n += 1
        self._taken.add(local)
        self._imports[key] = Import(origin=origin, name=name, local_name=local)
        return local

    def __iter__(self) -> Iterator[Import]:
        return iter(sorted(self._imports.values(), key=lambda i: (i.origin, i.name)))

    def __len__(self) -> int:
        return len(self._imports)

    def __contains__(self, key: object) -> bool:
        return key in self._imports


@dataclasses.dataclass(slots=True, frozen=True)
class Parameter:
    name: str
    annotation: str
    default: str | None = None

    def __str__(self) -> str:
        if self.default is None:
            return f"{self.name}: {self.annotation}"
        return f"{self.name}: {self.annotation} = {self.default}"


@dataclasses.dataclass(slots=True, frozen=True)
class MethodSignature:
    name: str
    returns: str
    parameters: tuple[Parameter, ...] = ()


@dataclasses.dataclass(slots=True, frozen=True)
class SettingsField:
    name: str
    annotation: str


@dataclasses.dataclass(slots=True, frozen=True)
class ParametersShape:
    """Parameters passed along with an event."""

    name: str
    fields: tuple[SettingsField, ...]


@dataclasses.dataclass(slots=True)
class Surface:
    """Everything needed to render the declaration unit of a class."""

    class_name: str
    settings_name: str
    settings_base: str | None
    imports: ImportTable
    settings: list[SettingsField] = dataclasses.field(default_factory=list)
    event_parameters: list[ParametersShape] = dataclasses.field(default_factory=list)
    methods: list[MethodSignature] = dataclasses.field(default_factory=list)
    constructor_signatures_available: bool = True
    source_module: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.methods


def settings_name_for(class_name: str) -> str:
    return f"{class_name}Settings"


def synthesize(
    info: ClassInfo,
    settings_type: str | None,
    constructor_signatures_available: bool,
    *,
    source_module: str | None = None,
) -> Surface:
    """Synthesize the accessor signatures and settings shape of a class.

    Args:
        info: The normalized class metadata.
        settings_type: Fully-qualified name of the settings type of the
            base class, extended by the generated settings shape.
        constructor_signatures_available: Whether the class declares the
            standard constructor signatures.
        source_module: Module the class is declared in.
    """
    return _Synthesizer(info).run(
        settings_type, constructor_signatures_available, source_module
    )


class _Synthesizer:
    def __init__(self, info: ClassInfo):
        self.info = info
        self.imports = ImportTable()
        self.imports.reserve(info.name)
        self.imports.reserve(settings_name_for(info.name))
        for event in info.events.values():
            self.imports.reserve(self._parameters_name(event))

    def run(
        self,
        settings_type: str | None,
        constructor_signatures_available: bool,
        source_module: str | None,
    ) -> Surface:
        settings_base = None
        if settings_type:
            origin, _, name = settings_type.rpartition(".")
            settings_base = self.imports.require(origin, name) if origin else name

        surface = Surface(
            class_name=self.info.name,
            settings_name=settings_name_for(self.info.name),
            settings_base=settings_base,
            imports=self.imports,
            constructor_signatures_available=constructor_signatures_available,
            source_module=source_module,
        )

        for prop in self.info.properties.values():
            surface.settings.append(SettingsField(prop.name, self.annotation(prop.type)))
            surface.methods.extend(self._property_methods(prop))

        for aggr in self.info.aggregations.values():
            element = self._element_type(aggr)
            if aggr.cardinality is Cardinality.MANY:
                annotation = f"list[{element}]"
            else:
                annotation = element
            surface.settings.append(SettingsField(aggr.name, annotation))
            surface.methods.extend(self._aggregation_methods(aggr, element))

        for assoc in self.info.associations.values():
            element = self.annotation(assoc.type)
            ref = f"{element} | str"
            if assoc.cardinality is Cardinality.MANY:
                annotation = f"list[{ref}]"
            else:
                annotation = ref
            surface.settings.append(SettingsField(assoc.name, annotation))
            surface.methods.extend(self._association_methods(assoc, element))

        for event in self.info.events.values():
            surface.settings.append(SettingsField(event.name, self._handler()))
            if event.parameters:
                surface.event_parameters.append(
                    ParametersShape(
                        name=self._parameters_name(event),
                        fields=tuple(
                            SettingsField(p.name, self.annotation(p.type))
                            for p in event.parameters.values()
                        ),
                    )
                )
            surface.methods.extend(self._event_methods(event))

        if not surface.is_empty:
            self.imports.require("typing", "Protocol")
            self.imports.require("typing", "TypedDict")
        return surface

    def annotation(self, metadata_type: str) -> str:
        """Map a metadata type name to a Python annotation."""
        metadata_type = metadata_type.strip()
        if metadata_type.endswith("[]"):
            return f"list[{self.annotation(metadata_type[:-2])}]"
        if metadata_type in _PRIMITIVES:
            primitive = _PRIMITIVES[metadata_type]
            if isinstance(primitive, tuple):
                return self.imports.require(*primitive)
            names = {}
            if "{Any}" in primitive:
                names["Any"] = self.imports.require("typing", "Any")
            if "{Callable}" in primitive:
                names["Callable"] = self.imports.require("collections.abc", "Callable")
            return primitive.format(**names)
        origin, _, name = metadata_type.rpartition(".")
        if origin:
            return self.imports.require(origin, name)
        logger.debug("%s: unknown type '%s', using Any", self.info.name, metadata_type)
        return self.imports.require("typing", "Any")

    def _self(self) -> str:
        return self.imports.require("typing_extensions", "Self")

    def _handler(self) -> str:
        return self.annotation("function")

    def _parameters_name(self, event: Event) -> str:
        return f"{self.info.name}{upper_first(event.name)}Parameters"

    def _element_type(self, aggr: Aggregation) -> str:
        types = [aggr.type, *(aggr.alt_types or ())]
        return " | ".join(dict.fromkeys(self.annotation(t) for t in types))

    def _property_methods(self, prop: Property) -> Iterator[MethodSignature]:
        typ = self.annotation(prop.type)
        arg = _arg_name(prop.name)
        for verb, method in prop.methods.items():
            match verb:
                case "get":
                    yield MethodSignature(method, typ)
                case "set":
                    yield MethodSignature(method, self._self(), (Parameter(arg, typ),))
                case "bind":
                    yield MethodSignature(
                        method, self._self(), (Parameter("binding_info", self._binding()),)
                    )
                case "unbind":
                    yield MethodSignature(method, self._self())

    def _aggregation_methods(
        self, aggr: Aggregation, element: str
    ) -> Iterator[MethodSignature]:
        arg = _arg_name(aggr.name)
        singular = _arg_name(aggr.singular_name)
        for verb, method in aggr.methods.items():
            match verb:
                case "get" if aggr.cardinality is Cardinality.MANY:
                    yield MethodSignature(method, f"list[{element}]")
                case "get":
                    yield MethodSignature(method, f"{element} | None")
                case "set":
                    yield MethodSignature(
                        method, self._self(), (Parameter(arg, f"{element} | None"),)
                    )
                case "destroy" | "unbind":
                    yield MethodSignature(method, self._self())
                case "insert":
                    yield MethodSignature(
                        method,
                        self._self(),
                        (Parameter(singular, element), Parameter("index", "int")),
                    )
                case "add":
                    yield MethodSignature(
                        method, self._self(), (Parameter(singular, element),)
                    )
                case "remove":
                    yield MethodSignature(
                        method,
                        f"{element} | None",
                        (Parameter(singular, f"int | str | {element}"),),
                    )
                case "indexOf":
                    yield MethodSignature(method, "int", (Parameter(singular, element),))
                case "removeAll":
                    yield MethodSignature(method, f"list[{element}]")
                case "bind":
                    yield MethodSignature(
                        method, self._self(), (Parameter("binding_info", self._binding()),)
                    )

    def _association_methods(
        self, assoc: Association, element: str
    ) -> Iterator[MethodSignature]:
        arg = _arg_name(assoc.name)
        singular = _arg_name(assoc.singular_name)
        # Associations hold IDs of the associated elements.
        for verb, method in assoc.methods.items():
            match verb:
                case "get" if assoc.cardinality is Cardinality.MANY:
                    yield MethodSignature(method, "list[str]")
                case "get":
                    yield MethodSignature(method, "str | None")
                case "set":
                    yield MethodSignature(
                        method, self._self(), (Parameter(arg, f"str | {element} | None"),)
                    )
                case "add":
                    yield MethodSignature(
                        method, self._self(), (Parameter(singular, f"str | {element}"),)
                    )
                case "remove":
                    yield MethodSignature(
                        method,
                        "str | None",
                        (Parameter(singular, f"int | str | {element}"),),
                    )
                case "removeAll":
                    yield MethodSignature(method, "list[str]")

    def _event_methods(self, event: Event) -> Iterator[MethodSignature]:
        handler = self._handler()
        if event.parameters:
            parameters = self._parameters_name(event)
        else:
            parameters = f"dict[str, {self.annotation('any')}]"
        for verb, method in event.methods.items():
            match verb:
                case "attach" | "detach":
                    yield MethodSignature(
                        method,
                        self._self(),
                        (
                            Parameter("handler", handler),
                            Parameter("listener", "object | None", "None"),
                        ),
                    )
                case "fire":
                    # Events that allow preventDefault report whether it was called.
                    returns = "bool" if event.allow_prevent_default else self._self()
                    yield MethodSignature(
                        method,
                        returns,
                        (Parameter("parameters", f"{parameters} | None", "None"),),
                    )

    def _binding(self) -> str:
        return f"dict[str, {self.annotation('any')}]"


def _arg_name(name: str) -> str:
    arg = camel_to_snake(name)
    # Avoid reserved words, e.g. `class` -> `class_`
    return f"{arg}_" if keyword.iskeyword(arg) else arg
