"""Normalization of a raw metadata block into a ClassInfo."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

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
from interfacegen._analyzer.naming import MemberKind, accessor_names
from interfacegen._analyzer.plural import singular_of
from interfacegen._analyzer.shorthand import as_record
from interfacegen.exceptions import (
    Diagnostic,
    Severity,
    UnsupportedMemberShapeError,
)

logger = logging.getLogger(__name__)


def normalize(
    raw: Mapping[str, Any],
    class_name: str,
    *,
    default_element_type: str,
    doc: str | None = None,
    module: str | None = None,
    diagnostics: list[Diagnostic] | None = None,
) -> ClassInfo:
    """Build the canonical description of a class from its metadata block.

    Args:
        raw: The parsed metadata block.
        class_name: Name of the class owning the block.
        default_element_type: Type of aggregations and associations that
            don't declare one.
        doc: Class documentation, if known.
        module: Name of the source module, for diagnostics.
        diagnostics: If given, skipped members are recorded here.

    A member entry that can't be expanded into a record, or whose settings
    have the wrong type, is skipped; the remaining members are still
    normalized. Class-level keys with the wrong type are ignored.
    """
    normalizer = _Normalizer(
        class_name=class_name,
        default_element_type=default_element_type,
        module=module,
        diagnostics=diagnostics,
    )
    return normalizer.run(raw, doc)


class _Normalizer:
    def __init__(
        self,
        class_name: str,
        default_element_type: str,
        module: str | None,
        diagnostics: list[Diagnostic] | None,
    ):
        self.class_name = class_name
        self.default_element_type = default_element_type
        self.module = module
        self.diagnostics = diagnostics

    def run(self, raw: Mapping[str, Any], doc: str | None) -> ClassInfo:
        info = ClassInfo(
            name=self.class_name,
            doc=doc,
            stereotype=self._class_key(_string, raw, "stereotype"),
            library=self._class_key(_string, raw, "library"),
            abstract=bool(raw.get("abstract")),
            final=bool(raw.get("final")),
            default_property=self._class_key(_string, raw, "defaultProperty"),
            default_aggregation=self._class_key(_string, raw, "defaultAggregation"),
            interfaces=self._class_key(_strings, raw, "interfaces") or [],
        )

        self._each(raw.get("specialSettings"), "type", info.special_settings, _special)
        self._each(raw.get("properties"), "type", info.properties, _property)
        self._each(
            raw.get("aggregations"), "type", info.aggregations, self._aggregation
        )
        self._each(
            raw.get("associations"), "type", info.associations, self._association
        )
        self._each(raw.get("events"), None, info.events, self._event)

        designtime = raw.get("designtime") or raw.get("designTime")
        if isinstance(designtime, (str, bool)):
            info.designtime = designtime

        return info

    def _each(
        self,
        entries: Any,
        default_key: str | None,
        target: dict[str, Any],
        build: Callable[[str, Mapping[str, Any]], Any],
        *,
        owner: str | None = None,
    ) -> None:
        if not entries:
            return
        if not isinstance(entries, Mapping):
            self._skip(owner, f"expected a mapping of members, got {entries!r}")
            return
        for name, entry in entries.items():
            member = f"{owner}.{name}" if owner else str(name)
            if not isinstance(name, str) or not name:
                self._skip(member, f"invalid member name {name!r}")
                continue
            try:
                settings = as_record(entry, default_key)
                built = build(name, settings)
            except UnsupportedMemberShapeError as e:
                self._skip(member, str(e))
                continue
            # Later duplicates overwrite earlier ones.
            target[name] = built

    def _class_key(
        self,
        read: Callable[[Mapping[str, Any], str], Any],
        raw: Mapping[str, Any],
        key: str,
    ) -> Any:
        try:
            return read(raw, key)
        except UnsupportedMemberShapeError as e:
            self._skip(key, str(e))
            return None

    def _skip(self, member: str | None, message: str) -> None:
        logger.warning("%s: skipping %s: %s", self.class_name, member, message)
        if self.diagnostics is not None:
            self.diagnostics.append(
                Diagnostic(
                    severity=Severity.WARNING,
                    code="unsupported-member-shape",
                    message=message,
                    module=self.module,
                    class_name=self.class_name,
                    member=member,
                )
            )

    def _aggregation(self, name: str, settings: Mapping[str, Any]) -> Aggregation:
        singular = _string(settings, "singularName") or singular_of(name)
        # Unlike associations, aggregations are multiple unless told otherwise.
        if "multiple" in settings and not settings["multiple"]:
            cardinality = Cardinality.ONE
        else:
            cardinality = Cardinality.MANY
        bindable = bool(settings.get("bindable"))
        return Aggregation(
            name=name,
            type=_string(settings, "type") or self.default_element_type,
            alt_types=_strings(settings, "altTypes") or None,
            singular_name=singular,
            cardinality=cardinality,
            bindable=bindable,
            visibility=_string(settings, "visibility") or "public",
            methods=accessor_names(
                MemberKind.AGGREGATION,
                name,
                cardinality=cardinality,
                singular_name=singular,
                bindable=bindable,
            ),
        )

    def _association(self, name: str, settings: Mapping[str, Any]) -> Association:
        singular = _string(settings, "singularName") or singular_of(name)
        cardinality = Cardinality.MANY if settings.get("multiple") else Cardinality.ONE
        return Association(
            name=name,
            type=_string(settings, "type") or self.default_element_type,
            singular_name=singular,
            cardinality=cardinality,
            visibility=_string(settings, "visibility") or "public",
            methods=accessor_names(
                MemberKind.ASSOCIATION,
                name,
                cardinality=cardinality,
                singular_name=singular,
            ),
        )

    def _event(self, name: str, settings: Mapping[str, Any]) -> Event:
        event = Event(
            name=name,
            allow_prevent_default=bool(settings.get("allowPreventDefault")),
            enable_event_bubbling=bool(settings.get("enableEventBubbling")),
            methods=accessor_names(MemberKind.EVENT, name),
        )
        self._each(
            settings.get("parameters"),
            "type",
            event.parameters,
            _event_parameter,
            owner=name,
        )
        return event


def _special(name: str, settings: Mapping[str, Any]) -> SpecialSetting:
    return SpecialSetting(
        name=name,
        type=_string(settings, "type") or "any",
        visibility=_string(settings, "visibility") or "public",
    )


def _property(name: str, settings: Mapping[str, Any]) -> Property:
    bindable = bool(settings.get("bindable"))
    return Property(
        name=name,
        type=_string(settings, "type") or "string",
        default_value=settings.get("defaultValue"),
        bindable=bindable,
        visibility=_string(settings, "visibility") or "public",
        methods=accessor_names(MemberKind.PROPERTY, name, bindable=bindable),
    )


def _event_parameter(name: str, settings: Mapping[str, Any]) -> EventParameter:
    # Parameters default to an empty type, not "string" as properties do.
    return EventParameter(name=name, type=_string(settings, "type") or "")


def _string(settings: Mapping[str, Any], key: str) -> str | None:
    """Get a text setting; unset and empty values give None."""
    value = settings.get(key)
    if not value:
        return None
    if not isinstance(value, str):
        msg = f"'{key}' must be a string, got {type(value).__name__} {value!r}"
        raise UnsupportedMemberShapeError(msg)
    return value


def _strings(settings: Mapping[str, Any], key: str) -> list[str] | None:
    """Get a setting holding one or several type names."""
    value = settings.get(key)
    if not value:
        return None
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return list(value)
    msg = f"'{key}' must be a string or a list of strings, got {value!r}"
    raise UnsupportedMemberShapeError(msg)
