"""Shorthand expansion of metadata entries.

A metadata member can be written in full record form::

    properties: {"text": {"type": "string", "bindable": True}}

or, when only its default key matters, as a bare scalar::

    properties: {"text": "string"}
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from interfacegen.exceptions import UnsupportedMemberShapeError


def expand(entry: Any, default_key: str | None = None) -> Any:
    """Wrap a bare scalar entry as ``{default_key: entry}``.

    Records and absent entries are returned unchanged, as is any other
    shape, which callers must reject.
    """
    if entry is not None and isinstance(entry, str) and default_key is not None:
        return {default_key: entry}
    return entry


def as_record(entry: Any, default_key: str | None = None) -> Mapping[str, Any]:
    """Expand an entry and require the record form."""
    settings = expand(entry, default_key)
    if not isinstance(settings, Mapping):
        msg = f"no valid metadata ({type(entry).__name__} {entry!r})"
        raise UnsupportedMemberShapeError(msg)
    return settings
