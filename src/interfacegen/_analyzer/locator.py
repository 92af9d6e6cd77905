"""Locating and parsing the metadata block of a class."""

from __future__ import annotations

import ast
import logging
from collections.abc import Mapping
from typing import Any, Final, Protocol

from interfacegen._analyzer.declarations import ClassDecl, FieldDecl
from interfacegen.exceptions import MetadataParseError

logger = logging.getLogger(__name__)

DEFAULT_METADATA_FIELD: Final = "metadata"

# Keys of members that get accessors. A block without any has nothing to
# generate.
ACCESSOR_SECTIONS: Final = ("properties", "aggregations", "associations", "events")


class MetadataParser(Protocol):
    """Parses the source text of a metadata block."""

    def parse(self, text: str) -> Any: ...


class LiteralParser:
    """Tolerant evaluator of literal expressions written in Python syntax.

    Comments and trailing commas are part of the grammar already. Keys can
    also be given unquoted with ``dict(key=value)``, and bare or dotted names
    evaluate to their text so types can be written as ``core.Control``.
    """

    def parse(self, text: str) -> Any:
        try:
            node = ast.parse(text.strip(), mode="eval").body
        except SyntaxError as e:
            msg = f"invalid syntax: {e.msg} (line {e.lineno})"
            raise MetadataParseError(msg) from e
        return self._eval(node)

    def _eval(self, node: ast.expr) -> Any:  # noqa: PLR0911, C901
        if isinstance(node, ast.Constant):
            return node.value
        if isinstance(node, ast.Dict):
            result = {}
            for key, value in zip(node.keys, node.values, strict=True):
                if key is None:
                    # {**other}
                    merged = self._eval(value)
                    if not isinstance(merged, Mapping):
                        self._reject(value, "can only unpack a mapping")
                    result.update(merged)
                else:
                    result[self._key(key)] = self._eval(value)
            return result
        if isinstance(node, (ast.List, ast.Tuple, ast.Set)):
            return [self._eval(el) for el in node.elts]
        if isinstance(node, ast.Name):
            return node.id
        if isinstance(node, ast.Attribute):
            return ast.unparse(node)
        if isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.USub, ast.UAdd)):
            val = self._eval(node.operand)
            if isinstance(val, (int, float)) and not isinstance(val, bool):
                return -val if isinstance(node.op, ast.USub) else val
        if (
            isinstance(node, ast.Call)
            and isinstance(node.func, ast.Name)
            and node.func.id == "dict"
            and not node.args
        ):
            return {
                kw.arg: self._eval(kw.value) for kw in node.keywords if kw.arg
            }
        self._reject(node, "not a literal value")
        return None

    def _key(self, node: ast.expr) -> str:
        key = self._eval(node)
        if not isinstance(key, str):
            self._reject(node, "keys must be strings")
        return key

    def _reject(self, node: ast.expr, reason: str) -> None:
        msg = f"{reason}: {ast.unparse(node)} (line {node.lineno})"
        raise MetadataParseError(msg)


def find_metadata_fields(
    decl: ClassDecl,
    field_name: str = DEFAULT_METADATA_FIELD,
) -> list[FieldDecl]:
    """Return the owner-level fields named ``field_name`` with an initializer."""
    return [
        f
        for f in decl.fields
        if f.is_static and f.name == field_name and f.initializer is not None
    ]


def locate_metadata(
    decl: ClassDecl,
    parser: MetadataParser,
    *,
    field_name: str = DEFAULT_METADATA_FIELD,
    source: str | None = None,
) -> dict[str, Any] | None:
    """Find and parse the metadata block of a class.

    Returns None when there's nothing to generate: no block, more than one
    block, or a block declaring no members with accessors.

    Raises
    ------
    MetadataParseError
        If the block can't be parsed into a mapping.
    """
    fields = find_metadata_fields(decl, field_name)
    if len(fields) != 1:
        logger.debug(
            "%s: expected one '%s' block, found %d",
            decl.name,
            field_name,
            len(fields),
        )
        return None

    block = fields[0]
    initializer = block.initializer or ""
    where = source or decl.module
    try:
        metadata = parser.parse(initializer)
    except MetadataParseError as e:
        msg = (
            f"When parsing the metadata of {decl.name} in {where}: "
            f"the metadata block could not be parsed. {e}"
        )
        raise MetadataParseError(
            msg, location=block.location, extra={"class": decl.name}
        ) from e

    if not isinstance(metadata, Mapping):
        msg = (
            f"When parsing the metadata of {decl.name} in {where}: "
            f"expected a mapping, got {type(metadata).__name__}"
        )
        raise MetadataParseError(
            msg, location=block.location, extra={"class": decl.name}
        )

    if not any(metadata.get(key) for key in ACCESSOR_SECTIONS):
        logger.debug("%s: metadata declares no members with accessors", decl.name)
        return None

    return dict(metadata)
