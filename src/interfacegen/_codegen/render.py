"""Rendering of a synthesized surface into a Python stub."""

from __future__ import annotations

import itertools
import textwrap

from interfacegen._codegen.surface import (
    ImportTable,
    MethodSignature,
    ParametersShape,
    Surface,
)

HEADER = "# Code generated by interfacegen{source}. DO NOT EDIT."

# Emitted even when no other import is needed.
INERT_IMPORT = "from __future__ import annotations"

INDENT = " " * 4


def render(surface: Surface) -> str | None:
    """Render the declaration unit of a class.

    Returns None if no accessor warrants generating it.
    """
    if surface.is_empty:
        return None

    source = f" from {surface.source_module}" if surface.source_module else ""
    head = "\n".join([HEADER.format(source=source), INERT_IMPORT])
    if imports := render_imports(surface.imports):
        head = f"{head}\n\n{imports}"
    blocks = [head]
    if not surface.constructor_signatures_available:
        blocks.append(_constructor_advice(surface))
    blocks.append(_settings(surface))
    blocks.extend(_parameters(shape, surface.imports) for shape in surface.event_parameters)
    blocks.append(_protocol(surface))
    return "\n\n\n".join(blocks) + "\n"


def render_imports(imports: ImportTable) -> str:
    """Render one ``from ... import ...`` statement per origin."""
    lines = []
    for origin, group in itertools.groupby(imports, key=lambda i: i.origin):
        names = ", ".join(str(i) for i in group)
        lines.append(f"from {origin} import {names}")
    return "\n".join(lines)


def _settings(surface: Surface) -> str:
    typed_dict = surface.imports.require("typing", "TypedDict")
    base = surface.settings_base or typed_dict
    lines = [f"class {surface.settings_name}({base}, total=False):"]
    if surface.settings:
        lines.extend(f"{INDENT}{f.name}: {f.annotation}" for f in surface.settings)
    else:
        lines.append(f"{INDENT}...")
    return "\n".join(lines)


def _parameters(shape: ParametersShape, imports: ImportTable) -> str:
    typed_dict = imports.require("typing", "TypedDict")
    lines = [f"class {shape.name}({typed_dict}, total=False):"]
    lines.extend(f"{INDENT}{f.name}: {f.annotation}" for f in shape.fields)
    return "\n".join(lines)


def _protocol(surface: Surface) -> str:
    protocol = surface.imports.require("typing", "Protocol")
    lines = [f"class {surface.class_name}({protocol}):"]
    lines.extend(f"{INDENT}{render_method(m)}" for m in surface.methods)
    return "\n".join(lines)


def render_method(method: MethodSignature) -> str:
    params = ", ".join(["self", *(str(p) for p in method.parameters)])
    return f"def {method.name}({params}) -> {method.returns}: ..."


def _constructor_advice(surface: Surface) -> str:
    settings = surface.settings_name
    advice = textwrap.dedent(f"""\
        {surface.class_name} is missing the standard constructor signatures.
        Add the following to the class to accept the settings below:

            @overload
            def __init__(self, id_or_settings: str | {settings} | None = None) -> None: ...
            @overload
            def __init__(self, id: str | None = None, settings: {settings} | None = None) -> None: ...
            def __init__(self, id: str | None = None, settings: {settings} | None = None) -> None:
                super().__init__(id, settings)""")
    return "\n".join(f"# {line}".rstrip() for line in advice.splitlines())
