"""Synthesis and rendering of accessor interface declarations."""

from interfacegen._codegen.render import render
from interfacegen._codegen.surface import Surface, synthesize

__all__ = [
    "Surface",
    "render",
    "synthesize",
]
