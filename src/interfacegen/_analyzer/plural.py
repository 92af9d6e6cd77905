"""Singular names for collection members."""

import re

_PLURAL = re.compile(r"(children|ies|ves|oes|ses|ches|shes|xes|s)$", re.IGNORECASE)

# Replacement text, or the number of trailing characters to drop.
_SINGULAR: dict[str, str | int] = {
    "children": -3,
    "ies": "y",
    "ves": "f",
    "oes": -2,
    "ses": -2,
    "ches": -2,
    "shes": -2,
    "xes": -2,
    "s": -1,
}


def singular_of(plural: str) -> str:
    """Guess the singular form of a plural member name.

    This is a heuristic: a name that merely ends in "s" loses it too.
    """

    def _replace(match: re.Match[str]) -> str:
        suffix = match.group(1)
        repl = _SINGULAR[suffix.lower()]
        return repl if isinstance(repl, str) else suffix[:repl]

    return _PLURAL.sub(_replace, plural, count=1)
