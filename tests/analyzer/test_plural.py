import pytest

from interfacegen._analyzer.plural import singular_of


@pytest.mark.parametrize(
    ("plural", "singular"),
    [
        ("buttons", "button"),
        ("categories", "category"),
        ("leaves", "leaf"),
        ("heroes", "hero"),
        ("classes", "class"),
        ("children", "child"),
        ("boxes", "box"),
        ("matches", "match"),
        ("dishes", "dish"),
        ("buses", "bus"),
    ],
)
def test_suffixes(plural: str, singular: str):
    assert singular_of(plural) == singular


def test_keeps_case_of_the_stem():
    assert singular_of("formChildren") == "formChild"
    assert singular_of("ITEMS") == "ITEM"


def test_uppercase_suffix_replacement():
    assert singular_of("CATEGORIES") == "CATEGy"


@pytest.mark.parametrize("name", ["content", "header", "tooltip", "footer"])
def test_idempotent_without_suffix(name: str):
    assert singular_of(name) == name
    assert singular_of(singular_of(name)) == singular_of(name)


def test_only_last_suffix_is_replaced():
    assert singular_of("seriesItems") == "seriesItem"
