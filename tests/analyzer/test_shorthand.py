import pytest

from interfacegen._analyzer.shorthand import as_record, expand
from interfacegen.exceptions import UnsupportedMemberShapeError


def test_expand_scalar():
    assert expand("string", "type") == {"type": "string"}


def test_expand_record_unchanged():
    record = {"a": 1}
    assert expand(record, "type") is record


def test_expand_absent():
    assert expand(None, "type") is None


def test_expand_without_default_key():
    assert expand("string") == "string"


def test_expand_other_shapes_unchanged():
    assert expand(42, "type") == 42
    assert expand(["a"], "type") == ["a"]


def test_as_record():
    assert as_record("int", "type") == {"type": "int"}
    assert as_record({"type": "int"}, "type") == {"type": "int"}


@pytest.mark.parametrize("entry", [42, ["string"], True, None])
def test_as_record_rejects(entry):
    with pytest.raises(UnsupportedMemberShapeError, match="no valid metadata"):
        as_record(entry, "type")


def test_as_record_rejects_scalar_without_default_key():
    with pytest.raises(UnsupportedMemberShapeError):
        as_record("string")
