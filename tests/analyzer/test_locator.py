"""Tests for locating and parsing metadata blocks."""

import textwrap

import pytest

from interfacegen._analyzer.loader import load_source
from interfacegen._analyzer.locator import (
    LiteralParser,
    find_metadata_fields,
    locate_metadata,
)
from interfacegen.exceptions import MetadataParseError


def _class(source: str):
    return load_source(textwrap.dedent(source), "app.widgets").classes[0]


def _locate(source: str, /, **kwargs):
    return locate_metadata(_class(source), LiteralParser(), **kwargs)


class TestLocateMetadata:
    def test_single_block(self):
        raw = _locate(
            """
            class Widget(Control):
                metadata = {
                    # Comments and trailing commas are fine
                    "properties": {"text": "string",},
                    events: {press: {}},
                }
            """
        )
        assert raw == {"properties": {"text": "string"}, "events": {"press": {}}}

    def test_classvar_block(self):
        raw = _locate(
            """
            class Widget(Control):
                metadata: ClassVar[dict] = {"properties": {"text": "string"}}
            """
        )
        assert raw == {"properties": {"text": "string"}}

    def test_two_blocks(self):
        raw = _locate(
            """
            class Widget(Control):
                metadata = {"properties": {"text": "string"}}
                metadata = {"properties": {"title": "string"}}
            """
        )
        assert raw is None

    def test_no_block(self):
        assert _locate("class Widget(Control): pass") is None

    @pytest.mark.parametrize(
        "source",
        [
            # Instance-level fields don't count
            """
            class Widget(Control):
                metadata: dict = {"properties": {"text": "string"}}
            """,
            """
            class Widget(Control):
                def __init__(self):
                    self.metadata = {"properties": {"text": "string"}}
            """,
        ],
    )
    def test_instance_level_block(self, source: str):
        assert _locate(source) is None

    def test_nothing_with_accessors(self):
        raw = _locate(
            """
            class Widget(Control):
                metadata = {"library": "my.lib", "properties": {}}
            """
        )
        assert raw is None

    def test_custom_field_name(self):
        source = """
            class Widget(Control):
                metadata = {"properties": {"text": "string"}}
                meta = {"properties": {"title": "string"}}
            """
        assert _locate(source, field_name="meta") == {"properties": {"title": "string"}}
        assert [f.name for f in find_metadata_fields(_class(source), "meta")] == ["meta"]

    def test_parse_error(self):
        with pytest.raises(MetadataParseError) as exc_info:
            _locate(
                """
                class Widget(Control):
                    metadata = {"properties": load_properties()}
                """,
                source="app/widgets.py",
            )
        message = str(exc_info.value)
        assert "When parsing the metadata of Widget in app/widgets.py" in message
        assert "load_properties()" in message
        assert exc_info.value.extra == {"class": "Widget"}
        assert exc_info.value.location is not None
        assert exc_info.value.location.line == 3

    def test_not_a_mapping(self):
        with pytest.raises(MetadataParseError, match="expected a mapping, got list"):
            _locate(
                """
                class Widget(Control):
                    metadata = ["properties"]
                """
            )


class TestLiteralParser:
    @pytest.fixture
    def parser(self) -> LiteralParser:
        return LiteralParser()

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("'string'", "string"),
            ("42", 42),
            ("-1.5", -1.5),
            ("+3", 3),
            ("True", True),
            ("None", None),
            ("[1, 2,]", [1, 2]),
            ("(1, 2)", [1, 2]),
            ("string", "string"),
            ("core.Control", "core.Control"),
            ("dict(type='int', bindable=True)", {"type": "int", "bindable": True}),
            ("{type: int}", {"type": "int"}),
            ("{**{'a': 1}, 'b': 2}", {"a": 1, "b": 2}),
        ],
    )
    def test_values(self, parser: LiteralParser, text: str, expected):
        assert parser.parse(text) == expected

    def test_multiline(self, parser: LiteralParser):
        text = textwrap.dedent(
            """
            {
                # a comment
                "properties": {
                    "text": {"type": "string", "defaultValue": ""},
                },
            }
            """
        )
        assert parser.parse(text) == {
            "properties": {"text": {"type": "string", "defaultValue": ""}}
        }

    @pytest.mark.parametrize(
        "text",
        [
            "1 + 2",
            "load()",
            "[x for x in items]",
            "f'{name}'",
            "-'a'",
            "{1: 'a'}",
            "{**['a']}",
            "lambda: 1",
        ],
    )
    def test_rejected(self, parser: LiteralParser, text: str):
        with pytest.raises(MetadataParseError):
            parser.parse(text)

    def test_syntax_error(self, parser: LiteralParser):
        with pytest.raises(MetadataParseError, match="invalid syntax"):
            parser.parse("{'a': ")
