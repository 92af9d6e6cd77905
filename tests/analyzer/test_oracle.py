"""Tests for resolving type references against Python sources."""

import textwrap
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from interfacegen._analyzer.declarations import TypeRef
from interfacegen._analyzer.oracle import SourceTypeOracle
from interfacegen.exceptions import SourceParseError, TypeResolutionError


@pytest.fixture
def oracle(ui5_root: Path) -> SourceTypeOracle:
    return SourceTypeOracle([ui5_root])


def _add(oracle: SourceTypeOracle, source: str, module: str = "app.widgets"):
    return oracle.add_source(textwrap.dedent(source), module)


def _resolve(oracle: SourceTypeOracle, text: str, module: str = "app.widgets"):
    return oracle.resolve(TypeRef(text, module)).fully_qualified_name


def test_from_import(oracle: SourceTypeOracle):
    _add(oracle, "from ui5.core.control import Control")

    resolved = oracle.resolve(TypeRef("Control", "app.widgets"))

    assert resolved.fully_qualified_name == "ui5.core.control.Control"
    assert resolved.base_type_refs == (TypeRef("Element", "ui5.core.control"),)
    assert len(resolved.constructors) == 1


def test_local_class(oracle: SourceTypeOracle):
    _add(
        oracle,
        """
        class Base:
            pass

        class Widget(Base):
            pass
        """,
    )
    assert _resolve(oracle, "Base") == "app.widgets.Base"


def test_import_as(oracle: SourceTypeOracle):
    _add(
        oracle,
        """
        import ui5.core.control as c
        from ui5.core.element import Element as BaseElement
        """,
    )
    assert _resolve(oracle, "c.Control") == "ui5.core.control.Control"
    assert _resolve(oracle, "BaseElement") == "ui5.core.element.Element"


def test_dotted_import(oracle: SourceTypeOracle):
    _add(oracle, "import ui5.core.control")
    assert _resolve(oracle, "ui5.core.control.Control") == "ui5.core.control.Control"


def test_relative_import(oracle: SourceTypeOracle):
    resolved = oracle.resolve(TypeRef("EventProvider", "ui5.core.element"))
    (base,) = resolved.base_type_refs

    assert _resolve(oracle, base.text, base.module) == "ui5.base.managed_object.ManagedObject"


def test_parent_relative_import(oracle: SourceTypeOracle, ui5_root: Path):
    (ui5_root / "ui5" / "core" / "label.py").write_text(
        "from ..base.managed_object import ManagedObject as MO\n"
    )
    assert _resolve(oracle, "MO", "ui5.core.label") == "ui5.base.managed_object.ManagedObject"


def test_package_reexport(oracle: SourceTypeOracle, ui5_root: Path):
    (ui5_root / "ui5" / "__init__.py").write_text(
        "from ui5.core.control import Control as Control\n"
    )
    _add(oracle, "import ui5")
    assert _resolve(oracle, "ui5.Control") == "ui5.core.control.Control"


def test_alias(oracle: SourceTypeOracle):
    _add(
        oracle,
        """
        from ui5.core import control

        Base = control.Control
        """,
    )
    assert _resolve(oracle, "Base") == "ui5.core.control.Control"


def test_type_checking_imports(oracle: SourceTypeOracle):
    _add(
        oracle,
        """
        from typing import TYPE_CHECKING

        if TYPE_CHECKING:
            from ui5.core.control import Control
        """,
    )
    assert _resolve(oracle, "Control") == "ui5.core.control.Control"


def test_external_type(oracle: SourceTypeOracle):
    _add(oracle, "from sap.m import Button")

    resolved = oracle.resolve(TypeRef("Button", "app.widgets"))

    assert resolved.fully_qualified_name == "sap.m.Button"
    assert resolved.base_type_refs == ()
    assert resolved.constructors == ()


def test_builtin(oracle: SourceTypeOracle):
    _add(oracle, "")
    assert _resolve(oracle, "object") == "builtins.object"


def test_unresolved(oracle: SourceTypeOracle):
    _add(oracle, "class Widget(Missing): pass")

    with pytest.raises(TypeResolutionError) as exc_info:
        oracle.resolve(TypeRef("Missing", "app.widgets"))

    assert exc_info.value.reference == "Missing"
    assert "reference: Missing" in str(exc_info.value)


def test_unknown_module(oracle: SourceTypeOracle):
    with pytest.raises(TypeResolutionError):
        oracle.resolve(TypeRef("Control", "nowhere"))


def test_circular_reexport(oracle: SourceTypeOracle, ui5_root: Path):
    (ui5_root / "loop_a.py").write_text("from loop_b import Thing\n")
    (ui5_root / "loop_b.py").write_text("from loop_a import Thing\n")

    with pytest.raises(TypeResolutionError):
        oracle.resolve(TypeRef("Thing", "loop_a"))


def test_stub_preferred(oracle: SourceTypeOracle, ui5_root: Path):
    (ui5_root / "typed.py").write_text("class Runtime: pass\n")
    (ui5_root / "typed.pyi").write_text("class Stubbed: ...\n")

    index = oracle.module("typed")

    assert index is not None
    assert list(index.classes) == ["Stubbed"]


def test_modules_are_cached(oracle: SourceTypeOracle):
    first = oracle.module("ui5.core.control")
    assert first is not None
    assert oracle.module("ui5.core.control") is first
    assert oracle.module("ui5.core.missing") is None


def test_add_source_returns_declarations(oracle: SourceTypeOracle):
    module = _add(oracle, "class Widget: pass", "app.other")
    assert module.name == "app.other"
    assert [c.name for c in module.classes] == ["Widget"]
    assert oracle.module("app.other") is not None


def test_nested_class(oracle: SourceTypeOracle):
    _add(
        oracle,
        """
        from ui5.core.control import Control

        class Outer:
            class Inner(Control):
                class Deepest:
                    pass
        """,
    )

    inner = oracle.resolve(TypeRef("Outer.Inner", "app.widgets"))

    assert inner.fully_qualified_name == "app.widgets.Outer.Inner"
    assert inner.base_type_refs == (TypeRef("Control", "app.widgets"),)
    assert _resolve(oracle, "Outer.Inner.Deepest") == "app.widgets.Outer.Inner.Deepest"


def test_nested_class_through_import(oracle: SourceTypeOracle, ui5_root: Path):
    (ui5_root / "shapes.py").write_text("class Outer:\n    class Inner:\n        pass\n")
    _add(oracle, "from shapes import Outer")

    assert _resolve(oracle, "Outer.Inner") == "shapes.Outer.Inner"


def test_class_attribute_is_opaque(oracle: SourceTypeOracle):
    _add(oracle, "class Outer:\n    Alias = int\n")

    resolved = oracle.resolve(TypeRef("Outer.Alias", "app.widgets"))

    assert resolved.fully_qualified_name == "app.widgets.Outer.Alias"
    assert resolved.base_type_refs == ()


def test_undecodable_module(oracle: SourceTypeOracle, ui5_root: Path):
    (ui5_root / "bad.py").write_bytes(b"x = '\xff\xfe'\n")

    with pytest.raises(SourceParseError, match="Failed to decode"):
        oracle.module("bad")
    # Nothing is cached for a module that failed to load.
    assert "bad" not in oracle._modules


def test_concurrent_lookups_share_one_index(oracle: SourceTypeOracle):
    with ThreadPoolExecutor(max_workers=4) as pool:
        indexes = list(pool.map(oracle.module, ["ui5.core.control"] * 8))

    assert all(index is indexes[0] for index in indexes)
