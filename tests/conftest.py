import textwrap
from pathlib import Path

import pytest

# A minimal component library, laid out like the real one.
UI5_SOURCES = {
    "ui5/__init__.py": "",
    "ui5/base/__init__.py": "",
    "ui5/base/managed_object.py": """
        from typing import TypedDict


        class ManagedObjectSettings(TypedDict, total=False):
            id: str


        class ManagedObject:
            def __init__(
                self,
                id: str | None = None,
                settings: ManagedObjectSettings | None = None,
            ) -> None:
                self.id = id
    """,
    "ui5/base/event_provider.py": """
        from .managed_object import ManagedObject


        class EventProvider(ManagedObject):
            pass
    """,
    "ui5/core/__init__.py": "",
    "ui5/core/element.py": """
        from ui5.base.event_provider import EventProvider
        from ui5.base.managed_object import ManagedObjectSettings


        class ElementSettings(ManagedObjectSettings, total=False):
            tooltip: str


        class Element(EventProvider):
            def __init__(
                self,
                id: str | None = None,
                settings: ElementSettings | None = None,
            ) -> None:
                super().__init__(id, settings)
    """,
    "ui5/core/control.py": """
        from ui5.core.element import Element, ElementSettings


        class ControlSettings(ElementSettings, total=False):
            visible: bool


        class Control(Element):
            def __init__(
                self,
                id: str | None = None,
                settings: ControlSettings | None = None,
            ) -> None:
                super().__init__(id, settings)
    """,
}

WIDGETS_SOURCE = """
    from typing import TYPE_CHECKING, overload

    from ui5.core.control import Control

    if TYPE_CHECKING:
        from app.widget_generated import WidgetSettings


    class Widget(Control):
        \"\"\"A pressable widget with a text.\"\"\"

        metadata = {
            "properties": {"text": {"type": "string"}},
            "events": {"press": {}},
        }

        @overload
        def __init__(self, id_or_settings: str | WidgetSettings | None = None) -> None: ...
        @overload
        def __init__(self, id: str | None = None, settings: WidgetSettings | None = None) -> None: ...
        def __init__(self, id: str | None = None, settings: WidgetSettings | None = None) -> None:
            super().__init__(id, settings)


    class Helper:
        pass
"""


def write_tree(root: Path, files: dict[str, str]) -> Path:
    for name, source in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source).lstrip())
    return root


@pytest.fixture
def ui5_root(tmp_path: Path) -> Path:
    """Directory with the component library importable from it."""
    return write_tree(tmp_path, UI5_SOURCES)


@pytest.fixture
def widgets_file(ui5_root: Path) -> Path:
    write_tree(ui5_root, {"app/__init__.py": "", "app/widgets.py": WIDGETS_SOURCE})
    return ui5_root / "app" / "widgets.py"


@pytest.fixture(autouse=True)
def _default_metadata_field(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("INTERFACEGEN_METADATA_FIELD", raising=False)
