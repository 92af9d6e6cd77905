import textwrap
from pathlib import Path

import pytest

from interfacegen._analyzer.discovery import Tier
from interfacegen._config import DEFAULT_FOUNDATIONAL_TYPES, Config, find_config
from interfacegen.exceptions import ConfigurationError


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text))
    return path


def test_defaults():
    config = Config()
    assert config.metadata_field == "metadata"
    assert config.foundational_types == DEFAULT_FOUNDATIONAL_TYPES
    assert config.foundational_types["ui5.core.control.Control"] is Tier.CONTROL
    assert config.default_element_type == "ui5.core.control.Control"
    assert config.search_paths == []
    assert config.max_ancestry_depth == 64
    assert config.output_suffix == "_generated.pyi"


def test_defaults_are_not_shared():
    config = Config()
    config.foundational_types["my.Base"] = Tier.ELEMENT
    assert "my.Base" not in Config().foundational_types


def test_metadata_field_from_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("INTERFACEGEN_METADATA_FIELD", "ui_metadata")
    assert Config().metadata_field == "ui_metadata"


def test_from_pyproject(tmp_path: Path):
    path = _write(
        tmp_path / "pyproject.toml",
        """
        [project]
        name = "app"

        [tool.interfacegen]
        metadata-field = "meta"
        search-paths = ["src", "/opt/ui5"]
        max-ancestry-depth = 8
        default-element-type = "my.Element"

        [tool.interfacegen.foundational-types]
        "my.Base" = "ManagedObject"
        "my.Widget" = "Control"
        """,
    )

    config = Config.from_file(path)

    assert config.metadata_field == "meta"
    assert config.search_paths == [tmp_path / "src", Path("/opt/ui5")]
    assert config.max_ancestry_depth == 8
    assert config.default_element_type == "my.Element"
    assert config.foundational_types == {
        "my.Base": Tier.MANAGED_OBJECT,
        "my.Widget": Tier.CONTROL,
    }
    assert config.output_suffix == "_generated.pyi"


def test_from_standalone_file(tmp_path: Path):
    path = _write(tmp_path / "interfacegen.toml", 'output-suffix = ".pyi"\n')
    assert Config.from_file(path).output_suffix == ".pyi"


def test_pyproject_without_table(tmp_path: Path):
    path = _write(tmp_path / "pyproject.toml", '[project]\nname = "app"\n')
    assert Config.from_file(path) == Config()


@pytest.mark.parametrize(
    "text",
    [
        "[tool.interfacegen]\nunknown-option = 1\n",
        '[tool.interfacegen]\nmax-ancestry-depth = "deep"\n',
        '[tool.interfacegen.foundational-types]\n"my.Base" = "Widget"\n',
    ],
)
def test_invalid(tmp_path: Path, text: str):
    path = _write(tmp_path / "pyproject.toml", text)
    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        Config.from_file(path)


def test_unreadable(tmp_path: Path):
    path = _write(tmp_path / "pyproject.toml", "[tool.interfacegen\n")
    with pytest.raises(ConfigurationError, match="Failed to read configuration"):
        Config.from_file(path)

    with pytest.raises(ConfigurationError, match="Failed to read configuration"):
        Config.from_file(tmp_path / "missing.toml")


def test_find_config(tmp_path: Path):
    _write(
        tmp_path / "pyproject.toml",
        """
        [tool.interfacegen]
        metadata-field = "meta"
        """,
    )
    # A closer pyproject.toml without the table is skipped.
    _write(tmp_path / "pkg" / "pyproject.toml", '[project]\nname = "pkg"\n')
    start = tmp_path / "pkg" / "src"
    start.mkdir()

    assert find_config(start).metadata_field == "meta"
