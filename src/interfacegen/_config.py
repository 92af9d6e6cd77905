import dataclasses
import logging
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import cattrs
from cattrs.errors import ForbiddenExtraKeysError
from cattrs.gen import make_dict_structure_fn, override
from typing_extensions import Self

from interfacegen._analyzer.discovery import DEFAULT_MAX_DEPTH, Tier
from interfacegen._analyzer.locator import DEFAULT_METADATA_FIELD
from interfacegen._converter import converter
from interfacegen.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PYPROJECT = "pyproject.toml"
TOOL_NAME = "interfacegen"

DEFAULT_FOUNDATIONAL_TYPES: Mapping[str, Tier] = {
    "ui5.base.managed_object.ManagedObject": Tier.MANAGED_OBJECT,
    "ui5.base.event_provider.EventProvider": Tier.EVENT_PROVIDER,
    "ui5.core.element.Element": Tier.ELEMENT,
    "ui5.core.control.Control": Tier.CONTROL,
}

DEFAULT_ELEMENT_TYPE = "ui5.core.control.Control"


@dataclasses.dataclass(slots=True, kw_only=True)
class Config:
    """Options for generating accessor interfaces.

    Parameters
    ----------
    foundational_types:
        Fully-qualified names of the base types that make a class a
        candidate, mapped to their tier.
    default_element_type:
        Type of aggregations and associations that don't declare one.
    metadata_field:
        Name of the class-level field holding the metadata block.
    search_paths:
        Directories where modules are looked up to resolve base types.
    max_ancestry_depth:
        How many base classes deep to look for a foundational type.
    output_suffix:
        Appended to the snake_cased class name to name the generated file.
    """

    foundational_types: dict[str, Tier] = dataclasses.field(
        default_factory=lambda: dict(DEFAULT_FOUNDATIONAL_TYPES)
    )
    default_element_type: str = DEFAULT_ELEMENT_TYPE
    metadata_field: str = dataclasses.field(
        default_factory=lambda: os.getenv(
            "INTERFACEGEN_METADATA_FIELD", DEFAULT_METADATA_FIELD
        )
    )
    search_paths: list[Path] = dataclasses.field(default_factory=list)
    max_ancestry_depth: int = DEFAULT_MAX_DEPTH
    output_suffix: str = "_generated.pyi"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], base_dir: Path | None = None) -> Self:
        """Create from a ``[tool.interfacegen]`` table.

        Relative search paths are taken from ``base_dir``.
        """
        try:
            config = _structurer.structure(dict(data), cls)
        except (cattrs.BaseValidationError, ForbiddenExtraKeysError) as e:
            errors = "; ".join(cattrs.transform_error(e, path=TOOL_NAME))
            msg = f"Invalid configuration: {errors}"
            raise ConfigurationError(msg) from e
        if base_dir is not None:
            config.search_paths = [base_dir / p for p in config.search_paths]
        return config

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load from a TOML file.

        In a ``pyproject.toml`` only the ``[tool.interfacegen]`` table is read.
        """
        try:
            with path.open("rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            msg = f"Failed to read configuration from {path}: {e}"
            raise ConfigurationError(msg) from e

        if path.name == PYPROJECT or "tool" in data:
            data = data.get("tool", {}).get(TOOL_NAME, {})
        logger.debug("Loaded configuration from %s", path)
        return cls.from_dict(data, base_dir=path.parent)


def find_config(start: Path) -> Config:
    """Find the closest ``pyproject.toml`` configuring interfacegen.

    Defaults are used when there's none.
    """
    for directory in (start, *start.parents):
        candidate = directory / PYPROJECT
        if not candidate.is_file():
            continue
        try:
            with candidate.open("rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError):
            logger.debug("Skipping unreadable %s", candidate)
            continue
        if TOOL_NAME in data.get("tool", {}):
            return Config.from_file(candidate)
    return Config()


def _make_structurer() -> cattrs.Converter:
    # TOML keys are kebab-case.
    structurer = converter.copy()
    structurer.register_structure_hook(
        Config,
        make_dict_structure_fn(
            Config,
            structurer,
            _cattrs_forbid_extra_keys=True,
            **{
                f.name: override(rename=f.name.replace("_", "-"))
                for f in dataclasses.fields(Config)
            },
        ),
    )
    return structurer


_structurer = _make_structurer()
