"""Generation of accessor interfaces for the classes of a module.

Runs discovery, metadata location, normalization, synthesis and rendering for
every candidate class, handing each rendered unit to a sink. Failures are
isolated per class and per module.
"""

from __future__ import annotations

import dataclasses
import enum
import functools
import logging
from collections.abc import Callable
from pathlib import Path

from attrs import Factory, define, field
from graphql.pyutils import camel_to_snake

from interfacegen._analyzer.declarations import ModuleDecl
from interfacegen._analyzer.discovery import (
    ManagedObjectInfo,
    TypeOracle,
    discover_candidates,
)
from interfacegen._analyzer.loader import load_source, module_name_for
from interfacegen._analyzer.locator import LiteralParser, MetadataParser, locate_metadata
from interfacegen._analyzer.metadata import ClassInfo
from interfacegen._analyzer.normalize import normalize
from interfacegen._analyzer.oracle import SourceTypeOracle
from interfacegen._codegen import render, synthesize
from interfacegen._config import Config
from interfacegen.exceptions import (
    AnalysisError,
    Diagnostic,
    MetadataParseError,
    Severity,
)

logger = logging.getLogger(__name__)

Sink = Callable[[Path, str, str], None]


class Status(str, enum.Enum):
    GENERATED = "generated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclasses.dataclass(slots=True)
class ClassOutcome:
    class_name: str
    status: Status
    text: str | None = None
    info: ClassInfo | None = None
    error: str | None = None
    diagnostics: list[Diagnostic] = dataclasses.field(default_factory=list)


@dataclasses.dataclass(slots=True)
class GenerationReport:
    """Outcome of generating the interfaces of one module."""

    module: str
    source: Path
    classes: list[ClassOutcome] = dataclasses.field(default_factory=list)
    error: str | None = None
    diagnostics: list[Diagnostic] = dataclasses.field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.error is not None or any(
            c.status is Status.FAILED for c in self.classes
        )

    @property
    def generated(self) -> list[ClassOutcome]:
        return [c for c in self.classes if c.status is Status.GENERATED]

    def outcome(self, class_name: str) -> ClassOutcome | None:
        for c in self.classes:
            if c.class_name == class_name:
                return c
        return None


def interface_path(source: Path, class_name: str, suffix: str = "_generated.pyi") -> Path:
    """Path of the interface file of a class, beside its source file."""
    return source.with_name(f"{camel_to_snake(class_name)}{suffix}")


def write_interface_file(
    source: Path,
    class_name: str,
    text: str,
    *,
    suffix: str = "_generated.pyi",
) -> None:
    path = interface_path(source, class_name, suffix)
    logger.info("Writing interface file %s", path)
    path.write_text(text, encoding="utf-8")


@define
class InterfaceGenerator:
    """Generate accessor interfaces.

    The oracle defaults to one looking up modules on the configured search
    paths, and the sink to writing files beside the sources.
    """

    config: Config = Factory(Config)
    oracle: TypeOracle = Factory(
        lambda self: SourceTypeOracle(self.config.search_paths), takes_self=True
    )
    parser: MetadataParser = Factory(LiteralParser)
    sink: Sink | None = field(default=None)

    def generate_file(self, path: Path) -> GenerationReport:
        """Generate the interfaces of the classes declared in a source file."""
        module_name = module_name_for(path, self.config.search_paths)
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("Failed to read %s: %s", path, e)
            return GenerationReport(module_name, path, error=f"Failed to read {path}: {e}")
        except UnicodeDecodeError as e:
            logger.error("Failed to decode %s as UTF-8: %s", path, e)
            return GenerationReport(
                module_name, path, error=f"Failed to decode {path} as UTF-8: {e}"
            )

        try:
            if isinstance(self.oracle, SourceTypeOracle):
                # Makes the module's own classes resolvable from its siblings.
                module = self.oracle.add_source(source, module_name, path)
            else:
                module = load_source(source, module_name, path)
        except AnalysisError as e:
            logger.error("%s", e)
            return GenerationReport(module_name, path, error=str(e))

        return self.generate_module(module)

    def generate_module(self, module: ModuleDecl) -> GenerationReport:
        """Generate the interfaces of the classes of a module."""
        report = GenerationReport(module.name, module.source)
        try:
            result = discover_candidates(
                module,
                self.oracle,
                self.config.foundational_types,
                max_depth=self.config.max_ancestry_depth,
            )
        except Exception as e:  # noqa: BLE001
            logger.exception("Failed to discover the classes of %s", module.name)
            report.error = f"Failed to discover the classes of {module.name}: {e}"
            return report
        report.diagnostics.extend(result.diagnostics)

        for class_name, error in result.failures.items():
            report.classes.append(
                ClassOutcome(class_name, Status.FAILED, error=str(error))
            )
            report.diagnostics.append(
                Diagnostic(
                    severity=Severity.ERROR,
                    code="unresolved-type-reference",
                    message=str(error),
                    module=module.name,
                    class_name=class_name,
                )
            )

        for candidate in result.candidates:
            outcome = self._generate_class(candidate)
            report.classes.append(outcome)
            report.diagnostics.extend(outcome.diagnostics)

        return report

    def _generate_class(self, candidate: ManagedObjectInfo) -> ClassOutcome:
        try:
            return self._build_class(candidate)
        except MetadataParseError as e:
            logger.error("%s", e)
            return _failed(candidate, e, "malformed-metadata-block")
        except Exception as e:  # noqa: BLE001
            logger.exception(
                "Failed to generate the interface of %s in %s",
                candidate.class_name,
                candidate.source,
            )
            return _failed(candidate, e, "generation-failure")

    def _build_class(self, candidate: ManagedObjectInfo) -> ClassOutcome:
        decl = candidate.declaration
        raw = locate_metadata(
            decl,
            self.parser,
            field_name=self.config.metadata_field,
            source=str(candidate.source),
        )
        if raw is None:
            return ClassOutcome(candidate.class_name, Status.SKIPPED)

        logger.info(
            "Class %s inside %s inherits from %s and contains metadata.",
            candidate.class_name,
            candidate.source,
            candidate.tier.value,
        )

        diagnostics: list[Diagnostic] = []
        info = normalize(
            raw,
            candidate.class_name,
            default_element_type=self.config.default_element_type,
            doc=decl.doc,
            module=candidate.module,
            diagnostics=diagnostics,
        )
        surface = synthesize(
            info,
            candidate.settings_type,
            candidate.constructor_signatures_available,
            source_module=candidate.module,
        )
        text = render(surface)
        if text is None:
            return ClassOutcome(
                candidate.class_name,
                Status.SKIPPED,
                info=info,
                diagnostics=diagnostics,
            )

        try:
            self._sink()(candidate.source, candidate.class_name, text)
        except OSError as e:
            logger.error("Failed to write the interface of %s: %s", candidate.class_name, e)
            return ClassOutcome(
                candidate.class_name,
                Status.FAILED,
                text=text,
                info=info,
                error=str(e),
                diagnostics=diagnostics,
            )

        return ClassOutcome(
            candidate.class_name,
            Status.GENERATED,
            text=text,
            info=info,
            diagnostics=diagnostics,
        )

    def _sink(self) -> Sink:
        if self.sink is None:
            return functools.partial(
                write_interface_file, suffix=self.config.output_suffix
            )
        return self.sink


def _failed(candidate: ManagedObjectInfo, error: Exception, code: str) -> ClassOutcome:
    return ClassOutcome(
        candidate.class_name,
        Status.FAILED,
        error=str(error),
        diagnostics=[
            Diagnostic(
                severity=Severity.ERROR,
                code=code,
                message=str(error),
                module=candidate.module,
                class_name=candidate.class_name,
            )
        ],
    )


def generate_interfaces(
    module: ModuleDecl,
    oracle: TypeOracle,
    *,
    config: Config | None = None,
    parser: MetadataParser | None = None,
    sink: Sink | None = None,
) -> GenerationReport:
    """Generate the interfaces of a module's classes.

    Example::

        oracle = SourceTypeOracle(["src"])
        module = oracle.add_source(code, "app.widgets")
        report = generate_interfaces(module, oracle, sink=lambda *_: None)
    """
    generator = InterfaceGenerator(
        config=config or Config(),
        oracle=oracle,
        parser=parser or LiteralParser(),
        sink=sink,
    )
    return generator.generate_module(module)
