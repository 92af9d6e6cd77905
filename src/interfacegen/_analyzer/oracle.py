"""Type resolution against Python sources.

Resolves the type references of the declaration IR by following imports
through source files found on a list of search paths. Nothing is imported or
executed.
"""

from __future__ import annotations

import ast
import builtins
import dataclasses
import logging
import threading
from collections.abc import Iterator
from pathlib import Path

from attrs import define, field

from interfacegen._analyzer.declarations import ClassDecl, ModuleDecl, TypeRef
from interfacegen._analyzer.discovery import ResolvedType
from interfacegen._analyzer.loader import (
    build_module,
    build_nested_classes,
    parse_tree,
    read_tree,
)
from interfacegen.exceptions import TypeResolutionError

logger = logging.getLogger(__name__)


@dataclasses.dataclass(slots=True)
class ModuleIndex:
    """Names bound at the top level of a module."""

    decl: ModuleDecl
    is_package: bool
    classes: dict[str, ClassDecl] = dataclasses.field(default_factory=dict)
    # `Outer.Inner` -> declaration of a class nested in a top-level one
    nested: dict[str, ClassDecl] = dataclasses.field(default_factory=dict)
    # Local name -> qualified name of an imported module or object
    imports: dict[str, str] = dataclasses.field(default_factory=dict)
    # Local name -> type expression, for `Alias = Other`
    aliases: dict[str, str] = dataclasses.field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.decl.name


def index_module(decl: ModuleDecl, tree: ast.Module, source: str) -> ModuleIndex:
    is_package = decl.source.stem == "__init__"
    index = ModuleIndex(
        decl=decl,
        is_package=is_package,
        classes={c.name: c for c in decl.classes},
        nested=build_nested_classes(tree, source, decl.name, decl.source),
    )
    for node in _top_level(tree.body):
        if isinstance(node, ast.Import):
            for alias in node.names:
                if alias.asname:
                    index.imports[alias.asname] = alias.name
                else:
                    # `import a.b` binds `a`
                    head = alias.name.partition(".")[0]
                    index.imports[head] = head
        elif isinstance(node, ast.ImportFrom):
            origin = _absolute_module(decl.name, is_package, node.module, node.level)
            for alias in node.names:
                if alias.name != "*":
                    index.imports[alias.asname or alias.name] = f"{origin}.{alias.name}"
        elif (
            isinstance(node, ast.Assign)
            and len(node.targets) == 1
            and isinstance(node.targets[0], ast.Name)
            and isinstance(node.value, (ast.Name, ast.Attribute))
        ):
            index.aliases[node.targets[0].id] = ast.unparse(node.value)
    return index


def _top_level(body: list[ast.stmt]) -> Iterator[ast.stmt]:
    """Statements at module level, including `if TYPE_CHECKING:` blocks."""
    for node in body:
        if isinstance(node, ast.If):
            yield from _top_level(node.body)
            yield from _top_level(node.orelse)
        elif isinstance(node, ast.Try):
            yield from _top_level(node.body)
            for handler in node.handlers:
                yield from _top_level(handler.body)
        else:
            yield node


def _absolute_module(
    current: str,
    is_package: bool,
    module: str | None,
    level: int,
) -> str:
    if not level:
        return module or ""
    parts = current.split(".")
    if not is_package:
        parts = parts[:-1]
    if level > 1:
        parts = parts[: len(parts) - (level - 1)]
    if module:
        parts.append(module)
    return ".".join(parts)


@define
class SourceTypeOracle:
    """Resolve type references by reading Python sources.

    Modules are looked up on ``search_paths`` (stubs preferred) and parsed
    once. A qualified name whose module can't be found is treated as an
    opaque external type, known by name only.
    """

    search_paths: list[Path] = field(factory=list, converter=lambda ps: [Path(p) for p in ps])
    _modules: dict[str, ModuleIndex] = field(factory=dict, init=False)
    _missing: set[str] = field(factory=set, init=False)
    _lock: threading.Lock = field(factory=threading.Lock, init=False)

    def add_source(
        self,
        source: str,
        module_name: str,
        path: Path | None = None,
    ) -> ModuleDecl:
        """Register in-memory source code as a module."""
        path = path or Path(f"{module_name.replace('.', '/')}.py")
        tree = parse_tree(source, path)
        decl = build_module(tree, source, module_name, path)
        index = index_module(decl, tree, source)
        with self._lock:
            self._modules[module_name] = index
            self._missing.discard(module_name)
        return decl

    def module(self, name: str) -> ModuleIndex | None:
        """Get the index of a module, loading it from the search paths.

        Raises
        ------
        SourceParseError
            If the module's source can't be read or parsed.
        """
        with self._lock:
            if name in self._modules:
                return self._modules[name]
            if name in self._missing:
                return None

        # Read and parse outside the lock so workers don't wait on each other.
        path = self._find(name)
        if path is None:
            with self._lock:
                self._missing.add(name)
            return None
        logger.debug("Indexing module %s from %s", name, path)
        source, tree = read_tree(path)
        index = index_module(build_module(tree, source, name, path), tree, source)

        with self._lock:
            # Another worker may have indexed it meanwhile.
            return self._modules.setdefault(name, index)

    def _find(self, name: str) -> Path | None:
        if not name:
            return None
        relative = Path(*name.split("."))
        for root in self.search_paths:
            for candidate in (
                *(root / relative.with_name(relative.name + s) for s in (".pyi", ".py")),
                *(root / relative / f"__init__{s}" for s in (".pyi", ".py")),
            ):
                if candidate.is_file():
                    return candidate
        return None

    def resolve(self, ref: TypeRef) -> ResolvedType:
        resolved = self._resolve_in(ref.module, ref.text, set())
        if resolved is None:
            msg = (
                f"Type '{ref.text}' in module '{ref.module}' could not be resolved. "
                "Are the modules defining it available on the search paths?"
            )
            raise TypeResolutionError(msg, reference=ref.text)
        return resolved

    def _resolve_in(
        self,
        module_name: str,
        text: str,
        visited: set[tuple[str, str]],
    ) -> ResolvedType | None:
        key = (module_name, text)
        if key in visited:
            logger.debug("Circular re-export of %s in %s", text, module_name)
            return None
        visited.add(key)

        index = self.module(module_name)
        if index is None:
            return None

        head, _, rest = text.partition(".")
        if head in index.classes and not rest:
            decl = index.classes[head]
            return ResolvedType(
                fully_qualified_name=f"{index.name}.{head}",
                base_type_refs=decl.heritage,
                constructors=decl.constructors,
            )
        if head in index.classes:
            return self._resolve_nested(index, text)
        if head in index.aliases:
            target = index.aliases[head] + (f".{rest}" if rest else "")
            return self._resolve_in(module_name, target, visited)
        if head in index.imports:
            target = index.imports[head] + (f".{rest}" if rest else "")
            return self._resolve_qualified(target, visited)
        if not rest and hasattr(builtins, head):
            return ResolvedType(fully_qualified_name=f"builtins.{head}")
        return None

    def _resolve_nested(self, index: ModuleIndex, text: str) -> ResolvedType:
        fqn = f"{index.name}.{text}"
        decl = index.nested.get(text)
        if decl is None:
            # Some other class attribute, e.g. `Outer.Alias = Other`.
            logger.debug("Treating %s as an opaque class attribute", fqn)
            return ResolvedType(fully_qualified_name=fqn)
        return ResolvedType(
            fully_qualified_name=fqn,
            base_type_refs=decl.heritage,
            constructors=decl.constructors,
        )

    def _resolve_qualified(
        self,
        dotted: str,
        visited: set[tuple[str, str]],
    ) -> ResolvedType | None:
        parts = dotted.split(".")
        # Longest module prefix first: `pkg.mod.Class` before `pkg.mod`.
        for i in range(len(parts) - 1, 0, -1):
            module_name = ".".join(parts[:i])
            if self.module(module_name) is not None:
                return self._resolve_in(module_name, ".".join(parts[i:]), visited)
        logger.debug("Treating %s as an external type", dotted)
        return ResolvedType(fully_qualified_name=dotted)
