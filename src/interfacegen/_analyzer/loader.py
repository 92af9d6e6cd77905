"""Python front end: build class declarations from source code.

Source is parsed with the ``ast`` module, without importing or executing it.
Only top-level classes are collected.
"""

from __future__ import annotations

import ast
from collections.abc import Iterable
from pathlib import Path

from interfacegen._analyzer.declarations import (
    ClassDecl,
    ConstructorDecl,
    FieldDecl,
    ModuleDecl,
    ParameterDecl,
    SourceLocation,
    TypeNode,
    TypeNodeKind,
    TypeRef,
)
from interfacegen.exceptions import SourceParseError

SOURCE_SUFFIXES = (".pyi", ".py")


def module_name_for(path: Path, roots: Iterable[Path] = ()) -> str:
    """Get the dotted module name of a source file.

    The name is relative to the first root containing the file, or just the
    file's stem when none does.
    """
    path = path.resolve()
    parts: tuple[str, ...] = (path.stem,)
    for root in roots:
        try:
            relative = path.relative_to(root.resolve())
        except ValueError:
            continue
        parts = (*relative.parent.parts, path.stem)
        break
    if parts[-1] == "__init__" and len(parts) > 1:
        parts = parts[:-1]
    return ".".join(parts)


def read_tree(path: Path) -> tuple[str, ast.Module]:
    """Read and parse a source file."""
    try:
        source = path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"Failed to read {path}: {e}"
        raise SourceParseError(msg) from e
    except UnicodeDecodeError as e:
        msg = f"Failed to decode {path} as UTF-8: {e}"
        raise SourceParseError(msg) from e
    return source, parse_tree(source, path)


def parse_tree(source: str, path: Path) -> ast.Module:
    try:
        return ast.parse(source, filename=str(path))
    except SyntaxError as e:
        msg = f"Syntax error in {path}: {e.msg}"
        location = SourceLocation(file=path, line=e.lineno or 0, column=e.offset or 0)
        raise SourceParseError(msg, location=location) from e
    except ValueError as e:
        # Null bytes, on older interpreters.
        msg = f"Invalid source in {path}: {e}"
        raise SourceParseError(msg) from e


def load_module(path: Path, module_name: str | None = None) -> ModuleDecl:
    """Load the class declarations of a source file."""
    source, tree = read_tree(path)
    return build_module(tree, source, module_name or module_name_for(path), path)


def load_source(source: str, module_name: str, path: Path | None = None) -> ModuleDecl:
    """Load the class declarations of source code given as a string."""
    path = path or Path(f"{module_name.replace('.', '/')}.py")
    return build_module(parse_tree(source, path), source, module_name, path)


def build_module(
    tree: ast.Module,
    source: str,
    module_name: str,
    path: Path,
) -> ModuleDecl:
    builder = _ClassBuilder(source=source, module=module_name, path=path)
    classes = tuple(
        builder.build(node) for node in tree.body if isinstance(node, ast.ClassDef)
    )
    return ModuleDecl(name=module_name, source=path, classes=classes)


def build_nested_classes(
    tree: ast.Module,
    source: str,
    module_name: str,
    path: Path,
) -> dict[str, ClassDecl]:
    """Build the classes declared inside top-level classes.

    Keyed by their dotted path from the module, like ``Outer.Inner``.
    """
    builder = _ClassBuilder(source=source, module=module_name, path=path)
    nested: dict[str, ClassDecl] = {}

    def visit(node: ast.ClassDef, prefix: str):
        for item in node.body:
            if isinstance(item, ast.ClassDef):
                qualname = f"{prefix}.{item.name}"
                nested[qualname] = builder.build(item)
                visit(item, qualname)

    for node in tree.body:
        if isinstance(node, ast.ClassDef):
            visit(node, node.name)
    return nested


def is_overload(node: ast.FunctionDef | ast.AsyncFunctionDef) -> bool:
    for decorator in node.decorator_list:
        if isinstance(decorator, ast.Name) and decorator.id == "overload":
            return True
        if isinstance(decorator, ast.Attribute) and decorator.attr == "overload":
            return True
    return False


def has_implementation(node: ast.FunctionDef | ast.AsyncFunctionDef) -> bool:
    """Whether a function has a body, rather than being a declaration.

    Overloads and functions whose body is only ``...`` (after an optional
    docstring) are declarations.
    """
    if is_overload(node):
        return False
    body = node.body
    if body and _is_docstring(body[0]):
        body = body[1:]
    return not (
        len(body) == 1
        and isinstance(body[0], ast.Expr)
        and isinstance(body[0].value, ast.Constant)
        and body[0].value.value is Ellipsis
    )


def _is_docstring(stmt: ast.stmt) -> bool:
    return (
        isinstance(stmt, ast.Expr)
        and isinstance(stmt.value, ast.Constant)
        and isinstance(stmt.value.value, str)
    )


def _is_classvar(annotation: ast.expr) -> bool:
    if isinstance(annotation, ast.Subscript):
        annotation = annotation.value
    if isinstance(annotation, ast.Name):
        return annotation.id == "ClassVar"
    if isinstance(annotation, ast.Attribute):
        return annotation.attr == "ClassVar"
    return False


def _is_none(node: ast.expr) -> bool:
    return isinstance(node, ast.Constant) and node.value is None


def _subscript_name(node: ast.Subscript) -> str:
    value = node.value
    if isinstance(value, ast.Name):
        return value.id
    if isinstance(value, ast.Attribute):
        return value.attr
    return ""


def _subscript_args(node: ast.Subscript) -> list[ast.expr]:
    if isinstance(node.slice, ast.Tuple):
        return list(node.slice.elts)
    return [node.slice]


class _ClassBuilder:
    def __init__(self, source: str, module: str, path: Path):
        self.source = source
        self.module = module
        self.path = path

    def location(self, node: ast.AST) -> SourceLocation:
        return SourceLocation(
            file=self.path,
            line=getattr(node, "lineno", 0),
            column=getattr(node, "col_offset", 0),
        )

    def build(self, node: ast.ClassDef) -> ClassDecl:
        fields: list[FieldDecl] = []
        constructors: list[ConstructorDecl] = []

        for item in node.body:
            if isinstance(item, ast.Assign):
                initializer = ast.get_source_segment(self.source, item.value)
                fields.extend(
                    FieldDecl(
                        name=target.id,
                        is_static=True,
                        initializer=initializer,
                        location=self.location(item),
                    )
                    for target in item.targets
                    if isinstance(target, ast.Name)
                )
            elif isinstance(item, ast.AnnAssign) and isinstance(item.target, ast.Name):
                fields.append(
                    FieldDecl(
                        name=item.target.id,
                        is_static=_is_classvar(item.annotation),
                        initializer=(
                            ast.get_source_segment(self.source, item.value)
                            if item.value is not None
                            else None
                        ),
                        location=self.location(item),
                    )
                )
            elif isinstance(item, (ast.FunctionDef, ast.AsyncFunctionDef)):
                fields.extend(self._instance_fields(item))
                if item.name == "__init__":
                    constructors.append(self._constructor(item))

        return ClassDecl(
            name=node.name,
            module=self.module,
            heritage=tuple(self._heritage(node)),
            fields=tuple(fields),
            constructors=tuple(constructors),
            doc=ast.get_docstring(node),
            location=self.location(node),
        )

    def _heritage(self, node: ast.ClassDef) -> list[TypeRef]:
        refs = []
        for base in node.bases:
            # Generic[T], Base[int], ...
            if isinstance(base, ast.Subscript):
                base = base.value
            if isinstance(base, (ast.Name, ast.Attribute)):
                refs.append(TypeRef(text=ast.unparse(base), module=self.module))
        return refs

    def _instance_fields(
        self, node: ast.FunctionDef | ast.AsyncFunctionDef
    ) -> list[FieldDecl]:
        """Collect ``self.<name> = ...`` assignments of a method."""
        fields = []
        for stmt in ast.walk(node):
            if isinstance(stmt, ast.Assign):
                targets, value = stmt.targets, stmt.value
            elif isinstance(stmt, ast.AnnAssign) and stmt.value is not None:
                targets, value = [stmt.target], stmt.value
            else:
                continue
            for target in targets:
                if (
                    isinstance(target, ast.Attribute)
                    and isinstance(target.value, ast.Name)
                    and target.value.id == "self"
                ):
                    fields.append(
                        FieldDecl(
                            name=target.attr,
                            is_static=False,
                            initializer=ast.get_source_segment(self.source, value),
                            location=self.location(stmt),
                        )
                    )
        return fields

    def _constructor(
        self, node: ast.FunctionDef | ast.AsyncFunctionDef
    ) -> ConstructorDecl:
        args = node.args
        positional = [*args.posonlyargs, *args.args]
        # Positional defaults apply to the last parameters.
        first_default = len(positional) - len(args.defaults)

        params: list[ParameterDecl] = []
        for i, arg in enumerate(positional):
            if i == 0 and arg.arg in ("self", "cls"):
                continue
            params.append(self._parameter(arg, has_default=i >= first_default))
        for arg, default in zip(args.kwonlyargs, args.kw_defaults, strict=True):
            params.append(self._parameter(arg, has_default=default is not None))

        return ConstructorDecl(
            parameters=tuple(params),
            has_body=has_implementation(node),
            location=self.location(node),
        )

    def _parameter(self, arg: ast.arg, *, has_default: bool) -> ParameterDecl:
        optional = has_default
        type_node = None
        if arg.annotation is not None:
            members = self._union_members(arg.annotation)
            non_null = [m for m in members if not _is_none(m)]
            if len(non_null) < len(members):
                optional = True
            if len(non_null) == 1:
                type_node = self.type_node(non_null[0])
            elif non_null:
                type_node = TypeNode(
                    kind=TypeNodeKind.UNION,
                    text=" | ".join(ast.unparse(m) for m in non_null),
                    members=tuple(self.type_node(m) for m in non_null),
                )
        return ParameterDecl(name=arg.arg, type=type_node, optional=optional)

    def _union_members(self, node: ast.expr) -> list[ast.expr]:
        """Flatten ``A | B``, ``Union[A, B]`` and ``Optional[A]``."""
        node = self._unwrap(node)
        if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
            return [*self._union_members(node.left), *self._union_members(node.right)]
        if isinstance(node, ast.Subscript):
            name = _subscript_name(node)
            if name == "Union":
                return [
                    m for arg in _subscript_args(node) for m in self._union_members(arg)
                ]
            if name == "Optional":
                return [*self._union_members(node.slice), ast.Constant(value=None)]
        return [node]

    def _unwrap(self, node: ast.expr) -> ast.expr:
        """Unwrap ``Annotated[T, ...]`` and string forward references."""
        if isinstance(node, ast.Constant) and isinstance(node.value, str):
            try:
                return self._unwrap(ast.parse(node.value, mode="eval").body)
            except SyntaxError:
                return node
        if isinstance(node, ast.Subscript) and _subscript_name(node) == "Annotated":
            return self._unwrap(_subscript_args(node)[0])
        return node

    def type_node(self, node: ast.expr) -> TypeNode:
        node = self._unwrap(node)
        text = ast.unparse(node)
        members = self._union_members(node)
        if len(members) > 1:
            return TypeNode(
                kind=TypeNodeKind.UNION,
                text=text,
                members=tuple(self.type_node(m) for m in members),
            )
        if isinstance(node, ast.Name) and node.id == "str":
            return TypeNode(kind=TypeNodeKind.STRING, text=text)
        if isinstance(node, (ast.Name, ast.Attribute)):
            return TypeNode(
                kind=TypeNodeKind.REFERENCE,
                text=text,
                ref=TypeRef(text=text, module=self.module),
            )
        return TypeNode(kind=TypeNodeKind.OTHER, text=text)
