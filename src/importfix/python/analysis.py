"""Binding analysis of a single Python module.

Undefined names come from pyflakes, which resolves every load against the
scopes it can see at that point, builtins included. Modules with
``from x import *`` get no undefined-name reports, since any name could
come from the star import.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from typing import Literal

from pyflakes import messages
from pyflakes.checker import Checker

from importfix.diagnostics.base import Diagnostic, SourceSpan
from importfix.diagnostics.classifier import (
    AMBIGUOUS_REFERENCE,
    TYPE_DEFINED_IN_MULTIPLE_ASSEMBLIES,
    UNDEFINED_NAME_IN_SCOPE,
    UNDEFINED_TYPE_OR_NAMESPACE,
)

SYNTAX_ERROR = "syntax-error"

ReferenceKind = Literal["type", "name"]


@dataclass(frozen=True)
class ImportBinding:
    """A name bound by a top-level import statement.

    Attributes:
        name: The bound name.
        source: What it is bound to, e.g. "os" or "pathlib.Path".
        span: Location of the import statement.
    """

    name: str
    source: str
    span: SourceSpan


@dataclass(frozen=True)
class NameReference:
    """A load of a name that no enclosing scope binds."""

    name: str
    kind: ReferenceKind
    span: SourceSpan


@dataclass
class ModuleAnalysis:
    """Everything the compiler service needs to know about one module.

    Attributes:
        imports: Top-level import bindings, by bound name.
        definitions: Top-level class and function definitions, by name.
        exports: Names other modules may import from this one.
        undefined: Loads of unbound names, in source order.
    """

    imports: dict[str, list[ImportBinding]] = field(default_factory=dict)
    definitions: dict[str, SourceSpan] = field(default_factory=dict)
    exports: set[str] = field(default_factory=set)
    undefined: list[NameReference] = field(default_factory=list)


def _span(node: ast.AST) -> SourceSpan:
    lineno = getattr(node, "lineno", 1)
    col = getattr(node, "col_offset", 0)
    end_lineno = getattr(node, "end_lineno", None) or lineno
    end_col = getattr(node, "end_col_offset", None)
    return SourceSpan(lineno, col, end_lineno, col if end_col is None else end_col)


def _import_bindings(node: ast.Import | ast.ImportFrom) -> list[ImportBinding]:
    bindings: list[ImportBinding] = []
    span = _span(node)
    if isinstance(node, ast.Import):
        for alias in node.names:
            if alias.asname:
                bindings.append(ImportBinding(alias.asname, alias.name, span))
            else:
                top = alias.name.split(".")[0]
                bindings.append(ImportBinding(top, top, span))
        return bindings

    module = "." * node.level + (node.module or "")
    for alias in node.names:
        if alias.name == "*":
            continue
        bindings.append(
            ImportBinding(alias.asname or alias.name, f"{module}.{alias.name}", span)
        )
    return bindings


def _type_context_positions(tree: ast.Module) -> set[tuple[int, int]]:
    """Positions of names used as a type or as the root of a dotted name.

    String annotations are included by the position of the string, which
    is where pyflakes reports names found inside them.
    """
    positions: set[tuple[int, int]] = set()

    def mark(expr: ast.AST | None) -> None:
        if expr is None:
            return
        for sub in ast.walk(expr):
            if isinstance(sub, ast.Name) or (
                isinstance(sub, ast.Constant) and isinstance(sub.value, str)
            ):
                positions.add((sub.lineno, sub.col_offset))

    for node in ast.walk(tree):
        if isinstance(node, ast.arg):
            mark(node.annotation)
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            mark(node.returns)
        elif isinstance(node, ast.AnnAssign):
            mark(node.annotation)
        elif isinstance(node, ast.ClassDef):
            for base in node.bases:
                mark(base)
        elif isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name):
            positions.add((node.value.lineno, node.value.col_offset))
    return positions


def _undefined_names(tree: ast.Module, filename: str) -> list[NameReference]:
    checker = Checker(tree, filename=filename)
    type_positions = _type_context_positions(tree)

    undefined: list[NameReference] = []
    for message in checker.messages:
        # UndefinedExport and UndefinedLocal are not fixed by an import
        if not isinstance(message, messages.UndefinedName):
            continue
        name = message.message_args[0]
        line, col = message.lineno, message.col
        kind: ReferenceKind = "type" if (line, col) in type_positions else "name"
        undefined.append(
            NameReference(name, kind, SourceSpan(line, col, line, col + len(name)))
        )

    undefined.sort(key=lambda r: (r.span.start_line, r.span.start_col))
    return undefined


def _collect_top_level(tree: ast.Module, analysis: ModuleAnalysis) -> None:
    assigned: set[str] = set()
    declared_all: set[str] | None = None

    for node in tree.body:
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            for binding in _import_bindings(node):
                analysis.imports.setdefault(binding.name, []).append(binding)
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            analysis.definitions.setdefault(node.name, _span(node))
        elif isinstance(node, (ast.Assign, ast.AnnAssign)):
            targets = node.targets if isinstance(node, ast.Assign) else [node.target]
            for target in targets:
                if isinstance(target, ast.Name):
                    assigned.add(target.id)
                    if target.id == "__all__" and isinstance(node.value, (ast.List, ast.Tuple)):
                        declared_all = {
                            e.value
                            for e in node.value.elts
                            if isinstance(e, ast.Constant) and isinstance(e.value, str)
                        }

    if declared_all is not None:
        analysis.exports = declared_all
    else:
        analysis.exports = {
            name
            for name in (set(analysis.definitions) | assigned)
            if not name.startswith("_")
        }


def analyze_module(tree: ast.Module, filename: str = "<module>") -> ModuleAnalysis:
    """Analyze the bindings and references of a parsed module.

    Args:
        tree: Parsed module.
        filename: Name reported by pyflakes; does not affect the result.

    Returns:
        ModuleAnalysis for the module.
    """
    analysis = ModuleAnalysis()
    _collect_top_level(tree, analysis)
    analysis.undefined = _undefined_names(tree, filename)
    return analysis


def diagnose_module(path: str, analysis: ModuleAnalysis) -> list[Diagnostic]:
    """Turn a module analysis into diagnostics, in source order.

    Args:
        path: Document path recorded on every diagnostic.
        analysis: Analysis of the module.

    Returns:
        Diagnostics sorted by position.
    """
    diagnostics: list[Diagnostic] = []

    for ref in analysis.undefined:
        if ref.kind == "type":
            diagnostics.append(
                Diagnostic(
                    id=UNDEFINED_TYPE_OR_NAMESPACE,
                    path=path,
                    span=ref.span,
                    message=f"The type or namespace name '{ref.name}' could not be found",
                    subject=ref.name,
                )
            )
        else:
            diagnostics.append(
                Diagnostic(
                    id=UNDEFINED_NAME_IN_SCOPE,
                    path=path,
                    span=ref.span,
                    message=f"The name '{ref.name}' does not exist in the current context",
                    subject=ref.name,
                )
            )

    for name, bindings in analysis.imports.items():
        sources = list(dict.fromkeys(b.source for b in bindings))
        if len(sources) > 1:
            diagnostics.append(
                Diagnostic(
                    id=AMBIGUOUS_REFERENCE,
                    path=path,
                    span=bindings[1].span,
                    message=(
                        f"'{name}' is an ambiguous reference between "
                        f"'{sources[0]}' and '{sources[1]}'"
                    ),
                    subject=name,
                )
            )
        if name in analysis.definitions:
            diagnostics.append(
                Diagnostic(
                    id=TYPE_DEFINED_IN_MULTIPLE_ASSEMBLIES,
                    path=path,
                    span=bindings[0].span,
                    message=(
                        f"'{name}' is defined in this module and also imported "
                        f"from '{bindings[0].source}'"
                    ),
                    subject=name,
                )
            )

    diagnostics.sort(key=lambda d: (d.span.start_line, d.span.start_col))
    return diagnostics


def syntax_error_diagnostic(path: str, error: SyntaxError) -> Diagnostic:
    """Build the diagnostic reported for a module that does not parse."""
    line = error.lineno or 1
    col = max((error.offset or 1) - 1, 0)
    return Diagnostic(
        id=SYNTAX_ERROR,
        path=path,
        span=SourceSpan(line, col, line, col),
        message=error.msg or "invalid syntax",
    )
