"""Normalization of Python modules after imports were added."""

from __future__ import annotations

import libcst as cst
from libcst.helpers import get_full_name_for_node

from importfix.services.base import Document, Formatter

ImportLine = tuple[int, cst.SimpleStatementLine, "cst.Import | cst.ImportFrom"]


def _rendered(module: cst.Module, statement: cst.SimpleStatementLine) -> str:
    """The statement's own line, without leading comments or line ending."""
    return module.code_for_node(statement.with_changes(leading_lines=[])).rstrip("\r\n")


def _as_import_line(
    module: cst.Module, index: int, statement: cst.BaseStatement
) -> ImportLine | None:
    """Return the statement if it is a single import alone on one line."""
    if not isinstance(statement, cst.SimpleStatementLine) or len(statement.body) != 1:
        return None
    node = statement.body[0]
    if not isinstance(node, (cst.Import, cst.ImportFrom)):
        return None
    line = _rendered(module, statement)
    if "\n" in line or "\r" in line:
        return None
    return (index, statement, node)


def _import_runs(module: cst.Module) -> list[list[ImportLine]]:
    """Group top-level single-line imports into runs of adjacent lines.

    A blank line or comment above an import starts a new run.
    """
    runs: list[list[ImportLine]] = []
    current: list[ImportLine] = []
    for index, statement in enumerate(module.body):
        item = _as_import_line(module, index, statement)
        if item is not None and current and not statement.leading_lines:
            current.append(item)
            continue
        if current:
            runs.append(current)
        current = [item] if item is not None else []
    if current:
        runs.append(current)
    return runs


def _sort_key(node: cst.Import | cst.ImportFrom, line: str) -> tuple[int, int, str, str]:
    if isinstance(node, cst.ImportFrom):
        name = get_full_name_for_node(node.module) if node.module is not None else None
        module = "." * len(node.relative) + (name or "")
        return (0 if module == "__future__" else 1, 1, module.lower(), line)
    first = get_full_name_for_node(node.names[0].name) or ""
    return (1, 0, first.lower(), line)


def _strip_trailing_whitespace(statement: cst.SimpleStatementLine) -> cst.SimpleStatementLine:
    trailing = statement.trailing_whitespace
    if trailing.comment is not None:
        return statement
    return statement.with_changes(
        trailing_whitespace=trailing.with_changes(whitespace=cst.SimpleWhitespace(""))
    )


def sort_import_runs(module: cst.Module) -> cst.Module:
    """Sort and de-duplicate every run of adjacent top-level imports.

    The comments above the first import of a run stay above the run.
    """
    body = list(module.body)
    # Bottom-up so earlier indexes stay valid
    for run in reversed(_import_runs(module)):
        keyed: list[tuple[tuple[int, int, str, str], str, cst.SimpleStatementLine]] = []
        for _, statement, node in run:
            statement = _strip_trailing_whitespace(statement.with_changes(leading_lines=[]))
            line = _rendered(module, statement)
            keyed.append((_sort_key(node, line), line, statement))
        keyed.sort(key=lambda item: item[0])

        unique: dict[str, cst.SimpleStatementLine] = {}
        for _, line, statement in keyed:
            unique.setdefault(line, statement)
        replacement = list(unique.values())
        replacement[0] = replacement[0].with_changes(leading_lines=run[0][1].leading_lines)

        body[run[0][0] : run[-1][0] + 1] = replacement
    return module.with_changes(body=body)


class ImportBlockFormatter(Formatter):
    """Sorts and de-duplicates runs of top-level imports.

    Within each run of adjacent single-line imports, ``__future__`` imports
    come first, then ``import x`` lines, then ``from x import y`` lines,
    each sorted by module name. Duplicate lines are dropped and trailing
    whitespace is removed from the run. The document always ends with
    exactly one line ending, in the style the module already uses.
    Documents that do not parse are returned as is.

    Attributes:
        sort_imports: Whether import runs are sorted at all.
    """

    name = "import-block"

    def __init__(self, sort_imports: bool = True) -> None:
        self.sort_imports = sort_imports

    def normalize(self, document: Document) -> Document:
        try:
            module = cst.parse_module(document.text)
        except cst.ParserSyntaxError:
            return document

        if self.sort_imports:
            module = sort_import_runs(module)

        text = module.code
        if text:
            text = text.rstrip("\r\n") + module.default_newline
        return document.with_text(text)
