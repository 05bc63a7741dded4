"""Fix provider that adds missing import statements to Python modules.

Candidate sources for a missing name, in order of preference:

1. ``known_imports`` from configuration.
2. Project modules that export the name.
3. A built-in table of common standard-library modules and names.

Only the first tier that knows the name contributes candidates. When a
tier offers several modules, every one is proposed; applying them all
makes the name ambiguous, which the engine rejects as harmful.
"""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass

import libcst as cst

from importfix.diagnostics.base import Diagnostic
from importfix.errors import DocumentAnalysisFailure
from importfix.python.analysis import analyze_module
from importfix.python.compiler import as_python_compilation
from importfix.services.base import CandidateEdit, Compilation, Document, FixProvider

logger = logging.getLogger(__name__)

STDLIB_MODULES: frozenset[str] = frozenset(
    {
        "abc", "argparse", "ast", "asyncio", "base64", "collections",
        "contextlib", "copy", "csv", "dataclasses", "datetime", "decimal",
        "enum", "fnmatch", "functools", "glob", "hashlib", "heapq", "hmac",
        "importlib", "inspect", "io", "itertools", "json", "logging",
        "math", "operator", "os", "pathlib", "pickle", "platform",
        "pprint", "random", "re", "shlex", "shutil", "signal", "socket",
        "sqlite3", "statistics", "string", "struct", "subprocess", "sys",
        "tempfile", "textwrap", "threading", "time", "tomllib",
        "traceback", "types", "typing", "unittest", "urllib", "uuid",
        "warnings", "weakref", "zipfile",
    }
)

STDLIB_NAMES: dict[str, str] = {
    # abc
    "ABC": "abc",
    "abstractmethod": "abc",
    # collections
    "Counter": "collections",
    "OrderedDict": "collections",
    "defaultdict": "collections",
    "deque": "collections",
    "namedtuple": "collections",
    # collections.abc
    "Callable": "collections.abc",
    "Generator": "collections.abc",
    "Iterable": "collections.abc",
    "Iterator": "collections.abc",
    "Mapping": "collections.abc",
    "MutableMapping": "collections.abc",
    "Sequence": "collections.abc",
    # contextlib
    "ExitStack": "contextlib",
    "contextmanager": "contextlib",
    "suppress": "contextlib",
    # copy
    "deepcopy": "copy",
    # dataclasses
    "asdict": "dataclasses",
    "dataclass": "dataclasses",
    "field": "dataclasses",
    "fields": "dataclasses",
    # datetime
    "date": "datetime",
    "timedelta": "datetime",
    "timezone": "datetime",
    # decimal
    "Decimal": "decimal",
    # enum
    "Enum": "enum",
    "IntEnum": "enum",
    "auto": "enum",
    # functools
    "cached_property": "functools",
    "lru_cache": "functools",
    "partial": "functools",
    "reduce": "functools",
    "wraps": "functools",
    # importlib
    "import_module": "importlib",
    # io
    "BytesIO": "io",
    "StringIO": "io",
    # itertools
    "chain": "itertools",
    "groupby": "itertools",
    "islice": "itertools",
    # pathlib
    "Path": "pathlib",
    "PurePath": "pathlib",
    "PurePosixPath": "pathlib",
    # tempfile
    "NamedTemporaryFile": "tempfile",
    "TemporaryDirectory": "tempfile",
    # textwrap
    "dedent": "textwrap",
    # types
    "ModuleType": "types",
    "SimpleNamespace": "types",
    "TracebackType": "types",
    # typing
    "TYPE_CHECKING": "typing",
    "Any": "typing",
    "ClassVar": "typing",
    "Final": "typing",
    "Generic": "typing",
    "Literal": "typing",
    "NamedTuple": "typing",
    "NoReturn": "typing",
    "Optional": "typing",
    "Protocol": "typing",
    "TypedDict": "typing",
    "TypeVar": "typing",
    "Union": "typing",
    "cast": "typing",
    "overload": "typing",
    # uuid
    "UUID": "uuid",
    "uuid4": "uuid",
}


def import_statement(name: str, module: str) -> str:
    """Render the statement that binds ``name`` from ``module``."""
    if module == name:
        return f"import {name}"
    return f"from {module} import {name}"


def _dotted_name(dotted: str) -> cst.Attribute | cst.Name:
    parts = dotted.split(".")
    node: cst.Attribute | cst.Name = cst.Name(parts[0])
    for part in parts[1:]:
        node = cst.Attribute(value=node, attr=cst.Name(part))
    return node


def import_node(name: str, module: str) -> cst.SimpleStatementLine:
    """Build the statement that binds ``name`` from ``module``.

    The statement carries no explicit line ending, so it renders with the
    line ending of whatever module it is inserted into.
    """
    if module == name:
        statement: cst.BaseSmallStatement = cst.Import(
            names=[cst.ImportAlias(name=cst.Name(name))]
        )
    else:
        stripped = module.lstrip(".")
        statement = cst.ImportFrom(
            module=_dotted_name(stripped) if stripped else None,
            names=[cst.ImportAlias(name=cst.Name(name))],
            relative=[cst.Dot() for _ in range(len(module) - len(stripped))],
        )
    return cst.SimpleStatementLine(body=[statement])


def _is_docstring(statement: cst.BaseStatement) -> bool:
    if not isinstance(statement, cst.SimpleStatementLine) or len(statement.body) != 1:
        return False
    expr = statement.body[0]
    return isinstance(expr, cst.Expr) and isinstance(
        expr.value, (cst.SimpleString, cst.ConcatenatedString)
    )


def _is_import_line(statement: cst.BaseStatement) -> bool:
    return isinstance(statement, cst.SimpleStatementLine) and all(
        isinstance(s, (cst.Import, cst.ImportFrom)) for s in statement.body
    )


class AddImportTransformer(cst.CSTTransformer):
    """Inserts one top-level import statement.

    The import goes after the leading run of imports if there is one,
    otherwise after the module docstring, otherwise first. Comments that
    lead the module stay above it.
    """

    def __init__(self, name: str, module: str) -> None:
        super().__init__()
        self.name = name
        self.module = module

    def leave_Module(self, original_node: cst.Module, updated_node: cst.Module) -> cst.Module:
        body = list(updated_node.body)
        new_import = import_node(self.name, self.module)

        index = 1 if body and _is_docstring(body[0]) else 0
        while index < len(body) and _is_import_line(body[index]):
            index += 1

        if index == 0 and body:
            new_import = new_import.with_changes(leading_lines=body[0].leading_lines)
            body[0] = body[0].with_changes(leading_lines=[])

        body.insert(index, new_import)
        return updated_node.with_changes(body=body)


@dataclass(frozen=True)
class AddImportEdit(CandidateEdit):
    """Add ``import`` of ``name`` from ``module`` to a document.

    Attributes:
        name: Name the import binds.
        module: Module providing it; equal to ``name`` for a plain ``import``.
        title: Rendered statement, used in logs.
    """

    name: str
    module: str
    title: str = ""

    def apply(self, document: Document) -> Document:
        """Insert the import into the document.

        Raises:
            DocumentAnalysisFailure: If the document cannot be parsed.
        """
        try:
            tree = cst.parse_module(document.text)
        except cst.ParserSyntaxError as e:
            raise DocumentAnalysisFailure(document.path, str(e)) from e
        revised = tree.visit(AddImportTransformer(self.name, self.module))
        return document.with_text(revised.code)


class AddImportFixProvider(FixProvider):
    """Proposes ``import`` statements for unresolved names.

    Attributes:
        known_imports: Configured name -> module mapping, preferred over
            every other source.
    """

    name = "add-import"

    def __init__(self, known_imports: dict[str, str] | None = None) -> None:
        self.known_imports = dict(known_imports or {})

    def candidate_modules(
        self, compilation: Compilation, document: Document, name: str
    ) -> list[str]:
        """Modules that could provide ``name`` to ``document``."""
        if name in self.known_imports:
            return [self.known_imports[name]]

        project_modules = as_python_compilation(compilation).exporters(
            name, exclude_path=document.path
        )
        if project_modules:
            return project_modules

        if name in STDLIB_NAMES:
            return [STDLIB_NAMES[name]]
        if name in STDLIB_MODULES:
            return [name]
        return []

    def propose_edits(
        self,
        compilation: Compilation,
        document: Document,
        diagnostic: Diagnostic,
    ) -> list[CandidateEdit]:
        name = diagnostic.subject
        if not name:
            return []

        try:
            tree = ast.parse(document.text, filename=document.path)
        except (SyntaxError, ValueError):
            logger.debug("Cannot parse %s, no imports proposed", document.path)
            return []

        # An earlier fix in this document may already have bound the name
        undefined = {ref.name for ref in analyze_module(tree, document.path).undefined}
        if name not in undefined:
            return []

        modules = self.candidate_modules(compilation, document, name)
        if not modules:
            logger.debug("No import found for '%s' in %s", name, document.path)
            return []

        return [
            AddImportEdit(name=name, module=module, title=import_statement(name, module))
            for module in modules
        ]
