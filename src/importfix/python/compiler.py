"""Compiler service for Python source trees.

Compiling a project parses every module with :mod:`ast`, analyses its
bindings and builds an index of the names each module exports. The index
is what lets the add-import provider find where a missing name lives.
"""

from __future__ import annotations

import ast
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from importfix.diagnostics.base import Diagnostic
from importfix.errors import CompilationFailure, DocumentAnalysisFailure, ProjectLoadError
from importfix.python.analysis import (
    ModuleAnalysis,
    analyze_module,
    diagnose_module,
    syntax_error_diagnostic,
)
from importfix.python.project import discover_sources, is_importable_module, module_name_for
from importfix.services.base import Compilation, CompilerService, Document, Project
from importfix.services.file_writer import detect_encoding

logger = logging.getLogger(__name__)


@dataclass
class PythonCompilation(Compilation):
    """A compiled Python project.

    Attributes:
        modules: Analysis of every module that parsed, by document path.
        syntax_errors: Parse errors, by document path.
        module_names: Dotted module name of every document, by path.
        export_index: Modules exporting each name, sorted by module name.
    """

    modules: dict[str, ModuleAnalysis] = field(default_factory=dict)
    syntax_errors: dict[str, SyntaxError] = field(default_factory=dict)
    module_names: dict[str, str] = field(default_factory=dict)
    export_index: dict[str, list[str]] = field(default_factory=dict)

    def exporters(self, name: str, exclude_path: str | None = None) -> list[str]:
        """Modules that export ``name``, excluding the module at ``exclude_path``."""
        excluded = self.module_names.get(exclude_path) if exclude_path else None
        return [m for m in self.export_index.get(name, []) if m != excluded]


def as_python_compilation(compilation: Compilation) -> PythonCompilation:
    """Narrow a compilation to a PythonCompilation.

    Raises:
        TypeError: If the compilation was produced by another compiler service.
    """
    if not isinstance(compilation, PythonCompilation):
        raise TypeError(
            f"Expected a PythonCompilation, got {type(compilation).__name__}"
        )
    return compilation


def _parse(document: Document) -> ast.Module:
    """Parse a document.

    Raises:
        SyntaxError: If the text is not valid Python.
        ValueError: If the text contains null bytes.
    """
    return ast.parse(document.text, filename=document.path)


class PythonCompilerService(CompilerService):
    """CompilerService for directories of Python modules.

    Attributes:
        exclude: Extra directory names skipped during discovery.
        encoding: Encoding used to read sources.
    """

    def __init__(self, exclude: Iterable[str] = (), encoding: str = "utf-8") -> None:
        self.exclude = list(exclude)
        self.encoding = encoding

    def open_project(self, path: Path) -> Project:
        """Open a project directory.

        ``path`` may point at the project directory itself or at a file in
        it (typically ``pyproject.toml``).

        Raises:
            ProjectLoadError: If the path does not exist or a source cannot be read.
        """
        path = Path(path)
        if path.is_file():
            root = path.parent
        elif path.is_dir():
            root = path
        else:
            raise ProjectLoadError(str(path), "path does not exist")

        root = root.resolve()
        documents: list[Document] = []
        try:
            for rel_path in discover_sources(root, self.exclude):
                data = (root / rel_path).read_bytes()
                text = data.decode(detect_encoding(data, self.encoding))
                documents.append(Document(rel_path, text))
        except (OSError, UnicodeDecodeError, LookupError) as e:
            raise ProjectLoadError(str(path), str(e)) from e

        logger.debug("Discovered %d source files under %s", len(documents), root)
        return Project(name=root.name, root=root, documents=documents)

    def compile(self, project: Project) -> PythonCompilation:
        """Parse and analyse every document of the project.

        Documents with syntax errors are recorded, not fatal.

        Raises:
            CompilationFailure: If a document cannot be handed to the parser at all.
        """
        compilation = PythonCompilation(project=project)

        for document in project.documents:
            compilation.module_names[document.path] = module_name_for(document.path)
            try:
                tree = _parse(document)
            except SyntaxError as e:
                compilation.syntax_errors[document.path] = e
                continue
            except (ValueError, RecursionError) as e:
                raise CompilationFailure(project.name, f"{document.path}: {e}") from e
            compilation.modules[document.path] = analyze_module(tree, document.path)

        index: dict[str, set[str]] = {}
        for doc_path, analysis in compilation.modules.items():
            module_name = compilation.module_names[doc_path]
            if not is_importable_module(module_name):
                continue
            for name in analysis.exports:
                index.setdefault(name, set()).add(module_name)
        compilation.export_index = {name: sorted(mods) for name, mods in index.items()}

        return compilation

    def diagnostics(self, compilation: Compilation) -> Sequence[Diagnostic]:
        """Return diagnostics for every document, in enumeration order."""
        compilation = as_python_compilation(compilation)
        diagnostics: list[Diagnostic] = []
        for document in compilation.project.documents:
            error = compilation.syntax_errors.get(document.path)
            if error is not None:
                diagnostics.append(syntax_error_diagnostic(document.path, error))
                continue
            analysis = compilation.modules.get(document.path)
            if analysis is not None:
                diagnostics.extend(diagnose_module(document.path, analysis))
        return diagnostics

    def diagnostics_for(
        self, compilation: Compilation, document: Document
    ) -> Sequence[Diagnostic]:
        """Diagnose a revised snapshot of one document.

        Raises:
            DocumentAnalysisFailure: If the snapshot does not parse.
        """
        try:
            tree = _parse(document)
        except (SyntaxError, ValueError) as e:
            raise DocumentAnalysisFailure(document.path, str(e)) from e
        return diagnose_module(document.path, analyze_module(tree, document.path))

    def is_equivalent(self, original: Document, revised: Document) -> bool:
        """Compare the syntax trees of two snapshots, ignoring positions.

        Raises:
            DocumentAnalysisFailure: If either snapshot does not parse.
        """
        try:
            before = ast.dump(_parse(original))
            after = ast.dump(_parse(revised))
        except (SyntaxError, ValueError) as e:
            raise DocumentAnalysisFailure(revised.path, str(e)) from e
        return before == after
