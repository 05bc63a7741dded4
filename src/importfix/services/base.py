"""Capability interfaces the repair engine depends on.

The engine never parses source text, decides which import to add, or
touches the filesystem itself. Those jobs belong to the collaborators
defined here:

- CompilerService: opens a project, compiles it, reports diagnostics.
- FixProvider: proposes candidate edits for one diagnostic.
- Formatter: normalizes a revised document.
- FileWriter: persists a document's final text.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import TracebackType

from importfix.diagnostics.base import Diagnostic


@dataclass(frozen=True)
class Document:
    """An immutable snapshot of one source document.

    Attributes:
        path: Stable identity of the document, relative to the project root.
        text: Full source text of this snapshot.
    """

    path: str
    text: str

    def with_text(self, text: str) -> Document:
        """Return a new snapshot of the same document with replaced text."""
        return replace(self, text=text)


class CandidateEdit(ABC):
    """A proposed, unapplied transformation of a document snapshot.

    The engine treats edits as opaque and atomic: it only ever calls
    ``apply`` and uses the returned snapshot as the new working state.
    """

    title: str = ""

    @abstractmethod
    def apply(self, document: Document) -> Document:
        """Apply the edit to a snapshot and return the revised snapshot."""


@dataclass
class Project:
    """A loaded project: a root directory and its documents in enumeration order.

    A project handle belongs to exactly one pass. Use it as a context manager
    so it is discarded when the pass ends.

    Attributes:
        name: Display name of the project.
        root: Root directory of the project.
        documents: Documents in the order the compiler service enumerates them.
    """

    name: str
    root: Path
    documents: list[Document] = field(default_factory=list)
    closed: bool = False

    def get_document(self, path: str) -> Document | None:
        """Look up a document by path."""
        for document in self.documents:
            if document.path == path:
                return document
        return None

    def resolve(self, path: str) -> Path:
        """Resolve a document path to a filesystem path."""
        return self.root / path

    def close(self) -> None:
        """Release the project handle."""
        self.closed = True

    def __enter__(self) -> Project:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


@dataclass
class Compilation:
    """The result of compiling a project once.

    Compiler services subclass this to carry their own semantic state.

    Attributes:
        project: The project that was compiled.
    """

    project: Project

    @property
    def name(self) -> str:
        return self.project.name


class CompilerService(ABC):
    """Loads, compiles and diagnoses projects."""

    @abstractmethod
    def open_project(self, path: Path) -> Project:
        """Open the project at ``path``.

        Raises:
            ProjectLoadError: If the project cannot be loaded.
        """

    @abstractmethod
    def compile(self, project: Project) -> Compilation:
        """Compile the whole project.

        Raises:
            CompilationFailure: If no compilation can be produced.
        """

    @abstractmethod
    def diagnostics(self, compilation: Compilation) -> Sequence[Diagnostic]:
        """Return every diagnostic of the compilation, in reporting order."""

    @abstractmethod
    def diagnostics_for(
        self, compilation: Compilation, document: Document
    ) -> Sequence[Diagnostic]:
        """Diagnose a revised snapshot of one document against the compilation.

        Raises:
            DocumentAnalysisFailure: If no semantic model can be produced.
        """

    @abstractmethod
    def is_equivalent(self, original: Document, revised: Document) -> bool:
        """Check whether two snapshots have the same syntactic shape.

        Raises:
            DocumentAnalysisFailure: If either snapshot cannot be parsed.
        """


class FixProvider(ABC):
    """Proposes candidate edits for a diagnostic.

    Implementations must be safe to call repeatedly against evolving
    snapshots of the same document. They may keep caches across documents
    and passes.
    """

    name: str = ""

    @abstractmethod
    def propose_edits(
        self,
        compilation: Compilation,
        document: Document,
        diagnostic: Diagnostic,
    ) -> list[CandidateEdit]:
        """Return zero or more candidate edits against ``document``."""


class Formatter(ABC):
    """Normalizes a document after edits. Must be idempotent."""

    name: str = ""

    @abstractmethod
    def normalize(self, document: Document) -> Document:
        """Return the normalized snapshot."""


class FileWriter(ABC):
    """Persists final document text."""

    @abstractmethod
    def write(self, path: Path, text: str) -> None:
        """Write ``text`` to the file at ``path``.

        Raises:
            FileWriteError: If the text cannot be persisted.
        """
