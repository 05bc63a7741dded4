"""One full compile-classify-fix-verify pass over a project."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from importfix.diagnostics.base import Diagnostic
from importfix.diagnostics.classifier import DEFAULT_CLASSIFIER, DiagnosticClassifier
from importfix.errors import DocumentAnalysisFailure
from importfix.repair.cancellation import CancellationToken, check_cancelled
from importfix.repair.document_fixer import DocumentFixer, FixStatus
from importfix.services.base import Compilation, CompilerService, FileWriter

logger = logging.getLogger(__name__)


@dataclass
class PassResult:
    """Aggregate outcome of one pass.

    Attributes:
        pass_number: 1-based number of the pass.
        detected_count: Missing-reference diagnostics seen this pass.
        resolved_count: Of those, how many a written revision resolved.
        changed_documents: Paths written this pass.
        documents_skipped_as_harmful: Paths whose revision introduced a
            harmful diagnostic and was discarded.
        documents_skipped: Paths that could not be analysed this pass.
    """

    pass_number: int
    detected_count: int = 0
    resolved_count: int = 0
    changed_documents: list[str] = field(default_factory=list)
    documents_skipped_as_harmful: list[str] = field(default_factory=list)
    documents_skipped: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """Whether any document was written."""
        return bool(self.changed_documents)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pass": self.pass_number,
            "detected": self.detected_count,
            "resolved": self.resolved_count,
            "changed_documents": list(self.changed_documents),
            "documents_skipped_as_harmful": list(self.documents_skipped_as_harmful),
            "documents_skipped": list(self.documents_skipped),
        }


class PassController:
    """Runs one pass: compile once, fix each affected document, write results.

    All documents of a pass are fixed against the diagnostics of a single
    whole-project compilation. Cross-file diagnostics need the full project,
    so the compilation is never narrowed to one file.
    """

    def __init__(
        self,
        compiler: CompilerService,
        fixer: DocumentFixer,
        writer: FileWriter,
        classifier: DiagnosticClassifier = DEFAULT_CLASSIFIER,
    ) -> None:
        self.compiler = compiler
        self.fixer = fixer
        self.writer = writer
        self.classifier = classifier

    def build_diagnostics_by_path(
        self, compilation: Compilation
    ) -> dict[str, list[Diagnostic]]:
        """Group missing-reference diagnostics by owning document path.

        Diagnostics without a document path are dropped. Within a path, the
        compiler's reporting order is kept.
        """
        diagnostics_by_path: dict[str, list[Diagnostic]] = {}
        for diagnostic in self.compiler.diagnostics(compilation):
            if not self.classifier.is_missing_reference(diagnostic):
                continue
            if not diagnostic.path:
                continue
            diagnostics_by_path.setdefault(diagnostic.path, []).append(diagnostic)
        return diagnostics_by_path

    def count_missing_references(self, project_path: Path) -> int:
        """Compile the project and count its missing-reference diagnostics.

        Nothing is fixed or written.
        """
        with self.compiler.open_project(project_path) as project:
            compilation = self.compiler.compile(project)
            return sum(len(d) for d in self.build_diagnostics_by_path(compilation).values())

    def run_pass(
        self,
        project_path: Path,
        pass_number: int = 1,
        cancellation: CancellationToken | None = None,
    ) -> PassResult:
        """Run one pass over the project at ``project_path``.

        Args:
            project_path: Path handed to the compiler service.
            pass_number: Number recorded on the result.
            cancellation: Optional token checked before each document.

        Returns:
            PassResult for this pass. ``detected_count`` is 0 when the
            compilation has no missing-reference diagnostics.

        Raises:
            ProjectLoadError: If the project cannot be opened.
            CompilationFailure: If the project cannot be compiled.
            FileWriteError: If a revision cannot be written.
            RepairCancelled: If cancellation is requested.
        """
        result = PassResult(pass_number=pass_number)

        logger.info("Project loading: %s...", project_path)
        with self.compiler.open_project(project_path) as project:
            logger.info("Project loaded: %s", project.name)

            logger.info("Compiling project: %s...", project.name)
            compilation = self.compiler.compile(project)
            logger.info("Compilation complete: %s", compilation.name)

            diagnostics_by_path = self.build_diagnostics_by_path(compilation)
            result.detected_count = sum(len(d) for d in diagnostics_by_path.values())
            if not diagnostics_by_path:
                return result

            for document in project.documents:
                check_cancelled(cancellation)

                filtered = diagnostics_by_path.get(document.path)
                if not filtered:
                    continue

                try:
                    outcome = self.fixer.fix(compilation, document, filtered, cancellation)
                except DocumentAnalysisFailure as e:
                    logger.warning("%s, skipping.", e)
                    result.documents_skipped.append(document.path)
                    continue

                if outcome.status is FixStatus.REJECTED_HARMFUL:
                    result.documents_skipped_as_harmful.append(document.path)
                    continue
                if outcome.status is not FixStatus.ACCEPTED:
                    continue

                result.resolved_count += outcome.resolved_count
                if outcome.new_text != document.text:
                    self.writer.write(project.resolve(document.path), outcome.new_text)
                    result.changed_documents.append(document.path)
                    logger.info("Applied missing imports to: %s", document.path)

        return result
