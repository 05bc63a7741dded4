"""Fix-and-verify for a single document.

The fixer drives the fix provider over every missing-reference diagnostic
of one document, normalizes the result and re-diagnoses it. A revision is
kept only if it introduces no harmful diagnostic; otherwise the whole
revision is discarded and the original snapshot is left untouched. There
is no attempt to keep a safe subset of the edits.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from importfix.config import EDIT_POLICIES, EditPolicy
from importfix.diagnostics.base import Diagnostic
from importfix.diagnostics.classifier import DEFAULT_CLASSIFIER, DiagnosticClassifier
from importfix.errors import ConfigurationError
from importfix.repair.cancellation import CancellationToken, check_cancelled
from importfix.services.base import (
    Compilation,
    CompilerService,
    Document,
    FixProvider,
    Formatter,
)

logger = logging.getLogger(__name__)


class FixStatus(str, Enum):
    """Outcome kinds of a document fix."""

    ACCEPTED = "accepted"
    NO_CHANGE = "no_change"
    REJECTED_HARMFUL = "rejected_harmful"


@dataclass(frozen=True)
class FixOutcome:
    """Result of fixing one document.

    Attributes:
        status: What happened to the document.
        document: The snapshot to keep. The original for NO_CHANGE and
            REJECTED_HARMFUL, the verified revision for ACCEPTED.
        resolved_count: Input diagnostics no longer reported after the fix.
        edits_applied: Number of candidate edits that were applied.
        harmful: Harmful diagnostics that caused a rejection.
    """

    status: FixStatus
    document: Document
    resolved_count: int = 0
    edits_applied: int = 0
    harmful: tuple[Diagnostic, ...] = field(default_factory=tuple)

    @classmethod
    def no_change(cls, document: Document, edits_applied: int = 0) -> FixOutcome:
        return cls(FixStatus.NO_CHANGE, document, edits_applied=edits_applied)

    @classmethod
    def rejected_harmful(
        cls,
        document: Document,
        harmful: Sequence[Diagnostic],
        edits_applied: int = 0,
    ) -> FixOutcome:
        return cls(
            FixStatus.REJECTED_HARMFUL,
            document,
            edits_applied=edits_applied,
            harmful=tuple(harmful),
        )

    @classmethod
    def accepted(
        cls, document: Document, resolved_count: int, edits_applied: int = 0
    ) -> FixOutcome:
        return cls(
            FixStatus.ACCEPTED,
            document,
            resolved_count=resolved_count,
            edits_applied=edits_applied,
        )

    @property
    def new_text(self) -> str:
        return self.document.text


def _match_key(diagnostic: Diagnostic) -> tuple[str, str]:
    # Inserted imports shift spans, so match on what the diagnostic is about
    return (diagnostic.id, diagnostic.subject or str(diagnostic.span))


def count_resolved(
    original: Sequence[Diagnostic], current: Sequence[Diagnostic]
) -> int:
    """Count diagnostics of ``original`` that no longer appear in ``current``.

    Diagnostics are matched one-to-one on (id, subject), so two identical
    unresolved references only count as resolved once each disappears.

    Args:
        original: Diagnostics that were being fixed.
        current: Diagnostics of the revised document.

    Returns:
        Number of resolved diagnostics.
    """
    remaining = Counter(_match_key(d) for d in current)
    resolved = 0
    for diagnostic in original:
        key = _match_key(diagnostic)
        if remaining[key] > 0:
            remaining[key] -= 1
        else:
            resolved += 1
    return resolved


class DocumentFixer:
    """Produces a verified revision of one document, or nothing.

    Attributes:
        compiler: Service used for equivalence checks and re-diagnosis.
        fix_provider: Source of candidate edits.
        formatter: Normalizes a revision before it is verified.
        classifier: Decides which diagnostics are harmful.
        edit_policy: "all" applies every candidate returned for a
            diagnostic, "first" only the first one.
    """

    def __init__(
        self,
        compiler: CompilerService,
        fix_provider: FixProvider | None,
        formatter: Formatter,
        classifier: DiagnosticClassifier = DEFAULT_CLASSIFIER,
        edit_policy: EditPolicy = "all",
    ) -> None:
        """Initialize the fixer.

        Raises:
            ConfigurationError: If no fix provider is available.
            ValueError: If the edit policy is unknown.
        """
        if fix_provider is None:
            raise ConfigurationError("No fix provider is available")
        if edit_policy not in EDIT_POLICIES:
            raise ValueError(
                f"edit_policy must be one of {', '.join(EDIT_POLICIES)}, got {edit_policy!r}"
            )
        self.compiler = compiler
        self.fix_provider = fix_provider
        self.formatter = formatter
        self.classifier = classifier
        self.edit_policy = edit_policy

    def fix(
        self,
        compilation: Compilation,
        document: Document,
        diagnostics: Sequence[Diagnostic],
        cancellation: CancellationToken | None = None,
    ) -> FixOutcome:
        """Fix the missing-reference diagnostics of one document.

        Args:
            compilation: The compilation the diagnostics came from.
            document: Original snapshot of the document.
            diagnostics: Non-empty missing-reference diagnostics of the
                document, in the order the compiler reported them.
            cancellation: Optional token checked between diagnostics.

        Returns:
            FixOutcome describing the result.

        Raises:
            ValueError: If ``diagnostics`` is empty or mentions another document.
            DocumentAnalysisFailure: If the revision cannot be analysed.
            RepairCancelled: If cancellation is requested.
        """
        if not diagnostics:
            raise ValueError(f"No diagnostics given for {document.path}")
        foreign = [d for d in diagnostics if d.path != document.path]
        if foreign:
            raise ValueError(
                f"Diagnostic at {foreign[0].location} does not belong to {document.path}"
            )

        # Each request sees the effects of the edits applied before it
        working = document
        edits_applied = 0
        for diagnostic in diagnostics:
            check_cancelled(cancellation)

            edits = self.fix_provider.propose_edits(compilation, working, diagnostic)
            if self.edit_policy == "first":
                edits = edits[:1]

            for edit in edits:
                working = edit.apply(working)
                edits_applied += 1
                logger.debug(
                    "Applied '%s' for %s at %s",
                    edit.title,
                    diagnostic.id,
                    diagnostic.location,
                )

        if working.text == document.text or self.compiler.is_equivalent(document, working):
            return FixOutcome.no_change(document, edits_applied)

        normalized = self.formatter.normalize(working)

        current = self.compiler.diagnostics_for(compilation, normalized)
        harmful = [d for d in current if self.classifier.is_harmful(d)]
        if harmful:
            logger.warning(
                "Harmful diagnostics in %s (%s), skipping write.",
                document.path,
                ", ".join(sorted({d.id for d in harmful})),
            )
            return FixOutcome.rejected_harmful(document, harmful, edits_applied)

        resolved = count_resolved(diagnostics, current)

        if normalized.text == document.text:
            return FixOutcome.no_change(document, edits_applied)

        return FixOutcome.accepted(normalized, resolved, edits_applied)
