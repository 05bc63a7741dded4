"""Static policy mapping diagnostic ids to categories.

Missing-reference diagnostics drive fixing. Harmful diagnostics block a
revision from being written: they mean an added import made a reference
ambiguous or introduced a conflicting definition.
"""

from __future__ import annotations

from collections.abc import Iterable

from importfix.diagnostics.base import Diagnostic, DiagnosticCategory

UNDEFINED_TYPE_OR_NAMESPACE = "undefined-type-or-namespace"
UNDEFINED_NAME_IN_SCOPE = "undefined-name-in-scope"
INTERFACE_MEMBER_NOT_IMPLEMENTED = "interface-member-not-implemented"
MEMBER_NOT_FOUND_ON_TYPE = "member-not-found-on-type"
AMBIGUOUS_REFERENCE = "ambiguous-reference"
TYPE_DEFINED_IN_MULTIPLE_ASSEMBLIES = "type-defined-in-multiple-assemblies"

MISSING_REFERENCE_IDS: frozenset[str] = frozenset(
    {
        UNDEFINED_TYPE_OR_NAMESPACE,
        UNDEFINED_NAME_IN_SCOPE,
        INTERFACE_MEMBER_NOT_IMPLEMENTED,
        MEMBER_NOT_FOUND_ON_TYPE,
    }
)

HARMFUL_IDS: frozenset[str] = frozenset(
    {
        AMBIGUOUS_REFERENCE,
        TYPE_DEFINED_IN_MULTIPLE_ASSEMBLIES,
    }
)


class DiagnosticClassifier:
    """Classifies diagnostic ids against two fixed, disjoint id sets.

    Example:
        >>> classifier = DiagnosticClassifier()
        >>> classifier.classify("undefined-name-in-scope")
        <DiagnosticCategory.MISSING_REFERENCE: 'missing_reference'>
    """

    def __init__(
        self,
        missing_reference_ids: Iterable[str] = MISSING_REFERENCE_IDS,
        harmful_ids: Iterable[str] = HARMFUL_IDS,
    ) -> None:
        """Initialize the classifier.

        Args:
            missing_reference_ids: Ids that are candidates for fixing.
            harmful_ids: Ids that block acceptance of a fix.

        Raises:
            ValueError: If the two id sets overlap.
        """
        self._missing = frozenset(missing_reference_ids)
        self._harmful = frozenset(harmful_ids)
        overlap = self._missing & self._harmful
        if overlap:
            raise ValueError(
                f"Diagnostic ids cannot be both missing-reference and harmful: "
                f"{', '.join(sorted(overlap))}"
            )

    def classify(self, diagnostic_id: str) -> DiagnosticCategory:
        """Return the category for a diagnostic id; unknown ids are ignored."""
        if diagnostic_id in self._missing:
            return DiagnosticCategory.MISSING_REFERENCE
        if diagnostic_id in self._harmful:
            return DiagnosticCategory.HARMFUL
        return DiagnosticCategory.IGNORED

    def is_missing_reference(self, diagnostic: Diagnostic) -> bool:
        return self.classify(diagnostic.id) is DiagnosticCategory.MISSING_REFERENCE

    def is_harmful(self, diagnostic: Diagnostic) -> bool:
        return self.classify(diagnostic.id) is DiagnosticCategory.HARMFUL

    def any_harmful(self, diagnostics: Iterable[Diagnostic]) -> bool:
        """Check whether any diagnostic in the sequence is harmful."""
        return any(self.is_harmful(d) for d in diagnostics)


DEFAULT_CLASSIFIER = DiagnosticClassifier()
