"""Tests for diagnostic classification."""

from __future__ import annotations

import pytest

from importfix.diagnostics import (
    AMBIGUOUS_REFERENCE,
    DEFAULT_CLASSIFIER,
    HARMFUL_IDS,
    INTERFACE_MEMBER_NOT_IMPLEMENTED,
    MEMBER_NOT_FOUND_ON_TYPE,
    MISSING_REFERENCE_IDS,
    TYPE_DEFINED_IN_MULTIPLE_ASSEMBLIES,
    UNDEFINED_NAME_IN_SCOPE,
    UNDEFINED_TYPE_OR_NAMESPACE,
    Diagnostic,
    DiagnosticCategory,
    DiagnosticClassifier,
    SourceSpan,
)


def _diagnostic(diagnostic_id: str) -> Diagnostic:
    return Diagnostic(diagnostic_id, "pkg/mod.py", SourceSpan(3, 4, 3, 10))


class TestDiagnosticRecords:
    """Tests for Diagnostic and SourceSpan."""

    def test_span_str_is_line_and_column(self) -> None:
        """Test that a span renders as line:col."""
        assert str(SourceSpan(3, 4, 3, 10)) == "3:4"

    def test_location(self) -> None:
        """Test that location joins path and span."""
        assert _diagnostic("x").location == "pkg/mod.py:3:4"

    def test_defaults(self) -> None:
        """Test default severity, message and subject."""
        diagnostic = _diagnostic("x")
        assert diagnostic.severity == "error"
        assert diagnostic.message == ""
        assert diagnostic.subject == ""


class TestDiagnosticClassifier:
    """Tests for DiagnosticClassifier."""

    @pytest.mark.parametrize(
        "diagnostic_id",
        [
            UNDEFINED_TYPE_OR_NAMESPACE,
            UNDEFINED_NAME_IN_SCOPE,
            INTERFACE_MEMBER_NOT_IMPLEMENTED,
            MEMBER_NOT_FOUND_ON_TYPE,
        ],
    )
    def test_missing_reference_ids(self, diagnostic_id: str) -> None:
        """Test that the four missing-reference ids are classified as such."""
        assert DEFAULT_CLASSIFIER.classify(diagnostic_id) is DiagnosticCategory.MISSING_REFERENCE

    @pytest.mark.parametrize(
        "diagnostic_id", [AMBIGUOUS_REFERENCE, TYPE_DEFINED_IN_MULTIPLE_ASSEMBLIES]
    )
    def test_harmful_ids(self, diagnostic_id: str) -> None:
        """Test that ambiguity and duplicate definitions are harmful."""
        assert DEFAULT_CLASSIFIER.classify(diagnostic_id) is DiagnosticCategory.HARMFUL

    def test_unknown_ids_are_ignored(self) -> None:
        """Test that anything else is ignored."""
        assert DEFAULT_CLASSIFIER.classify("syntax-error") is DiagnosticCategory.IGNORED
        assert DEFAULT_CLASSIFIER.classify("") is DiagnosticCategory.IGNORED

    def test_default_sets_are_disjoint(self) -> None:
        """Test that no id is both missing-reference and harmful."""
        assert not MISSING_REFERENCE_IDS & HARMFUL_IDS

    def test_overlapping_sets_rejected(self) -> None:
        """Test that a custom classifier cannot overlap its id sets."""
        with pytest.raises(ValueError, match="both missing-reference and harmful"):
            DiagnosticClassifier(missing_reference_ids={"a", "b"}, harmful_ids={"b"})

    def test_custom_sets(self) -> None:
        """Test classification with custom id sets."""
        classifier = DiagnosticClassifier(missing_reference_ids={"E1"}, harmful_ids={"E2"})
        assert classifier.is_missing_reference(_diagnostic("E1"))
        assert classifier.is_harmful(_diagnostic("E2"))
        assert classifier.classify(UNDEFINED_NAME_IN_SCOPE) is DiagnosticCategory.IGNORED

    def test_predicates(self) -> None:
        """Test is_missing_reference and is_harmful."""
        missing = _diagnostic(UNDEFINED_NAME_IN_SCOPE)
        harmful = _diagnostic(AMBIGUOUS_REFERENCE)
        assert DEFAULT_CLASSIFIER.is_missing_reference(missing)
        assert not DEFAULT_CLASSIFIER.is_harmful(missing)
        assert DEFAULT_CLASSIFIER.is_harmful(harmful)
        assert not DEFAULT_CLASSIFIER.is_missing_reference(harmful)

    def test_any_harmful(self) -> None:
        """Test any_harmful over a sequence."""
        assert not DEFAULT_CLASSIFIER.any_harmful([])
        assert not DEFAULT_CLASSIFIER.any_harmful([_diagnostic(UNDEFINED_NAME_IN_SCOPE)])
        assert DEFAULT_CLASSIFIER.any_harmful(
            [_diagnostic(UNDEFINED_NAME_IN_SCOPE), _diagnostic(AMBIGUOUS_REFERENCE)]
        )
