"""Diagnostic records and the classification policy applied to them."""

from __future__ import annotations

from importfix.diagnostics.base import (
    Diagnostic,
    DiagnosticCategory,
    Severity,
    SourceSpan,
)
from importfix.diagnostics.classifier import (
    AMBIGUOUS_REFERENCE,
    DEFAULT_CLASSIFIER,
    HARMFUL_IDS,
    INTERFACE_MEMBER_NOT_IMPLEMENTED,
    MEMBER_NOT_FOUND_ON_TYPE,
    MISSING_REFERENCE_IDS,
    TYPE_DEFINED_IN_MULTIPLE_ASSEMBLIES,
    UNDEFINED_NAME_IN_SCOPE,
    UNDEFINED_TYPE_OR_NAMESPACE,
    DiagnosticClassifier,
)

__all__ = [
    # Records
    "Diagnostic",
    "DiagnosticCategory",
    "Severity",
    "SourceSpan",
    # Classification
    "DEFAULT_CLASSIFIER",
    "DiagnosticClassifier",
    "HARMFUL_IDS",
    "MISSING_REFERENCE_IDS",
    # Diagnostic ids
    "AMBIGUOUS_REFERENCE",
    "INTERFACE_MEMBER_NOT_IMPLEMENTED",
    "MEMBER_NOT_FOUND_ON_TYPE",
    "TYPE_DEFINED_IN_MULTIPLE_ASSEMBLIES",
    "UNDEFINED_NAME_IN_SCOPE",
    "UNDEFINED_TYPE_OR_NAMESPACE",
]
