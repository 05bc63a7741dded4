"""Diagnostic records produced by a compiler service.

A diagnostic is only meaningful for the compilation that produced it: any
edit to any document invalidates every diagnostic of the project, which is
why each pass recompiles from scratch.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

Severity = Literal["error", "warning", "info"]


class DiagnosticCategory(str, Enum):
    """How the repair engine treats a diagnostic id."""

    MISSING_REFERENCE = "missing_reference"
    HARMFUL = "harmful"
    IGNORED = "ignored"


@dataclass(frozen=True)
class SourceSpan:
    """A region of a document.

    Attributes:
        start_line: 1-based line where the span starts.
        start_col: 0-based column where the span starts.
        end_line: 1-based line where the span ends.
        end_col: 0-based column where the span ends (exclusive).
    """

    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def __str__(self) -> str:
        return f"{self.start_line}:{self.start_col}"


@dataclass(frozen=True)
class Diagnostic:
    """A single issue reported against a document.

    Attributes:
        id: Category code (e.g., "undefined-name-in-scope").
        path: Path of the owning document, relative to the project root.
        span: Location of the issue inside the document.
        severity: Severity as reported by the compiler; never used for filtering.
        message: Human-readable description.
        subject: The source text the diagnostic is about (e.g., the
            unresolved name). Used to match a diagnostic across revisions
            of the same document, where spans can shift.
    """

    id: str
    path: str
    span: SourceSpan
    severity: Severity = "error"
    message: str = ""
    subject: str = ""

    @property
    def location(self) -> str:
        """Location formatted as ``path:line:col``."""
        return f"{self.path}:{self.span}"
