"""Exception hierarchy for the repair engine.

Fatal errors (ConfigurationError, CompilationFailure, FileWriteError) abort
the whole run. DocumentAnalysisFailure is recoverable: the pass controller
skips the affected document and moves on. Harmful regressions are not
errors at all; they are reported as a fix outcome.
"""

from __future__ import annotations


class RepairError(Exception):
    """Base class for all importfix errors."""


class ConfigurationError(RepairError):
    """Raised when a required capability cannot be located or instantiated."""


class CompilationFailure(RepairError):
    """Raised when the compiler service cannot produce a compilation."""

    def __init__(self, project: str, reason: str) -> None:
        self.project = project
        self.reason = reason
        super().__init__(f"Failed to compile project {project}: {reason}")


class ProjectLoadError(CompilationFailure):
    """Raised when a project cannot be opened or its documents read."""

    def __init__(self, project: str, reason: str) -> None:
        super().__init__(project, reason)
        self.args = (f"Failed to load project {project}: {reason}",)


class DocumentAnalysisFailure(RepairError):
    """Raised when no semantic model can be produced for one document."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Could not analyse {path}: {reason}")


class FileWriteError(RepairError):
    """Raised when a revised document cannot be persisted."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write {path}: {reason}")


class RepairCancelled(RepairError):
    """Raised when a cancellation request is observed."""
