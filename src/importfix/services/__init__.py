"""Collaborator interfaces used by the repair engine, plus a disk file writer."""

from __future__ import annotations

from importfix.services.base import (
    CandidateEdit,
    Compilation,
    CompilerService,
    Document,
    FileWriter,
    FixProvider,
    Formatter,
    Project,
)
from importfix.services.file_writer import DiskFileWriter

__all__ = [
    # Snapshots and edits
    "CandidateEdit",
    "Document",
    # Project model
    "Compilation",
    "Project",
    # Capabilities
    "CompilerService",
    "FileWriter",
    "FixProvider",
    "Formatter",
    # Implementations
    "DiskFileWriter",
]
