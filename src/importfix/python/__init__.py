"""Python implementations of the compiler service, fix provider and formatter."""

from __future__ import annotations

from importfix.python.compiler import PythonCompilation, PythonCompilerService
from importfix.python.fix_provider import AddImportFixProvider
from importfix.python.formatter import ImportBlockFormatter

__all__ = [
    "AddImportFixProvider",
    "ImportBlockFormatter",
    "PythonCompilation",
    "PythonCompilerService",
]
