"""Source discovery and module naming for Python projects."""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

# Directories never scanned for sources
SKIP_DIRS: frozenset[str] = frozenset(
    {
        ".venv", "venv", "env", "node_modules", ".git", ".hg",
        "dist", "build", "__pycache__", ".mypy_cache", ".ruff_cache",
        ".pytest_cache", ".tox", ".nox", "eggs", ".eggs",
        "site-packages",
    }
)

# Top-level source roots stripped when deriving module names
SOURCE_ROOTS: tuple[str, ...] = ("src", "lib")


def discover_sources(root: Path, exclude: Iterable[str] = ()) -> list[str]:
    """Recursively find all .py files below ``root``.

    Args:
        root: Project root directory.
        exclude: Extra directory names to skip.

    Returns:
        Sorted root-relative POSIX paths.
    """
    skip = SKIP_DIRS | set(exclude)
    sources: list[str] = []
    for dirpath, dirs, files in os.walk(root):
        dirs[:] = [d for d in dirs if d not in skip and not d.endswith(".egg-info")]
        for fname in files:
            if fname.endswith(".py"):
                rel = (Path(dirpath) / fname).relative_to(root).as_posix()
                sources.append(rel)
    return sorted(sources)


def module_name_for(path: str) -> str:
    """Derive the dotted module name of a root-relative source path.

    Examples:
        >>> module_name_for("src/pkg/util.py")
        'pkg.util'
        >>> module_name_for("pkg/__init__.py")
        'pkg'
    """
    parts = list(PurePosixPath(path).with_suffix("").parts)
    if len(parts) > 1 and parts[0] in SOURCE_ROOTS:
        parts = parts[1:]
    if len(parts) > 1 and parts[-1] == "__init__":
        parts = parts[:-1]
    return ".".join(parts)


def is_importable_module(module_name: str) -> bool:
    """Check whether a module should offer its names to other modules.

    Test modules, conftest files, scripts and entry points are skipped.
    """
    if not module_name or not all(p.isidentifier() for p in module_name.split(".")):
        return False
    last = module_name.rsplit(".", 1)[-1]
    if last.startswith("test") or last in {"conftest", "setup", "__main__"}:
        return False
    return True
