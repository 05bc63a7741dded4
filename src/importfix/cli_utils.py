"""CLI utility functions for importfix.

Provides helper functions for:
- Config wiring: Extracting Typer CLI options and passing to load_config
- Path resolution: Checking the project path given on the command line
- Error formatting: Consistent user-friendly error messages with exit codes
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, NoReturn

import typer

from importfix.config import RepairConfig, load_config

# Exit code conventions
EXIT_USER_ERROR = 1  # User error (bad input, missing path, unknown provider)
EXIT_SYSTEM_ERROR = 2  # System error (compilation, I/O)
EXIT_CANCELLED = 130


# -----------------------------------------------------------------------------
# Error Formatting Helpers
# -----------------------------------------------------------------------------


def error(msg: str, *, exit_code: int = EXIT_USER_ERROR) -> NoReturn:
    """Print an error message and exit with the given exit code.

    Args:
        msg: The error message to display.
        exit_code: Exit code to use (default: EXIT_USER_ERROR=1).

    Raises:
        typer.Exit: Always raises to exit the program.
    """
    styled_prefix = typer.style("Error:", fg=typer.colors.RED, bold=True)
    typer.echo(f"{styled_prefix} {msg}", err=True)
    raise typer.Exit(code=exit_code)


# -----------------------------------------------------------------------------
# Path Resolution Helpers
# -----------------------------------------------------------------------------


def resolve_project_path(path: str | Path | None) -> Path:
    """Resolve the project path argument, exiting if it does not exist.

    Args:
        path: Path given on the command line. Defaults to cwd.

    Returns:
        Resolved absolute Path.

    Raises:
        typer.Exit: If the path does not exist.
    """
    resolved = Path(path).resolve() if path is not None else Path.cwd()
    if not resolved.exists():
        error(f"Project path does not exist: {resolved}")
    return resolved


def config_start_dir(project_path: Path) -> Path:
    """Directory to search upward from for .importfixrc and pyproject.toml."""
    return project_path if project_path.is_dir() else project_path.parent


def log_level(verbose: bool, quiet: bool) -> int:
    """Map --verbose/--quiet to a log level."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.ERROR
    return logging.INFO


# -----------------------------------------------------------------------------
# Config Wiring Helper
# -----------------------------------------------------------------------------


def wire_config(
    max_passes: int | None = None,
    loop_until_no_change: bool | None = None,
    fix_provider: str | None = None,
    edit_policy: str | None = None,
    start_dir: Path | None = None,
) -> RepairConfig:
    """Wire CLI options to load_config with appropriate overrides.

    Options left as None fall through to environment variables, config
    files and defaults.

    Args:
        max_passes: Override for the pass budget.
        loop_until_no_change: Override for looping.
        fix_provider: Override for the fix provider reference.
        edit_policy: Override for the edit policy.
        start_dir: Directory to start searching for config files.

    Returns:
        Fully resolved RepairConfig instance.

    Raises:
        typer.Exit: If configuration is invalid.
    """
    cli_overrides: dict[str, Any] = {}

    if max_passes is not None:
        cli_overrides["max_passes"] = max_passes
    if loop_until_no_change is not None:
        cli_overrides["loop_until_no_change"] = loop_until_no_change
    if fix_provider is not None:
        cli_overrides["fix_provider"] = fix_provider
    if edit_policy is not None:
        cli_overrides["edit_policy"] = edit_policy

    try:
        return load_config(cli_overrides=cli_overrides, start_dir=start_dir)
    except ValueError as e:
        error(f"Invalid configuration: {e}", exit_code=EXIT_USER_ERROR)


# -----------------------------------------------------------------------------
# Typer Option Factory Functions
# -----------------------------------------------------------------------------
# Typer consumes Option objects when decorating commands, so each command
# needs its own instance.


def json_option() -> Any:
    """Create a Typer Option for --json."""
    return typer.Option(
        False,
        "--json",
        help="Output as JSON.",
    )


def quiet_option() -> Any:
    """Create a Typer Option for --quiet / -q."""
    return typer.Option(
        False,
        "--quiet",
        "-q",
        help="Minimal output for CI.",
    )
