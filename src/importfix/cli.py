"""importfix CLI - Main entry point."""

from __future__ import annotations

import json
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from importfix import __version__
from importfix.cli_utils import (
    EXIT_CANCELLED,
    EXIT_SYSTEM_ERROR,
    EXIT_USER_ERROR,
    config_start_dir,
    json_option,
    log_level,
    quiet_option,
    resolve_project_path,
    wire_config,
)
from importfix.config import EDIT_POLICIES
from importfix.diagnostics.base import Diagnostic, DiagnosticCategory
from importfix.diagnostics.classifier import DEFAULT_CLASSIFIER
from importfix.errors import (
    CompilationFailure,
    ConfigurationError,
    FileWriteError,
    RepairCancelled,
)
from importfix.logging_config import setup_logging
from importfix.repair.cancellation import CancellationToken, cancel_on_interrupt
from importfix.repair.engine import collect_diagnostics, repair_missing_references
from importfix.repair.loop import LoopResult

app = typer.Typer(
    name="importfix",
    help="Add missing imports to a Python project, verifying every fix.",
    add_completion=False,
)

# Rich consoles for output
console = Console()
err_console = Console(stderr=True)


# -----------------------------------------------------------------------------
# Output Helpers
# -----------------------------------------------------------------------------


def _output_success(message: str, quiet: bool = False) -> None:
    """Print a success message."""
    if not quiet:
        console.print(f"[green]Success:[/green] {message}")


def _output_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[red]Error:[/red] {message}")


def _output_warning(message: str, quiet: bool = False) -> None:
    """Print a warning message."""
    if not quiet:
        err_console.print(f"[yellow]Warning:[/yellow] {message}")


def _output_info(message: str, quiet: bool = False) -> None:
    """Print an info message."""
    if not quiet:
        console.print(message, highlight=False)


def _exit_error(message: str, exit_code: int = EXIT_USER_ERROR, json_output: bool = False) -> None:
    """Print error and exit."""
    if json_output:
        console.print_json(json.dumps({"success": False, "error": message}))
    else:
        _output_error(message)
    raise typer.Exit(code=exit_code)


def _diagnostic_to_dict(diagnostic: Diagnostic) -> dict[str, Any]:
    return {
        "id": diagnostic.id,
        "path": diagnostic.path,
        "line": diagnostic.span.start_line,
        "column": diagnostic.span.start_col,
        "severity": diagnostic.severity,
        "subject": diagnostic.subject,
        "message": diagnostic.message,
    }


# -----------------------------------------------------------------------------
# Version and Main Callbacks
# -----------------------------------------------------------------------------


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"importfix version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Add missing imports to a Python project, verifying every fix."""
    pass


# -----------------------------------------------------------------------------
# Check Command
# -----------------------------------------------------------------------------


@app.command()
def check(
    path: str | None = typer.Argument(
        None,
        help="Project directory. Defaults to current directory.",
    ),
    json_output: bool = json_option(),
    quiet: bool = quiet_option(),
) -> None:
    """List missing-reference and harmful diagnostics without fixing them.

    Exits with code 1 if any missing references are found.
    """
    project_path = resolve_project_path(path)
    config = wire_config(start_dir=config_start_dir(project_path))

    try:
        diagnostics = collect_diagnostics(project_path, config)
    except CompilationFailure as e:
        _exit_error(str(e), EXIT_SYSTEM_ERROR, json_output)
        return

    missing = [d for d in diagnostics if DEFAULT_CLASSIFIER.is_missing_reference(d)]
    harmful = [d for d in diagnostics if DEFAULT_CLASSIFIER.is_harmful(d)]

    if json_output:
        result = {
            "project": str(project_path),
            "missing_references": [_diagnostic_to_dict(d) for d in missing],
            "harmful": [_diagnostic_to_dict(d) for d in harmful],
        }
        console.print_json(json.dumps(result))
    else:
        if not missing and not harmful:
            _output_success("No missing references found", quiet)
        elif not quiet:
            table = Table(title="Diagnostics")
            table.add_column("Location", style="cyan")
            table.add_column("Kind")
            table.add_column("Id")
            table.add_column("Message")
            for diagnostic in missing + harmful:
                category = DEFAULT_CLASSIFIER.classify(diagnostic.id)
                kind = (
                    "[yellow]missing[/yellow]"
                    if category == DiagnosticCategory.MISSING_REFERENCE
                    else "[red]harmful[/red]"
                )
                table.add_row(diagnostic.location, kind, diagnostic.id, diagnostic.message)
            console.print(table)
            _output_info(
                f"{len(missing)} missing reference(s), {len(harmful)} harmful diagnostic(s)"
            )

    if missing:
        raise typer.Exit(code=EXIT_USER_ERROR)


# -----------------------------------------------------------------------------
# Repair Command
# -----------------------------------------------------------------------------


def _print_repair_result(result: LoopResult, quiet: bool) -> None:
    if quiet:
        return

    table = Table(title="Repair Passes")
    table.add_column("Pass", justify="right")
    table.add_column("Detected", justify="right")
    table.add_column("Resolved", justify="right")
    table.add_column("Changed", justify="right")
    for p in result.passes:
        table.add_row(
            str(p.pass_number),
            str(p.detected_count),
            str(p.resolved_count),
            str(len(p.changed_documents)),
        )
    if result.passes:
        console.print(table)

    _output_info(f"Total missing import diagnostics found: {result.total_detected}")
    _output_info(f"Total diagnostics resolved: {result.total_resolved}")
    _output_info(f"Passes run: {result.passes_run}")
    _output_info(f"Termination: {result.termination_reason.value}")

    for path in result.changed_documents:
        _output_info(f"  [green]changed[/green] {path}")
    for path in result.documents_skipped_as_harmful:
        _output_warning(f"Skipped (fix introduced harmful diagnostics): {path}")
    for path in result.documents_skipped:
        _output_warning(f"Skipped (could not be analysed): {path}")


@app.command()
def repair(
    path: str | None = typer.Argument(
        None,
        help="Project directory. Defaults to current directory.",
    ),
    loop: bool | None = typer.Option(
        None,
        "--loop/--single-pass",
        help="Keep running passes until one changes nothing (default: single pass).",
    ),
    max_passes: int | None = typer.Option(
        None,
        "--max-passes",
        "-n",
        help="Maximum number of passes when looping (default: 5).",
    ),
    provider: str | None = typer.Option(
        None,
        "--provider",
        "-p",
        help="Fix provider name or 'module:attribute' reference.",
    ),
    edit_policy: str | None = typer.Option(
        None,
        "--edit-policy",
        help=f"Which candidate edits to apply per diagnostic: {', '.join(EDIT_POLICIES)}.",
    ),
    json_output: bool = json_option(),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Log each pass and every applied edit.",
    ),
    quiet: bool = quiet_option(),
) -> None:
    """Add missing imports, verifying each fixed file before writing it.

    Files whose fixes introduce harmful diagnostics (ambiguous or duplicate
    names) are left untouched. Exits with code 2 if the project cannot be
    compiled or a file cannot be written.
    """
    project_path = resolve_project_path(path)
    config = wire_config(
        max_passes=max_passes,
        loop_until_no_change=loop,
        fix_provider=provider,
        edit_policy=edit_policy,
        start_dir=config_start_dir(project_path),
    )

    # Logs go to stderr; JSON output stays clean on stdout
    setup_logging(log_level(verbose, quiet or json_output), err_console)

    try:
        with cancel_on_interrupt(CancellationToken()) as token:
            result = repair_missing_references(project_path, config=config, cancellation=token)
    except ConfigurationError as e:
        _exit_error(str(e), EXIT_USER_ERROR, json_output)
        return
    except (CompilationFailure, FileWriteError) as e:
        _exit_error(str(e), EXIT_SYSTEM_ERROR, json_output)
        return
    except RepairCancelled as e:
        _exit_error(str(e), EXIT_CANCELLED, json_output)
        return

    if json_output:
        console.print_json(json.dumps({"success": True, **result.to_dict()}))
    else:
        _print_repair_result(result, quiet)


# -----------------------------------------------------------------------------
# Providers Command
# -----------------------------------------------------------------------------


@app.command()
def providers(
    json_output: bool = json_option(),
) -> None:
    """List registered fix providers and formatters."""
    from importfix.providers.registry import get_formatter_registry, get_provider_registry

    fix_providers = get_provider_registry().list_names()
    formatters = get_formatter_registry().list_names()

    if json_output:
        console.print_json(json.dumps({"fix_providers": fix_providers, "formatters": formatters}))
        return

    table = Table(title="Registered Capabilities")
    table.add_column("Kind", style="cyan")
    table.add_column("Name")
    for name in fix_providers:
        table.add_row("fix provider", name)
    for name in formatters:
        table.add_row("formatter", name)
    console.print(table)


if __name__ == "__main__":
    app()
