"""Wiring of the repair engine and its public entry points."""

from __future__ import annotations

import logging
from pathlib import Path

from importfix.config import RepairConfig
from importfix.diagnostics.base import Diagnostic
from importfix.diagnostics.classifier import DEFAULT_CLASSIFIER, DiagnosticClassifier
from importfix.providers.registry import resolve_fix_provider, resolve_formatter
from importfix.python.compiler import PythonCompilerService
from importfix.repair.cancellation import CancellationToken
from importfix.repair.document_fixer import DocumentFixer
from importfix.repair.loop import ConvergenceLoop, LoopResult
from importfix.repair.pass_controller import PassController
from importfix.services.base import CompilerService, FileWriter, FixProvider, Formatter
from importfix.services.file_writer import DiskFileWriter

logger = logging.getLogger(__name__)


def build_loop(
    config: RepairConfig,
    compiler: CompilerService | None = None,
    fix_provider: FixProvider | None = None,
    formatter: Formatter | None = None,
    writer: FileWriter | None = None,
    classifier: DiagnosticClassifier = DEFAULT_CLASSIFIER,
) -> ConvergenceLoop:
    """Assemble a convergence loop from configuration.

    Collaborators that are not passed in are built from ``config``: the
    fix provider and formatter are resolved by name, once.

    Raises:
        ConfigurationError: If the fix provider or formatter cannot be resolved.
    """
    if compiler is None:
        compiler = PythonCompilerService(exclude=config.exclude, encoding=config.encoding)
    if fix_provider is None:
        fix_provider = resolve_fix_provider(config.fix_provider, config)
    if formatter is None:
        formatter = resolve_formatter(config.formatter, config)
    if writer is None:
        writer = DiskFileWriter(encoding=config.encoding)

    fixer = DocumentFixer(
        compiler,
        fix_provider,
        formatter,
        classifier=classifier,
        edit_policy=config.edit_policy,
    )
    return ConvergenceLoop(PassController(compiler, fixer, writer, classifier))


def repair_missing_references(
    project_path: str | Path,
    loop_until_no_change: bool | None = None,
    max_passes: int | None = None,
    cancellation: CancellationToken | None = None,
    config: RepairConfig | None = None,
    compiler: CompilerService | None = None,
    fix_provider: FixProvider | None = None,
    formatter: Formatter | None = None,
    writer: FileWriter | None = None,
) -> LoopResult:
    """Repair a project's missing references.

    Args:
        project_path: Project directory (or a file inside it).
        loop_until_no_change: Keep running passes until one changes nothing.
            Defaults to ``config.loop_until_no_change``.
        max_passes: Pass budget. Defaults to ``config.max_passes`` (5).
        cancellation: Optional cooperative cancellation token.
        config: Configuration. Defaults to ``RepairConfig()``.
        compiler: Compiler service override.
        fix_provider: Fix provider override.
        formatter: Formatter override.
        writer: File writer override.

    Returns:
        LoopResult with totals across every pass.

    Raises:
        ConfigurationError: If a capability cannot be resolved.
        CompilationFailure: If the project cannot be loaded or compiled.
        FileWriteError: If a revised document cannot be written.
        RepairCancelled: If cancellation is requested.
    """
    config = config or RepairConfig()
    loop = build_loop(
        config,
        compiler=compiler,
        fix_provider=fix_provider,
        formatter=formatter,
        writer=writer,
    )
    return loop.run(
        Path(project_path),
        loop_until_no_change=(
            config.loop_until_no_change if loop_until_no_change is None else loop_until_no_change
        ),
        max_passes=config.max_passes if max_passes is None else max_passes,
        cancellation=cancellation,
    )


def collect_diagnostics(
    project_path: str | Path,
    config: RepairConfig | None = None,
    compiler: CompilerService | None = None,
) -> list[Diagnostic]:
    """Compile a project once and return all of its diagnostics.

    Nothing is fixed or written.

    Raises:
        CompilationFailure: If the project cannot be loaded or compiled.
    """
    config = config or RepairConfig()
    if compiler is None:
        compiler = PythonCompilerService(exclude=config.exclude, encoding=config.encoding)

    with compiler.open_project(Path(project_path)) as project:
        compilation = compiler.compile(project)
        diagnostics = list(compiler.diagnostics(compilation))
    logger.debug("Collected %d diagnostics from %s", len(diagnostics), project_path)
    return diagnostics
