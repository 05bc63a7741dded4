"""Convergence loop: repeat passes until nothing changes.

Every pass recompiles the project from scratch. An edit to any document
invalidates the diagnostics of the whole project (ambiguity and duplicate
definition checks depend on global state), so nothing but the running
totals is carried from one pass to the next.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from importfix.repair.cancellation import CancellationToken, check_cancelled
from importfix.repair.pass_controller import PassController, PassResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 5


class TerminationReason(str, Enum):
    """Why the loop stopped. Every reason is a successful outcome."""

    CONVERGED = "converged"
    MAX_PASSES_REACHED = "max_passes_reached"
    SINGLE_PASS_ONLY = "single_pass_only"
    NO_DIAGNOSTICS_ON_FIRST_PASS = "no_diagnostics_on_first_pass"


def _union(lists: list[list[str]]) -> list[str]:
    seen: dict[str, None] = {}
    for paths in lists:
        for path in paths:
            seen.setdefault(path, None)
    return list(seen)


@dataclass
class LoopResult:
    """Totals across every pass of a run.

    Attributes:
        total_detected: Missing-reference diagnostics seen, summed over passes.
        total_resolved: Diagnostics resolved by written revisions.
        passes_run: Number of passes that had diagnostics to work on.
        termination_reason: Why the loop stopped.
        passes: Per-pass results, in order.
    """

    total_detected: int = 0
    total_resolved: int = 0
    passes_run: int = 0
    termination_reason: TerminationReason = TerminationReason.CONVERGED
    passes: list[PassResult] = field(default_factory=list)

    @property
    def changed_documents(self) -> list[str]:
        """Every path written during the run, in first-write order."""
        return _union([p.changed_documents for p in self.passes])

    @property
    def documents_skipped_as_harmful(self) -> list[str]:
        """Paths rejected as harmful in at least one pass."""
        return _union([p.documents_skipped_as_harmful for p in self.passes])

    @property
    def documents_skipped(self) -> list[str]:
        """Paths that could not be analysed in at least one pass."""
        return _union([p.documents_skipped for p in self.passes])

    def add_pass(self, result: PassResult) -> None:
        """Fold one pass into the running totals."""
        self.passes.append(result)
        self.passes_run += 1
        self.total_detected += result.detected_count
        self.total_resolved += result.resolved_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_detected": self.total_detected,
            "total_resolved": self.total_resolved,
            "passes_run": self.passes_run,
            "termination_reason": self.termination_reason.value,
            "changed_documents": self.changed_documents,
            "documents_skipped_as_harmful": self.documents_skipped_as_harmful,
            "documents_skipped": self.documents_skipped,
            "passes": [p.to_dict() for p in self.passes],
        }


class ConvergenceLoop:
    """Top-level driver that runs passes until convergence or budget.

    Example:
        >>> loop = ConvergenceLoop(controller)
        >>> result = loop.run(Path("my_project"), loop_until_no_change=True)
        >>> result.termination_reason
        <TerminationReason.CONVERGED: 'converged'>
    """

    def __init__(self, controller: PassController) -> None:
        self.controller = controller

    def run(
        self,
        project_path: Path,
        loop_until_no_change: bool = False,
        max_passes: int = DEFAULT_MAX_PASSES,
        cancellation: CancellationToken | None = None,
    ) -> LoopResult:
        """Run passes over the project.

        A compilation without missing-reference diagnostics ends the run:
        with reason NO_DIAGNOSTICS_ON_FIRST_PASS if it is the first one,
        CONVERGED otherwise. Such a compilation is not counted as a pass.
        When the budget is spent, one more compilation decides between
        CONVERGED and MAX_PASSES_REACHED; it is not counted either.

        Args:
            project_path: Project to repair.
            loop_until_no_change: Keep running passes until one changes
                nothing. When False, exactly one pass runs.
            max_passes: Upper bound on passes. Values below 1 mean one pass.
            cancellation: Optional token checked before each pass.

        Returns:
            LoopResult with totals and the termination reason.

        Raises:
            ProjectLoadError: If the project cannot be opened.
            CompilationFailure: If the project cannot be compiled.
            RepairCancelled: If cancellation is requested.
        """
        max_passes = max(max_passes, 1)
        result = LoopResult()

        while True:
            check_cancelled(cancellation)

            pass_number = result.passes_run + 1
            logger.info("Starting pass %d...", pass_number)
            pass_result = self.controller.run_pass(project_path, pass_number, cancellation)

            if pass_result.detected_count == 0:
                if result.passes_run == 0:
                    logger.info("No missing-import diagnostics detected.")
                    result.termination_reason = TerminationReason.NO_DIAGNOSTICS_ON_FIRST_PASS
                else:
                    result.termination_reason = TerminationReason.CONVERGED
                break

            result.add_pass(pass_result)

            if not loop_until_no_change:
                result.termination_reason = TerminationReason.SINGLE_PASS_ONLY
                break

            if not pass_result.changed:
                result.termination_reason = TerminationReason.CONVERGED
                break

            if result.passes_run >= max_passes:
                # A budget-ending pass may still have fixed everything
                check_cancelled(cancellation)
                if self.controller.count_missing_references(project_path) == 0:
                    result.termination_reason = TerminationReason.CONVERGED
                    break
                logger.warning(
                    "Maximum number of passes (%d) reached. Stopping iteration.",
                    max_passes,
                )
                result.termination_reason = TerminationReason.MAX_PASSES_REACHED
                break

            logger.info("Changes detected. Preparing for next pass...")

        logger.info("Completed adding missing imports.")
        logger.info("Total missing import diagnostics found: %d", result.total_detected)
        logger.info("Total diagnostics resolved: %d", result.total_resolved)
        return result
