"""The multi-pass fix-and-verify engine.

Components, leaf to root:

- DocumentFixer: fixes and verifies one document.
- PassController: one compile-classify-fix-verify pass over a project.
- ConvergenceLoop: repeats passes until nothing changes.
"""

from __future__ import annotations

from importfix.repair.cancellation import CancellationToken, cancel_on_interrupt
from importfix.repair.document_fixer import (
    DocumentFixer,
    FixOutcome,
    FixStatus,
    count_resolved,
)
from importfix.repair.engine import (
    build_loop,
    collect_diagnostics,
    repair_missing_references,
)
from importfix.repair.loop import (
    DEFAULT_MAX_PASSES,
    ConvergenceLoop,
    LoopResult,
    TerminationReason,
)
from importfix.repair.pass_controller import PassController, PassResult

__all__ = [
    # Cancellation
    "CancellationToken",
    "cancel_on_interrupt",
    # Document level
    "DocumentFixer",
    "FixOutcome",
    "FixStatus",
    "count_resolved",
    # Pass level
    "PassController",
    "PassResult",
    # Loop level
    "DEFAULT_MAX_PASSES",
    "ConvergenceLoop",
    "LoopResult",
    "TerminationReason",
    # Entry points
    "build_loop",
    "collect_diagnostics",
    "repair_missing_references",
]
