"""Tests for the convergence loop."""

from __future__ import annotations

import pytest

from fakes import (
    FAKE_ROOT,
    ChurnFixProvider,
    FakeCompilerService,
    FakeFixProvider,
    FakeWriter,
    IdentityFormatter,
)
from importfix.errors import CompilationFailure, ProjectLoadError, RepairCancelled
from importfix.repair.cancellation import CancellationToken
from importfix.repair.document_fixer import DocumentFixer
from importfix.repair.loop import ConvergenceLoop, LoopResult, TerminationReason
from importfix.repair.pass_controller import PassController, PassResult
from importfix.services.base import FixProvider


def _loop(
    compiler: FakeCompilerService,
    provider: FixProvider,
    writer: FakeWriter,
) -> ConvergenceLoop:
    fixer = DocumentFixer(compiler, provider, IdentityFormatter())
    return ConvergenceLoop(PassController(compiler, fixer, writer))


# -----------------------------------------------------------------------------
# LoopResult Tests
# -----------------------------------------------------------------------------


class TestLoopResult:
    """Tests for the LoopResult dataclass."""

    def test_add_pass_accumulates_totals(self) -> None:
        """Test that totals are summed over passes."""
        result = LoopResult()
        result.add_pass(PassResult(1, detected_count=3, resolved_count=2))
        result.add_pass(PassResult(2, detected_count=1, resolved_count=1))

        assert result.passes_run == 2
        assert result.total_detected == 4
        assert result.total_resolved == 3

    def test_path_lists_are_unions(self) -> None:
        """Test that per-pass paths are merged without duplicates."""
        result = LoopResult()
        result.add_pass(
            PassResult(1, changed_documents=["a.py"], documents_skipped_as_harmful=["b.py"])
        )
        result.add_pass(
            PassResult(2, changed_documents=["a.py", "c.py"], documents_skipped=["d.py"])
        )

        assert result.changed_documents == ["a.py", "c.py"]
        assert result.documents_skipped_as_harmful == ["b.py"]
        assert result.documents_skipped == ["d.py"]

    def test_to_dict(self) -> None:
        """Test serialization of a loop result."""
        result = LoopResult(termination_reason=TerminationReason.MAX_PASSES_REACHED)
        result.add_pass(PassResult(1, detected_count=1))

        data = result.to_dict()

        assert data["termination_reason"] == "max_passes_reached"
        assert data["passes_run"] == 1
        assert data["passes"] == [PassResult(1, detected_count=1).to_dict()]


# -----------------------------------------------------------------------------
# ConvergenceLoop Tests
# -----------------------------------------------------------------------------


class TestConvergenceLoop:
    """Tests for ConvergenceLoop.run."""

    def test_no_diagnostics_on_first_pass(
        self, compiler: FakeCompilerService, provider: FakeFixProvider, writer: FakeWriter
    ) -> None:
        """Test that a clean project finishes without running a pass."""
        compiler.files = {"a.py": "export A\n"}

        result = _loop(compiler, provider, writer).run(FAKE_ROOT, loop_until_no_change=True)

        assert result.termination_reason is TerminationReason.NO_DIAGNOSTICS_ON_FIRST_PASS
        assert result.passes_run == 0
        assert result.total_detected == 0
        assert writer.writes == []
        assert compiler.compile_count == 1

    def test_single_document_fixed(
        self, compiler: FakeCompilerService, writer: FakeWriter
    ) -> None:
        """Test fixing one unresolved reference on line 3."""
        compiler.files = {"a.py": "x\nx\nuse Path\n"}

        result = _loop(compiler, FakeFixProvider({"Path": 1}), writer).run(
            FAKE_ROOT, loop_until_no_change=True
        )

        assert result.termination_reason is TerminationReason.CONVERGED
        assert result.passes_run == 1
        assert result.total_resolved == 1
        assert result.changed_documents == ["a.py"]
        assert compiler.files["a.py"] == "import Path\nx\nx\nuse Path\n"

    def test_harmful_fix_leaves_document_unchanged(
        self, compiler: FakeCompilerService, writer: FakeWriter
    ) -> None:
        """Test that a fix introducing ambiguity is reported and not written."""
        compiler.files = {"a.py": "use Path\n"}

        result = _loop(compiler, FakeFixProvider({"Path": 2}), writer).run(
            FAKE_ROOT, loop_until_no_change=True
        )

        assert result.total_resolved == 0
        assert result.documents_skipped_as_harmful == ["a.py"]
        assert result.changed_documents == []
        assert compiler.files["a.py"] == "use Path\n"
        assert writer.writes == []
        # Nothing changed, so there is nothing a further pass could do
        assert result.termination_reason is TerminationReason.CONVERGED
        assert result.passes_run == 1

    def test_fix_depending_on_earlier_fix(
        self, compiler: FakeCompilerService, writer: FakeWriter
    ) -> None:
        """Test that a document fixable only after another lands takes two passes."""
        compiler.files = {
            "a.py": "use Log\nexport Helper\n",
            "b.py": "use Helper\n",
        }

        result = _loop(compiler, FakeFixProvider({"Log": 1}), writer).run(
            FAKE_ROOT, loop_until_no_change=True
        )

        assert result.termination_reason is TerminationReason.CONVERGED
        assert result.passes_run == 2
        assert result.changed_documents == ["a.py", "b.py"]
        assert result.total_resolved == 2
        assert result.passes[0].changed_documents == ["a.py"]
        assert result.passes[1].changed_documents == ["b.py"]
        assert compiler.files["b.py"] == "import Helper\nuse Helper\n"

    @pytest.mark.parametrize("max_passes", [3, 5])
    def test_converges_in_exactly_k_passes(
        self, compiler: FakeCompilerService, writer: FakeWriter, max_passes: int
    ) -> None:
        """Test that a chain resolvable in k passes converges after k passes."""
        compiler.files = {
            "a.py": "use Log\nexport A\n",
            "b.py": "use A\nexport B\n",
            "c.py": "use B\n",
        }

        result = _loop(compiler, FakeFixProvider({"Log": 1}), writer).run(
            FAKE_ROOT, loop_until_no_change=True, max_passes=max_passes
        )

        assert result.termination_reason is TerminationReason.CONVERGED
        assert result.passes_run == 3
        assert result.total_resolved == 3

    def test_pass_budget_respected(
        self, compiler: FakeCompilerService, writer: FakeWriter
    ) -> None:
        """Test that a never-resolving project stops after max_passes."""
        compiler.files = {"a.py": "use Never\n"}

        result = _loop(compiler, ChurnFixProvider(), writer).run(
            FAKE_ROOT, loop_until_no_change=True, max_passes=3
        )

        assert result.termination_reason is TerminationReason.MAX_PASSES_REACHED
        assert result.passes_run == 3
        assert result.total_resolved == 0
        assert len(writer.writes) == 3

    @pytest.mark.parametrize("max_passes", [0, -2])
    def test_non_positive_budget_runs_one_pass(
        self, compiler: FakeCompilerService, writer: FakeWriter, max_passes: int
    ) -> None:
        """Test that a budget below one still runs exactly one pass."""
        compiler.files = {"a.py": "use Never\n"}

        result = _loop(compiler, ChurnFixProvider(), writer).run(
            FAKE_ROOT, loop_until_no_change=True, max_passes=max_passes
        )

        assert result.passes_run == 1
        assert result.termination_reason is TerminationReason.MAX_PASSES_REACHED

    def test_single_pass_mode_with_changes(
        self, compiler: FakeCompilerService, writer: FakeWriter
    ) -> None:
        """Test that exactly one pass runs when not looping, even with work left."""
        compiler.files = {
            "a.py": "use Log\nexport Helper\n",
            "b.py": "use Helper\n",
        }

        result = _loop(compiler, FakeFixProvider({"Log": 1}), writer).run(FAKE_ROOT)

        assert result.termination_reason is TerminationReason.SINGLE_PASS_ONLY
        assert result.passes_run == 1
        assert result.changed_documents == ["a.py"]
        assert compiler.compile_count == 1

    def test_single_pass_mode_without_changes(
        self, compiler: FakeCompilerService, provider: FakeFixProvider, writer: FakeWriter
    ) -> None:
        """Test single-pass mode when nothing could be fixed."""
        compiler.files = {"a.py": "use Unknown\n"}

        result = _loop(compiler, provider, writer).run(FAKE_ROOT, loop_until_no_change=False)

        assert result.termination_reason is TerminationReason.SINGLE_PASS_ONLY
        assert result.passes_run == 1
        assert result.total_detected == 1

    def test_unchanged_pass_converges(
        self, compiler: FakeCompilerService, provider: FakeFixProvider, writer: FakeWriter
    ) -> None:
        """Test that a looping run stops once a pass changes nothing."""
        compiler.files = {"a.py": "use Unknown\n"}

        result = _loop(compiler, provider, writer).run(FAKE_ROOT, loop_until_no_change=True)

        assert result.termination_reason is TerminationReason.CONVERGED
        assert result.passes_run == 1
        assert compiler.compile_count == 1

    def test_each_pass_opens_its_own_project(
        self, compiler: FakeCompilerService, writer: FakeWriter
    ) -> None:
        """Test that project handles are never reused across passes."""
        compiler.files = {
            "a.py": "use Log\nexport Helper\n",
            "b.py": "use Helper\n",
        }

        _loop(compiler, FakeFixProvider({"Log": 1}), writer).run(
            FAKE_ROOT, loop_until_no_change=True
        )

        assert len(compiler.opened) == 3
        assert len({id(p) for p in compiler.opened}) == 3
        assert all(p.closed for p in compiler.opened)

    def test_load_failure_on_first_pass(
        self, compiler: FakeCompilerService, provider: FakeFixProvider, writer: FakeWriter
    ) -> None:
        """Test that a project that cannot be loaded fails the run."""
        compiler.missing = True

        with pytest.raises(ProjectLoadError):
            _loop(compiler, provider, writer).run(FAKE_ROOT)

    def test_compilation_failure_on_later_pass(
        self, compiler: FakeCompilerService, writer: FakeWriter
    ) -> None:
        """Test that a later compilation failure propagates and keeps earlier writes."""
        compiler.files = {
            "a.py": "use Log\nexport Helper\n",
            "b.py": "use Helper\n",
        }
        compiler.fail_on_compile = 2

        with pytest.raises(CompilationFailure):
            _loop(compiler, FakeFixProvider({"Log": 1}), writer).run(
                FAKE_ROOT, loop_until_no_change=True
            )
        assert compiler.files["a.py"] == "import Log\nuse Log\nexport Helper\n"

    def test_cancellation_before_first_pass(
        self, compiler: FakeCompilerService, provider: FakeFixProvider, writer: FakeWriter
    ) -> None:
        """Test that a cancelled token stops the loop before compiling."""
        compiler.files = {"a.py": "use Path\n"}
        token = CancellationToken()
        token.cancel()

        with pytest.raises(RepairCancelled):
            _loop(compiler, provider, writer).run(FAKE_ROOT, cancellation=token)
        assert compiler.compile_count == 0
