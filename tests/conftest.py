"""Pytest configuration and fixtures for importfix tests."""

import os

# Set a fixed terminal width to prevent line wrapping issues in CI
# This must be set before any Rich imports
os.environ.setdefault("COLUMNS", "200")
os.environ.setdefault("LINES", "50")
# Disable Rich's terminal detection to ensure consistent output
os.environ.setdefault("TERM", "dumb")

import pytest  # noqa: E402

from fakes import FakeCompilerService, FakeFixProvider, FakeWriter, IdentityFormatter  # noqa: E402


@pytest.fixture
def compiler() -> FakeCompilerService:
    return FakeCompilerService()


@pytest.fixture
def provider() -> FakeFixProvider:
    return FakeFixProvider()


@pytest.fixture
def formatter() -> IdentityFormatter:
    return IdentityFormatter()


@pytest.fixture
def writer(compiler: FakeCompilerService) -> FakeWriter:
    return FakeWriter(compiler)


@pytest.fixture(autouse=True)
def _clean_importfix_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep IMPORTFIX_* variables from the outer environment out of tests."""
    for var in list(os.environ):
        if var.startswith("IMPORTFIX_"):
            monkeypatch.delenv(var)
