"""importfix - repair missing-import diagnostics with a fix-and-verify loop."""

from __future__ import annotations

__version__ = "0.1.0"
