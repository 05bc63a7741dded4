"""Name-based lookup of fix providers and formatters."""

from __future__ import annotations

from importfix.providers.registry import (
    CapabilityRegistry,
    get_formatter_registry,
    get_provider_registry,
    resolve_fix_provider,
    resolve_formatter,
)

__all__ = [
    "CapabilityRegistry",
    "get_formatter_registry",
    "get_provider_registry",
    "resolve_fix_provider",
    "resolve_formatter",
]
