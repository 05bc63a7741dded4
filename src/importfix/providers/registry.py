"""Registries for looking up fix providers and formatters by name.

A repair run resolves its fix provider and formatter once, at startup.
Names are looked up in the registry first; a ``module:attribute``
reference is imported instead. Anything that cannot be resolved is a
ConfigurationError, which aborts the run before any pass starts.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable
from typing import Generic, TypeVar

from importfix.config import RepairConfig
from importfix.errors import ConfigurationError
from importfix.services.base import FixProvider, Formatter

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CapabilityRegistry(Generic[T]):
    """Registry that maps names to factories building a capability.

    Example:
        >>> registry = CapabilityRegistry[FixProvider]("fix provider")
        >>> registry.register("add-import", lambda config: AddImportFixProvider())
        >>> provider = registry.get("add-import", config)
    """

    def __init__(self, kind: str) -> None:
        """Initialize an empty registry.

        Args:
            kind: Human-readable capability kind, used in error messages.
        """
        self.kind = kind
        self._factories: dict[str, Callable[[RepairConfig], T]] = {}

    def register(self, name: str, factory: Callable[[RepairConfig], T]) -> None:
        """Register a factory under a name.

        Raises:
            ValueError: If the name is empty or already registered.
        """
        if not name:
            raise ValueError(f"Cannot register a {self.kind} without a name")
        if name in self._factories:
            raise ValueError(f"{self.kind.capitalize()} '{name}' is already registered")
        self._factories[name] = factory

    def get(self, name: str, config: RepairConfig) -> T | None:
        """Build the capability registered under ``name``, or None."""
        factory = self._factories.get(name)
        if factory is None:
            return None
        return factory(config)

    def has(self, name: str) -> bool:
        return name in self._factories

    def list_names(self) -> list[str]:
        """Sorted list of registered names."""
        return sorted(self._factories)


_provider_registry: CapabilityRegistry[FixProvider] | None = None
_formatter_registry: CapabilityRegistry[Formatter] | None = None


def get_provider_registry() -> CapabilityRegistry[FixProvider]:
    """Get the global fix provider registry, populated with built-ins."""
    global _provider_registry
    if _provider_registry is None:
        # Import here to avoid circular imports
        from importfix.python.fix_provider import AddImportFixProvider

        registry = CapabilityRegistry[FixProvider]("fix provider")
        registry.register(
            AddImportFixProvider.name,
            lambda config: AddImportFixProvider(config.known_imports),
        )
        _provider_registry = registry
    return _provider_registry


def get_formatter_registry() -> CapabilityRegistry[Formatter]:
    """Get the global formatter registry, populated with built-ins."""
    global _formatter_registry
    if _formatter_registry is None:
        from importfix.python.formatter import ImportBlockFormatter

        registry = CapabilityRegistry[Formatter]("formatter")
        registry.register(
            ImportBlockFormatter.name,
            lambda config: ImportBlockFormatter(sort_imports=config.sort_imports),
        )
        _formatter_registry = registry
    return _formatter_registry


def _load_reference(reference: str, kind: str) -> object:
    """Import the object named by a ``module:attribute`` reference.

    Raises:
        ConfigurationError: If the module or attribute cannot be found.
    """
    module_name, _, attribute = reference.partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(
            f"Unknown {kind} '{reference}'. Use a registered name or 'module:attribute'."
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import {kind} module '{module_name}': {e}") from e
    try:
        return getattr(module, attribute)
    except AttributeError as e:
        raise ConfigurationError(
            f"Module '{module_name}' has no {kind} named '{attribute}'"
        ) from e


def _resolve(
    reference: str,
    config: RepairConfig,
    registry: CapabilityRegistry[T],
    base: type,
) -> T:
    found = registry.get(reference, config)
    if found is not None:
        return found

    obj = _load_reference(reference, registry.kind)
    try:
        if isinstance(obj, type) and issubclass(obj, base):
            instance = obj()
        elif callable(obj) and not isinstance(obj, type):
            instance = obj(config)
        else:
            instance = obj
    except TypeError as e:
        raise ConfigurationError(f"Cannot instantiate {registry.kind} '{reference}': {e}") from e
    if not isinstance(instance, base):
        raise ConfigurationError(
            f"'{reference}' does not provide a {registry.kind} "
            f"(got {type(instance).__name__})"
        )
    logger.debug("Resolved %s '%s' by import", registry.kind, reference)
    return instance  # type: ignore[return-value]


def resolve_fix_provider(reference: str, config: RepairConfig) -> FixProvider:
    """Resolve a fix provider by registered name or ``module:attribute``.

    A referenced class is instantiated without arguments; a referenced
    function is called with the configuration.

    Raises:
        ConfigurationError: If no fix provider can be resolved.
    """
    return _resolve(reference, config, get_provider_registry(), FixProvider)


def resolve_formatter(reference: str, config: RepairConfig) -> Formatter:
    """Resolve a formatter by registered name or ``module:attribute``.

    Raises:
        ConfigurationError: If no formatter can be resolved.
    """
    return _resolve(reference, config, get_formatter_registry(), Formatter)
