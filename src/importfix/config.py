"""Configuration management for importfix.

Handles configuration loading from multiple sources with precedence:
CLI args > environment variables > .importfixrc > pyproject.toml > defaults
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Literal

EditPolicy = Literal["all", "first"]

EDIT_POLICIES: tuple[EditPolicy, ...] = ("all", "first")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class RepairConfig:
    """Configuration for a repair run.

    Attributes:
        max_passes: Upper bound on passes when looping (default: 5).
        loop_until_no_change: Keep running passes until one changes
            nothing (default: False, one pass).
        fix_provider: Registered fix provider name or a ``module:attribute``
            reference (default: "add-import").
        formatter: Registered formatter name (default: "import-block").
        edit_policy: "all" applies every candidate edit proposed for a
            diagnostic, "first" only the first (default: "all").
        exclude: Extra directory names skipped during source discovery.
        known_imports: Name -> module mapping offered by the add-import
            provider, on top of its built-in table.
        sort_imports: Whether the formatter sorts the leading import block.
        encoding: Encoding used to read and write source files.
    """

    max_passes: int = 5
    loop_until_no_change: bool = False
    fix_provider: str = "add-import"
    formatter: str = "import-block"
    edit_policy: EditPolicy = "all"
    exclude: list[str] = field(default_factory=list)
    known_imports: dict[str, str] = field(default_factory=dict)
    sort_imports: bool = True
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If any configuration value is invalid.
        """
        if isinstance(self.max_passes, bool) or not isinstance(self.max_passes, int):
            raise ValueError("max_passes must be an integer")

        if not isinstance(self.loop_until_no_change, bool):
            raise ValueError("loop_until_no_change must be a boolean")

        if not self.fix_provider or not isinstance(self.fix_provider, str):
            raise ValueError("fix_provider must be a non-empty string")

        if not self.formatter or not isinstance(self.formatter, str):
            raise ValueError("formatter must be a non-empty string")

        if self.edit_policy not in EDIT_POLICIES:
            raise ValueError(f"edit_policy must be one of: {', '.join(EDIT_POLICIES)}")

        if not isinstance(self.exclude, list) or not all(
            isinstance(e, str) and e for e in self.exclude
        ):
            raise ValueError("exclude must be a list of non-empty strings")

        if not isinstance(self.known_imports, dict) or not all(
            isinstance(k, str) and isinstance(v, str) and k and v
            for k, v in self.known_imports.items()
        ):
            raise ValueError("known_imports must map names to module names")

        if not isinstance(self.sort_imports, bool):
            raise ValueError("sort_imports must be a boolean")

        if not self.encoding or not isinstance(self.encoding, str):
            raise ValueError("encoding must be a non-empty string")


def _get_config_field_names() -> set[str]:
    """Get the set of valid configuration field names.

    Returns:
        Set of field names from RepairConfig.
    """
    return {f.name for f in fields(RepairConfig)}


def find_config_file(filename: str = ".importfixrc", start_dir: Path | None = None) -> Path | None:
    """Find a configuration file by traversing up the directory tree.

    Args:
        filename: Name of the config file to find.
        start_dir: Directory to start searching from. Defaults to current directory.

    Returns:
        Path to the config file if found, None otherwise.
    """
    current = start_dir or Path.cwd()
    current = current.resolve()

    while True:
        config_path = current / filename
        if config_path.is_file():
            return config_path

        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Load a TOML file and return its contents.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
    """
    with open(path, "rb") as f:
        result: dict[str, Any] = tomllib.load(f)
        return result


def _load_from_importfixrc(start_dir: Path | None = None) -> dict[str, Any]:
    """Load configuration from a .importfixrc file.

    Args:
        start_dir: Directory to start searching from.

    Returns:
        Dictionary containing configuration from .importfixrc, or empty dict if not found.
    """
    config_path = find_config_file(".importfixrc", start_dir)
    if config_path is None:
        return {}

    try:
        data = _load_toml_file(config_path)
        valid_fields = _get_config_field_names()
        return {k: v for k, v in data.items() if k in valid_fields}
    except (tomllib.TOMLDecodeError, OSError):
        return {}


def _load_from_pyproject(start_dir: Path | None = None) -> dict[str, Any]:
    """Load configuration from the pyproject.toml [tool.importfix] section.

    Args:
        start_dir: Directory to start searching from.

    Returns:
        Dictionary containing configuration from pyproject.toml, or empty dict if not found.
    """
    config_path = find_config_file("pyproject.toml", start_dir)
    if config_path is None:
        return {}

    try:
        data = _load_toml_file(config_path)
        section = data.get("tool", {}).get("importfix", {})
        # Accept kebab-case keys, as is common in pyproject.toml
        section = {k.replace("-", "_"): v for k, v in section.items()}

        valid_fields = _get_config_field_names()
        return {k: v for k, v in section.items() if k in valid_fields}
    except (tomllib.TOMLDecodeError, OSError):
        return {}


def _parse_bool(value: str, env_var: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{env_var} must be a boolean, got {value!r}")


def _load_from_env() -> dict[str, Any]:
    """Load configuration from environment variables.

    Environment variables are prefixed with IMPORTFIX_ and use uppercase
    names, e.g. IMPORTFIX_MAX_PASSES, IMPORTFIX_LOOP_UNTIL_NO_CHANGE.
    IMPORTFIX_EXCLUDE is a comma-separated list.

    Returns:
        Dictionary containing configuration from environment variables.

    Raises:
        ValueError: If a numeric or boolean variable cannot be parsed.
    """
    result: dict[str, Any] = {}

    for name in ("fix_provider", "formatter", "edit_policy", "encoding"):
        value = os.environ.get(f"IMPORTFIX_{name.upper()}")
        if value is not None:
            result[name] = value

    max_passes = os.environ.get("IMPORTFIX_MAX_PASSES")
    if max_passes is not None:
        try:
            result["max_passes"] = int(max_passes)
        except ValueError as e:
            raise ValueError(
                f"IMPORTFIX_MAX_PASSES must be an integer, got {max_passes!r}"
            ) from e

    for name in ("loop_until_no_change", "sort_imports"):
        env_var = f"IMPORTFIX_{name.upper()}"
        value = os.environ.get(env_var)
        if value is not None:
            result[name] = _parse_bool(value, env_var)

    exclude = os.environ.get("IMPORTFIX_EXCLUDE")
    if exclude is not None:
        result["exclude"] = [e.strip() for e in exclude.split(",") if e.strip()]

    return result


def _merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Merge multiple configuration dictionaries.

    Later dictionaries take precedence over earlier ones.
    """
    result: dict[str, Any] = {}
    for config in configs:
        for key, value in config.items():
            if value is not None:
                result[key] = value
    return result


def load_config(
    cli_overrides: dict[str, Any] | None = None,
    start_dir: Path | None = None,
) -> RepairConfig:
    """Load configuration with full precedence chain.

    Precedence (highest to lowest):
    1. CLI arguments (cli_overrides)
    2. Environment variables (IMPORTFIX_*)
    3. .importfixrc file
    4. pyproject.toml [tool.importfix] section
    5. Default values

    Args:
        cli_overrides: Configuration overrides from CLI arguments.
        start_dir: Directory to start searching for config files.

    Returns:
        Fully resolved RepairConfig instance.

    Raises:
        ValueError: If the resulting configuration is invalid.
    """
    pyproject_config = _load_from_pyproject(start_dir)
    rc_config = _load_from_importfixrc(start_dir)
    env_config = _load_from_env()
    cli_config = cli_overrides or {}

    valid_fields = _get_config_field_names()
    cli_config = {k: v for k, v in cli_config.items() if k in valid_fields and v is not None}

    merged = _merge_configs(
        pyproject_config,
        rc_config,
        env_config,
        cli_config,
    )

    return RepairConfig(**merged)
