"""Tests for importfix configuration management."""

from __future__ import annotations

from pathlib import Path
from typing import get_args

import pytest

from importfix.config import (
    EDIT_POLICIES,
    EditPolicy,
    RepairConfig,
    find_config_file,
    load_config,
)


class TestRepairConfig:
    """Tests for the RepairConfig dataclass."""

    def test_default_values(self) -> None:
        """Test that default values are set correctly."""
        config = RepairConfig()
        assert config.max_passes == 5
        assert config.loop_until_no_change is False
        assert config.fix_provider == "add-import"
        assert config.formatter == "import-block"
        assert config.edit_policy == "all"
        assert config.exclude == []
        assert config.known_imports == {}
        assert config.sort_imports is True
        assert config.encoding == "utf-8"

    def test_edit_policies_match_literal(self) -> None:
        """Test that the accepted edit policies are exactly the EditPolicy values."""
        assert EDIT_POLICIES == get_args(EditPolicy)

    def test_non_positive_max_passes_allowed(self) -> None:
        """Test that a budget below one is accepted (it means one pass)."""
        assert RepairConfig(max_passes=0).max_passes == 0

    @pytest.mark.parametrize(
        ("kwargs", "message"),
        [
            ({"max_passes": "5"}, "max_passes must be an integer"),
            ({"max_passes": True}, "max_passes must be an integer"),
            ({"loop_until_no_change": "yes"}, "loop_until_no_change must be a boolean"),
            ({"fix_provider": ""}, "fix_provider must be a non-empty string"),
            ({"formatter": ""}, "formatter must be a non-empty string"),
            ({"edit_policy": "best"}, "edit_policy must be one of: all, first"),
            ({"exclude": "build"}, "exclude must be a list"),
            ({"known_imports": {"Path": ""}}, "known_imports must map"),
            ({"sort_imports": 1}, "sort_imports must be a boolean"),
            ({"encoding": ""}, "encoding must be a non-empty string"),
        ],
    )
    def test_validation(self, kwargs: dict, message: str) -> None:
        """Test that invalid values are rejected."""
        with pytest.raises(ValueError, match=message):
            RepairConfig(**kwargs)


class TestFindConfigFile:
    """Tests for find_config_file."""

    def test_find_in_current_dir(self, tmp_path: Path) -> None:
        """Test finding the config file in the start directory."""
        (tmp_path / ".importfixrc").write_text("max_passes = 2\n")
        assert find_config_file(start_dir=tmp_path) == tmp_path / ".importfixrc"

    def test_find_in_parent_dir(self, tmp_path: Path) -> None:
        """Test finding the config file in a parent directory."""
        (tmp_path / ".importfixrc").write_text("")
        child = tmp_path / "a" / "b"
        child.mkdir(parents=True)
        assert find_config_file(start_dir=child) == tmp_path.resolve() / ".importfixrc"

    def test_not_found(self, tmp_path: Path) -> None:
        """Test that a missing file yields None."""
        assert find_config_file("no-such-file.toml", start_dir=tmp_path) is None


class TestLoadConfig:
    """Tests for load_config and its sources."""

    def test_defaults(self, tmp_path: Path) -> None:
        """Test that no sources means defaults."""
        assert load_config(start_dir=tmp_path) == RepairConfig()

    def test_importfixrc(self, tmp_path: Path) -> None:
        """Test loading from .importfixrc, ignoring unknown keys."""
        (tmp_path / ".importfixrc").write_text(
            'max_passes = 3\nloop_until_no_change = true\nexclude = ["gen"]\nunknown = 1\n'
        )
        config = load_config(start_dir=tmp_path)
        assert config.max_passes == 3
        assert config.loop_until_no_change is True
        assert config.exclude == ["gen"]

    def test_pyproject_kebab_case(self, tmp_path: Path) -> None:
        """Test loading the [tool.importfix] section with kebab-case keys."""
        (tmp_path / "pyproject.toml").write_text(
            "[tool.importfix]\n"
            "max-passes = 7\n"
            'edit-policy = "first"\n'
            "[tool.importfix.known-imports]\n"
            'Frame = "pandas"\n'
        )
        config = load_config(start_dir=tmp_path)
        assert config.max_passes == 7
        assert config.edit_policy == "first"
        assert config.known_imports == {"Frame": "pandas"}

    def test_invalid_toml_ignored(self, tmp_path: Path) -> None:
        """Test that an unreadable config file is ignored."""
        (tmp_path / ".importfixrc").write_text("max_passes = = 3\n")
        assert load_config(start_dir=tmp_path).max_passes == 5

    def test_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test loading from IMPORTFIX_* variables."""
        monkeypatch.setenv("IMPORTFIX_MAX_PASSES", "9")
        monkeypatch.setenv("IMPORTFIX_LOOP_UNTIL_NO_CHANGE", "yes")
        monkeypatch.setenv("IMPORTFIX_SORT_IMPORTS", "off")
        monkeypatch.setenv("IMPORTFIX_FIX_PROVIDER", "pkg.mod:Provider")
        monkeypatch.setenv("IMPORTFIX_EXCLUDE", "gen, build ,")

        config = load_config(start_dir=tmp_path)

        assert config.max_passes == 9
        assert config.loop_until_no_change is True
        assert config.sort_imports is False
        assert config.fix_provider == "pkg.mod:Provider"
        assert config.exclude == ["gen", "build"]

    def test_env_bad_integer(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a non-numeric IMPORTFIX_MAX_PASSES is an error."""
        monkeypatch.setenv("IMPORTFIX_MAX_PASSES", "many")
        with pytest.raises(ValueError, match="IMPORTFIX_MAX_PASSES must be an integer"):
            load_config(start_dir=tmp_path)

    def test_env_bad_boolean(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that an unrecognised boolean is an error."""
        monkeypatch.setenv("IMPORTFIX_LOOP_UNTIL_NO_CHANGE", "sometimes")
        with pytest.raises(ValueError, match="IMPORTFIX_LOOP_UNTIL_NO_CHANGE must be a boolean"):
            load_config(start_dir=tmp_path)

    def test_precedence(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test CLI > env > .importfixrc > pyproject.toml > defaults."""
        (tmp_path / "pyproject.toml").write_text(
            '[tool.importfix]\nmax_passes = 2\nformatter = "pyproject"\n'
            'encoding = "latin-1"\nfix_provider = "pyproject"\n'
        )
        (tmp_path / ".importfixrc").write_text(
            'formatter = "rc"\nfix_provider = "rc"\nmax_passes = 3\n'
        )
        monkeypatch.setenv("IMPORTFIX_FIX_PROVIDER", "env")
        monkeypatch.setenv("IMPORTFIX_MAX_PASSES", "4")

        config = load_config(
            cli_overrides={"max_passes": 8, "edit_policy": None}, start_dir=tmp_path
        )

        assert config.max_passes == 8
        assert config.fix_provider == "env"
        assert config.formatter == "rc"
        assert config.encoding == "latin-1"
        assert config.edit_policy == "all"

    def test_invalid_override(self, tmp_path: Path) -> None:
        """Test that an invalid merged configuration is rejected."""
        with pytest.raises(ValueError, match="edit_policy"):
            load_config(cli_overrides={"edit_policy": "best"}, start_dir=tmp_path)
