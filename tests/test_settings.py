"""Unit tests for settings loading and environment overrides."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from mcp_token_vault.config import (
    AppSettings,
    get_ide_workspace_trust_override,
    is_file_storage_forced,
    load_settings,
)
from mcp_token_vault.constants import FORCE_FILE_STORAGE_ENV, IDE_WORKSPACE_TRUST_ENV
from mcp_token_vault.exceptions import ConfigurationError


class TestAppSettings:
    """Tests for settings.json loading."""

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        """Given no settings file, folder trust is disabled and no log file is set."""
        # Act
        settings = load_settings(tmp_path / "settings.json")

        # Assert
        assert settings.is_folder_trust_enabled is False
        assert settings.logging.system_log_path is None

    def test_loads_camel_case_folder_trust(self, tmp_path: Path) -> None:
        # Arrange
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"security": {"folderTrust": {"enabled": True}}}))

        # Act
        settings = load_settings(path)

        # Assert
        assert settings.is_folder_trust_enabled is True

    def test_unknown_keys_are_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"ui": {"theme": "dark"}, "security": {}}))

        assert load_settings(path).is_folder_trust_enabled is False

    def test_invalid_json_raises_configuration_error(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text("{not json")

        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            load_settings(path)

    def test_wrong_type_raises_configuration_error(self, tmp_path: Path) -> None:
        """Given a non-boolean enabled flag, the error names the field."""
        # Arrange
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"security": {"folderTrust": {"enabled": "sometimes"}}}))

        # Act & Assert
        with pytest.raises(ConfigurationError, match="security.folderTrust.enabled"):
            load_settings(path)

    def test_save_round_trip(self, tmp_path: Path) -> None:
        # Arrange
        path = tmp_path / "nested" / "settings.json"
        settings = AppSettings.model_validate(
            {"security": {"folderTrust": {"enabled": True}}, "logging": {"log_dir": str(tmp_path / "logs")}}
        )

        # Act
        settings.save_to_file(path)
        loaded = load_settings(path)

        # Assert
        assert loaded == settings
        assert json.loads(path.read_text())["security"]["folderTrust"]["enabled"] is True
        assert loaded.logging.system_log_path == tmp_path / "logs" / "system.jsonl"


class TestEnvironmentOverrides:
    @pytest.mark.parametrize(
        "environ,expected",
        [
            ({}, False),
            ({FORCE_FILE_STORAGE_ENV: "true"}, True),
            ({FORCE_FILE_STORAGE_ENV: "True"}, False),
            ({FORCE_FILE_STORAGE_ENV: "1"}, False),
        ],
    )
    def test_force_file_storage(self, environ: dict[str, str], expected: bool) -> None:
        assert is_file_storage_forced(environ) is expected

    def test_force_file_storage_reads_process_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(FORCE_FILE_STORAGE_ENV, "true")

        assert is_file_storage_forced() is True

    @pytest.mark.parametrize(
        "value,expected",
        [("true", True), ("false", False), ("", None), ("yes", None)],
    )
    def test_ide_workspace_trust(self, value: str, expected: bool | None) -> None:
        assert get_ide_workspace_trust_override({IDE_WORKSPACE_TRUST_ENV: value}) is expected

    def test_ide_workspace_trust_unset(self) -> None:
        assert get_ide_workspace_trust_override({}) is None
