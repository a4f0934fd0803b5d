"""Tests for effective folder trust resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from mcp_token_vault.config import AppSettings, FolderTrustSettings, SecuritySettings
from mcp_token_vault.constants import IDE_WORKSPACE_TRUST_ENV
from mcp_token_vault.trust.resolver import inspect_trust, is_path_trusted, is_workspace_trusted
from mcp_token_vault.trust.trusted_folders import TrustedFolders, TrustLevel


def _settings(enabled: bool = True) -> AppSettings:
    return AppSettings(security=SecuritySettings(folder_trust=FolderTrustSettings(enabled=enabled)))


@pytest.fixture
def work(tmp_path: Path) -> Path:
    """A nested folder layout: <tmp>/work/repo/pkg."""
    return tmp_path / "work"


# ============================================================================
# Tests: is_path_trusted
# ============================================================================


class TestIsPathTrusted:
    """Rule-only resolution."""

    def test_no_rules_is_undecided(self, work: Path) -> None:
        assert is_path_trusted(work, {}) is None

    def test_exact_trust_folder(self, work: Path) -> None:
        assert is_path_trusted(work, {str(work): TrustLevel.TRUST_FOLDER}) is True

    def test_exact_do_not_trust(self, work: Path) -> None:
        assert is_path_trusted(work, {str(work): TrustLevel.DO_NOT_TRUST}) is False

    def test_trust_folder_inherited_by_descendants(self, work: Path) -> None:
        """Given TRUST_FOLDER on an ancestor, a nested folder is trusted."""
        assert is_path_trusted(work / "repo" / "pkg", {str(work): TrustLevel.TRUST_FOLDER}) is True

    def test_trust_parent_trusts_parent_and_siblings(self, work: Path) -> None:
        """Given TRUST_PARENT on work/repo, work and work/other are trusted."""
        # Arrange
        rules = {str(work / "repo"): TrustLevel.TRUST_PARENT}

        # Act & Assert
        assert is_path_trusted(work / "repo", rules) is True
        assert is_path_trusted(work, rules) is True
        assert is_path_trusted(work / "other", rules) is True

    def test_trust_parent_does_not_reach_grandparent(self, work: Path) -> None:
        """Given TRUST_PARENT on work/repo, work's parent stays undecided."""
        assert is_path_trusted(work.parent, {str(work / "repo"): TrustLevel.TRUST_PARENT}) is None

    def test_explicit_do_not_trust_beats_inherited(self, work: Path) -> None:
        """Given a trusted ancestor and DO_NOT_TRUST on the folder, it is untrusted."""
        # Arrange
        rules = {
            str(work): TrustLevel.TRUST_FOLDER,
            str(work / "repo"): TrustLevel.DO_NOT_TRUST,
        }

        # Act & Assert
        assert is_path_trusted(work / "repo", rules) is False

    def test_do_not_trust_on_ancestor_is_not_inherited(self, work: Path) -> None:
        """Given DO_NOT_TRUST on an ancestor only, a nested folder is undecided."""
        assert is_path_trusted(work / "repo", {str(work): TrustLevel.DO_NOT_TRUST}) is None

    def test_nearest_trusted_ancestor_wins_over_distant_do_not_trust(self, work: Path) -> None:
        rules = {
            str(work): TrustLevel.DO_NOT_TRUST,
            str(work / "repo"): TrustLevel.TRUST_FOLDER,
        }

        assert is_path_trusted(work / "repo" / "pkg", rules) is True

    def test_accepts_string_levels_and_unnormalized_paths(self, work: Path) -> None:
        """Given raw string levels and a path with '..', rules still apply."""
        rules = {f"{work}/repo/../": "TRUST_FOLDER"}

        assert is_path_trusted(work / "x", rules) is True  # type: ignore[arg-type]


# ============================================================================
# Tests: is_workspace_trusted
# ============================================================================


class TestIsWorkspaceTrusted:
    def test_disabled_feature_trusts_everything(self, work: Path, tmp_path: Path) -> None:
        """Given folder trust disabled, every folder is trusted regardless of rules."""
        folders = TrustedFolders(tmp_path / "tf.json", {str(work): TrustLevel.DO_NOT_TRUST})

        assert is_workspace_trusted(_settings(enabled=False), work, folders, {}) is True

    def test_rules_decide_before_ide_override(self, work: Path, tmp_path: Path) -> None:
        """Given an explicit rule, the IDE override is not consulted."""
        folders = TrustedFolders(tmp_path / "tf.json", {str(work): TrustLevel.DO_NOT_TRUST})

        assert is_workspace_trusted(_settings(), work, folders, {IDE_WORKSPACE_TRUST_ENV: "true"}) is False

    @pytest.mark.parametrize(
        "value,expected",
        [("true", True), ("false", False), ("maybe", None)],
    )
    def test_ide_override_used_when_no_rule_applies(
        self, work: Path, tmp_path: Path, value: str, expected: bool | None
    ) -> None:
        folders = TrustedFolders(tmp_path / "tf.json")

        assert is_workspace_trusted(_settings(), work, folders, {IDE_WORKSPACE_TRUST_ENV: value}) is expected

    def test_undecided_without_rules_or_override(self, work: Path, tmp_path: Path) -> None:
        folders = TrustedFolders(tmp_path / "tf.json")

        assert is_workspace_trusted(_settings(), work, folders, {}) is None


# ============================================================================
# Tests: inspect_trust
# ============================================================================


class TestInspectTrust:
    def test_explicit_trust_is_not_inherited(self, work: Path, tmp_path: Path) -> None:
        # Arrange
        folders = TrustedFolders(tmp_path / "tf.json", {str(work): TrustLevel.TRUST_FOLDER})

        # Act
        state = inspect_trust(_settings(), work, folders, {})

        # Assert
        assert state.explicit_level is TrustLevel.TRUST_FOLDER
        assert state.effective is True
        assert state.is_inherited_trust is False

    def test_ancestor_trust_is_inherited(self, work: Path, tmp_path: Path) -> None:
        """Given no explicit entry and a trusted ancestor, trust is inherited."""
        # Arrange
        folders = TrustedFolders(tmp_path / "tf.json", {str(work): TrustLevel.TRUST_FOLDER})

        # Act
        state = inspect_trust(_settings(), work / "repo", folders, {})

        # Assert
        assert state.explicit_level is None
        assert state.effective is True
        assert state.is_inherited_trust is True

    def test_ide_trust_counts_as_inherited(self, work: Path, tmp_path: Path) -> None:
        """Given trust from the IDE only, it is reported as inherited."""
        folders = TrustedFolders(tmp_path / "tf.json")

        state = inspect_trust(_settings(), work, folders, {IDE_WORKSPACE_TRUST_ENV: "true"})

        assert state.is_inherited_trust is True

    def test_untrusted_is_never_inherited(self, work: Path, tmp_path: Path) -> None:
        folders = TrustedFolders(tmp_path / "tf.json", {str(work): TrustLevel.DO_NOT_TRUST})

        state = inspect_trust(_settings(), work, folders, {})

        assert state.effective is False
        assert state.is_inherited_trust is False

    def test_disabled_trust_overrides_do_not_trust_entry(self, work: Path, tmp_path: Path) -> None:
        """Given folder trust disabled, a DO_NOT_TRUST entry is trusted and reported as inherited."""
        # Arrange
        folders = TrustedFolders(tmp_path / "tf.json", {str(work): TrustLevel.DO_NOT_TRUST})

        # Act
        state = inspect_trust(_settings(enabled=False), work, folders, {})

        # Assert
        assert state.explicit_level is TrustLevel.DO_NOT_TRUST
        assert state.effective is True
        assert state.is_inherited_trust is True
