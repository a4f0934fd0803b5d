"""Folder trust commands for mcp-token-vault CLI.

Commands:
    permissions show        - Show trust for the current folder
    permissions set LEVEL   - Set explicit trust for the current folder
"""

from __future__ import annotations

__all__ = ["permissions"]

import asyncio

import click

from mcp_token_vault.config import load_settings
from mcp_token_vault.exceptions import ConfigurationError
from mcp_token_vault.trust.permissions import (
    FOLDER_TRUST_DISABLED_MESSAGE,
    MessageAction,
    PermissionsModifyTrust,
    permissions_command,
)
from mcp_token_vault.trust.trusted_folders import TrustLevel

from ..styling import style_dim, style_header, style_label, style_success, style_trust, style_warning

_LEVEL_CHOICES = {
    "trust-folder": TrustLevel.TRUST_FOLDER,
    "trust-parent": TrustLevel.TRUST_PARENT,
    "do-not-trust": TrustLevel.DO_NOT_TRUST,
}


def _load_modifier(cwd: str | None) -> PermissionsModifyTrust | None:
    """Build the trust modifier, or print the disabled message and return None."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    action = permissions_command(settings)
    if isinstance(action, MessageAction):
        click.echo(action.content)
        return None

    # The CLI exits right after the write; restart is reported, not performed
    return PermissionsModifyTrust(settings, cwd=cwd, relaunch=lambda: None)


@click.group()
def permissions() -> None:
    """Manage folder trust settings."""
    pass


@permissions.command("show")
@click.option("--path", "cwd", type=click.Path(file_okay=False), help="Folder (default: current)")
def show_cmd(cwd: str | None) -> None:
    """Show trust for a folder."""
    modify = _load_modifier(cwd)
    if modify is None:
        return

    try:
        state = modify.load()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    if state is None:
        raise click.ClickException(FOLDER_TRUST_DISABLED_MESSAGE)

    click.echo(style_header("Folder trust"))
    click.echo(f"  {style_label('Folder')} {state.path}")
    explicit = state.explicit_level.value if state.explicit_level else "not set"
    click.echo(f"  {style_label('Explicit level')} {explicit}")
    click.echo(f"  {style_label('Effective')} {style_trust(state.effective)}")
    if state.is_inherited_trust:
        click.echo(
            style_dim(
                "  Trust is inherited from a parent folder or the IDE; changing this "
                "folder's level only takes effect if it overrides that."
            )
        )


@permissions.command("set")
@click.argument("level", type=click.Choice(sorted(_LEVEL_CHOICES)))
@click.option("--path", "cwd", type=click.Path(file_okay=False), help="Folder (default: current)")
def set_cmd(level: str, cwd: str | None) -> None:
    """Set explicit trust LEVEL for a folder."""
    modify = _load_modifier(cwd)
    if modify is None:
        return

    try:
        update = asyncio.run(modify.update_trust_level(_LEVEL_CHOICES[level]))
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    except OSError as e:
        raise click.ClickException(f"Failed to save trusted folders: {e}") from e

    click.echo(style_success(f"{update.path} set to {level}"))
    if update.needs_restart:
        click.echo(style_warning("Effective trust changed - restart running sessions to apply"))
