"""Credential commands for mcp-token-vault CLI.

Commands:
    credentials list         - List stored servers and whether they're usable
    credentials show NAME    - Show stored credentials for a server (masked)
    credentials delete NAME  - Delete stored credentials for a server
    credentials clear        - Delete all stored credentials
    credentials backend      - Show which storage backend is in use
"""

from __future__ import annotations

__all__ = ["credentials"]

import asyncio
from datetime import datetime, timezone

import click

from mcp_token_vault.exceptions import (
    AggregateClearError,
    NotFoundError,
    TokenStorageError,
)
from mcp_token_vault.storage.hybrid import create_token_storage
from mcp_token_vault.storage.models import OAuthCredentials

from ..styling import style_dim, style_error, style_header, style_label, style_success


def _mask(secret: str) -> str:
    if len(secret) <= 8:
        return "****"
    return f"{secret[:4]}...{secret[-4:]}"


def _format_ms(epoch_ms: int | None) -> str:
    if not epoch_ms:
        return "never"
    return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _echo_credentials(creds: OAuthCredentials) -> None:
    click.echo(f"  {style_label('Server')} {creds.server_name}")
    click.echo(f"  {style_label('Token type')} {creds.token.token_type}")
    click.echo(f"  {style_label('Access token')} {_mask(creds.token.access_token)}")
    click.echo(f"  {style_label('Refresh token')} {'yes' if creds.token.refresh_token else 'no'}")
    if creds.token.scope:
        click.echo(f"  {style_label('Scope')} {creds.token.scope}")
    click.echo(f"  {style_label('Expires')} {_format_ms(creds.token.expires_at)}")
    if creds.mcp_server_url:
        click.echo(f"  {style_label('MCP server URL')} {creds.mcp_server_url}")
    click.echo(f"  {style_label('Updated')} {_format_ms(creds.updated_at)}")


@click.group()
def credentials() -> None:
    """Stored MCP OAuth credentials."""
    pass


@credentials.command("list")
def list_cmd() -> None:
    """List servers with stored credentials."""

    async def _run() -> tuple[list[str], dict[str, OAuthCredentials]]:
        storage = create_token_storage()
        return await storage.list_servers(), await storage.get_all_credentials()

    try:
        servers, live = asyncio.run(_run())
    except TokenStorageError as e:
        raise click.ClickException(str(e)) from e

    if not servers:
        click.echo(style_dim("No stored credentials."))
        return

    click.echo(style_header("Stored credentials"))
    for server in sorted(servers):
        status = "valid" if server in live else "expired or unreadable"
        click.echo(f"  {server}  {style_dim(status)}")


@credentials.command("show")
@click.argument("server_name")
def show_cmd(server_name: str) -> None:
    """Show stored credentials for SERVER_NAME."""
    try:
        creds = asyncio.run(create_token_storage().get_credentials(server_name))
    except TokenStorageError as e:
        raise click.ClickException(str(e)) from e

    if creds is None:
        click.echo(style_dim(f"No valid credentials for {server_name}."))
        return
    _echo_credentials(creds)


@credentials.command("delete")
@click.argument("server_name")
def delete_cmd(server_name: str) -> None:
    """Delete stored credentials for SERVER_NAME."""
    try:
        asyncio.run(create_token_storage().delete_credentials(server_name))
    except NotFoundError as e:
        raise click.ClickException(str(e)) from e
    except TokenStorageError as e:
        raise click.ClickException(f"Failed to delete credentials: {e}") from e

    click.echo(style_success(f"Credentials deleted for {server_name}"))


@credentials.command("clear")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
def clear_cmd(yes: bool) -> None:
    """Delete all stored credentials."""
    if not yes:
        click.confirm("Delete ALL stored MCP OAuth credentials?", abort=True)

    try:
        asyncio.run(create_token_storage().clear_all())
    except AggregateClearError as e:
        for outcome in e.result.failures:
            click.echo(style_error(f"{outcome.server_name}: {outcome.error}"), err=True)
        raise click.ClickException(str(e)) from e
    except TokenStorageError as e:
        raise click.ClickException(str(e)) from e

    click.echo(style_success("All credentials cleared"))


@credentials.command("backend")
def backend_cmd() -> None:
    """Show which storage backend is in use."""
    info = asyncio.run(create_token_storage().get_storage_info())

    click.echo(style_header("Token storage"))
    for key, value in info.items():
        click.echo(f"  {style_label(key.replace('_', ' ').capitalize())} {value}")
