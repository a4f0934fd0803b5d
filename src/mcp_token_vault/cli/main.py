"""Main CLI entry point for mcp-token-vault.

Defines the CLI group and registers all subcommands.

Commands:
    credentials  - Stored MCP OAuth credentials (list, show, delete, clear, backend)
    permissions  - Folder trust settings (show, set)

Subcommand help:
    mcp-token-vault COMMAND -h         Show help for a specific command
"""

from __future__ import annotations

__all__ = ["cli", "main"]

import sys

import click

from mcp_token_vault import __version__
from mcp_token_vault.config import load_settings
from mcp_token_vault.exceptions import ConfigurationError
from mcp_token_vault.telemetry.system.system_logger import configure_system_logger_file

from .commands.credentials import credentials
from .commands.permissions import permissions


class ReorderedGroup(click.Group):
    """Custom group that shows commands before custom help text."""

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Add extra help after commands section."""
        formatter.write(
            """
Environment:
  MCP_TOKEN_VAULT_FORCE_FILE_STORAGE=true    Skip the OS keychain, use the encrypted file
  MCP_TOKEN_VAULT_IDE_WORKSPACE_TRUST=true   Workspace trust reported by the IDE (true/false)

Examples:
  mcp-token-vault credentials list
  mcp-token-vault credentials backend
  mcp-token-vault permissions set trust-folder
"""
        )


@click.group(
    cls=ReorderedGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """mcp-token-vault: OAuth credential storage for MCP servers."""
    if version:
        click.echo(f"mcp-token-vault {__version__}")
        sys.exit(0)

    # File logging is optional; a broken settings file is reported by the
    # commands that actually need settings.
    try:
        log_path = load_settings().logging.system_log_path
    except ConfigurationError:
        log_path = None
    if log_path is not None:
        configure_system_logger_file(log_path)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Register commands
cli.add_command(credentials)
cli.add_command(permissions)


def main() -> None:
    """CLI entry point."""
    cli()
