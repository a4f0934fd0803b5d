"""Command-line interface for mcp-token-vault.

Provides commands for inspecting and clearing stored MCP OAuth credentials
and for managing folder trust.
"""

from .main import cli, main

__all__ = ["cli", "main"]
