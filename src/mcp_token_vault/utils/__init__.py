"""Shared utilities for mcp-token-vault."""

__all__: list[str] = []
