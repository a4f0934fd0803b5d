"""CLI output styling utilities.

Visual language:
- Cyan bold for section headers and labels
- Green for success messages (with checkmark)
- Red for errors (with cross)
- Yellow for warnings
- Dim for neutral/empty state messages
"""

from __future__ import annotations

__all__ = [
    "style_dim",
    "style_error",
    "style_header",
    "style_label",
    "style_success",
    "style_trust",
    "style_warning",
]

import click


def style_header(title: str) -> str:
    """Section header, e.g. "--- Stored credentials ---"."""
    return click.style(f"--- {title} ---", fg="cyan", bold=True)


def style_label(label: str) -> str:
    """Label with colon suffix, e.g. "Backend:"."""
    return click.style(f"{label}:", fg="cyan", bold=True)


def style_success(message: str) -> str:
    """Success message with checkmark.

    Example:
        >>> click.echo(style_success("Credentials deleted for github"))
        ✓ Credentials deleted for github
    """
    return click.style(f"✓ {message}", fg="green")


def style_error(message: str) -> str:
    """Error message with cross mark."""
    return click.style(f"✗ {message}", fg="red")


def style_dim(message: str) -> str:
    """Neutral/empty state message, e.g. "No stored credentials."."""
    return click.style(message, dim=True)


def style_warning(message: str) -> str:
    """Warning message.

    Example:
        >>> click.echo(style_warning("Restart required to apply trust change"))
        Warning: Restart required to apply trust change
    """
    return click.style(f"Warning: {message}", fg="yellow", bold=True)


def style_trust(effective: bool | None) -> str:
    """Effective trust value: trusted / untrusted / undecided."""
    if effective is None:
        return click.style("undecided", fg="yellow")
    if effective:
        return click.style("trusted", fg="green")
    return click.style("untrusted", fg="red")
