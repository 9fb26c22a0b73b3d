"""Helpers shared by the command modules."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Optional

import typer

from forwardemail.exceptions import ForwardEmailError
from forwardemail.output import error


def command_options(ctx: typer.Context) -> dict[str, Any]:
    """Global options stored on the context by the root callback."""
    return ctx.obj if isinstance(ctx.obj, dict) else {}


def selected_profile(ctx: typer.Context, profile: Optional[str] = None) -> Optional[str]:
    """Command-level ``--profile`` if given, otherwise the global one."""
    return profile or command_options(ctx).get("profile")


def is_forced(ctx: typer.Context) -> bool:
    return bool(command_options(ctx).get("force", False))


def passphrase_prompt(text: str) -> str:
    """Ask for the file store passphrase on an interactive terminal.

    Returns an empty string when stdin is not a TTY, which the file store
    reports as a missing passphrase.
    """
    if not sys.stdin.isatty():
        return ""
    return typer.prompt(text, hide_input=True, default="", show_default=False)


@contextmanager
def cli_errors() -> Iterator[None]:
    """Print a :class:`ForwardEmailError` and exit with its code."""
    try:
        yield
    except ForwardEmailError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
