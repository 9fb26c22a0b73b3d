"""Typer application and CLI entry point for forward-email.

This module builds the top-level Typer application and registers the
``init`` command and the sub-command groups (``auth``, ``profile``,
``debug``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler, invokes the Typer app and
maps escaping exceptions to exit codes:

* :class:`~forwardemail.exceptions.ForwardEmailError` -- the error's own
  ``exit_code`` (API errors carry a code derived from their kind).
* :class:`httpx.TransportError` -- ``EXIT_CONNECTION_ERROR``.
* anything else -- a crash log under the data directory and
  ``EXIT_GENERIC_FAILURE``.

See Also:
    :mod:`forwardemail.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from forwardemail import __version__
from forwardemail.commands.auth import auth_app
from forwardemail.commands.debug import debug_app
from forwardemail.commands.init import init_command
from forwardemail.commands.profile import profile_app
from forwardemail.exit_codes import EXIT_CONNECTION_ERROR, EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="forward-email",
    help="Command-line client for the Forward Email API.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

app.command("init")(init_command)
app.add_typer(auth_app, name="auth", help="Manage authentication credentials.")
app.add_typer(profile_app, name="profile", help="Manage configuration profiles.")
app.add_typer(debug_app, name="debug", help="Debug utilities for troubleshooting.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"forward-email {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name to use."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~forwardemail.output.OutputManager` from
    CLI flags and stores shared options (``profile``, ``force``) in the
    Typer context for sub-commands to read via ``ctx.obj``.
    """
    from forwardemail.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log() -> str:
    """Write the current traceback to disk and return the log file path."""
    from forwardemail.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``forward-email`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    import httpx

    from forwardemail.exceptions import ForwardEmailError
    from forwardemail.output import error

    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except ForwardEmailError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except httpx.TransportError as exc:
        error(f"Connection failed: {exc}")
        sys.exit(EXIT_CONNECTION_ERROR)
    except Exception:
        log_path = _write_crash_log()
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
