"""Built-in CLI sub-commands for forwardemail.

This package groups the Typer sub-command modules that form the CLI's
command tree:

* :mod:`~forwardemail.commands.auth` -- log in, log out, verify, status.
* :mod:`~forwardemail.commands.profile` -- manage config profiles.
* :mod:`~forwardemail.commands.debug` -- troubleshoot credential resolution.

Each module exports a :class:`typer.Typer` sub-application registered on the
root app in :mod:`forwardemail.app`.
"""
