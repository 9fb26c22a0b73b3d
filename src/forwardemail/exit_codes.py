"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~forwardemail.exceptions.ForwardEmailError` subclass.
Shell scripts can branch on the exit code without parsing stderr.

Example::

    $ forward-email auth verify
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the API key was rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (including configuration errors)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authentication or authorisation failed."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_STORE_ERROR = 7
"""The secure store could not be opened, read, or written."""

EXIT_RATE_LIMITED = 8
"""The remote API rejected the request with HTTP 429."""
