"""forwardemail -- command-line client for the Forward Email REST API.

The heart of the package is the credential and error subsystem every command
path depends on:

* resolving the API key for a profile from environment variables, a secure
  store (OS keyring or encrypted file), or the config file, in a fixed order;
* authenticating requests with HTTP Basic auth;
* turning error responses from the service into typed, inspectable errors.

Typical workflow::

    forward-email auth login            # store an API key for the profile
    forward-email auth verify           # check it against the API
    forward-email debug auth            # see which source the key came from

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models for config, profiles, and credentials.
    config: XDG-aware config file management.
    exceptions: Exception hierarchy with exit-code mapping.
    api_errors: Structured API errors and the response classifier.
    store: Secure store backends (keyring, encrypted file, disabled).
    auth: Credential resolution and auth providers.
    client: HTTP transport and client factory.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
