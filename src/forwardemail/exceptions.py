"""Exception hierarchy for forwardemail.

All exceptions inherit from :class:`ForwardEmailError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`forwardemail.exit_codes`. The top-level handler in
:func:`forwardemail.app.main` catches ``ForwardEmailError`` and exits with the
appropriate code.

Errors raised *before* any request reaches the service (missing credentials,
broken secure store, bad config) live here. Errors the service itself
returns are :class:`~forwardemail.api_errors.APIError` instances, which also
derive from :class:`ForwardEmailError` but form their own taxonomy.

Subclass hierarchy::

    ForwardEmailError (exit 1)
    +-- InvalidUsageError         (exit 2)
    +-- ConfigError               (exit 1)
    |   +-- CredentialNotFoundError
    +-- AuthError                 (exit 3)
    |   +-- InvalidCredentialError
    +-- SecureStoreError          (exit 7)
    |   +-- StoreUnavailableError
    |   +-- SecretNotFoundError
    |   +-- StoreTimeoutError
    +-- ResponseDecodeError       (exit 1)
"""

from __future__ import annotations

from forwardemail.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_STORE_ERROR,
)


class ForwardEmailError(Exception):
    """Base exception for all forwardemail errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`forwardemail.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ForwardEmailError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(ForwardEmailError):
    """Raised for configuration problems (missing profiles, invalid YAML, bad env values)."""

    exit_code = EXIT_GENERIC_FAILURE


class CredentialNotFoundError(ConfigError):
    """Raised when no credential source produced an API key for a profile.

    This is a configuration problem surfaced before any network call, never
    an :class:`~forwardemail.api_errors.APIError`.

    Args:
        profile: The profile whose key could not be resolved.
    """

    def __init__(self, profile: str):
        super().__init__(f"no API key found for profile {profile}")
        self.profile = profile


class AuthError(ForwardEmailError):
    """Raised when credentials are unusable (empty key, failed validation)."""

    exit_code = EXIT_AUTH_FAILURE


class InvalidCredentialError(AuthError):
    """Raised when the service rejects the API key with HTTP 401."""


class SecureStoreError(ForwardEmailError):
    """Base class for secure store failures (backend broken, decrypt failure, ...)."""

    exit_code = EXIT_STORE_ERROR


class StoreUnavailableError(SecureStoreError):
    """Raised by every operation of a disabled or unusable secure store."""


class SecretNotFoundError(SecureStoreError):
    """Raised when the store holds no secret for the requested profile.

    Args:
        profile: The profile that has no stored secret.
    """

    def __init__(self, profile: str):
        super().__init__(f"API key not found for profile {profile}")
        self.profile = profile


class StoreTimeoutError(SecureStoreError):
    """Raised when a secure store call exceeds its upper time bound."""


class ResponseDecodeError(ForwardEmailError):
    """Raised when a successful response body cannot be decoded."""
