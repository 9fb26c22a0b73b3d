"""Credential resolution and authentication for the Forward Email API.

The main entry points are:

- :class:`CredentialResolver` -- finds the API key for a profile across
  environment variables, the secure store and the config file.
- :class:`AuthProvider` -- abstract base; applies Basic auth to requests and
  validates the key against ``/v1/account``.
- :class:`ForwardEmailAuth` -- resolver-backed provider, built with
  :func:`create_provider`.
- :class:`StaticKeyAuth` -- provider with a fixed key.

Typical usage::

    from forwardemail.auth import ProviderConfig, create_provider

    provider = create_provider(ProviderConfig(profile="default"))
    api_key = provider.get_api_key()
"""

from forwardemail.auth.base import AuthProvider, basic_auth_header
from forwardemail.auth.provider import (
    ForwardEmailAuth,
    ProviderConfig,
    SecretSink,
    StaticKeyAuth,
    create_provider,
)
from forwardemail.auth.resolver import (
    API_KEY_ENV,
    CredentialResolver,
    SourceStatus,
    profile_env_var,
)

__all__ = [
    "API_KEY_ENV",
    "AuthProvider",
    "CredentialResolver",
    "ForwardEmailAuth",
    "ProviderConfig",
    "SecretSink",
    "SourceStatus",
    "StaticKeyAuth",
    "basic_auth_header",
    "create_provider",
    "profile_env_var",
]
