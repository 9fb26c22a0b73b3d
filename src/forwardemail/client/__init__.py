"""HTTP transport for the Forward Email API.

- :class:`APIClient` -- authenticated, error-classifying httpx wrapper.
- :func:`open_context` / :func:`new_api_client` -- build a client from the
  config file, environment and secure store.
"""

from forwardemail.client.api_client import APIClient
from forwardemail.client.factory import (
    AuthContext,
    new_api_client,
    open_context,
    open_secure_store,
)

__all__ = [
    "APIClient",
    "AuthContext",
    "new_api_client",
    "open_context",
    "open_secure_store",
]
