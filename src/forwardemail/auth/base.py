"""Abstract base class for auth providers.

An :class:`AuthProvider` owns one API key and knows how to attach it to a
request and how to check it against the service. The Forward Email API uses
HTTP Basic auth with the API key as the username and an empty password::

    Authorization: Basic base64("<api key>:")

Concrete providers:

- :class:`~forwardemail.auth.provider.ForwardEmailAuth` -- resolves the key
  through a :class:`~forwardemail.auth.resolver.CredentialResolver`.
- :class:`~forwardemail.auth.provider.StaticKeyAuth` -- a fixed key.
"""

from __future__ import annotations

import base64
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from forwardemail.api_errors import classify_response
from forwardemail.exceptions import AuthError, InvalidCredentialError
from forwardemail.models import DEFAULT_BASE_URL, USER_AGENT
from forwardemail.output import debug

ACCOUNT_PATH = "/v1/account"
DEFAULT_VALIDATE_TIMEOUT = 10.0


def basic_auth_header(api_key: str) -> str:
    """Return the ``Authorization`` header value for *api_key*."""
    encoded = base64.b64encode(f"{api_key}:".encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"


class AuthProvider(ABC):
    """Supplies and checks the API key for outgoing requests.

    Args:
        base_url: API base URL used by :meth:`validate`.
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL) -> None:
        self.base_url = base_url

    @abstractmethod
    def get_api_key(self) -> str:
        """Return the API key.

        Raises:
            CredentialNotFoundError: If no key can be found.
        """
        ...

    def apply(self, request: httpx.Request) -> None:
        """Set the Basic ``Authorization`` header on *request*.

        Whatever key the provider holds is encoded, including an empty one.
        """
        request.headers["Authorization"] = basic_auth_header(self.get_api_key())

    def validate(
        self,
        timeout: float = DEFAULT_VALIDATE_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ) -> None:
        """Check the key with ``GET /v1/account``.

        The result is not cached; every call hits the network.

        Args:
            timeout: Request timeout in seconds.
            client: HTTP client to send with. A temporary one is created
                when omitted.

        Raises:
            AuthError: If the key is empty. No request is made.
            InvalidCredentialError: If the service answers 401.
            APIError: For any other error status.
            httpx.TransportError: On network failure, unchanged.
        """
        api_key = self.get_api_key()
        if not api_key:
            raise AuthError("API key is empty")

        url = f"{self.base_url.rstrip('/')}{ACCOUNT_PATH}"
        owns_client = client is None
        http = client if client is not None else httpx.Client()
        try:
            request = http.build_request(
                "GET",
                url,
                headers={"Accept": "application/json", "User-Agent": USER_AGENT},
                timeout=timeout,
            )
            self.apply(request)
            debug(f"validating API key: GET {url}")
            response = http.send(request)
        finally:
            if owns_client:
                http.close()

        if response.status_code == 401:
            raise InvalidCredentialError("invalid API key") from classify_response(response)
        if response.status_code >= 400:
            raise classify_response(response)
