"""Synchronous HTTP client for the Forward Email API.

:class:`APIClient` wraps :class:`httpx.Client` and layers on:

- **Auth** -- every request passes through
  :meth:`~forwardemail.auth.base.AuthProvider.apply` before it is sent.
- **Fixed headers** -- ``Accept: application/json`` and a static
  ``User-Agent``.
- **Error classification** -- any status >= 400 raises the
  :class:`~forwardemail.api_errors.APIError` built by
  :func:`~forwardemail.api_errors.classify_response`.
- **Decoding** -- JSON bodies are decoded, optionally into a pydantic model.

Network failures (:class:`httpx.TransportError`) propagate unchanged.
Nothing is retried.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from forwardemail.api_errors import classify_response
from forwardemail.exceptions import ResponseDecodeError
from forwardemail.models import DEFAULT_BASE_URL, USER_AGENT
from forwardemail.output import debug

if TYPE_CHECKING:
    from forwardemail.auth.base import AuthProvider

DEFAULT_TIMEOUT = 30.0

M = TypeVar("M", bound=BaseModel)


class APIClient:
    """HTTP client that authenticates requests and classifies errors.

    Can be used as a context manager, which closes the underlying
    connection pool on exit.

    Args:
        auth: Provider that supplies the API key.
        base_url: API base URL; request paths are appended to it.
        timeout: Request timeout in seconds.
        user_agent: ``User-Agent`` header value.
        transport: Custom httpx transport (``httpx.MockTransport`` in tests).

    Example::

        with APIClient(auth) as client:
            account = client.get("/v1/account")
    """

    def __init__(
        self,
        auth: AuthProvider,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = USER_AGENT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.auth = auth
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> APIClient:
        self._http()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    # ------------------------------------------------------------------ #
    # Request execution
    # ------------------------------------------------------------------ #

    def build_request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
    ) -> httpx.Request:
        """Build a request against :attr:`base_url` without sending it."""
        return self._http().build_request(method.upper(), path, params=params, json=json_body)

    def do(self, request: httpx.Request, into: Optional[type[M]] = None) -> Any:
        """Authenticate and send *request*, then decode the response.

        Args:
            request: The request to send.
            into: Optional pydantic model class to validate the body into.

        Returns:
            ``None`` for an empty body, an instance of *into* when given,
            otherwise the decoded JSON value.

        Raises:
            APIError: If the response status is >= 400.
            ResponseDecodeError: If a successful body is not valid JSON or
                does not match *into*.
            httpx.TransportError: On network failure.
        """
        self.auth.apply(request)
        request.headers["Accept"] = "application/json"
        request.headers["User-Agent"] = self.user_agent
        request.extensions.setdefault("timeout", httpx.Timeout(self.timeout).as_dict())

        debug(f"{request.method} {request.url}")
        response = self._http().send(request)
        debug(f"{request.method} {request.url} -> {response.status_code}")

        if response.status_code >= 400:
            raise classify_response(response)
        return self._decode(response, into)

    @staticmethod
    def _decode(response: httpx.Response, into: Optional[type[M]]) -> Any:
        if not response.content:
            return None
        try:
            data = response.json()
        except ValueError as exc:
            raise ResponseDecodeError(
                f"failed to decode response (HTTP {response.status_code}): {exc}"
            ) from exc
        if into is None:
            return data
        try:
            return into.model_validate(data)
        except ValidationError as exc:
            raise ResponseDecodeError(
                f"unexpected response shape for {into.__name__}: {exc}"
            ) from exc

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        into: Optional[type[M]] = None,
    ) -> Any:
        """Build and send a request; see :meth:`do` for results and errors."""
        return self.do(self.build_request(method, path, params=params, json_body=json_body), into)

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> Any:
        return self.request("PUT", path, **kwargs)

    def patch(self, path: str, **kwargs: Any) -> Any:
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.request("DELETE", path, **kwargs)

    def validate_auth(self) -> None:
        """Check the API key against the service using this client's connection."""
        self.auth.validate(timeout=self.timeout, client=self._http())
