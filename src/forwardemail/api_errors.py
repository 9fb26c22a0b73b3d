"""Structured API errors and the HTTP error-response classifier.

Every non-2xx response from the Forward Email API is turned into an
:class:`APIError` by :func:`classify_response`. The error carries a textual
``type`` (``"NotFound"``, ``"RateLimit"``, ...), the human message, an
optional service-specific ``code``, free-form ``details`` (the raw
``Retry-After`` value for rate limits), and the HTTP ``status_code``.

Category checks never rely on string matching. :meth:`APIError.unwrap`
maps the status code to exactly one :class:`ErrorKind` sentinel, and the
``is_*`` helpers compare against it::

    try:
        client.get("/v1/domains/example.com")
    except APIError as exc:
        if is_not_found(exc):
            ...
        elif is_retryable(exc):
            ...

The classifier only *labels* retryable failures; retrying is up to the
caller.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from http import HTTPStatus
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ValidationError

from forwardemail.exceptions import ForwardEmailError
from forwardemail.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_NOT_FOUND,
    EXIT_RATE_LIMITED,
    EXIT_SERVER_ERROR,
)


class ErrorKind(str, enum.Enum):
    """Sentinel categories an :class:`APIError` unwraps to."""

    NOT_FOUND = "resource not found"
    UNAUTHORIZED = "unauthorized access"
    FORBIDDEN = "access forbidden"
    VALIDATION = "validation failed"
    RATE_LIMIT = "rate limit exceeded"
    SERVER_ERROR = "internal server error"
    BAD_REQUEST = "bad request"
    CONFLICT = "resource conflict"
    SERVICE_UNAVAILABLE = "service unavailable"


_KIND_BY_STATUS: dict[int, ErrorKind] = {
    404: ErrorKind.NOT_FOUND,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    400: ErrorKind.BAD_REQUEST,
    409: ErrorKind.CONFLICT,
    429: ErrorKind.RATE_LIMIT,
    503: ErrorKind.SERVICE_UNAVAILABLE,
    500: ErrorKind.SERVER_ERROR,
}

_TYPE_BY_STATUS: dict[int, str] = {
    400: "BadRequest",
    401: "Unauthorized",
    403: "Forbidden",
    404: "NotFound",
    409: "Conflict",
    429: "RateLimit",
    500: "ServerError",
    503: "ServiceUnavailable",
}

_EXIT_CODE_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHORIZED: EXIT_AUTH_FAILURE,
    ErrorKind.FORBIDDEN: EXIT_AUTH_FAILURE,
    ErrorKind.NOT_FOUND: EXIT_NOT_FOUND,
    ErrorKind.RATE_LIMIT: EXIT_RATE_LIMITED,
    ErrorKind.SERVER_ERROR: EXIT_SERVER_ERROR,
    ErrorKind.SERVICE_UNAVAILABLE: EXIT_SERVER_ERROR,
}

_RETRYABLE_KINDS = frozenset(
    {ErrorKind.RATE_LIMIT, ErrorKind.SERVICE_UNAVAILABLE, ErrorKind.SERVER_ERROR}
)


def kind_for_status(status_code: int) -> ErrorKind:
    """Return the sentinel category for an HTTP status code.

    The mapping is total: unlisted 4xx codes fall back to
    :attr:`ErrorKind.VALIDATION`, everything else to
    :attr:`ErrorKind.SERVER_ERROR`.
    """
    kind = _KIND_BY_STATUS.get(status_code)
    if kind is not None:
        return kind
    if 400 <= status_code < 500:
        return ErrorKind.VALIDATION
    return ErrorKind.SERVER_ERROR


def type_for_status(status_code: int) -> str:
    """Return the ``type`` label for an HTTP status code."""
    label = _TYPE_BY_STATUS.get(status_code)
    if label is not None:
        return label
    if 400 <= status_code < 500:
        return "ClientError"
    return "ServerError"


class APIError(ForwardEmailError):
    """An error response from the Forward Email API.

    Instances are read-only once constructed. ``str(err)`` is
    ``"<Type> (<Code>): <Message>"`` when a code is present and
    ``"<Type>: <Message>"`` otherwise.

    Args:
        type: Classification label (see :func:`type_for_status`).
        message: Human-readable message from the service.
        status_code: HTTP status code of the response.
        code: Service-specific error code, if the body carried one.
        details: Free-form details, e.g. the raw ``Retry-After`` value.
    """

    def __init__(
        self,
        type: str,
        message: str,
        status_code: int,
        code: str = "",
        details: str = "",
    ) -> None:
        self._type = type
        self._message = message
        self._status_code = status_code
        self._code = code
        self._details = details
        super().__init__(self._render(), exit_code=_EXIT_CODE_BY_KIND.get(self.unwrap(), EXIT_GENERIC_FAILURE))

    @property
    def type(self) -> str:
        return self._type

    @property
    def message(self) -> str:
        return self._message

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def code(self) -> str:
        return self._code

    @property
    def details(self) -> str:
        return self._details

    def _render(self) -> str:
        if self._code:
            return f"{self._type} ({self._code}): {self._message}"
        return f"{self._type}: {self._message}"

    def __str__(self) -> str:
        return self._render()

    def __repr__(self) -> str:
        return (
            f"APIError(type={self._type!r}, message={self._message!r}, "
            f"status_code={self._status_code}, code={self._code!r}, details={self._details!r})"
        )

    def unwrap(self) -> ErrorKind:
        """Return the sentinel category derived from :attr:`status_code`."""
        return kind_for_status(self._status_code)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON shape of the error (empty code/details omitted)."""
        data: dict[str, Any] = {
            "type": self._type,
            "message": self._message,
            "status_code": self._status_code,
        }
        if self._code:
            data["code"] = self._code
        if self._details:
            data["details"] = self._details
        return data


# --- Constructors ---


def new_api_error(status_code: int, message: str, code: str = "") -> APIError:
    """Create an :class:`APIError` typed from *status_code*."""
    return APIError(type_for_status(status_code), message, status_code, code=code)


def not_found_error(resource: str) -> APIError:
    """Create a ``NotFound`` error for *resource* (``"Domain not found"``)."""
    return APIError("NotFound", f"{resource} not found", 404)


def validation_error(message: str) -> APIError:
    return APIError("ValidationError", message, 400)


def unauthorized_error(message: str = "") -> APIError:
    return APIError("Unauthorized", message or "Authentication required", 401)


def forbidden_error(message: str = "") -> APIError:
    return APIError("Forbidden", message or "Access forbidden", 403)


def rate_limit_error(retry_after: str = "") -> APIError:
    """Create a ``RateLimit`` error keeping the raw ``Retry-After`` value in details."""
    message = "Rate limit exceeded"
    if retry_after:
        message = f"Rate limit exceeded. Retry after {retry_after}"
    return APIError("RateLimit", message, 429, details=retry_after)


def server_error(message: str = "") -> APIError:
    return APIError("ServerError", message or "Internal server error", 500)


def service_unavailable_error(message: str = "") -> APIError:
    return APIError("ServiceUnavailable", message or "Service temporarily unavailable", 503)


# --- Classifier ---


class ErrorBody(BaseModel):
    """Shape of a JSON error body returned by the service."""

    message: Optional[str] = None
    code: Optional[str] = None
    error: Optional[str] = None


def _status_text(status_code: int, reason: Optional[str]) -> str:
    if reason:
        return reason
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""


def classify(
    status_code: int,
    body: bytes | str,
    headers: Optional[Mapping[str, str]] = None,
    reason: Optional[str] = None,
) -> APIError:
    """Build an :class:`APIError` from the parts of an error response.

    Args:
        status_code: HTTP status code (expected to be >= 400).
        body: Raw response body.
        headers: Response headers; only ``Retry-After`` is consulted.
        reason: HTTP reason phrase. Derived from the status code when omitted.

    Returns:
        The classified error. Never raises for malformed bodies.
    """
    if status_code == 429:
        retry_after = ""
        if headers is not None:
            retry_after = _header(headers, "Retry-After")
        return rate_limit_error(retry_after)

    status_text = _status_text(status_code, reason)
    try:
        parsed = ErrorBody.model_validate_json(body)
    except ValidationError:
        return new_api_error(status_code, f"HTTP {status_code}: {status_text}")

    candidates = (parsed.message, parsed.error, status_text)
    message = next((c for c in candidates if c), "")
    return new_api_error(status_code, message, parsed.code or "")


def classify_response(response: httpx.Response) -> APIError:
    """Build an :class:`APIError` from an :class:`httpx.Response`."""
    return classify(
        response.status_code,
        response.content,
        headers=response.headers,
        reason=response.reason_phrase,
    )


def _header(headers: Mapping[str, str], name: str) -> str:
    value = headers.get(name)
    if value is None:
        lowered = name.lower()
        for key, candidate in headers.items():
            if key.lower() == lowered:
                return candidate
        return ""
    return value


# --- Category checks ---


def _find_api_error(err: Optional[BaseException]) -> Optional[APIError]:
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, APIError):
            return err
        seen.add(id(err))
        err = err.__cause__
    return None


def is_kind(err: Optional[BaseException], kind: ErrorKind) -> bool:
    """Return True if *err* (or an exception it was raised from) unwraps to *kind*."""
    api_err = _find_api_error(err)
    return api_err is not None and api_err.unwrap() is kind


def is_not_found(err: Optional[BaseException]) -> bool:
    return is_kind(err, ErrorKind.NOT_FOUND)


def is_unauthorized(err: Optional[BaseException]) -> bool:
    return is_kind(err, ErrorKind.UNAUTHORIZED)


def is_forbidden(err: Optional[BaseException]) -> bool:
    return is_kind(err, ErrorKind.FORBIDDEN)


def is_validation(err: Optional[BaseException]) -> bool:
    return is_kind(err, ErrorKind.VALIDATION)


def is_rate_limit(err: Optional[BaseException]) -> bool:
    return is_kind(err, ErrorKind.RATE_LIMIT)


def is_server_error(err: Optional[BaseException]) -> bool:
    return is_kind(err, ErrorKind.SERVER_ERROR)


def is_service_unavailable(err: Optional[BaseException]) -> bool:
    return is_kind(err, ErrorKind.SERVICE_UNAVAILABLE)


def is_retryable(err: Optional[BaseException]) -> bool:
    """Return True for rate-limit, service-unavailable, and server errors."""
    api_err = _find_api_error(err)
    return api_err is not None and api_err.unwrap() in _RETRYABLE_KINDS


def get_status_code(err: Optional[BaseException]) -> int:
    """Return the HTTP status of the first :class:`APIError` in the chain, else 0."""
    api_err = _find_api_error(err)
    return api_err.status_code if api_err is not None else 0


def get_error_code(err: Optional[BaseException]) -> str:
    api_err = _find_api_error(err)
    return api_err.code if api_err is not None else ""


def get_error_details(err: Optional[BaseException]) -> str:
    api_err = _find_api_error(err)
    return api_err.details if api_err is not None else ""
