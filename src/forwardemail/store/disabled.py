"""Secure store backend that refuses every operation."""

from __future__ import annotations

from forwardemail.exceptions import StoreUnavailableError
from forwardemail.store.base import SecureStore


class DisabledStore(SecureStore):
    """A store that fails fast instead of pretending to be empty.

    Selected with ``FORWARDEMAIL_KEYRING_BACKEND=none``, and used as the
    fallback when the configured backend cannot be opened.

    Args:
        reason: Explanation included in every
            :class:`~forwardemail.exceptions.StoreUnavailableError`.
    """

    def __init__(self, reason: str = "secure store is disabled") -> None:
        self._reason = reason

    @property
    def backend_name(self) -> str:
        return "none"

    @property
    def reason(self) -> str:
        return self._reason

    def _fail(self) -> StoreUnavailableError:
        return StoreUnavailableError(self._reason)

    def set(self, profile: str, secret: str) -> None:
        raise self._fail()

    def get(self, profile: str) -> str:
        raise self._fail()

    def delete(self, profile: str) -> None:
        raise self._fail()

    def list(self) -> list[str]:
        raise self._fail()
