"""In-memory secure store, for tests and embedding."""

from __future__ import annotations

from typing import Optional

from forwardemail.exceptions import SecretNotFoundError
from forwardemail.store.base import SecureStore


class MemoryStore(SecureStore):
    """Dict-backed :class:`~forwardemail.store.base.SecureStore`.

    Example::

        store = MemoryStore({"default": "key-123"})
        assert store.get("default") == "key-123"
    """

    def __init__(self, secrets: Optional[dict[str, str]] = None) -> None:
        self._secrets: dict[str, str] = dict(secrets or {})

    @property
    def backend_name(self) -> str:
        return "memory"

    def set(self, profile: str, secret: str) -> None:
        self._secrets[profile] = secret

    def get(self, profile: str) -> str:
        try:
            return self._secrets[profile]
        except KeyError:
            raise SecretNotFoundError(profile) from None

    def delete(self, profile: str) -> None:
        if profile not in self._secrets:
            raise SecretNotFoundError(profile)
        del self._secrets[profile]

    def list(self) -> list[str]:
        return sorted(self._secrets)
