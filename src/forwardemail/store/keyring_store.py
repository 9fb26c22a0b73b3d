"""OS keyring backend built on the ``keyring`` library.

Secrets are stored under service :data:`~forwardemail.store.base.SERVICE_NAME`
with the profile name as the account. The keyring API cannot enumerate
accounts, so the store maintains a reserved index account holding a JSON list
of the profile names it has written; :meth:`KeyringStore.list` reads it.

Some keyring daemons hang instead of failing (a locked Secret Service waiting
for an unlock dialog, for example). Every backend call therefore runs on a
daemon thread with a bounded wait. When the wait expires the thread is left
behind and :class:`~forwardemail.exceptions.StoreTimeoutError` is raised. Daemon
threads are not joined at interpreter exit, so a hung call never keeps the
process alive.
"""

from __future__ import annotations

import json
import queue
import threading
from typing import Any, Callable, Optional

import keyring
from keyring.backend import KeyringBackend
from keyring.backends import fail

from forwardemail.exceptions import (
    SecretNotFoundError,
    SecureStoreError,
    StoreTimeoutError,
    StoreUnavailableError,
)
from forwardemail.output import debug
from forwardemail.store.base import SERVICE_NAME, SecureStore, check_profile_name

DEFAULT_TIMEOUT = 10.0
INDEX_ACCOUNT = "__forwardemail_profiles__"


class KeyringStore(SecureStore):
    """Secure store backed by the platform keyring.

    Args:
        backend: Keyring backend to use. Defaults to ``keyring.get_keyring()``.
        timeout: Upper bound in seconds for each backend call.
        service: Keyring service name.

    Raises:
        StoreUnavailableError: If no usable keyring backend is installed.
    """

    def __init__(
        self,
        backend: Optional[KeyringBackend] = None,
        timeout: float = DEFAULT_TIMEOUT,
        service: str = SERVICE_NAME,
    ) -> None:
        self._backend = backend if backend is not None else keyring.get_keyring()
        if isinstance(self._backend, fail.Keyring):
            raise StoreUnavailableError(
                "no OS keyring is available; set FORWARDEMAIL_KEYRING_BACKEND=file "
                "to use the encrypted file store"
            )
        self._timeout = timeout
        self._service = service
        debug(f"keyring backend: {type(self._backend).__name__}")

    @property
    def backend_name(self) -> str:
        return "keyring"

    @property
    def timeout(self) -> float:
        return self._timeout

    # --- SecureStore interface ---

    def set(self, profile: str, secret: str) -> None:
        self._check(profile)
        self._call("write", self._backend.set_password, self._service, profile, secret)
        self._update_index(profile, present=True)

    def get(self, profile: str) -> str:
        self._check(profile)
        value = self._call("read", self._backend.get_password, self._service, profile)
        if not value:
            raise SecretNotFoundError(profile)
        return value

    def delete(self, profile: str) -> None:
        self._check(profile)
        existing = self._call("read", self._backend.get_password, self._service, profile)
        if existing is None:
            raise SecretNotFoundError(profile)
        self._call("delete", self._backend.delete_password, self._service, profile)
        self._update_index(profile, present=False)

    def list(self) -> list[str]:
        return sorted(self._read_index())

    # --- Internals ---

    @staticmethod
    def _check(profile: str) -> None:
        check_profile_name(profile)
        if profile == INDEX_ACCOUNT:
            raise SecureStoreError(f"profile name {profile!r} is reserved")

    def _read_index(self) -> list[str]:
        raw = self._call("read", self._backend.get_password, self._service, INDEX_ACCOUNT)
        if not raw:
            return []
        try:
            names = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SecureStoreError("keyring profile index is corrupt") from exc
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise SecureStoreError("keyring profile index is corrupt")
        return names

    def _write_index(self, names: list[str]) -> None:
        if names:
            payload = json.dumps(sorted(set(names)))
            self._call("write", self._backend.set_password, self._service, INDEX_ACCOUNT, payload)
        elif self._call("read", self._backend.get_password, self._service, INDEX_ACCOUNT):
            self._call("delete", self._backend.delete_password, self._service, INDEX_ACCOUNT)

    def _update_index(self, profile: str, present: bool) -> None:
        """Add or remove ``profile`` in the index after the secret itself changed.

        The index only feeds :meth:`list`. By this point the secret write or
        delete has already happened, so an index failure is logged at debug
        level and the operation still succeeds.
        """
        try:
            names = self._read_index()
            if present and profile not in names:
                self._write_index([*names, profile])
            elif not present and profile in names:
                self._write_index([n for n in names if n != profile])
        except SecureStoreError as exc:
            debug(f"keyring profile index not updated for {profile}: {exc}")

    def _call(self, operation: str, fn: Callable[..., Any], *args: Any) -> Any:
        """Run a keyring call on a daemon thread, bounded by the store timeout.

        The arguments may include a secret, so error messages only name the
        operation and the exception type.
        """
        results: queue.Queue[tuple[bool, Any]] = queue.Queue(maxsize=1)

        def worker() -> None:
            try:
                results.put((True, fn(*args)))
            except Exception as exc:
                results.put((False, exc))

        threading.Thread(target=worker, name=f"keyring-{operation}", daemon=True).start()
        try:
            ok, value = results.get(timeout=self._timeout)
        except queue.Empty:
            raise StoreTimeoutError(
                f"keyring {operation} timed out after {self._timeout:g}s"
            ) from None
        if not ok:
            raise SecureStoreError(
                f"keyring {operation} failed: {type(value).__name__}"
            ) from value
        return value
