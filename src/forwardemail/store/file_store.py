"""Passphrase-protected file backend for hosts without an OS keyring.

Each profile's secret lives in its own file, ``<directory>/<profile>.enc``,
holding a small JSON document::

    {"version": 1, "salt": "<base64>", "token": "<fernet token>"}

The Fernet key is derived from the passphrase with PBKDF2-HMAC-SHA256 and a
fresh random salt for every write. Files are written atomically with
``0o600`` permissions inside a ``0o700`` directory.
"""

from __future__ import annotations

import base64
import json
import os
from pathlib import Path
from typing import Callable, Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from forwardemail.config import atomic_write, get_data_dir
from forwardemail.exceptions import (
    SecretNotFoundError,
    SecureStoreError,
    StoreUnavailableError,
)
from forwardemail.output import debug
from forwardemail.store.base import SecureStore, check_profile_name

FILE_VERSION = 1
FILE_SUFFIX = ".enc"
DEFAULT_ITERATIONS = 480_000
_SALT_BYTES = 16

PassphraseCallback = Callable[[str], str]


def default_store_dir() -> Path:
    """Default location of the encrypted key files: ``<data_dir>/keyring``."""
    return get_data_dir() / "keyring"


class EncryptedFileStore(SecureStore):
    """Secure store that keeps Fernet-encrypted secrets on disk.

    Args:
        passphrase: Callback returning the passphrase. It receives a prompt
            string and is called at most once, on the first operation that
            needs a key.
        directory: Where the key files live. Defaults to
            :func:`default_store_dir`.
        iterations: PBKDF2 iteration count.
    """

    def __init__(
        self,
        passphrase: PassphraseCallback,
        directory: Optional[Path] = None,
        iterations: int = DEFAULT_ITERATIONS,
    ) -> None:
        self._passphrase_cb = passphrase
        self._passphrase: Optional[str] = None
        self._directory = directory or default_store_dir()
        self._iterations = iterations

    @property
    def backend_name(self) -> str:
        return "file"

    @property
    def directory(self) -> Path:
        return self._directory

    # --- SecureStore interface ---

    def set(self, profile: str, secret: str) -> None:
        path = self._path(profile)
        salt = os.urandom(_SALT_BYTES)
        token = self._fernet(salt).encrypt(secret.encode("utf-8"))
        document = {
            "version": FILE_VERSION,
            "salt": base64.b64encode(salt).decode("ascii"),
            "token": token.decode("ascii"),
        }
        self._ensure_directory()
        try:
            atomic_write(path, json.dumps(document))
        except OSError as exc:
            raise SecureStoreError(f"cannot write key file for profile {profile}: {exc}") from exc
        debug(f"wrote encrypted key file {path}")

    def get(self, profile: str) -> str:
        path = self._path(profile)
        if not path.is_file():
            raise SecretNotFoundError(profile)
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
            salt = base64.b64decode(document["salt"])
            token = document["token"].encode("ascii")
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            raise SecureStoreError(f"key file for profile {profile} is unreadable") from exc
        try:
            plaintext = self._fernet(salt).decrypt(token)
        except InvalidToken:
            raise SecureStoreError(
                f"cannot decrypt key file for profile {profile}: wrong passphrase or corrupt file"
            ) from None
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SecureStoreError(f"key file for profile {profile} holds a non-UTF-8 secret") from exc

    def delete(self, profile: str) -> None:
        path = self._path(profile)
        if not path.is_file():
            raise SecretNotFoundError(profile)
        try:
            path.unlink()
        except OSError as exc:
            raise SecureStoreError(f"cannot delete key file for profile {profile}: {exc}") from exc

    def list(self) -> list[str]:
        if not self._directory.is_dir():
            return []
        return sorted(
            p.name[: -len(FILE_SUFFIX)]
            for p in self._directory.iterdir()
            if p.is_file() and p.name.endswith(FILE_SUFFIX) and not p.name.startswith(".")
        )

    # --- Internals ---

    def _path(self, profile: str) -> Path:
        check_profile_name(profile)
        return self._directory / f"{profile}{FILE_SUFFIX}"

    def _ensure_directory(self) -> None:
        try:
            self._directory.mkdir(mode=0o700, parents=True, exist_ok=True)
            os.chmod(self._directory, 0o700)
        except OSError as exc:
            raise SecureStoreError(f"cannot create key directory {self._directory}: {exc}") from exc

    def _get_passphrase(self) -> str:
        if self._passphrase is None:
            value = self._passphrase_cb("Passphrase for the forward-email key store: ")
            if not value:
                raise StoreUnavailableError(
                    "the file store needs a passphrase; set FORWARDEMAIL_KEYRING_PASSWORD"
                )
            self._passphrase = value
        return self._passphrase

    def _fernet(self, salt: bytes) -> Fernet:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt,
            iterations=self._iterations,
        )
        key = kdf.derive(self._get_passphrase().encode("utf-8"))
        return Fernet(base64.urlsafe_b64encode(key))
