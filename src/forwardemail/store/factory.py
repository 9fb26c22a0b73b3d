"""Secure store backend selection.

The backend is chosen once at startup from :class:`StoreSettings`, usually
built from the environment with :meth:`StoreSettings.from_env`:

================================  ==========================================
``FORWARDEMAIL_KEYRING_BACKEND``  ``os`` (default), ``file`` or ``none``
``FORWARDEMAIL_KEYRING_PASSWORD`` passphrase for the ``file`` backend
================================  ==========================================
"""

from __future__ import annotations

import enum
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from forwardemail.config import ENV_PREFIX
from forwardemail.exceptions import ConfigError
from forwardemail.store.base import SecureStore
from forwardemail.store.disabled import DisabledStore
from forwardemail.store.file_store import EncryptedFileStore
from forwardemail.store.keyring_store import DEFAULT_TIMEOUT, KeyringStore

ENV_KEYRING_BACKEND = f"{ENV_PREFIX}_KEYRING_BACKEND"
ENV_KEYRING_PASSWORD = f"{ENV_PREFIX}_KEYRING_PASSWORD"


class StoreBackend(str, enum.Enum):
    """Available secure store backends."""

    OS = "os"
    FILE = "file"
    NONE = "none"


@dataclass(frozen=True)
class StoreSettings:
    """Everything :func:`open_store` needs to build a store.

    Attributes:
        backend: Which backend to open.
        passphrase: Passphrase for the file backend, if known up front.
        prompt: Called for the passphrase when *passphrase* is unset.
        directory: Override for the file backend's directory.
        timeout: Upper bound for each OS keyring call, in seconds.
    """

    backend: StoreBackend = StoreBackend.OS
    passphrase: Optional[str] = None
    prompt: Optional[Callable[[str], str]] = None
    directory: Optional[Path] = None
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        prompt: Optional[Callable[[str], str]] = None,
    ) -> StoreSettings:
        """Build settings from ``FORWARDEMAIL_KEYRING_*`` variables.

        Raises:
            ConfigError: If ``FORWARDEMAIL_KEYRING_BACKEND`` names an unknown
                backend.
        """
        env = os.environ if environ is None else environ
        raw = env.get(ENV_KEYRING_BACKEND, "").strip().lower()
        if not raw:
            backend = StoreBackend.OS
        else:
            try:
                backend = StoreBackend(raw)
            except ValueError:
                choices = ", ".join(b.value for b in StoreBackend)
                raise ConfigError(
                    f"invalid {ENV_KEYRING_BACKEND} value {raw!r} (expected one of: {choices})"
                ) from None
        return cls(
            backend=backend,
            passphrase=env.get(ENV_KEYRING_PASSWORD) or None,
            prompt=prompt,
        )


def open_store(settings: Optional[StoreSettings] = None) -> SecureStore:
    """Open the secure store described by *settings*.

    Raises:
        StoreUnavailableError: If the OS backend is requested but no keyring
            is available.
    """
    settings = settings or StoreSettings()
    if settings.backend == StoreBackend.NONE:
        return DisabledStore(f"secure store disabled by {ENV_KEYRING_BACKEND}=none")
    if settings.backend == StoreBackend.FILE:
        return EncryptedFileStore(_passphrase_callback(settings), directory=settings.directory)
    return KeyringStore(timeout=settings.timeout)


def _passphrase_callback(settings: StoreSettings) -> Callable[[str], str]:
    if settings.passphrase:
        passphrase = settings.passphrase
        return lambda _prompt: passphrase
    if settings.prompt is not None:
        return settings.prompt
    return lambda _prompt: ""
