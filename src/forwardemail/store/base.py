"""Abstract base class for secure store backends.

A secure store keeps one API key per profile, keyed by
(:data:`SERVICE_NAME`, profile name). Concrete backends:

- :class:`~forwardemail.store.keyring_store.KeyringStore` -- the OS keyring
  (macOS Keychain, Windows Credential Manager, Secret Service) through the
  ``keyring`` library.
- :class:`~forwardemail.store.file_store.EncryptedFileStore` -- one
  Fernet-encrypted file per profile, unlocked with a passphrase.
- :class:`~forwardemail.store.disabled.DisabledStore` -- every call fails
  with :class:`~forwardemail.exceptions.StoreUnavailableError`.
- :class:`~forwardemail.store.memory.MemoryStore` -- a dict, for tests.

Error contract shared by every backend:

- :meth:`SecureStore.get` and :meth:`SecureStore.delete` raise
  :class:`~forwardemail.exceptions.SecretNotFoundError` for an unknown
  profile, so callers can tell "nothing stored" from "store is broken".
- Any other failure raises another
  :class:`~forwardemail.exceptions.SecureStoreError` subclass. Secret values
  never appear in error messages.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from forwardemail.exceptions import SecretNotFoundError, SecureStoreError

SERVICE_NAME = "forward-email"


class SecureStore(ABC):
    """Per-profile secret storage."""

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Short identifier shown in diagnostics (``"keyring"``, ``"file"``, ...)."""
        ...

    @abstractmethod
    def set(self, profile: str, secret: str) -> None:
        """Store *secret* for *profile*, replacing any existing value.

        Raises:
            SecureStoreError: If the backend cannot write the secret.
        """
        ...

    @abstractmethod
    def get(self, profile: str) -> str:
        """Return the secret stored for *profile*.

        Raises:
            SecretNotFoundError: If nothing is stored for *profile*.
            SecureStoreError: If the backend cannot be read.
        """
        ...

    @abstractmethod
    def delete(self, profile: str) -> None:
        """Remove the secret stored for *profile*.

        Raises:
            SecretNotFoundError: If nothing is stored for *profile*.
            SecureStoreError: If the backend cannot be written.
        """
        ...

    @abstractmethod
    def list(self) -> list[str]:
        """Return the sorted names of profiles that have a stored secret."""
        ...

    def has(self, profile: str) -> bool:
        """Return True if a secret is stored for *profile*.

        Only a missing entry counts as ``False``; other store failures
        propagate.
        """
        try:
            self.get(profile)
        except SecretNotFoundError:
            return False
        return True


def check_profile_name(profile: str) -> None:
    """Reject profile names that cannot be used as a store key.

    Raises:
        SecureStoreError: If *profile* is empty, starts with ``.``, or
            contains a path separator.
    """
    if not profile or profile.startswith(".") or "/" in profile or "\\" in profile:
        raise SecureStoreError(f"invalid profile name for secure store: {profile!r}")
