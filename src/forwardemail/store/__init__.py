"""Secure storage for per-profile API keys."""

from forwardemail.store.base import SERVICE_NAME, SecureStore
from forwardemail.store.disabled import DisabledStore
from forwardemail.store.factory import (
    ENV_KEYRING_BACKEND,
    ENV_KEYRING_PASSWORD,
    StoreBackend,
    StoreSettings,
    open_store,
)
from forwardemail.store.file_store import EncryptedFileStore
from forwardemail.store.keyring_store import KeyringStore
from forwardemail.store.memory import MemoryStore

__all__ = [
    "DisabledStore",
    "ENV_KEYRING_BACKEND",
    "ENV_KEYRING_PASSWORD",
    "EncryptedFileStore",
    "KeyringStore",
    "MemoryStore",
    "SERVICE_NAME",
    "SecureStore",
    "StoreBackend",
    "StoreSettings",
    "open_store",
]
