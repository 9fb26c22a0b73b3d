"""Concrete auth providers and their factory.

Typical usage::

    from forwardemail.auth import ProviderConfig, create_provider

    provider = create_provider(ProviderConfig(profile="prod", store=store))
    provider.validate()
"""

from __future__ import annotations

import enum
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from pydantic import SecretStr

from forwardemail.auth.base import AuthProvider
from forwardemail.auth.resolver import CredentialResolver, SourceStatus
from forwardemail.config import load_config, resolve_base_url, save_config
from forwardemail.exceptions import InvalidUsageError, SecretNotFoundError, StoreUnavailableError
from forwardemail.models import DEFAULT_BASE_URL, DEFAULT_PROFILE, Config, Credential, Profile
from forwardemail.output import debug
from forwardemail.store.base import SecureStore
from forwardemail.store.disabled import DisabledStore


class SecretSink(str, enum.Enum):
    """Where :meth:`ForwardEmailAuth.set_api_key` writes a key."""

    STORE = "store"
    CONFIG = "config"


@dataclass
class ProviderConfig:
    """Inputs for :func:`create_provider`. Unset fields get defaults.

    Attributes:
        profile: Profile name (default ``"default"``).
        config: Loaded configuration (default: read from disk).
        store: Secure store (default: :class:`DisabledStore`).
        environ: Environment mapping (default: ``os.environ``).
        base_url: API base URL (default: resolved from env/profile).
    """

    profile: str = ""
    config: Optional[Config] = None
    store: Optional[SecureStore] = None
    environ: Optional[Mapping[str, str]] = None
    base_url: str = ""


class ForwardEmailAuth(AuthProvider):
    """Auth provider that resolves its key from env, secure store and config.

    The key is resolved again on every :meth:`get_api_key` call; nothing is
    cached between calls.
    """

    def __init__(
        self,
        profile: str,
        config: Config,
        store: SecureStore,
        environ: Mapping[str, str],
        base_url: str = DEFAULT_BASE_URL,
    ) -> None:
        super().__init__(base_url)
        self.profile = profile
        self.config = config
        self.store = store
        self.environ = environ

    @property
    def resolver(self) -> CredentialResolver:
        return CredentialResolver(self.profile, self.config, self.store, self.environ)

    def resolve_credential(self) -> Credential:
        """Return the resolved key together with its source."""
        return self.resolver.resolve()

    def get_api_key(self) -> str:
        return self.resolve_credential().reveal()

    def describe_sources(self) -> list[SourceStatus]:
        return self.resolver.describe()

    def has_api_key(self) -> bool:
        """True if any source holds a key for the profile."""
        return any(status.found for status in self.describe_sources())

    def set_api_key(self, api_key: str, sink: SecretSink = SecretSink.STORE) -> None:
        """Persist *api_key* for the profile.

        Args:
            api_key: The key to save. Must not be empty.
            sink: :attr:`SecretSink.STORE` writes to the secure store and
                fails if it is unavailable. :attr:`SecretSink.CONFIG` writes
                the key inline into the config file.

        Raises:
            InvalidUsageError: If *api_key* is empty.
            SecureStoreError: If the store write fails.
        """
        if not api_key:
            raise InvalidUsageError("API key cannot be empty")
        if sink == SecretSink.CONFIG:
            profile = self.config.profiles.get(self.profile) or Profile()
            profile.api_key = SecretStr(api_key)
            self.config.set_profile(self.profile, profile)
            save_config(self.config)
            debug(f"stored API key for profile {self.profile} in the config file")
            return
        self.store.set(self.profile, api_key)
        debug(f"stored API key for profile {self.profile} in the {self.store.backend_name} store")

    def delete_api_key(self) -> bool:
        """Remove the key from the secure store and the config file.

        Returns:
            True if a key was removed from either place.

        Raises:
            SecureStoreError: If the store fails for a reason other than a
                missing entry or being disabled.
        """
        removed = False
        try:
            self.store.delete(self.profile)
            removed = True
        except SecretNotFoundError:
            debug(f"no stored API key for profile {self.profile}")
        except StoreUnavailableError as exc:
            debug(f"secure store skipped: {exc}")

        profile = self.config.profiles.get(self.profile)
        if profile is not None and profile.api_key is not None:
            profile.api_key = None
            save_config(self.config)
            removed = True
        return removed


class StaticKeyAuth(AuthProvider):
    """Auth provider with a fixed key.

    Example::

        auth = StaticKeyAuth("test-api-key")
        auth.validate()
    """

    def __init__(self, api_key: str, base_url: str = DEFAULT_BASE_URL) -> None:
        super().__init__(base_url)
        self._api_key = SecretStr(api_key)

    def get_api_key(self) -> str:
        return self._api_key.get_secret_value()


def create_provider(cfg: Optional[ProviderConfig] = None) -> ForwardEmailAuth:
    """Build a :class:`ForwardEmailAuth`, filling in defaults for unset fields."""
    cfg = cfg or ProviderConfig()
    profile = cfg.profile or DEFAULT_PROFILE
    config = cfg.config if cfg.config is not None else load_config()
    store = cfg.store if cfg.store is not None else DisabledStore()
    environ = cfg.environ if cfg.environ is not None else os.environ
    base_url = cfg.base_url or resolve_base_url(config, profile, environ=environ)
    return ForwardEmailAuth(profile, config, store, environ, base_url=base_url)
