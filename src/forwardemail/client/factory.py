"""Wire configuration, secure store and auth provider into an API client.

Every command that talks to the service goes through :func:`open_context`
(or :func:`new_api_client`), which resolves, in order:

1. The profile name: ``--profile`` > ``FORWARDEMAIL_PROFILE`` >
   ``current_profile`` from the config file.
2. The base URL: explicit argument > ``FORWARDEMAIL_API_BASE_URL`` > the
   profile's ``base_url`` > the public API.
3. The request timeout from the profile's duration string.
4. The secure store from ``FORWARDEMAIL_KEYRING_*``. If the store cannot be
   opened the context falls back to a
   :class:`~forwardemail.store.disabled.DisabledStore`, so environment and
   config keys still work.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from forwardemail.auth.provider import ForwardEmailAuth, ProviderConfig, create_provider
from forwardemail.client.api_client import DEFAULT_TIMEOUT, APIClient
from forwardemail.config import load_config, parse_duration, resolve_base_url, resolve_profile_name
from forwardemail.exceptions import ConfigError, SecureStoreError
from forwardemail.models import Config
from forwardemail.output import debug
from forwardemail.store.base import SecureStore
from forwardemail.store.disabled import DisabledStore
from forwardemail.store.factory import StoreSettings, open_store


@dataclass
class AuthContext:
    """Everything one command invocation needs to talk to the API."""

    profile: str
    config: Config
    store: SecureStore
    provider: ForwardEmailAuth
    base_url: str
    timeout: float

    def client(self, transport: Optional[httpx.BaseTransport] = None) -> APIClient:
        """Create an :class:`APIClient` bound to this context."""
        return APIClient(
            self.provider,
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
        )


def open_secure_store(
    environ: Optional[Mapping[str, str]] = None,
    prompt: Optional[Callable[[str], str]] = None,
) -> SecureStore:
    """Open the store configured in the environment, degrading to disabled.

    Raises:
        ConfigError: If ``FORWARDEMAIL_KEYRING_BACKEND`` is invalid.
    """
    settings = StoreSettings.from_env(environ, prompt=prompt)
    try:
        return open_store(settings)
    except SecureStoreError as exc:
        debug(f"secure store unavailable, continuing without it: {exc}")
        return DisabledStore(str(exc))


def profile_timeout(config: Config, profile: str) -> float:
    """Timeout in seconds for *profile*, or the default if the profile is unknown."""
    entry = config.profiles.get(profile)
    if entry is None or not entry.timeout:
        return DEFAULT_TIMEOUT
    return parse_duration(entry.timeout)


def open_context(
    profile: Optional[str] = None,
    base_url: Optional[str] = None,
    config: Optional[Config] = None,
    store: Optional[SecureStore] = None,
    environ: Optional[Mapping[str, str]] = None,
    prompt: Optional[Callable[[str], str]] = None,
) -> AuthContext:
    """Resolve profile, base URL, timeout and store into an :class:`AuthContext`.

    Args:
        profile: Profile from the command line, if any.
        base_url: Base URL override, if any.
        config: Preloaded configuration. Read from disk when omitted.
        store: Secure store. Opened from the environment when omitted.
        environ: Environment mapping. Defaults to ``os.environ``.
        prompt: Passphrase prompt for the file store.

    Raises:
        ConfigError: If no profile can be determined, or the profile's
            timeout or the store backend setting is invalid.
    """
    env = os.environ if environ is None else environ
    config = config if config is not None else load_config()
    name = resolve_profile_name(config, profile, environ=env)
    url = resolve_base_url(config, name, base_url, environ=env)
    try:
        timeout = profile_timeout(config, name)
    except ConfigError as exc:
        raise ConfigError(f'profile "{name}": {exc}') from exc
    if store is None:
        store = open_secure_store(env, prompt=prompt)
    debug(f"profile={name} base_url={url} timeout={timeout:g}s store={store.backend_name}")
    provider = create_provider(
        ProviderConfig(profile=name, config=config, store=store, environ=env, base_url=url)
    )
    return AuthContext(
        profile=name,
        config=config,
        store=store,
        provider=provider,
        base_url=url,
        timeout=timeout,
    )


def new_api_client(
    profile: Optional[str] = None,
    base_url: Optional[str] = None,
    transport: Optional[httpx.BaseTransport] = None,
    config: Optional[Config] = None,
    store: Optional[SecureStore] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> APIClient:
    """Shortcut for ``open_context(...).client(transport)``."""
    context = open_context(profile, base_url, config=config, store=store, environ=environ)
    return context.client(transport)
