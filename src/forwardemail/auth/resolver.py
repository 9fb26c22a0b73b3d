"""API key resolution across competing credential sources.

Sources are consulted in a fixed order and the first non-empty value wins:

1. ``FORWARDEMAIL_<PROFILE>_API_KEY`` -- profile-specific environment variable
   (profile name upper-cased).
2. ``FORWARDEMAIL_API_KEY`` -- generic environment variable.
3. The secure store entry for the profile. Any
   :class:`~forwardemail.exceptions.SecureStoreError` (missing entry, locked
   keyring, timeout, ...) is reported with :func:`~forwardemail.output.debug`
   and treated as "no value".
4. The inline ``api_key`` of the profile in the config file.

If every source comes up empty,
:class:`~forwardemail.exceptions.CredentialNotFoundError` is raised before any
network traffic happens. The environment is injected, never read ad hoc, so
resolution is deterministic for a given environment, store and config.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Callable

from pydantic import SecretStr

from forwardemail.config import ENV_PREFIX
from forwardemail.exceptions import CredentialNotFoundError, SecureStoreError
from forwardemail.models import Config, Credential, CredentialSource
from forwardemail.output import debug
from forwardemail.store.base import SecureStore

API_KEY_ENV = f"{ENV_PREFIX}_API_KEY"


def profile_env_var(profile: str) -> str:
    """Name of the profile-specific key variable, e.g. ``FORWARDEMAIL_PROD_API_KEY``."""
    return f"{ENV_PREFIX}_{profile.upper()}_API_KEY"


@dataclass(frozen=True)
class SourceStatus:
    """Outcome of consulting one credential source.

    Attributes:
        source: Which source was consulted.
        detail: Variable name, store backend or config path for display.
        found: Whether the source produced a non-empty value.
        note: Why the source produced nothing, when known.
    """

    source: CredentialSource
    detail: str
    found: bool
    note: str = ""


# A lookup returns (value, note); an empty value means "not found".
_Lookup = Callable[[], tuple[str, str]]


class CredentialResolver:
    """Resolve the API key for one profile.

    Args:
        profile: Profile name.
        config: Loaded configuration (for inline keys).
        store: Secure store to consult.
        environ: Environment mapping to read variables from.
    """

    def __init__(
        self,
        profile: str,
        config: Config,
        store: SecureStore,
        environ: Mapping[str, str],
    ) -> None:
        self.profile = profile
        self.config = config
        self.store = store
        self.environ = environ

    def resolve(self) -> Credential:
        """Return the first non-empty credential.

        Raises:
            CredentialNotFoundError: If no source has a value.
        """
        for source, detail, lookup in self._sources():
            value, note = lookup()
            if value:
                debug(f"API key for profile {self.profile} resolved from {source.value} ({detail})")
                return Credential(
                    profile=self.profile,
                    value=SecretStr(value),
                    source=source,
                    detail=detail,
                )
            debug(f"no API key in {source.value} ({detail}){': ' + note if note else ''}")
        raise CredentialNotFoundError(self.profile)

    def describe(self) -> list[SourceStatus]:
        """Consult every source and report which of them hold a value.

        Unlike :meth:`resolve` this does not stop at the first hit; it is
        meant for ``auth status`` and ``debug auth``.
        """
        statuses = []
        for source, detail, lookup in self._sources():
            value, note = lookup()
            statuses.append(SourceStatus(source=source, detail=detail, found=bool(value), note=note))
        return statuses

    def _sources(self) -> list[tuple[CredentialSource, str, _Lookup]]:
        profile_var = profile_env_var(self.profile)
        return [
            (CredentialSource.PROFILE_ENV, profile_var, lambda: self._from_env(profile_var)),
            (CredentialSource.ENV, API_KEY_ENV, lambda: self._from_env(API_KEY_ENV)),
            (CredentialSource.STORE, self.store.backend_name, self._from_store),
            (CredentialSource.CONFIG, f"profiles.{self.profile}.api_key", self._from_config),
        ]

    def _from_env(self, name: str) -> tuple[str, str]:
        value = self.environ.get(name, "")
        return value, "" if value else "not set"

    def _from_store(self) -> tuple[str, str]:
        try:
            return self.store.get(self.profile), ""
        except SecureStoreError as exc:
            return "", str(exc)

    def _from_config(self) -> tuple[str, str]:
        profile = self.config.profiles.get(self.profile)
        if profile is None:
            return "", "profile not in config"
        value = profile.inline_secret()
        return value, "" if value else "not set"
