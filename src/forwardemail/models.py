"""Canonical Pydantic models shared across forwardemail modules.

**Configuration models** -- serialised as YAML in the user's config directory:
    :class:`Profile` and :class:`Config`.

**Credential models** -- transient, never persisted by the resolution code:
    :class:`CredentialSource` and :class:`Credential`.

Secret values are held as :class:`pydantic.SecretStr` so that ``str()``,
``repr()`` and default ``model_dump`` output show ``**********`` instead of
the key. Code that really needs the raw value calls
``get_secret_value()`` explicitly.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from forwardemail import __version__
from forwardemail.exceptions import ConfigError

DEFAULT_BASE_URL = "https://api.forwardemail.net"
DEFAULT_PROFILE = "default"
USER_AGENT = f"forward-email-cli/{__version__}"


# --- Config ---


class Profile(BaseModel):
    """Settings for one Forward Email environment/account.

    Extra keys in the config file are preserved so that newer CLI versions
    can add fields without older ones dropping them on save.

    Example::

        Profile(base_url="https://api.forwardemail.net", timeout="30s", output="table")
    """

    model_config = ConfigDict(extra="allow")

    base_url: str = Field(default=DEFAULT_BASE_URL, description="API base URL")
    timeout: str = Field(default="30s", description="Request timeout as a duration string")
    output: str = Field(default="table", description="Preferred output format")
    api_key: Optional[SecretStr] = Field(
        default=None,
        description="Inline API key (discouraged; prefer the secure store)",
    )

    def inline_secret(self) -> str:
        """Return the inline API key, or an empty string when unset."""
        if self.api_key is None:
            return ""
        return self.api_key.get_secret_value()


class Config(BaseModel):
    """Top-level configuration persisted at ``~/.config/forwardemail/config.yaml``.

    Loaded and saved by :func:`~forwardemail.config.load_config` and
    :func:`~forwardemail.config.save_config`.
    """

    current_profile: str = DEFAULT_PROFILE
    profiles: dict[str, Profile] = Field(default_factory=dict)

    def get_profile(self, name: str = "") -> Profile:
        """Return the named profile, or the current one when *name* is empty.

        Raises:
            ConfigError: If the profile does not exist.
        """
        if not name:
            name = self.current_profile
        profile = self.profiles.get(name)
        if profile is None:
            raise ConfigError(f'profile "{name}" not found')
        return profile

    def set_profile(self, name: str, profile: Profile) -> None:
        self.profiles[name] = profile

    def delete_profile(self, name: str) -> None:
        """Remove a profile.

        Raises:
            ConfigError: If the profile does not exist or is the current profile.
        """
        if name not in self.profiles:
            raise ConfigError(f'profile "{name}" not found')
        if name == self.current_profile:
            raise ConfigError(f'cannot delete current profile "{name}"')
        del self.profiles[name]

    def list_profiles(self) -> list[str]:
        return sorted(self.profiles)


# --- Credentials ---


class CredentialSource(str, enum.Enum):
    """Where a resolved API key came from, in resolution order."""

    PROFILE_ENV = "profile environment variable"
    ENV = "environment variable"
    STORE = "secure store"
    CONFIG = "config file"
    PROMPT = "interactive"


class Credential(BaseModel):
    """A resolved API key together with its provenance.

    Only exists for the duration of a resolution call; the secret is a
    :class:`~pydantic.SecretStr` and never appears in ``repr()``.
    """

    model_config = ConfigDict(frozen=True)

    profile: str
    value: SecretStr
    source: CredentialSource
    detail: str = Field(default="", description="Variable name or backend that supplied the value")

    def reveal(self) -> str:
        return self.value.get_secret_value()
