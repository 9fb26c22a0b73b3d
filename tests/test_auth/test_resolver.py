"""Tests for API key resolution order."""

from __future__ import annotations

import pytest
from pydantic import SecretStr

from forwardemail.api_errors import APIError
from forwardemail.auth.resolver import API_KEY_ENV, CredentialResolver, profile_env_var
from forwardemail.exceptions import CredentialNotFoundError, SecureStoreError
from forwardemail.models import Config, CredentialSource, Profile
from forwardemail.store import DisabledStore, MemoryStore
from forwardemail.store.base import SecureStore


class _ExplodingStore(MemoryStore):
    def get(self, profile: str) -> str:
        raise SecureStoreError("keyring locked")


def _config(inline: str = "") -> Config:
    profile = Profile(api_key=SecretStr(inline)) if inline else Profile()
    return Config(current_profile="prod", profiles={"prod": profile})


def _resolver(
    environ: dict[str, str] | None = None,
    store: SecureStore | None = None,
    config: Config | None = None,
    profile: str = "prod",
) -> CredentialResolver:
    return CredentialResolver(
        profile,
        config or _config(),
        store if store is not None else MemoryStore(),
        environ or {},
    )


class TestProfileEnvVar:
    def test_upper_cases_profile(self) -> None:
        assert profile_env_var("prod") == "FORWARDEMAIL_PROD_API_KEY"
        assert profile_env_var("default") == "FORWARDEMAIL_DEFAULT_API_KEY"

    def test_generic_name(self) -> None:
        assert API_KEY_ENV == "FORWARDEMAIL_API_KEY"


class TestResolve:
    def test_profile_env_wins_over_everything(self) -> None:
        resolver = _resolver(
            environ={"FORWARDEMAIL_PROD_API_KEY": "from-profile-env", "FORWARDEMAIL_API_KEY": "generic"},
            store=MemoryStore({"prod": "from-store"}),
            config=_config("from-config"),
        )
        credential = resolver.resolve()
        assert credential.reveal() == "from-profile-env"
        assert credential.source is CredentialSource.PROFILE_ENV
        assert credential.detail == "FORWARDEMAIL_PROD_API_KEY"

    def test_generic_env_over_store(self) -> None:
        resolver = _resolver(
            environ={"FORWARDEMAIL_API_KEY": "generic"},
            store=MemoryStore({"prod": "from-store"}),
        )
        assert resolver.resolve().source is CredentialSource.ENV

    def test_store_only(self) -> None:
        credential = _resolver(store=MemoryStore({"prod": "from-store"})).resolve()
        assert credential.reveal() == "from-store"
        assert credential.source is CredentialSource.STORE
        assert credential.detail == "memory"

    def test_store_over_config(self) -> None:
        resolver = _resolver(store=MemoryStore({"prod": "from-store"}), config=_config("from-config"))
        assert resolver.resolve().reveal() == "from-store"

    def test_store_error_falls_through_to_config(self) -> None:
        resolver = _resolver(store=_ExplodingStore(), config=_config("from-config"))
        credential = resolver.resolve()
        assert credential.reveal() == "from-config"
        assert credential.source is CredentialSource.CONFIG

    def test_disabled_store_falls_through(self) -> None:
        resolver = _resolver(store=DisabledStore(), config=_config("from-config"))
        assert resolver.resolve().reveal() == "from-config"

    def test_empty_env_values_are_skipped(self) -> None:
        resolver = _resolver(
            environ={"FORWARDEMAIL_PROD_API_KEY": "", "FORWARDEMAIL_API_KEY": ""},
            config=_config("from-config"),
        )
        assert resolver.resolve().source is CredentialSource.CONFIG

    def test_other_profile_env_is_ignored(self) -> None:
        resolver = _resolver(environ={"FORWARDEMAIL_STAGING_API_KEY": "nope"})
        with pytest.raises(CredentialNotFoundError):
            resolver.resolve()

    def test_nothing_found(self) -> None:
        with pytest.raises(CredentialNotFoundError) as excinfo:
            _resolver().resolve()
        assert not isinstance(excinfo.value, APIError)
        assert excinfo.value.profile == "prod"
        assert str(excinfo.value) == "no API key found for profile prod"

    def test_profile_missing_from_config(self) -> None:
        with pytest.raises(CredentialNotFoundError):
            _resolver(profile="ghost").resolve()

    def test_deterministic(self) -> None:
        resolver = _resolver(store=MemoryStore({"prod": "from-store"}))
        assert resolver.resolve() == resolver.resolve()


class TestDescribe:
    def test_reports_every_source_in_order(self) -> None:
        resolver = _resolver(
            environ={"FORWARDEMAIL_API_KEY": "generic"},
            store=_ExplodingStore(),
            config=_config("from-config"),
        )
        statuses = resolver.describe()
        assert [s.source for s in statuses] == [
            CredentialSource.PROFILE_ENV,
            CredentialSource.ENV,
            CredentialSource.STORE,
            CredentialSource.CONFIG,
        ]
        assert [s.found for s in statuses] == [False, True, False, True]
        assert statuses[0].note == "not set"
        assert statuses[2].note == "keyring locked"
