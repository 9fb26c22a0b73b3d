"""Tests for context wiring: profile, base URL, timeout and store selection."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest
from keyring.backends import fail

from forwardemail.client import open_context
from forwardemail.client.factory import new_api_client, open_secure_store, profile_timeout
from forwardemail.exceptions import ConfigError
from forwardemail.models import DEFAULT_BASE_URL, Config, CredentialSource, Profile
from forwardemail.store import DisabledStore, KeyringStore, MemoryStore


class TestOpenSecureStore:
    def test_os_backend(self) -> None:
        assert isinstance(open_secure_store({}), KeyringStore)

    def test_disabled(self) -> None:
        store = open_secure_store({"FORWARDEMAIL_KEYRING_BACKEND": "none"})
        assert isinstance(store, DisabledStore)

    def test_unusable_keyring_degrades_to_disabled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("keyring.get_keyring", lambda: fail.Keyring())
        store = open_secure_store({})
        assert isinstance(store, DisabledStore)

    def test_invalid_backend_is_a_config_error(self) -> None:
        with pytest.raises(ConfigError):
            open_secure_store({"FORWARDEMAIL_KEYRING_BACKEND": "bogus"})


class TestProfileTimeout:
    def test_parses_duration(self, two_profile_config: Config) -> None:
        assert profile_timeout(two_profile_config, "prod") == 5.0

    def test_unknown_profile_uses_default(self, two_profile_config: Config) -> None:
        assert profile_timeout(two_profile_config, "ghost") == 30.0


class TestOpenContext:
    def test_current_profile(self, two_profile_config: Config) -> None:
        context = open_context(config=two_profile_config, store=MemoryStore(), environ={})
        assert context.profile == "default"
        assert context.base_url == DEFAULT_BASE_URL
        assert context.timeout == 30.0

    def test_cli_profile_wins(self, two_profile_config: Config) -> None:
        context = open_context(
            "prod",
            config=two_profile_config,
            store=MemoryStore(),
            environ={"FORWARDEMAIL_PROFILE": "default"},
        )
        assert context.profile == "prod"
        assert context.base_url == "https://api.prod.example.test"
        assert context.timeout == 5.0

    def test_env_profile_and_base_url(self, two_profile_config: Config) -> None:
        context = open_context(
            config=two_profile_config,
            store=MemoryStore(),
            environ={
                "FORWARDEMAIL_PROFILE": "prod",
                "FORWARDEMAIL_API_BASE_URL": "http://localhost:3000",
            },
        )
        assert context.profile == "prod"
        assert context.base_url == "http://localhost:3000"

    def test_invalid_timeout(self) -> None:
        config = Config(profiles={"default": Profile(timeout="soon")})
        with pytest.raises(ConfigError, match='profile "default"'):
            open_context(config=config, store=MemoryStore(), environ={})

    def test_provider_uses_store(self, two_profile_config: Config) -> None:
        context = open_context(
            "prod", config=two_profile_config, store=MemoryStore({"prod": "k"}), environ={}
        )
        credential = context.provider.resolve_credential()
        assert credential.source is CredentialSource.STORE

    def test_store_opened_from_environment(self, two_profile_config: Config) -> None:
        context = open_context(
            config=two_profile_config,
            environ={"FORWARDEMAIL_KEYRING_BACKEND": "none", "FORWARDEMAIL_API_KEY": "env-key"},
        )
        assert isinstance(context.store, DisabledStore)
        assert context.provider.get_api_key() == "env-key"

    def test_loads_config_from_disk(self, isolated_config: Path) -> None:
        context = open_context(store=MemoryStore(), environ={})
        assert context.profile == "default"


class TestNewAPIClient:
    def test_end_to_end(self, two_profile_config: Config) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"email": "me@example.com"})

        client = new_api_client(
            "prod",
            transport=httpx.MockTransport(handler),
            config=two_profile_config,
            store=MemoryStore(),
            environ={"FORWARDEMAIL_PROD_API_KEY": "test-api-key"},
        )
        with client:
            client.get("/v1/account")

        assert str(seen[0].url) == "https://api.prod.example.test/v1/account"
        assert seen[0].headers["Authorization"] == "Basic dGVzdC1hcGkta2V5Og=="
