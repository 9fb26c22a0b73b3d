"""Tests for auth providers -- Basic auth, validation, key management."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest
import yaml
from pydantic import SecretStr

from forwardemail.api_errors import APIError, is_forbidden, is_unauthorized
from forwardemail.auth import (
    ForwardEmailAuth,
    ProviderConfig,
    SecretSink,
    StaticKeyAuth,
    basic_auth_header,
    create_provider,
)
from forwardemail.config import save_config
from forwardemail.exceptions import (
    AuthError,
    CredentialNotFoundError,
    InvalidCredentialError,
    InvalidUsageError,
    StoreUnavailableError,
)
from forwardemail.models import DEFAULT_BASE_URL, Config, Profile
from forwardemail.store import DisabledStore, MemoryStore


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def _provider(store=None, config=None, environ=None) -> ForwardEmailAuth:
    return create_provider(
        ProviderConfig(
            profile="default",
            config=config or Config(profiles={"default": Profile()}),
            store=store if store is not None else MemoryStore(),
            environ=environ or {},
        )
    )


# ---------------------------------------------------------------------------
# Basic auth header
# ---------------------------------------------------------------------------


class TestApply:
    def test_basic_header(self) -> None:
        request = httpx.Request("GET", "https://api.forwardemail.net/v1/domains")
        StaticKeyAuth("test-api-key").apply(request)
        assert request.headers["Authorization"] == "Basic dGVzdC1hcGkta2V5Og=="

    def test_empty_key_is_still_encoded(self) -> None:
        request = httpx.Request("GET", "https://api.forwardemail.net/v1/domains")
        StaticKeyAuth("").apply(request)
        assert request.headers["Authorization"] == "Basic Og=="

    def test_helper(self) -> None:
        assert basic_auth_header("test-api-key") == "Basic dGVzdC1hcGkta2V5Og=="

    def test_resolving_provider_applies_resolved_key(self) -> None:
        provider = _provider(environ={"FORWARDEMAIL_API_KEY": "test-api-key"})
        request = httpx.Request("GET", "https://api.forwardemail.net/v1/domains")
        provider.apply(request)
        assert request.headers["Authorization"] == "Basic dGVzdC1hcGkta2V5Og=="

    def test_apply_without_key_raises_before_network(self) -> None:
        request = httpx.Request("GET", "https://api.forwardemail.net/v1/domains")
        with pytest.raises(CredentialNotFoundError):
            _provider().apply(request)

    def test_static_key_repr_hides_key(self) -> None:
        auth = StaticKeyAuth("super-secret-value")
        assert "super-secret-value" not in repr(vars(auth))


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidate:
    def test_success_hits_account_endpoint(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"email": "me@example.com"})

        StaticKeyAuth("test-api-key").validate(client=_client(handler))
        assert len(seen) == 1
        assert str(seen[0].url) == f"{DEFAULT_BASE_URL}/v1/account"
        assert seen[0].headers["Authorization"] == "Basic dGVzdC1hcGkta2V5Og=="
        assert seen[0].headers["Accept"] == "application/json"

    def test_custom_base_url(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json={})

        StaticKeyAuth("k", base_url="https://api.example.test/").validate(client=_client(handler))
        assert seen == ["https://api.example.test/v1/account"]

    def test_401_is_invalid_credential(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"message": "Invalid API token"})

        with pytest.raises(InvalidCredentialError) as excinfo:
            StaticKeyAuth("bad").validate(client=_client(handler))
        assert isinstance(excinfo.value, AuthError)
        assert is_unauthorized(excinfo.value)

    def test_other_errors_are_classified(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"message": "Plan required"})

        with pytest.raises(APIError) as excinfo:
            StaticKeyAuth("k").validate(client=_client(handler))
        assert is_forbidden(excinfo.value)
        assert excinfo.value.message == "Plan required"

    def test_empty_key_fails_without_request(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        with pytest.raises(AuthError, match="empty"):
            StaticKeyAuth("").validate(client=_client(handler))

    def test_network_errors_propagate(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(httpx.ConnectError):
            StaticKeyAuth("k").validate(client=_client(handler))

    def test_not_cached(self) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(200, json={})

        auth = StaticKeyAuth("k")
        client = _client(handler)
        auth.validate(client=client)
        auth.validate(client=client)
        assert len(calls) == 2


# ---------------------------------------------------------------------------
# Key management
# ---------------------------------------------------------------------------


class TestKeyManagement:
    def test_set_api_key_goes_to_store_by_default(self, isolated_config: Path) -> None:
        store = MemoryStore()
        provider = _provider(store=store)
        provider.set_api_key("new-key")
        assert store.get("default") == "new-key"
        assert provider.get_api_key() == "new-key"
        assert provider.config.profiles["default"].api_key is None

    def test_store_failure_does_not_fall_back_to_config(self, isolated_config: Path) -> None:
        provider = _provider(store=DisabledStore())
        with pytest.raises(StoreUnavailableError):
            provider.set_api_key("new-key")
        assert provider.config.profiles["default"].api_key is None

    def test_explicit_config_sink(self, config_file: Path) -> None:
        provider = _provider(store=DisabledStore())
        provider.set_api_key("inline-key", sink=SecretSink.CONFIG)
        raw = yaml.safe_load(config_file.read_text())
        assert raw["profiles"]["default"]["api_key"] == "inline-key"
        assert provider.get_api_key() == "inline-key"

    def test_empty_key_rejected(self) -> None:
        with pytest.raises(InvalidUsageError):
            _provider().set_api_key("")

    def test_has_api_key(self) -> None:
        assert not _provider().has_api_key()
        assert _provider(store=MemoryStore({"default": "k"})).has_api_key()

    def test_delete_api_key_from_store_and_config(self, config_file: Path) -> None:
        config = Config(profiles={"default": Profile(api_key=SecretStr("inline"))})
        save_config(config)
        store = MemoryStore({"default": "stored"})
        provider = _provider(store=store, config=config)

        assert provider.delete_api_key() is True
        assert store.list() == []
        assert config.profiles["default"].api_key is None
        assert "api_key" not in yaml.safe_load(config_file.read_text())["profiles"]["default"]

    def test_delete_api_key_when_nothing_saved(self, isolated_config: Path) -> None:
        assert _provider().delete_api_key() is False

    def test_delete_with_disabled_store_still_clears_config(self, isolated_config: Path) -> None:
        config = Config(profiles={"default": Profile(api_key=SecretStr("inline"))})
        provider = _provider(store=DisabledStore(), config=config)
        assert provider.delete_api_key() is True


class TestCreateProvider:
    def test_defaults(self, config_file: Path) -> None:
        save_config(Config(profiles={"default": Profile(api_key=SecretStr("from-disk"))}))
        provider = create_provider()
        assert provider.profile == "default"
        assert isinstance(provider.store, DisabledStore)
        assert provider.get_api_key() == "from-disk"
        assert provider.base_url == DEFAULT_BASE_URL

    def test_uses_os_environ_by_default(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FORWARDEMAIL_API_KEY", "env-key")
        assert create_provider().get_api_key() == "env-key"

    def test_base_url_from_profile(self, two_profile_config: Config) -> None:
        provider = create_provider(
            ProviderConfig(profile="prod", config=two_profile_config, environ={})
        )
        assert provider.base_url == "https://api.prod.example.test"
