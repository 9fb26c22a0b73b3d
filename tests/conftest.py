"""Shared test fixtures for forwardemail.

Provides isolated config/data directories, a clean ``FORWARDEMAIL_*``
environment, an in-memory keyring backend, and output-state management.
These fixtures are automatically discovered by pytest and available to all
test modules without explicit imports.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import httpx
import keyring
import pytest
from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError

from forwardemail.models import Config, Profile
from forwardemail.output import OutputManager, reset_output, set_output


class InMemoryKeyring(KeyringBackend):
    """Keyring backend that keeps passwords in a dict."""

    priority = 1

    def __init__(self) -> None:
        super().__init__()
        self.passwords: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, username: str) -> Optional[str]:
        return self.passwords.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self.passwords[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        try:
            del self.passwords[(service, username)]
        except KeyError:
            raise PasswordDeleteError("not found") from None


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references become stale. Resetting forces a
    fresh manager on next use.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def memory_keyring() -> InMemoryKeyring:
    """Install an in-memory keyring so no test touches the real OS keyring."""
    previous = keyring.get_keyring()
    backend = InMemoryKeyring()
    keyring.set_keyring(backend)
    yield backend
    keyring.set_keyring(previous)


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet, colourless OutputManager."""
    output = OutputManager(no_color=True, quiet=True)
    set_output(output)
    return output


# ---------------------------------------------------------------------------
# Config isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path,
    forces the XDG layout, and clears all FORWARDEMAIL_* environment
    variables so that tests never see real user config or keys.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("forwardemail.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in list(os.environ):
        if var.startswith("FORWARDEMAIL_"):
            monkeypatch.delenv(var, raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)

    return tmp_path


@pytest.fixture
def config_file(isolated_config: Path) -> Path:
    """Path of the YAML config file inside the isolated config directory."""
    return isolated_config / "config" / "forwardemail" / "config.yaml"


@pytest.fixture
def two_profile_config() -> Config:
    """Config with ``default`` (current) and ``prod`` profiles."""
    return Config(
        current_profile="default",
        profiles={
            "default": Profile(),
            "prod": Profile(base_url="https://api.prod.example.test", timeout="5s"),
        },
    )


# ---------------------------------------------------------------------------
# HTTP mocking
# ---------------------------------------------------------------------------


@pytest.fixture
def context_transport(monkeypatch: pytest.MonkeyPatch):
    """Send requests from ``AuthContext.client()`` through a given transport.

    Usage::

        context_transport(httpx.MockTransport(handler))
        runner.invoke(app, ["auth", "verify"])
    """
    from forwardemail.client.api_client import APIClient
    from forwardemail.client.factory import AuthContext

    def install(transport: httpx.BaseTransport) -> None:
        def client(self: AuthContext, _transport: Optional[httpx.BaseTransport] = None) -> APIClient:
            return APIClient(
                self.provider, base_url=self.base_url, timeout=self.timeout, transport=transport
            )

        monkeypatch.setattr(AuthContext, "client", client)

    return install
