"""Tests for the ``profile`` command group."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import SecretStr
from typer.testing import CliRunner

from forwardemail.app import app
from forwardemail.config import load_config, save_config
from forwardemail.models import Config, Profile
from forwardemail.store.base import SERVICE_NAME

runner = CliRunner()


@pytest.fixture
def saved_profiles(isolated_config: Path, two_profile_config: Config) -> Config:
    save_config(two_profile_config)
    return two_profile_config


class TestProfileList:
    def test_plain(self, saved_profiles: Config, memory_keyring) -> None:
        memory_keyring.passwords[(SERVICE_NAME, "prod")] = "fe_abcdefghijklmnop"
        result = runner.invoke(app, ["--no-color", "--plain", "profile", "list"])
        assert result.exit_code == 0, result.output
        lines = result.stdout.splitlines()
        assert lines[0] == "PROFILE\tCURRENT\tBASE_URL\tAPI_KEY\tOUTPUT\tTIMEOUT"
        assert "default\t*\thttps://api.forwardemail.net\t\ttable\t30s" in lines
        assert "prod\t\thttps://api.prod.example.test\tkeyring\ttable\t5s" in lines

    def test_inline_key_reported_as_config(self, isolated_config: Path) -> None:
        save_config(Config(profiles={"default": Profile(api_key=SecretStr("fe_inline_secret"))}))
        result = runner.invoke(app, ["--no-color", "--plain", "profile", "list"])
        assert "\tconfig\t" in result.output
        assert "fe_inline_secret" not in result.output


    def test_file_store_listed_without_passphrase(
        self, saved_profiles: Config, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FORWARDEMAIL_KEYRING_BACKEND", "file")
        keys = isolated_config / "data" / "forwardemail" / "keyring"
        keys.mkdir(parents=True)
        (keys / "prod.enc").write_text('{"version": 1, "salt": "", "token": ""}')
        result = runner.invoke(app, ["--no-color", "--plain", "profile", "list"])
        assert result.exit_code == 0, result.output
        assert "passphrase" not in result.output.lower()
        assert "prod\t\thttps://api.prod.example.test\tfile\ttable\t5s" in result.output
        assert "default\t*\thttps://api.forwardemail.net\t\ttable\t30s" in result.output

    def test_disabled_store_marks_unknown(
        self, saved_profiles: Config, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FORWARDEMAIL_KEYRING_BACKEND", "none")
        result = runner.invoke(app, ["--no-color", "--plain", "profile", "list"])
        assert result.exit_code == 0, result.output
        assert "prod\t\thttps://api.prod.example.test\t?\ttable\t5s" in result.output


class TestProfileShow:
    def test_current(self, saved_profiles: Config) -> None:
        result = runner.invoke(app, ["--no-color", "--plain", "profile", "show"])
        assert result.exit_code == 0, result.output
        assert "name\tdefault" in result.output
        assert "current\tTrue" in result.output

    def test_masks_inline_key(self, isolated_config: Path) -> None:
        save_config(Config(profiles={"default": Profile(api_key=SecretStr("fe_inline_secret"))}))
        result = runner.invoke(app, ["--no-color", "--plain", "profile", "show", "default"])
        assert "api_key\t(set in config)" in result.output
        assert "fe_inline_secret" not in result.output

    def test_missing(self, saved_profiles: Config) -> None:
        result = runner.invoke(app, ["--no-color", "profile", "show", "ghost"])
        assert result.exit_code == 1
        assert 'profile "ghost" not found' in result.output


class TestProfileCreate:
    def test_create(self, saved_profiles: Config) -> None:
        result = runner.invoke(
            app,
            ["--no-color", "profile", "create", "staging", "--base-url", "http://localhost:3000", "--timeout", "1m"],
        )
        assert result.exit_code == 0, result.output
        assert "Profile 'staging' created" in result.output
        profile = load_config().profiles["staging"]
        assert profile.base_url == "http://localhost:3000"
        assert profile.timeout == "1m"
        assert load_config().current_profile == "default"

    def test_create_current(self, saved_profiles: Config) -> None:
        result = runner.invoke(app, ["--no-color", "profile", "create", "staging", "--current"])
        assert result.exit_code == 0
        assert "Set as current profile" in result.output
        assert load_config().current_profile == "staging"

    def test_duplicate(self, saved_profiles: Config) -> None:
        result = runner.invoke(app, ["--no-color", "profile", "create", "prod"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_bad_timeout(self, saved_profiles: Config) -> None:
        result = runner.invoke(app, ["--no-color", "profile", "create", "x", "--timeout", "soon"])
        assert result.exit_code == 1
        assert "x" not in load_config().profiles


class TestProfileSwitch:
    def test_switch(self, saved_profiles: Config) -> None:
        result = runner.invoke(app, ["--no-color", "profile", "switch", "prod"])
        assert result.exit_code == 0
        assert "Switched to profile 'prod'" in result.output
        assert load_config().current_profile == "prod"

    def test_unknown(self, saved_profiles: Config) -> None:
        result = runner.invoke(app, ["--no-color", "profile", "switch", "ghost"])
        assert result.exit_code == 1
        assert load_config().current_profile == "default"


class TestProfileDelete:
    def test_force_deletes_profile_and_key(self, saved_profiles: Config, memory_keyring) -> None:
        memory_keyring.passwords[(SERVICE_NAME, "prod")] = "fe_abcdefghijklmnop"
        memory_keyring.passwords[(SERVICE_NAME, "__forwardemail_profiles__")] = '["prod"]'
        result = runner.invoke(app, ["--no-color", "--force", "profile", "delete", "prod"])
        assert result.exit_code == 0, result.output
        assert "Profile 'prod' deleted" in result.output
        assert "prod" not in load_config().profiles
        assert (SERVICE_NAME, "prod") not in memory_keyring.passwords

    def test_confirmation_declined(self, saved_profiles: Config) -> None:
        result = runner.invoke(app, ["--no-color", "profile", "delete", "prod"], input="n\n")
        assert result.exit_code == 0
        assert "Cancelled." in result.output
        assert "prod" in load_config().profiles

    def test_confirmation_accepted(self, saved_profiles: Config) -> None:
        result = runner.invoke(app, ["--no-color", "profile", "delete", "prod"], input="y\n")
        assert result.exit_code == 0, result.output
        assert "prod" not in load_config().profiles

    def test_current_profile_is_protected(self, saved_profiles: Config) -> None:
        result = runner.invoke(app, ["--no-color", "-f", "profile", "delete", "default"])
        assert result.exit_code == 1
        assert "cannot delete current profile" in result.output
        assert "default" in load_config().profiles

    def test_without_secure_store(
        self, saved_profiles: Config, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FORWARDEMAIL_KEYRING_BACKEND", "none")
        result = runner.invoke(app, ["--no-color", "-f", "profile", "delete", "prod"])
        assert result.exit_code == 0
        assert "Warning: failed to delete the stored API key" in result.output
        assert "prod" not in load_config().profiles
