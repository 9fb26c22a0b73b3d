"""Init command -- interactive first-time setup.

Implements the ``forward-email init`` top-level command. It asks for a
profile name and an API key, saves the key (OS keyring, encrypted file
store or the config file), writes the profile with its default settings
and makes it the current profile.
"""

from __future__ import annotations

import enum
from typing import Optional

import typer

from forwardemail.commands.common import cli_errors, passphrase_prompt
from forwardemail.output import info, success, suggest, warning


class InitStore(str, enum.Enum):
    """Where ``init`` saves the API key."""

    AUTO = "auto"
    KEYRING = "keyring"
    FILE = "file"
    CONFIG = "config"


def init_command(
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name. Prompted for when omitted."
    ),
    api_key: Optional[str] = typer.Option(
        None, "--api-key", help="API key. Prompted for (hidden) when omitted."
    ),
    store: InitStore = typer.Option(
        InitStore.AUTO,
        "--store",
        help="Where to save the key: auto tries the secure store and falls back to config.",
        case_sensitive=False,
    ),
    file_pass: Optional[str] = typer.Option(
        None, "--file-pass", help="Passphrase for --store file. Prompted for when omitted."
    ),
) -> None:
    """Set up a profile and save its API key.

    Existing profiles are kept; re-running ``init`` for the same profile
    replaces its saved key.

    Args:
        profile: Profile to create or update. Defaults to ``default`` at the
            prompt.
        api_key: Key to save. Surrounding whitespace is stripped.
        store: ``auto`` uses the store selected by
            ``FORWARDEMAIL_KEYRING_BACKEND`` and falls back to the config
            file when it is unavailable. ``keyring`` and ``file`` fail
            instead of falling back.
        file_pass: Passphrase for the encrypted file store.

    Raises:
        typer.Exit: With code 2 for an empty key, name or passphrase, and
            code 7 when an explicitly requested store cannot save the key.

    Example::

        forward-email init
        forward-email init --profile prod --store file
    """
    from forwardemail.auth import ProviderConfig, SecretSink, create_provider
    from forwardemail.config import config_path, load_config, save_config
    from forwardemail.exceptions import InvalidUsageError, SecureStoreError
    from forwardemail.models import Profile
    from forwardemail.store import DisabledStore, StoreBackend, StoreSettings, open_store
    from forwardemail.store.base import check_profile_name

    with cli_errors():
        if profile is None:
            info("Forward Email CLI setup")
            profile = typer.prompt("Profile name", default="default")
        name = profile.strip() or "default"
        try:
            check_profile_name(name)
        except SecureStoreError as exc:
            raise InvalidUsageError(f"invalid profile name {name!r}") from exc

        if api_key is None:
            api_key = typer.prompt("API key", hide_input=True)
        api_key = api_key.strip()
        if not api_key:
            raise InvalidUsageError("API key is required")

        if store == InitStore.FILE:
            if file_pass is None:
                file_pass = typer.prompt("File store passphrase", hide_input=True)
            if not file_pass:
                raise InvalidUsageError("a passphrase is required for --store file")

        config = load_config()
        if name not in config.profiles:
            config.set_profile(name, Profile())
        config.current_profile = name

        where = "config file"
        if store != InitStore.CONFIG:
            if store == InitStore.KEYRING:
                settings = StoreSettings(backend=StoreBackend.OS)
            elif store == InitStore.FILE:
                settings = StoreSettings(backend=StoreBackend.FILE, passphrase=file_pass)
            else:
                settings = StoreSettings.from_env(prompt=passphrase_prompt)
            try:
                secure = open_store(settings)
                provider = create_provider(ProviderConfig(profile=name, config=config, store=secure))
                provider.set_api_key(api_key, sink=SecretSink.STORE)
                where = f"{secure.backend_name} store"
            except SecureStoreError as exc:
                if store != InitStore.AUTO:
                    raise
                warning(f"secure store unavailable ({exc}); saving the key in the config file")
                store = InitStore.CONFIG

        if store == InitStore.CONFIG:
            disabled = DisabledStore("key saved in the config file")
            provider = create_provider(ProviderConfig(profile=name, config=config, store=disabled))
            provider.set_api_key(api_key, sink=SecretSink.CONFIG)
        save_config(config)

    success(f"Setup complete. Config: {config_path()} (profile: {name}, key saved in {where})")
    if where == "config file":
        warning("The API key is stored in plain text in the config file")
    elif store == InitStore.FILE:
        suggest("Set FORWARDEMAIL_KEYRING_BACKEND=file so other commands read the file store")
    suggest("Run 'forward-email auth verify' to validate credentials")
