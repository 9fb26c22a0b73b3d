"""Profile commands -- manage configuration profiles.

Provides the ``forward-email profile`` sub-command group for listing,
inspecting, creating, switching and deleting the profiles stored in the
config file. Each profile names an API endpoint and its settings; the API
key itself normally lives in the secure store.
"""

from __future__ import annotations

from typing import Optional

import typer

from forwardemail.commands.common import cli_errors, is_forced, passphrase_prompt
from forwardemail.output import debug, format_response, info, print_table, success, suggest, warning


profile_app = typer.Typer(no_args_is_help=True)


@profile_app.command("list")
def profile_list() -> None:
    """List all profiles.

    The ``API_KEY`` column shows where a saved key lives (``config`` or the
    secure store backend name). Environment variables are not considered.
    """
    from forwardemail.client.factory import open_secure_store
    from forwardemail.config import load_config
    from forwardemail.exceptions import SecureStoreError

    with cli_errors():
        config = load_config()
        store = open_secure_store(prompt=passphrase_prompt)
        # Listing never decrypts, so no passphrase is asked for.
        stored: Optional[set[str]]
        try:
            stored = set(store.list())
        except SecureStoreError as exc:
            debug(f"secure store listing failed: {exc}")
            stored = None
        rows: list[list[str]] = []
        for name in config.list_profiles():
            entry = config.profiles[name]
            if entry.inline_secret():
                saved = "config"
            elif stored is None:
                saved = "?"
            else:
                saved = store.backend_name if name in stored else ""
            rows.append([
                name,
                "*" if name == config.current_profile else "",
                entry.base_url,
                saved,
                entry.output,
                entry.timeout,
            ])

    print_table(["PROFILE", "CURRENT", "BASE_URL", "API_KEY", "OUTPUT", "TIMEOUT"], rows)


@profile_app.command("show")
def profile_show(
    name: Optional[str] = typer.Argument(None, help="Profile name (defaults to current profile)."),
) -> None:
    """Show profile details. Inline API keys are masked."""
    from forwardemail.config import load_config

    with cli_errors():
        config = load_config()
        profile_name = name or config.current_profile
        entry = config.get_profile(profile_name)

    data = entry.model_dump(mode="json", exclude={"api_key"})
    data["api_key"] = "(set in config)" if entry.inline_secret() else ""
    format_response({"name": profile_name, "current": profile_name == config.current_profile, **data})


@profile_app.command("create")
def profile_create(
    name: str = typer.Argument(help="Name of the new profile."),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="API base URL."),
    timeout: Optional[str] = typer.Option(None, "--timeout", help="Request timeout, e.g. 30s."),
    set_current: bool = typer.Option(
        False, "--current", help="Make the new profile the current one."
    ),
) -> None:
    """Create a new profile with default settings.

    Example::

        forward-email profile create staging --base-url https://api.example.test
    """
    from forwardemail.config import load_config, parse_duration, save_config
    from forwardemail.exceptions import ConfigError
    from forwardemail.models import Profile

    with cli_errors():
        config = load_config()
        if name in config.profiles:
            raise ConfigError(f"profile '{name}' already exists")
        profile = Profile()
        if base_url:
            profile.base_url = base_url
        if timeout:
            parse_duration(timeout)
            profile.timeout = timeout
        config.set_profile(name, profile)
        if set_current or not config.current_profile:
            config.current_profile = name
        save_config(config)

    success(f"Profile '{name}' created")
    if config.current_profile == name:
        info("Set as current profile")
    suggest(f"Add an API key: forward-email auth login --profile {name}")


@profile_app.command("switch")
def profile_switch(
    name: str = typer.Argument(help="Profile to make current."),
) -> None:
    """Switch the current profile."""
    from forwardemail.config import load_config, save_config

    with cli_errors():
        config = load_config()
        config.get_profile(name)
        config.current_profile = name
        save_config(config)
    success(f"Switched to profile '{name}'")


@profile_app.command("delete")
def profile_delete(
    ctx: typer.Context,
    name: str = typer.Argument(help="Profile to delete."),
) -> None:
    """Delete a profile and its saved API key.

    The current profile cannot be deleted; switch to another one first.
    Asks for confirmation unless ``--force`` is active.
    """
    from forwardemail.client.factory import open_secure_store
    from forwardemail.config import load_config, save_config
    from forwardemail.exceptions import SecretNotFoundError, SecureStoreError

    with cli_errors():
        config = load_config()
        config.get_profile(name)
        if not is_forced(ctx):
            confirmed = typer.confirm(
                f"Delete profile '{name}' and its saved credentials?", default=False
            )
            if not confirmed:
                info("Cancelled.")
                raise typer.Exit()

        config.delete_profile(name)
        store = open_secure_store(prompt=passphrase_prompt)
        try:
            store.delete(name)
        except SecretNotFoundError:
            debug(f"no stored API key for profile {name}")
        except SecureStoreError as exc:
            warning(f"failed to delete the stored API key: {exc}")
        save_config(config)

    success(f"Profile '{name}' deleted")
