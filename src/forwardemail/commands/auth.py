"""Auth commands -- manage API credentials.

Provides the ``forward-email auth`` sub-command group:

* ``login`` -- save an API key for a profile (secure store by default).
* ``logout`` -- remove saved keys for one or all profiles.
* ``verify`` -- check the resolved key against the API.
* ``status`` -- show, per profile, whether a key is available and where from.

Typical workflow::

    forward-email auth login --profile prod
    forward-email auth verify --profile prod
    forward-email auth status
"""

from __future__ import annotations

from typing import Optional

import typer

from forwardemail.client.api_client import APIClient
from forwardemail.commands.common import cli_errors, passphrase_prompt, selected_profile
from forwardemail.output import info, print_table, success, suggest, warning


auth_app = typer.Typer(no_args_is_help=True)


@auth_app.command("login")
def auth_login(
    ctx: typer.Context,
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile to log in to (defaults to current profile)."
    ),
    api_key: Optional[str] = typer.Option(
        None, "--api-key", help="API key. Prompted for (hidden) when omitted."
    ),
    store_in_config: bool = typer.Option(
        False,
        "--store-in-config",
        help="Save the key in the config file instead of the secure store.",
    ),
    skip_verify: bool = typer.Option(
        False, "--skip-verify", help="Save the key without checking it against the API."
    ),
) -> None:
    """Log in and save an API key.

    The key is checked with ``GET /v1/account`` before it is saved, and the
    profile becomes the current one.

    Example::

        forward-email auth login --profile prod
        forward-email auth login --api-key "$KEY" --skip-verify
    """
    from forwardemail.auth import ProviderConfig, SecretSink, StaticKeyAuth, create_provider
    from forwardemail.client.factory import open_secure_store, profile_timeout
    from forwardemail.config import load_config, resolve_base_url, resolve_profile_name, save_config
    from forwardemail.exceptions import InvalidUsageError, StoreUnavailableError
    from forwardemail.models import Profile

    with cli_errors():
        config = load_config()
        name = resolve_profile_name(config, selected_profile(ctx, profile))

        if api_key is None:
            info("Forward Email CLI Login")
            info(f"Profile: {name}")
            info("Enter your Forward Email API key (Account > Security).")
            api_key = typer.prompt("API key", hide_input=True)
        api_key = api_key.strip()
        if not api_key:
            raise InvalidUsageError("API key cannot be empty")

        if name not in config.profiles:
            config.set_profile(name, Profile())

        if not skip_verify:
            base_url = resolve_base_url(config, name)
            candidate = StaticKeyAuth(api_key, base_url=base_url)
            with APIClient(candidate, base_url=base_url, timeout=profile_timeout(config, name)) as client:
                client.validate_auth()

        store = open_secure_store(prompt=passphrase_prompt)
        provider = create_provider(ProviderConfig(profile=name, config=config, store=store))
        sink = SecretSink.CONFIG if store_in_config else SecretSink.STORE
        try:
            provider.set_api_key(api_key, sink=sink)
        except StoreUnavailableError:
            suggest("Re-run with --store-in-config to save the key in the config file")
            raise

        config.current_profile = name
        save_config(config)

    where = "config file" if store_in_config else f"{store.backend_name} store"
    success(f"Logged in to profile '{name}' (key saved in {where})")
    if store_in_config:
        warning("The API key is stored in plain text in the config file")


@auth_app.command("logout")
def auth_logout(
    ctx: typer.Context,
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile to log out from (defaults to current profile)."
    ),
    all_profiles: bool = typer.Option(False, "--all", help="Log out from all profiles."),
) -> None:
    """Remove saved API keys.

    Keys set through environment variables are not affected.
    """
    from forwardemail.auth import ProviderConfig, create_provider
    from forwardemail.client.factory import open_secure_store
    from forwardemail.config import load_config, resolve_profile_name
    from forwardemail.exceptions import SecureStoreError

    with cli_errors():
        config = load_config()
        store = open_secure_store(prompt=passphrase_prompt)

        if not all_profiles:
            name = resolve_profile_name(config, selected_profile(ctx, profile))
            provider = create_provider(ProviderConfig(profile=name, config=config, store=store))
            if provider.delete_api_key():
                success(f"Logged out from profile '{name}'")
            else:
                info(f"No saved API key for profile '{name}'")
            return

        names = set(config.list_profiles())
        try:
            names.update(store.list())
        except SecureStoreError as exc:
            warning(f"cannot list secure store entries: {exc}")
        if not names:
            info("No profiles found to log out from")
            return

        for name in sorted(names):
            provider = create_provider(ProviderConfig(profile=name, config=config, store=store))
            try:
                removed = provider.delete_api_key()
            except SecureStoreError as exc:
                warning(f"failed to log out from profile '{name}': {exc}")
                continue
            if removed:
                success(f"Logged out from profile '{name}'")


@auth_app.command("verify")
def auth_verify(
    ctx: typer.Context,
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile to verify (defaults to current profile)."
    ),
) -> None:
    """Verify the resolved API key against the API."""
    from forwardemail.client.factory import open_context

    with cli_errors():
        context = open_context(selected_profile(ctx, profile), prompt=passphrase_prompt)
        credential = context.provider.resolve_credential()
        info(f"Using API key from {credential.source.value} ({credential.detail})")
        with context.client() as client:
            client.validate_auth()
    success(f"Authentication successful for profile '{context.profile}'")


@auth_app.command("status")
def auth_status() -> None:
    """Show which profiles have an API key and where it comes from."""
    from forwardemail.auth import ProviderConfig, create_provider
    from forwardemail.client.factory import open_secure_store
    from forwardemail.config import load_config

    with cli_errors():
        config = load_config()
        names = config.list_profiles()
        if not names:
            info("No profiles configured")
            return
        store = open_secure_store(prompt=passphrase_prompt)

        rows: list[list[str]] = []
        for name in names:
            provider = create_provider(ProviderConfig(profile=name, config=config, store=store))
            found = [s for s in provider.describe_sources() if s.found]
            current = "*" if name == config.current_profile else ""
            if found:
                rows.append([name, current, "yes", f"{found[0].source.value} ({found[0].detail})"])
            else:
                rows.append([name, current, "no", ""])

    print_table(["PROFILE", "CURRENT", "API_KEY", "SOURCE"], rows, title="Authentication Status")
    if any(row[2] == "no" for row in rows):
        suggest("Add a key: forward-email auth login --profile <name>")
