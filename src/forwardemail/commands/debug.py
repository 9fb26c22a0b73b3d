"""Debug commands -- troubleshoot credential resolution.

* ``debug keys`` -- what the secure store holds for a profile.
* ``debug auth`` -- walk every credential source in resolution order.
* ``debug api`` -- make a live ``GET /v1/account`` with the resolved key.

Secrets are only ever shown as previews (first and last five characters).
"""

from __future__ import annotations

from typing import Optional

import typer

from forwardemail.commands.common import cli_errors, passphrase_prompt, selected_profile
from forwardemail.output import format_response, info, preview_secret, print_table, success, warning


debug_app = typer.Typer(no_args_is_help=True)

_MIN_KEY_LENGTH = 10


def _check_key_shape(api_key: str) -> None:
    if len(api_key) < _MIN_KEY_LENGTH:
        warning(f"API key seems too short (< {_MIN_KEY_LENGTH} characters)")
    if not api_key.isprintable():
        warning("API key contains non-printable characters")


@debug_app.command("keys")
def debug_keys(
    ctx: typer.Context,
    profile: Optional[str] = typer.Argument(None, help="Profile (defaults to current profile)."),
) -> None:
    """Show secure store information for a profile."""
    from forwardemail.client.factory import open_secure_store
    from forwardemail.config import load_config, resolve_profile_name
    from forwardemail.exceptions import SecretNotFoundError, SecureStoreError

    with cli_errors():
        config = load_config()
        name = resolve_profile_name(config, selected_profile(ctx, profile))
        info(f"Debug information for profile: {name}")
        info(f"Current profile in config: {config.current_profile}")

        entry = config.profiles.get(name)
        if entry is None:
            warning(f"Profile '{name}' does not exist in config")
        else:
            info(f"Base URL: {entry.base_url}")
            inline = entry.inline_secret()
            info(f"Config API key: {preview_secret(inline) if inline else '(not set)'}")

        store = open_secure_store(prompt=passphrase_prompt)
        info(f"Secure store backend: {store.backend_name}")
        try:
            api_key = store.get(name)
        except SecretNotFoundError:
            info("No API key in the secure store")
            return
        except SecureStoreError as exc:
            warning(f"Secure store read failed: {exc}")
            return

    success("API key found in the secure store")
    format_response({
        "profile": name,
        "backend": store.backend_name,
        "length": len(api_key),
        "preview": preview_secret(api_key),
    })
    _check_key_shape(api_key)


@debug_app.command("auth")
def debug_auth(
    ctx: typer.Context,
    profile: Optional[str] = typer.Argument(None, help="Profile (defaults to current profile)."),
) -> None:
    """Walk through the credential sources in resolution order."""
    from forwardemail.client.factory import open_context

    with cli_errors():
        context = open_context(selected_profile(ctx, profile), prompt=passphrase_prompt)
        info(f"Resolved profile: {context.profile}")
        info(f"API base URL: {context.base_url}")
        info(f"Secure store backend: {context.store.backend_name}")

        statuses = context.provider.describe_sources()
        rows = [
            [str(i), s.source.value, s.detail, "yes" if s.found else "no", s.note]
            for i, s in enumerate(statuses, 1)
        ]
        print_table(["ORDER", "SOURCE", "DETAIL", "FOUND", "NOTE"], rows, title="Credential sources")

        credential = context.provider.resolve_credential()

    api_key = credential.reveal()
    success(f"API key resolved from {credential.source.value} ({credential.detail})")
    info(f"Length: {len(api_key)} characters, preview: {preview_secret(api_key)}")
    _check_key_shape(api_key)


@debug_app.command("api")
def debug_api(
    ctx: typer.Context,
    profile: Optional[str] = typer.Argument(None, help="Profile (defaults to current profile)."),
) -> None:
    """Make a live API call with the resolved credentials."""
    from forwardemail.auth.base import ACCOUNT_PATH
    from forwardemail.client.factory import open_context

    with cli_errors():
        context = open_context(selected_profile(ctx, profile), prompt=passphrase_prompt)
        info(f"Using profile: {context.profile}")
        info(f"Calling GET {context.base_url}{ACCOUNT_PATH}")
        with context.client() as client:
            account = client.get(ACCOUNT_PATH)

    success("API call succeeded")
    format_response(account if account is not None else {})
