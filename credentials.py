"""Server-held provider credentials - never accepted from or returned to callers."""

import os

from rich.console import Console

from core.config import Config, ProviderSettings

console = Console()


def resolve_api_key(provider: ProviderSettings) -> str | None:
    """Return the provider credential, preferring the environment over the config file."""
    if provider.api_key_env:
        value = os.environ.get(provider.api_key_env, "").strip()
        if value:
            return value
    return provider.api_key.strip() or None


def load_credentials(config: Config) -> dict[str, str]:
    """Map provider name to credential for every provider that needs one."""
    credentials = {}
    for provider in config.providers:
        if not provider.secret_param:
            continue
        key = resolve_api_key(provider)
        if key:
            credentials[provider.name] = key
    return credentials


def mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:4] + "..." + value[-2:]


def print_credential_status(config: Config) -> bool:
    """Print which providers have a credential configured. Returns True if all do."""
    credentials = load_credentials(config)
    ok = True
    for provider in config.providers:
        if not provider.secret_param:
            continue
        key = credentials.get(provider.name)
        if key:
            console.print(
                f"[green]{provider.name}[/green] ({provider.host}) credential set: {mask(key)}"
            )
        else:
            ok = False
            source = f"${provider.api_key_env} or " if provider.api_key_env else ""
            console.print(f"[yellow]{provider.name}[/yellow] ({provider.host}) missing credential")
            console.print(f"  [dim]Set {source}providers[].api_key in the config file[/dim]")
    return ok
