"""CLI entry point for makro-relay."""

import sys
from datetime import datetime

from rich.console import Console
from rich.table import Table

from app import create_app
from core.config import CONFIG_FILE, Config, load_config
from core.exceptions import ConfigurationError
from credentials import print_credential_status
from ui.dashboard import Dashboard
from ui.log_utils import clear_logs, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    config = load_config()

    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg == "--check":
            ok = print_credential_status(config)
            sys.exit(0 if ok else 1)

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            return

        if arg == "--sources":
            _print_sources(config)
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

        console.print(f"[red][ERROR][/red] Unknown argument: {arg}")
        _print_help()
        sys.exit(2)

    if not config.allowed_prefixes and not config.sources:
        console.print("[red][ERROR][/red] Nothing to relay: no allowed prefixes or sources configured")
        console.print(f"[dim]Edit {CONFIG_FILE}[/dim]")
        sys.exit(1)

    # Clear previous logs and start dashboard
    clear_logs()
    dashboard = Dashboard(config)

    import uvicorn

    try:
        app = create_app(config, dashboard)
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        console.print(f"[dim]Edit {CONFIG_FILE}[/dim]")
        sys.exit(1)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="debug" if config.proxy.debug else "warning",
    )
    server = uvicorn.Server(uvicorn_config)

    dashboard.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Relay started", port=config.proxy.port)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Relay stopped", duration=str(duration))
        dashboard.stop()


def _print_sources(config: Config) -> None:
    """Print the symbolic source table and the literal allowlist."""
    table = Table(title="Sources", header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Primary")
    table.add_column("Fallback", style="dim")
    for name, source in config.sources.items():
        fallback = source.fallback.url if source.fallback else "-"
        table.add_row(name, source.primary.url, fallback)
    console.print(table)

    console.print("[bold]Allowed URL prefixes:[/bold]")
    for prefix in config.allowed_prefixes:
        console.print(f"  {prefix}")


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Makro Signal Relay[/bold cyan]

Relays allowlisted market-data requests, injecting provider credentials server-side.

[bold]Usage:[/bold]
    makro-relay              Start with live dashboard
    makro-relay --check      Check provider credentials
    makro-relay --config     Show config location
    makro-relay --sources    List named sources and allowed URL prefixes
    makro-relay --help       Show this help

[bold]Endpoints:[/bold]
    GET /api/fetch?url=<encoded url>
    GET /api/source?source=<name>

[bold]Credentials:[/bold]
    FRED: set FRED_API_KEY or providers[].api_key in the config file.
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
