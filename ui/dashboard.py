"""Real-time CLI dashboard for relay monitoring."""

from datetime import datetime
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import redact_url, write_cli_log, write_relay_log

console = Console()


class RelayInfo:
    """Info about a single relayed request."""

    def __init__(self, route: str, target: str, status: int, used_fallback: bool, timestamp: datetime):
        self.route = route
        target = redact_url(target)
        self.target = target[:70] + "..." if len(target) > 70 else target
        self.status = status
        self.used_fallback = used_fallback
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing recent relays, fallbacks and errors."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._recent: list[RelayInfo] = []
        self._max_recent = 10
        self._request_count = {"url": 0, "source": 0, "fallback": 0}
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_relay(
        self,
        route: str,
        target: str,
        status: int,
        *,
        used_fallback: bool = False,
    ) -> None:
        """Log a successfully relayed request."""
        with self._lock:
            self._request_count["url" if route == "url" else "source"] += 1
            if used_fallback:
                self._request_count["fallback"] += 1
            info = RelayInfo(route, target, status, used_fallback, datetime.now())
            self._recent.insert(0, info)
            self._recent = self._recent[: self._max_recent]

            write_relay_log(route, target, status, used_fallback=used_fallback)
            write_cli_log(
                "RELAY",
                info.target,
                route=route,
                status=status,
                fallback=used_fallback,
            )
            self._refresh()

    def log_error(self, route: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{route} {status}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:200], route=route, status=status)

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_recent_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("Makro Signal Relay", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"URL: {self._request_count['url']}", style="blue")
        stats.append("  |  ")
        stats.append(f"Sources: {self._request_count['source']}", style="magenta")
        stats.append("  |  ")
        stats.append(f"Fallbacks: {self._request_count['fallback']}", style="yellow")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_recent_panel(self) -> Panel:
        """Build table of recent relays."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Route", width=14)
            table.add_column("Status", width=6)
            table.add_column("Target", ratio=1)

            for info in self._recent:
                route = info.route + (" [yellow]fb[/yellow]" if info.used_fallback else "")
                table.add_row(
                    info.timestamp.strftime("%H:%M:%S"),
                    route,
                    str(info.status),
                    info.target,
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Recent relays[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"GET http://{self.config.proxy.host}:{self.config.proxy.port}/api/source?source=<name>",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
