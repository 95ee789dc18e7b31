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
from ui.log_utils import write_cli_log, write_relay_log

console = Console()


class RelayInfo:
    """Info about a single relayed request."""

    def __init__(
        self,
        route: str,
        target: str,
        status: int,
        content_type: str,
        links_rewritten: int | None,
        timestamp: datetime,
    ):
        self.route = route
        self.target = target[:80] + "..." if len(target) > 80 else target
        self.status = status
        self.content_type = content_type.split(";")[0].strip() or "?"
        self.links_rewritten = links_rewritten
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing recently relayed pages and errors."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._recent: list[RelayInfo] = []
        self._max_recent = 10
        self._request_count = {"html": 0, "passthrough": 0, "error": 0}
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
        content_type: str,
        *,
        rewritten: bool,
        base_injected: bool = False,
        links_rewritten: int = 0,
    ) -> None:
        """Log a relayed upstream response."""
        with self._lock:
            self._request_count["html" if rewritten else "passthrough"] += 1
            info = RelayInfo(
                route=route,
                target=target,
                status=status,
                content_type=content_type,
                links_rewritten=links_rewritten if rewritten else None,
                timestamp=datetime.now(),
            )
            self._recent.insert(0, info)
            self._recent = self._recent[: self._max_recent]

            write_relay_log(
                route,
                target,
                status,
                content_type,
                rewritten=rewritten,
                base_injected=base_injected,
                links_rewritten=links_rewritten,
            )
            write_cli_log("RELAY", target[:200], status=status, route=route)

            self._refresh()

    def log_error(self, route: str, status: int, message: str, *, kind: str) -> None:
        """Log an error."""
        with self._lock:
            self._request_count["error"] += 1
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{route} {status} {kind}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:200], route=route, status=status, kind=kind)

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
        stats.append("Frame Relay", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"HTML: {self._request_count['html']}", style="blue")
        stats.append("  |  ")
        stats.append(f"Passthrough: {self._request_count['passthrough']}", style="magenta")
        stats.append("  |  ")
        stats.append(f"Errors: {self._request_count['error']}", style="red")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_recent_panel(self) -> Panel:
        """Build panel of recently relayed requests."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Status", width=6)
            table.add_column("Type", width=24)
            table.add_column("Links", width=6)
            table.add_column("Target", ratio=1)

            for info in self._recent:
                status_style = "green" if info.status < 400 else "yellow"
                table.add_row(
                    info.timestamp.strftime("%H:%M:%S"),
                    f"[{status_style}]{info.status}[/{status_style}]",
                    info.content_type[:24],
                    "-" if info.links_rewritten is None else str(info.links_rewritten),
                    info.target,
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Relayed[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors and usage hint."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            routes = ", ".join(route.path for route in self.config.relay.routes)
            content = Text(
                f"Frame http://{self.config.proxy.host}:{self.config.proxy.port}"
                f"<route>?url=<page>  (routes: {routes})",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
