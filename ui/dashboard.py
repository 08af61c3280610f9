"""Real-time CLI dashboard for gateway monitoring."""

from datetime import datetime
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import write_cli_log

console = Console()


class ForwardInfo:
    """Info about a single forwarded request."""

    def __init__(self, method: str, endpoint: str, status: int, retried: bool, timestamp: datetime):
        self.method = method
        self.endpoint = endpoint[:60] + "..." if len(endpoint) > 60 else endpoint
        self.status = status
        self.retried = retried
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing forwarded requests and session refreshes."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._recent: list[ForwardInfo] = []
        self._max_recent = 10
        self._counts = {"GET": 0, "POST": 0, "PUT": 0, "DELETE": 0}
        self._refreshes = {"ok": 0, "failed": 0}
        self._last_login: datetime | None = None
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

    def log_forward(self, method: str, endpoint: str, status: int, *, retried: bool = False) -> None:
        """Log a request relayed to the upstream."""
        with self._lock:
            self._counts[method] = self._counts.get(method, 0) + 1
            self._recent.insert(0, ForwardInfo(method, endpoint or "/", status, retried, datetime.now()))
            self._recent = self._recent[: self._max_recent]
            self._refresh()
            write_cli_log("FORWARD", endpoint or "/", method=method, status=status, retried=retried)

    def log_refresh(self, success: bool, detail: str = "") -> None:
        """Log an upstream login attempt."""
        with self._lock:
            if success:
                self._refreshes["ok"] += 1
                self._last_login = datetime.now()
            else:
                self._refreshes["failed"] += 1
                self._errors.insert(0, f"login failed: {detail[:50]}")
                self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("REFRESH", detail or ("ok" if success else "failed"), success=success)

    def log_error(self, endpoint: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{endpoint or '/'} {status}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:200], endpoint=endpoint, status=status)

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

        layout["body"].split_row(
            Layout(name="session", ratio=1),
            Layout(name="requests", ratio=2),
        )

        layout["header"].update(self._build_header())
        layout["session"].update(self._build_session_panel())
        layout["requests"].update(self._build_requests_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("Admin Gateway", style="bold cyan")
        for method, count in self._counts.items():
            stats.append("  |  ")
            stats.append(f"{method}: {count}", style="blue")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_session_panel(self) -> Panel:
        """Build upstream session panel."""
        content = Table.grid(padding=(0, 1))
        content.add_column()
        content.add_column()

        content.add_row("[bold]Upstream:[/bold]", self.config.upstream.base_url)
        content.add_row("[bold]Identity:[/bold]", self.config.login.telephone or "[dim]—[/dim]")
        content.add_row("[bold]Logins:[/bold]", str(self._refreshes["ok"]))
        content.add_row("[bold]Failed:[/bold]", str(self._refreshes["failed"]))
        content.add_row(
            "[bold]Last login:[/bold]",
            self._last_login.strftime("%H:%M:%S") if self._last_login else "[dim]never[/dim]",
        )

        return Panel(content, title="[blue]Upstream Session[/blue]", border_style="blue")

    def _build_requests_panel(self) -> Panel:
        """Build recent requests panel."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Method", width=7)
            table.add_column("Endpoint", ratio=2)
            table.add_column("Status", width=6)

            for info in self._recent:
                status = str(info.status) + ("*" if info.retried else "")
                table.add_row(
                    info.timestamp.strftime("%H:%M:%S"),
                    info.method,
                    info.endpoint,
                    status,
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[magenta]Forwarded (* = retried)[/magenta]", border_style="magenta")

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
                f"Forwarding http://localhost:{self.config.proxy.port}{self.config.gateway.prefix}/* "
                f"to {self.config.upstream.base_url}",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
