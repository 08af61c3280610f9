"""CLI entry point for admin-gateway."""

import asyncio
import sys
from datetime import datetime

import httpx
from rich.console import Console

from app import create_app
from auth import UpstreamSession
from core.config import CONFIG_FILE, Config, load_config, validate_identity
from core.exceptions import ConfigurationError, LoginError
from ui.dashboard import Dashboard
from ui.log_utils import CLI_LOG_FILE, clear_logs, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    config = load_config()

    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg in ("--check", "--auth"):
            sys.exit(0 if check_login(config) else 1)

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            console.print(f"[bold]Log:[/bold] {CLI_LOG_FILE}")
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

    # The login identity is required before any request can be forwarded
    try:
        validate_identity(config)
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        console.print(f"[dim]Edit {CONFIG_FILE}[/dim]")
        sys.exit(1)

    clear_logs()
    dashboard = Dashboard(config)

    import uvicorn

    app = create_app(config, dashboard)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="warning",
        timeout_keep_alive=config.limits.keep_alive_timeout,
    )
    server = uvicorn.Server(uvicorn_config)

    dashboard.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Gateway started", port=config.proxy.port, upstream=config.upstream.base_url)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Gateway stopped", duration=str(duration))
        dashboard.stop()


def check_login(config: Config) -> bool:
    """Log in to the upstream once and report the result."""
    try:
        validate_identity(config)
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        return False

    try:
        asyncio.run(_login_once(config))
    except LoginError as e:
        console.print(f"[red]Login failed[/red] ({config.upstream.base_url}): {e}")
        return False

    console.print(f"[green]Login succeeded[/green] against {config.upstream.base_url}")
    return True


async def _login_once(config: Config) -> str:
    async with httpx.AsyncClient(
        base_url=config.upstream.base_url,
        timeout=config.upstream.timeout,
    ) as client:
        session = UpstreamSession(client, config.login, _SilentLogger())
        return await session.login()


class _SilentLogger:
    """RequestLogger used outside the server; the CLI prints results itself."""

    def log_forward(self, method: str, endpoint: str, status: int, *, retried: bool = False) -> None:
        pass

    def log_refresh(self, success: bool, detail: str = "") -> None:
        pass

    def log_error(self, endpoint: str, status: int, message: str) -> None:
        pass


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Admin Gateway[/bold cyan]

Relays /admin/* to the upstream service with a managed session token.

[bold]Usage:[/bold]
    admin-gateway              Start with live dashboard
    admin-gateway --check      Log in to the upstream once and report
    admin-gateway --config     Show config and log locations
    admin-gateway --help       Show this help

[bold]Authentication:[/bold]
    Logs in with login.telephone / login.password from the config file
    and re-authenticates automatically when the upstream session expires.
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
