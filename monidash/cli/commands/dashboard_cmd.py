"""``monidash`` — connect to a build server and show the dashboard.

Settings come from MONIDASH_* environment variables (or ``.env``) and can
be overridden by the flags below.  Without an address the command prints a
message and exits before any connection attempt.
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from monidash import __version__
from monidash.config import DashboardSettings
from monidash.core.dashboard import Dashboard
from monidash.core.fetcher import BuildFetcher
from monidash.errors import FetcherConnectionError
from monidash.terminal.curses_driver import CursesTerminal

console = Console(stderr=True)
logger = logging.getLogger(__name__)


def parse_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``[v6-host]:port``) into its parts.

    Raises
    ------
    typer.BadParameter
        If the port is missing or not a valid TCP port.
    """
    host, sep, port_text = address.strip().rpartition(":")
    if not sep or not host:
        raise typer.BadParameter(f"expected HOST:PORT, got {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port = int(port_text)
    except ValueError:
        raise typer.BadParameter(f"invalid port in {address!r}") from None
    if not 0 < port < 65536:
        raise typer.BadParameter(f"port out of range in {address!r}")
    return host, port


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"monidash {__version__}")
        raise typer.Exit()


def configure_logging(level: str, log_file: Path | None) -> None:
    """Send monidash logs to *log_file*, or discard them.

    Nothing may be written to the terminal while curses owns it.
    """
    package_logger = logging.getLogger("monidash")
    if log_file is None:
        if not any(isinstance(h, logging.NullHandler) for h in package_logger.handlers):
            package_logger.addHandler(logging.NullHandler())
        package_logger.propagate = False
        return
    logging.basicConfig(
        filename=str(log_file),
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def dashboard_cmd(
    address: str = typer.Option(
        None,
        "--address",
        "-a",
        help="Build server as HOST:PORT (or set MONIDASH_ADDRESS).",
        show_default=False,
    ),
    log_file: Path = typer.Option(
        None,
        "--log-file",
        help="Write logs to this file (or set MONIDASH_LOG_FILE).",
    ),
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Log level, e.g. DEBUG or INFO (or set MONIDASH_LOG_LEVEL).",
    ),
    retry_delay: float = typer.Option(
        None,
        "--retry-delay",
        help="Seconds to wait after a network error before reading again.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Show the build dashboard.  Press q or Esc to quit."""
    overrides = {
        "address": address,
        "log_file": log_file,
        "log_level": log_level,
        "retry_delay": retry_delay,
    }
    try:
        settings = DashboardSettings(
            **{key: value for key, value in overrides.items() if value is not None}
        )
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise typer.BadParameter(problems) from exc

    if not settings.address:
        console.print("[bold red]No build server address given.[/bold red]")
        console.print("[dim]Pass --address HOST:PORT or set MONIDASH_ADDRESS.[/dim]")
        raise typer.Exit(code=1)

    host, port = parse_address(settings.address)
    configure_logging(settings.log_level, settings.log_file)

    fetcher = BuildFetcher((host, port), retry_delay=settings.retry_delay)
    try:
        fetcher.start()
    except FetcherConnectionError as exc:
        console.print(f"[bold red]Error connecting:[/bold red] {exc}")
        raise typer.Exit(code=1)

    dashboard = Dashboard(
        CursesTerminal(),
        fetcher.updates,
        minimum_box_size=settings.minimum_box_size,
        padding=settings.padding,
    )
    try:
        dashboard.run()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        fetcher.close()
