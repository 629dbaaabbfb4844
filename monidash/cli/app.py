"""Main Typer application.

Entry point: ``monidash`` (configured via pyproject.toml console_scripts).
The app has a single command, so its options sit directly on ``monidash``.
"""

from __future__ import annotations

import typer

from monidash.cli.commands.dashboard_cmd import dashboard_cmd

app = typer.Typer(
    name="monidash",
    help="Terminal based dashboard for the Monitron 5000 build server.",
    rich_markup_mode="rich",
    add_completion=False,
)

app.command(name="monidash", help="Connect to the build server and show the dashboard.")(
    dashboard_cmd
)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
