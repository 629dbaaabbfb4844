"""Monidash: terminal dashboard for a Monitron build server.

Connects to the build server over TCP, reads newline-delimited JSON
snapshots of every build, and draws each build as a coloured box in a grid
sized to the terminal:
  - BuildFetcher: streaming read / parse / sort of snapshots
  - Grid layout: column-major packing of boxes
  - Cell compositor: border, label and colour-swatch decorators
  - Dashboard: event loop over terminal events and build updates
  - curses terminal driver and Typer CLI
"""

__version__ = "0.1.0"
__description__ = "Terminal based dashboard for the Monitron 5000 build server"

from monidash.core.dashboard import Dashboard
from monidash.core.fetcher import BuildFetcher
from monidash.cli.app import app as cli

__all__ = ["BuildFetcher", "Dashboard", "cli", "__version__"]
