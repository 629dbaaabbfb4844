"""Monidash CLI — Typer-based command-line interface.

Provides the ``monidash`` command, which connects to the build server and
takes over the terminal until ``q`` or Esc is pressed.

Messages printed outside the dashboard use Rich.
"""
