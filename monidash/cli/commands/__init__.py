"""Commands registered on the ``monidash`` Typer app."""
