"""Settings and app factories for CLI commands.

Turns configuration errors into a console message and exit code 1, so the
commands themselves never deal with missing environment variables.
"""

import typer
from fastapi import FastAPI
from rich.console import Console

from ..api import create_chat_app
from ..config import Settings
from ..errors import ConfigurationError

# Default console for output
_console = Console()


def get_settings(console: Console | None = None) -> Settings:
    """Read settings from the environment.

    Raises:
        typer.Exit: If a variable has an invalid value
    """
    con = console or _console
    try:
        return Settings.from_env()
    except ConfigurationError as e:
        con.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e


def require_chat_app(settings: Settings, console: Console | None = None) -> FastAPI:
    """Build the application server, failing fast without an API key.

    Raises:
        typer.Exit: If the language model gateway is not configured
    """
    con = console or _console
    try:
        return create_chat_app(settings)
    except ConfigurationError as e:
        con.print(f"[red]Error: {e}[/red]")
        con.print(f"[dim]Set {settings.api_key_variable} in the environment or a .env file[/dim]")
        raise typer.Exit(code=1) from e
