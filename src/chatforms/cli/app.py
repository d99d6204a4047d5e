"""Main CLI application using Typer."""
import asyncio
from typing import Any

import httpx
import typer
import uvicorn
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..api import create_tool_app
from ..log_config import configure_logging
from ..tools import SUBMIT_RESERVATION, default_tool_catalog
from .providers import get_settings, require_chat_app

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="chatforms",
    help="Chat assistant whose tool calls render interactive forms",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address (default: $HOST)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port (default: $PORT or 3000)"),
):
    """Run the application server."""
    settings = get_settings(console)
    configure_logging(settings.log_level)

    chat_app = require_chat_app(settings, console)
    console.print(
        f"[dim]Provider: {settings.llm_provider}, tool server: {settings.tool_server_url}[/dim]"
    )
    uvicorn.run(
        chat_app,
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


@app.command(name="tool-server")
def tool_server(
    host: str | None = typer.Option(None, "--host", help="Bind address (default: $HOST)"),
    port: int | None = typer.Option(
        None, "--port", "-p", help="Port (default: $MCP_PORT or 3001)"
    ),
):
    """Run the tool server."""
    settings = get_settings(console)
    configure_logging(settings.log_level)

    uvicorn.run(
        create_tool_app(),
        host=host or settings.host,
        port=port or settings.tool_server_port,
        log_level=settings.log_level.lower(),
    )


@app.command()
def tools():
    """List the tools offered to the language model."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Name", style="bold")
    table.add_column("Description")
    table.add_column("Parameters")

    for schema in default_tool_catalog():
        required = set(schema.parameters.get("required", []))
        params = ", ".join(
            f"{name}*" if name in required else name
            for name in schema.parameters.get("properties", {})
        )
        table.add_row(schema.name, schema.description, params or "-")

    console.print(table)
    console.print("[dim]* required[/dim]")


def _prompt_form_fields(prefilled: dict[str, Any]) -> dict[str, Any]:
    """Ask for every reservation field the form would collect."""
    schema = next(s for s in default_tool_catalog() if s.name == SUBMIT_RESERVATION)
    params = dict(prefilled)
    for field, prop in schema.parameters.get("properties", {}).items():
        if field in params:
            continue
        value = typer.prompt(f"  {prop.get('description', field)}")
        params[field] = int(value) if prop.get("type") == "integer" and value.isdigit() else value
    return params


def _print_error(response: httpx.Response) -> None:
    try:
        message = response.json().get("error", response.text)
    except ValueError:
        message = response.text
    console.print(f"[red]Error ({response.status_code}): {message}[/red]\n")


@app.command()
def chat(
    url: str | None = typer.Option(
        None, "--url", "-u", help="Application server URL (default: http://localhost:$PORT)"
    ),
):
    """Interactive chat against a running application server."""
    settings = get_settings(console)
    base_url = url or f"http://localhost:{settings.port}"

    async def _chat():
        conversation_id: str | None = None

        async with httpx.AsyncClient(base_url=base_url, timeout=60.0) as client:
            console.print("[bold cyan]chatforms[/bold cyan]")
            console.print("[dim]Type 'exit', 'quit', or 'q' to leave[/dim]\n")

            while True:
                try:
                    user_input = console.input("[bold yellow]You:[/bold yellow] ")

                    if not user_input.strip():
                        continue

                    if user_input.strip().lower() in ('exit', 'quit', 'q'):
                        console.print("[dim]Goodbye![/dim]")
                        break

                    response = await client.post(
                        "/api/chat",
                        json={"message": user_input, "conversationId": conversation_id},
                    )
                    if response.is_error:
                        _print_error(response)
                        continue

                    reply = response.json()
                    conversation_id = reply["conversationId"]
                    console.print(f"[bold green]Assistant:[/bold green] {reply['message']}\n")

                    ui_resource = reply.get("uiResource")
                    if not ui_resource or not ui_resource["uri"].startswith("ui://reservation-form"):
                        continue

                    console.print(Panel(
                        "The assistant sent a reservation form.",
                        title=ui_resource["uri"],
                        border_style="cyan",
                    ))
                    if not typer.confirm("Fill it in now?", default=True):
                        continue

                    prefilled = (reply.get("functionCall") or {}).get("arguments", {})
                    params = _prompt_form_fields(
                        {k: v for k, v in prefilled.items() if k == "restaurantName"}
                    )
                    response = await client.post(
                        "/api/tool-call",
                        json={
                            "toolName": SUBMIT_RESERVATION,
                            "params": params,
                            "conversationId": conversation_id,
                        },
                    )
                    if response.is_error:
                        _print_error(response)
                        continue
                    console.print(
                        f"[bold green]Assistant:[/bold green] {response.json()['message']}\n"
                    )

                except httpx.RequestError as e:
                    console.print(f"[red]Cannot reach {base_url}: {e}[/red]")
                    raise typer.Exit(code=1) from e
                except KeyboardInterrupt:
                    console.print("\n[dim]Goodbye![/dim]")
                    break
                except EOFError:
                    console.print("\n[dim]Goodbye![/dim]")
                    break

    asyncio.run(_chat())


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
