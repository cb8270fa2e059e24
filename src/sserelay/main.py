from __future__ import annotations

from typing import Optional

import httpx
import typer
from rich.console import Console
from rich.markup import escape

from sserelay.stream import publish_event, stream_events

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()


@app.command("serve")
def serve(
    bind: str = typer.Option("127.0.0.1", "--bind", "-b", help="The address on which the server should listen."),
    port: int = typer.Option(8787, "--port", "-p", help="The port on which the server should listen."),
    allow_all_origins: bool = typer.Option(
        False, "--allow-all-origins", "-a", help="Allow all origins to access the server resources."
    ),
):
    from sserelay_server.main import run_server
    from sserelay_server.settings import Settings

    settings = Settings(bind=bind, port=port, allow_all_origins=allow_all_origins)
    console.print(f"Starting SSE server on {bind}:{port}")
    if allow_all_origins:
        console.print("[yellow]Cross-origin requests allowed from any origin.[/yellow]")
    run_server(settings)


@app.command("listen")
def listen(
    url: str = typer.Argument(..., help="Topic URL to subscribe to, e.g. http://127.0.0.1:8787/room1"),
    json_mode: bool = typer.Option(False, "--json", help="Print each event as raw JSON."),
):
    try:
        stream_events(url=url, json_mode=json_mode)
    except KeyboardInterrupt:
        console.print("\n[cyan]stopped[/cyan]")
    except httpx.HTTPStatusError:
        raise typer.Exit(code=1)
    except httpx.HTTPError as ex:
        console.print(f"[red]stream error[/red]: {escape(str(ex))}")
        raise typer.Exit(code=1)


@app.command("publish")
def publish(
    url: str = typer.Argument(..., help="Topic URL to publish to."),
    data: str = typer.Option(..., "--data", "-d", help="Event data."),
    event: Optional[str] = typer.Option(None, "--event", "-e", help="Optional event name."),
):
    try:
        r = publish_event(url=url, data=data, event=event)
    except httpx.HTTPError as ex:
        console.print(f"[red]publish error[/red]: {escape(str(ex))}")
        raise typer.Exit(code=1)
    if r.status_code != 200:
        console.print(f"[red]{r.status_code}[/red]: {escape(r.text)}")
        raise typer.Exit(code=1)
    console.print("[green]published[/green]")


if __name__ == "__main__":
    app()
