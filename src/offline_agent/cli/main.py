"""Typer application acting as a host for the agent."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from offline_agent.agent import Agent
from offline_agent.cache.store import TierStore
from offline_agent.cli.errorhandler import handle_cli_errors
from offline_agent.config import load_settings
from offline_agent.control import ReplyChannel
from offline_agent.fallback import FALLBACK_HEADER
from offline_agent.logging_setup import configure_logging

app = typer.Typer(
    name="offline-agent",
    help="Request interception and versioned cache orchestration for offline-capable sites",
    add_completion=False,
)

console = Console()

RootOption = Annotated[
    Path,
    typer.Option("--root", "-r", help="Directory holding .offline-agent.toml", file_okay=False),
]
DebugOption = Annotated[bool, typer.Option("--debug", help="Show full tracebacks")]


@app.callback()
def _initialize_cli(
    log_level: Annotated[str | None, typer.Option("--log-level", help="Logging level")] = None,
) -> None:
    """Configure logging for every command."""
    configure_logging(log_level)


def _build_agent(root: Path) -> Agent:
    return Agent(load_settings(root))


@app.command()
def start(root: RootOption = Path(), debug: DebugOption = False) -> None:
    """Install the static assets, then activate the current generations."""

    async def _run() -> None:
        async with _build_agent(root) as agent:
            results = await agent.on_install()
            await agent.on_activate()
            console.print(
                f"[green]✓[/green] Cached {len(results)} static assets in "
                f"[bold]{agent.settings.generations.static}[/bold]; agent active"
            )

    with handle_cli_errors(debug=debug):
        asyncio.run(_run())


@app.command()
def cleanup(root: RootOption = Path(), debug: DebugOption = False) -> None:
    """Delete every cache tier that is not a current generation."""

    async def _run() -> None:
        async with _build_agent(root) as agent:
            results = await agent.lifecycle.evict_stale_generations()
        if not results:
            console.print("No stale tiers found")
            return
        for result in results:
            mark = "[green]deleted[/green]" if result.success else f"[red]failed[/red] ({result.cause})"
            console.print(f"{result.identity}: {mark}")

    with handle_cli_errors(debug=debug):
        asyncio.run(_run())


@app.command()
def fetch(
    url: Annotated[str, typer.Argument(help="URL or path to request through the agent")],
    navigate: Annotated[bool, typer.Option("--navigate", help="Treat as a page navigation")] = False,
    image: Annotated[bool, typer.Option("--image", help="Treat as an image request")] = False,
    root: RootOption = Path(),
    debug: DebugOption = False,
) -> None:
    """Route one GET request through the interceptor and report what answered it."""

    async def _run() -> None:
        async with _build_agent(root) as agent:
            request = agent.request(
                url,
                mode="navigate" if navigate else "no-cors",
                destination="image" if image else "",
            )
            response = await agent.on_fetch(request)
        if response is None:
            console.print(f"[yellow]Not intercepted:[/yellow] {request.url}")
            return
        source = "fallback" if FALLBACK_HEADER in response.headers else "cache or network"
        console.print(f"{response.status_code} {response.headers.get('content-type', '-')} ({source})")

    with handle_cli_errors(debug=debug):
        asyncio.run(_run())


@app.command()
def tiers(root: RootOption = Path(), debug: DebugOption = False) -> None:
    """List cache tiers and whether they belong to the current generations."""
    with handle_cli_errors(debug=debug):
        settings = load_settings(root)
        store = TierStore(settings.cache_dir)
        table = Table(title="Cache tiers")
        table.add_column("Tier", style="cyan")
        table.add_column("Entries", justify="right")
        table.add_column("Status")
        for name in store.list_tier_names():
            with store.open(name) as tier:
                entries = len(tier)
            status = "current" if settings.generations.is_current(name) else "[yellow]stale[/yellow]"
            table.add_row(name, str(entries), status)
        console.print(table)


@app.command()
def version(root: RootOption = Path(), debug: DebugOption = False) -> None:
    """Ask the control channel for the active static generation."""

    async def _run() -> None:
        async with _build_agent(root) as agent:
            channel = ReplyChannel()
            await agent.on_message({"type": "GET_VERSION", "ports": [channel]})
            reply = await channel.receive(timeout=1.0)
        console.print_json(json.dumps(reply))

    with handle_cli_errors(debug=debug):
        asyncio.run(_run())


@app.command("clear-cache")
def clear_cache(
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
    root: RootOption = Path(),
    debug: DebugOption = False,
) -> None:
    """Delete every cache tier, whatever its generation."""
    if not yes:
        typer.confirm("Delete all cache tiers?", abort=True)

    async def _run() -> None:
        async with _build_agent(root) as agent:
            await agent.on_message({"type": "CLEAR_CACHE"})
            remaining = agent.store.list_tier_names()
        if remaining:
            console.print(f"[yellow]Tiers left behind:[/yellow] {', '.join(remaining)}")
        else:
            console.print("[green]✓[/green] All cache tiers deleted")

    with handle_cli_errors(debug=debug):
        asyncio.run(_run())


@app.command()
def push(
    payload: Annotated[str, typer.Argument(help='JSON payload, e.g. {"title": "Hi", "body": "..."}')],
    root: RootOption = Path(),
    debug: DebugOption = False,
) -> None:
    """Deliver a push payload and show the resulting notification descriptor."""

    async def _run() -> None:
        async with _build_agent(root) as agent:
            notification = await agent.on_push(payload)
        if notification is None:
            console.print("[yellow]Payload ignored[/yellow]")
            return
        console.print_json(notification.descriptor.model_dump_json())

    with handle_cli_errors(debug=debug):
        asyncio.run(_run())


def main() -> None:
    app()


__all__ = ["app", "main"]
