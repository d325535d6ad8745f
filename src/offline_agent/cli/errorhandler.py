"""CLI error handling utilities."""

from collections.abc import Generator
from contextlib import contextmanager

import httpx
import typer
from rich.console import Console

from offline_agent.cache.exceptions import CacheError
from offline_agent.config.exceptions import ConfigError, ConfigValidationError
from offline_agent.exceptions import ActivationError, InstallError, InvalidStateError

console = Console(stderr=True)


@contextmanager
def handle_cli_errors(*, debug: bool = False) -> Generator[None, None, None]:
    """Context manager to handle CLI errors gracefully.

    Args:
        debug: If True, print full traceback. If False, print user-friendly error.

    """
    try:
        yield
    except (KeyboardInterrupt, SystemExit, typer.Exit, typer.Abort):
        raise
    except ConfigValidationError as e:
        if debug:
            raise
        console.print(f"[bold red]⚙️ Invalid Configuration:[/bold red] {e}")
        for err in e.errors:
            location = ".".join(str(part) for part in err.get("loc", ()))
            console.print(f"  - {location}: {err.get('msg')}")
        raise typer.Exit(1) from e
    except ConfigError as e:
        if debug:
            raise
        console.print(f"[bold red]⚙️ Configuration Error:[/bold red] {e}")
        raise typer.Exit(1) from e
    except InstallError as e:
        if debug:
            raise
        console.print(f"[bold red]📦 Install Failed:[/bold red] {e}")
        for failure in e.failures:
            console.print(f"  - {failure.identity}: {failure.cause}")
        raise typer.Exit(1) from e
    except (ActivationError, InvalidStateError) as e:
        if debug:
            raise
        console.print(f"[bold red]🔁 Lifecycle Error:[/bold red] {e}")
        raise typer.Exit(1) from e
    except CacheError as e:
        if debug:
            raise
        console.print(f"[bold red]🗄️ Cache Error:[/bold red] {e}")
        raise typer.Exit(1) from e
    except httpx.TransportError as e:
        if debug:
            raise
        console.print(f"[bold red]🌐 Network Error:[/bold red] {e}")
        raise typer.Exit(1) from e
    except Exception as e:
        if debug:
            console.print_exception(show_locals=False)
            raise typer.Exit(1) from e

        console.print(f"[bold red]💥 An unexpected error occurred:[/bold red] {e}")
        console.print("[dim]Run with [bold]--debug[/bold] for more details.[/dim]")
        raise typer.Exit(1) from e
