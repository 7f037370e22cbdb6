"""
Visual Tutor CLI - Command-line interface.

Run the API server, trigger retention sweeps and inspect provider
configuration from the terminal.
"""

import logging
from datetime import timedelta
from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from visual_tutor.config import Settings
from visual_tutor.core.exceptions import ConfigurationError
from visual_tutor.retention import RetentionSweeper
from visual_tutor.storage import build_stores

app = typer.Typer(
    name="visual-tutor",
    help="Visual Tutor - educational images with written explanations",
    no_args_is_help=True,
)
console = Console()


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(2)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the HTTP API."""
    settings = _load_settings()
    console.print(
        Panel.fit(
            f"[bold blue]Visual Tutor API[/bold blue]\n"
            f"Listening on http://{host}:{port}\n"
            f"Providers: {', '.join(p.name for p in settings.image_providers) or 'none'}",
        )
    )
    uvicorn.run(
        "visual_tutor.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command()
def sweep(
    days: Optional[float] = typer.Option(
        None, "--days", "-d", help="Retention window in days (default: VT_RETENTION_DAYS)"
    ),
):
    """Delete artifacts older than the retention window."""
    settings = _load_settings()
    logging.basicConfig(level=settings.log_level)

    retention = timedelta(days=days if days is not None else settings.retention_days)
    store, blob_store = build_stores(settings.storage)
    try:
        result = RetentionSweeper(store, blob_store, retention=retention).sweep()
    finally:
        store.close()
        blob_store.close()

    table = Table(title="Retention Sweep")
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Cutoff", result.cutoff)
    table.add_row("Expired rows", str(result.matched_count))
    table.add_row("Rows deleted", str(result.deleted_count))
    table.add_row("Images deleted", str(result.blobs_deleted))
    console.print(table)

    for error in result.errors:
        console.print(f"[yellow]{error}[/yellow]")

    if not result.success:
        console.print("[red]Sweep failed[/red]")
        raise typer.Exit(1)
    console.print("[green]Old images deleted successfully[/green]")


@app.command()
def providers():
    """Show the image provider chain and which providers have credentials."""
    settings = _load_settings()

    table = Table(title=f"Image Providers ({len(settings.image_providers)})")
    table.add_column("#", justify="right")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Model", style="magenta")
    table.add_column("Available", no_wrap=True)

    for position, provider in enumerate(settings.image_providers, start=1):
        available = "[green]yes[/green]" if provider.available else "[red]no credential[/red]"
        table.add_row(str(position), provider.name, provider.model, available)

    console.print(table)

    explanation = settings.explanation_llm
    status = "configured" if explanation.is_configured else "fallback text only"
    console.print(
        f"\nExplanations: {explanation.provider.value} / {explanation.model} ({status})"
    )


@app.command()
def version():
    """Show Visual Tutor version."""
    from visual_tutor import __version__

    console.print(f"Visual Tutor v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
