"""Run the HTTP server."""

import typer
import uvicorn
from rich.panel import Panel

from src.storefront.runtime.context import get_config

from .utils import console


def serve(
    host: str | None = typer.Option(None, help="Host to bind (defaults to app.host)"),
    port: int | None = typer.Option(None, help="Port to bind (defaults to app.port)"),
    reload: bool = typer.Option(False, help="Enable auto-reload on code changes"),
) -> None:
    """🚀 Start the API server with uvicorn."""
    config = get_config()
    host = host or config.app.host
    port = port or config.app.port

    console.print(Panel.fit("[bold green]Starting Storefront API[/bold green]", border_style="green"))
    console.print(f"[blue]Server will be available at:[/blue] http://{host}:{port}")

    uvicorn.run(
        "src.storefront.api.http.app:app",
        host=host,
        port=port,
        reload=reload,
        access_log=False,
    )
