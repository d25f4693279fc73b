#!/usr/bin/env python3
"""Command-line interface for the render worker using Typer.

``serve`` runs the HTTP worker; ``screenshot`` and ``fetch`` call a running
worker through BrowserRenderingClient.
"""

import asyncio
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from .. import __version__
from ..client import (
    BrowserRenderingClient,
    ClientError,
    ContentProcessor,
    WorkerUnavailableError,
)


class ExitCode(Enum):
    """Process exit codes."""
    SUCCESS = 0
    REQUEST_ERROR = 1
    WORKER_UNAVAILABLE = 2
    CONFIG_ERROR = 3


app = typer.Typer(
    name="render-worker",
    help="Render Worker - headless browser content and screenshot capture",
    add_completion=False,
)


@app.callback()
def main():
    """
    Render Worker - headless browser content and screenshot capture.

    Serve the HTTP worker, or call a running worker from the shell.
    """
    pass


@app.command(name="version")
def show_version():
    """Show version information."""
    typer.echo(f"Render Worker v{__version__}")


@app.command()
def serve(
    host: Annotated[
        Optional[str],
        typer.Option("--host", help="Interface to bind (default from configuration)")
    ] = None,

    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port to listen on (default from configuration)")
    ] = None,

    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to worker YAML configuration")
    ] = None,

    reload: Annotated[
        bool,
        typer.Option("--reload", help="Reload on code changes (development only)")
    ] = False,
):
    """Run the render worker HTTP server."""
    import uvicorn

    from ..config import get_config

    try:
        worker_config = get_config(config)
    except Exception as e:
        typer.echo(f"❌ Configuration error: {e}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)

    uvicorn.run(
        "render_worker.api.main:app",
        host=host or worker_config.server.host,
        port=port or worker_config.server.port,
        reload=reload,
        log_level="info",
    )


@app.command()
def screenshot(
    url: Annotated[str, typer.Argument(help="Page to capture")],

    width: Annotated[int, typer.Option("--width", help="Viewport width in pixels")] = 1280,

    height: Annotated[int, typer.Option("--height", help="Viewport height in pixels")] = 800,

    full_page: Annotated[
        bool,
        typer.Option("--full-page", help="Capture the whole scrollable page")
    ] = False,

    wait_until: Annotated[
        str,
        typer.Option("--wait-until", help="Navigation ready condition")
    ] = "networkidle0",

    timeout: Annotated[
        int,
        typer.Option("--timeout", help="Navigation deadline in milliseconds")
    ] = 30000,

    endpoint: Annotated[
        Optional[str],
        typer.Option("--endpoint", envvar="BROWSER_RENDERING_API", help="Render worker base URL")
    ] = None,
):
    """Capture a screenshot through a running worker and print its link."""

    async def _run() -> str:
        async with BrowserRenderingClient(endpoint) as client:
            return await client.take_screenshot(
                url,
                width=width,
                height=height,
                full_page=full_page,
                wait_until=wait_until,
                timeout=timeout,
            )

    typer.echo(_run_client(_run))


@app.command()
def fetch(
    url: Annotated[str, typer.Argument(help="Page to render")],

    max_length: Annotated[
        int,
        typer.Option("--max-length", help="Truncate output to this many characters (0 for no limit)")
    ] = 0,

    raw: Annotated[
        bool,
        typer.Option("--raw", help="Print the rendered HTML instead of processed text")
    ] = False,

    endpoint: Annotated[
        Optional[str],
        typer.Option("--endpoint", envvar="BROWSER_RENDERING_API", help="Render worker base URL")
    ] = None,
):
    """Fetch a rendered page through a running worker and print it as text."""

    async def _run() -> str:
        async with BrowserRenderingClient(endpoint) as client:
            return await client.fetch_content(url)

    html = _run_client(_run)
    if raw:
        output = html
    else:
        output = ContentProcessor().process_for_llm(html, url)

    typer.echo(ContentProcessor.truncate(output, max_length))


def _run_client(coro_factory):
    """Run a client coroutine, mapping client errors to exit codes."""
    try:
        return asyncio.run(coro_factory())
    except WorkerUnavailableError as e:
        typer.echo(f"❌ {e.message}", err=True)
        raise typer.Exit(code=ExitCode.WORKER_UNAVAILABLE.value)
    except ClientError as e:
        typer.echo(f"❌ {e.message}", err=True)
        raise typer.Exit(code=ExitCode.REQUEST_ERROR.value)


def cli_main():
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    app()
