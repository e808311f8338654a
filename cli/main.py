"""listing-stream CLI: run scrapes locally or start the API server.

Usage:
    python cli/main.py --help

Commands:
    scrape    → run one scrape and print the SSE event stream to stdout
    serve     → start the HTTP API with uvicorn
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from listing_stream.xxx
# import ...` works when the CLI is invoked as `python cli/main.py` from any
# working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio

import typer
from pydantic import ValidationError

from listing_stream.config import settings
from listing_stream.logging_setup import configure_logging
from listing_stream.scraper import ScrapeEvent, ScrapeRequest, build_pipeline, format_sse

app = typer.Typer(
    name="listing-stream",
    help="Marketplace listing scraper with SSE streaming.",
    no_args_is_help=True,
)


class EchoSink:
    """Writes each event to stdout as an SSE frame."""

    def __init__(self) -> None:
        self.closed = False

    def emit(self, event: ScrapeEvent) -> None:
        typer.echo(format_sse(event), nl=False)

    def close(self) -> None:
        self.closed = True


@app.command("scrape")
def scrape(
    search: str = typer.Option(..., help="Search term."),
    page: int = typer.Option(1, help="Page to fetch (ignored with --get-all)."),
    size: int = typer.Option(settings.default_page_size, help="Items wanted, 1-240."),
    get_all: bool = typer.Option(False, "--get-all", help="Walk every page until results run out."),
    details: bool = typer.Option(False, "--details", help="Enrich items with summarised descriptions."),
) -> None:
    """Scrape search results and print the event stream."""
    try:
        request = ScrapeRequest(
            search_term=search,
            page=page,
            page_size=size,
            fetch_all=get_all,
            fetch_details=details,
        )
    except ValidationError as exc:
        for err in exc.errors():
            typer.echo(f"[scrape] invalid {'.'.join(str(p) for p in err['loc'])}: {err['msg']}", err=True)
        raise typer.Exit(1)

    configure_logging(settings.log_level, settings.log_file, stream=sys.stderr)
    pipeline = build_pipeline(settings)
    sink = EchoSink()
    asyncio.run(pipeline.run(request, sink))


@app.command("serve")
def serve(
    host: str = typer.Option(settings.host, help="Host to bind."),
    port: int = typer.Option(settings.port, help="Port to bind."),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes."),
) -> None:
    """Start the HTTP API."""
    import uvicorn

    typer.echo(f"[serve] Listening on {host}:{port}")
    uvicorn.run("listing_stream.api.app:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
