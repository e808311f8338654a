"""FastAPI application factory.

Lifespan
--------
On startup the app configures logging and wires a single
:class:`~listing_stream.scraper.ScrapePipeline` (fetcher, proxy pool, retry
policy, summariser) into ``request.app.state.pipeline``.  The pipeline holds
no per-request state, so every request shares it; each request gets its own
event sink.

Routers
-------
    /api/scrape  Listing scrape streamed as Server-Sent Events
    /health      Liveness probe
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from listing_stream.api.routers import scrape as scrape_router
from listing_stream.config import settings
from listing_stream.logging_setup import configure_logging
from listing_stream.scraper import build_pipeline


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the process-wide collaborators once."""
    configure_logging(settings.log_level, settings.log_file)
    app.state.settings = settings
    app.state.pipeline = build_pipeline(settings)
    yield


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed query parameters are a client error (400), not 422."""
    return JSONResponse(status_code=400, content={"detail": scrape_router.error_details(exc.errors())})


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="Listing Stream API",
        description=(
            "Streams marketplace search results as Server-Sent Events, "
            "optionally enriched with summarised product descriptions."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(scrape_router.router, prefix="/api", tags=["scrape"])

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


# Module-level instance used by uvicorn:
#   uvicorn listing_stream.api.app:app --reload
app = create_app()
