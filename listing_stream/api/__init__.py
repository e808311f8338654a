"""HTTP surface for the listing scraper (SSE over FastAPI).

Serve with::

    uvicorn listing_stream.api:app --port 4000
"""

from listing_stream.api.app import app

__all__ = ["app"]
