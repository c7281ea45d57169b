"""
Feed acquisition endpoint.

Endpoints:
- GET /api/rss         -> feed text via every fetch strategy
- GET /api/fetch-rss   -> feed text via a single direct request
- GET /api/items       -> classified items as JSON
- OPTIONS on each path -> CORS pre-flight

Usage:
    uvicorn feed_navigator.server:app --port 3000
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse, Response

from . import __version__, service
from .config import Config
from .exceptions import FeedFetchError
from .fetcher import FetchOrchestrator
from .models import FeedRequest

logger = logging.getLogger(__name__)

XML_MEDIA_TYPE = "application/xml; charset=utf-8"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
NO_CACHE = "no-cache"
EDGE_CACHE = "public, s-maxage=3600, stale-while-revalidate=86400"


def _xml_response(text: str, cache_control: str) -> Response:
    headers = dict(CORS_HEADERS)
    headers["Cache-Control"] = cache_control
    return Response(content=text, media_type=XML_MEDIA_TYPE, headers=headers)


def _error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=dict(CORS_HEADERS))


def _preflight() -> Response:
    return Response(status_code=200, headers=dict(CORS_HEADERS))


def create_app(
    cfg: Optional[Config] = None, orchestrator: Optional[FetchOrchestrator] = None
) -> FastAPI:
    """Build the endpoint application around one orchestrator."""
    cfg = cfg or Config()
    orchestrator = orchestrator or FetchOrchestrator(cfg)

    app = FastAPI(
        title="Feed Navigator API",
        version=__version__,
        description="Feed acquisition relay for nested RSS/Atom browsing",
    )
    app.state.orchestrator = orchestrator

    @app.get("/api/rss")
    def get_rss(
        url: Optional[str] = Query(default=None),
        referer: Optional[str] = Query(default=None),
    ) -> Response:
        if not url:
            return _error_response("No URL provided", 400)
        logger.info("[API] Processing URL: %s", url)
        try:
            result = orchestrator.fetch(FeedRequest(url=url, referer=referer or None))
        except FeedFetchError as exc:
            logger.error("[API] Error: %s", exc)
            return _error_response(str(exc), 500)
        except Exception as exc:
            logger.exception("[API] Unexpected error fetching %s", url)
            return _error_response(str(exc) or "Failed to fetch RSS feed", 500)
        return _xml_response(result.text, NO_CACHE)

    @app.get("/api/fetch-rss")
    def get_fetch_rss(url: Optional[str] = Query(default=None)) -> Response:
        if not url:
            return _error_response("Feed URL is required", 400)
        logger.info("Fetching RSS feed: %s", url)
        try:
            text = orchestrator.fetch_direct(url)
        except FeedFetchError as exc:
            logger.error("RSS fetch error: %s", exc)
            return _error_response(str(exc), 500)
        except Exception as exc:
            logger.exception("Unexpected error fetching %s", url)
            return _error_response(str(exc) or "Failed to fetch RSS feed", 500)
        logger.info("RSS feed fetched successfully, size: %d", len(text))
        return _xml_response(text, EDGE_CACHE)

    @app.get("/api/items")
    def get_items(
        url: Optional[str] = Query(default=None),
        referer: Optional[str] = Query(default=None),
    ) -> Response:
        if not url:
            return _error_response("No URL provided", 400)
        result = service.list_items(url, referer, orchestrator=orchestrator)
        if not result.success:
            return _error_response(result.error or "Failed to fetch RSS feed", 500)
        payload = {
            "url": result.url,
            "title": result.title,
            "degraded": result.degraded,
            "parseError": result.parse_error,
            "items": [item.to_dict() for item in result.items],
        }
        return JSONResponse(payload, headers=dict(CORS_HEADERS))

    for path in ("/api/rss", "/api/fetch-rss", "/api/items"):
        app.add_api_route(path, _preflight, methods=["OPTIONS"], include_in_schema=False)

    return app


app = create_app()
