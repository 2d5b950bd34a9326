"""FastAPI application factory for deploywatch.

Serves the liveness probe and the Prometheus scrape endpoint::

    GET /health   -> {"status": "ok"}
    GET /metrics  -> Prometheus text exposition format
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

_log = structlog.get_logger(component="api.app")


def create_app() -> FastAPI:
    """Create the deploywatch HTTP application served by uvicorn."""
    from deploywatch import __version__

    app = FastAPI(
        title="deploywatch",
        summary="Argo CD deployment notifier",
        version=__version__,
        docs_url=None,
        redoc_url=None,
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/metrics")
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    _log.debug("api_app_created", version=__version__)
    return app
