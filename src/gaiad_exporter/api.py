"""HTTP API surface for the gaiad exporter."""

from __future__ import annotations

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST

from .exceptions import ScrapeError
from .exposition import render_metrics
from .settings import DEFAULT_METRICS_PATH


def register_health_routes(app: FastAPI) -> None:
    """Register the liveness endpoint.

    - GET /health/livez: always 200 while the process serves requests
    """
    @app.get("/health/livez", response_class=JSONResponse)
    async def livez() -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"status": "alive"},
        )


def register_metrics_routes(app: FastAPI, metrics_path: str = DEFAULT_METRICS_PATH) -> None:
    """Register the Prometheus endpoint at ``metrics_path``.

    The handler is synchronous so each scrape runs in the worker thread pool;
    overlapping scrapes hit the upstream concurrently. A failed upstream call
    fails only that scrape with 503.
    """
    @app.get(metrics_path, response_class=Response)
    def metrics(request: Request) -> Response:
        registry = request.app.state.metrics.registry

        try:
            payload = render_metrics(registry)
        except ScrapeError as exc:
            return PlainTextResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content=f"Scrape failed ({exc.error_type}): {exc.message}\n",
            )

        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


def register_routes(app: FastAPI, metrics_path: str = DEFAULT_METRICS_PATH) -> None:
    register_health_routes(app)
    register_metrics_routes(app, metrics_path)


__all__ = [
    "register_health_routes",
    "register_metrics_routes",
    "register_routes",
]
