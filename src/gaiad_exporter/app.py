import logging
import logging.config
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Callable

from fastapi import FastAPI

from .api import register_routes
from .collector import GaiadCollector
from .config import normalize_metrics_path
from .logging import (
    JsonFormatter,
    StructuredTextFormatter,
    build_log_extra,
    get_logger,
)
from .metrics import MetricsBundle, create_metrics
from .settings import AppSettings, get_settings
from .upstream import UpstreamClient

LOGGER = get_logger(__name__)

APP_TITLE = "Gaiad Prometheus Exporter"
APP_DESCRIPTION = "Exposes Prometheus metrics for a gaiad node's status API."


def _configure_logging(settings: AppSettings) -> None:
    """Configure logging based on application settings."""
    log_level = settings.logging.level
    log_format = settings.logging.format

    if log_level not in logging._nameToLevel:
        log_level = "INFO"

    if log_format == "json":
        formatter_config = {
            "()": JsonFormatter,
            "datefmt": "%Y-%m-%dT%H:%M:%S%z",
        }
    else:
        formatter_config = {
            "()": StructuredTextFormatter,
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
            "datefmt": "%Y-%m-%dT%H:%M:%S%z",
            "color_enabled": settings.logging.color_enabled,
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"standard": formatter_config},
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                }
            },
            "root": {"level": log_level, "handlers": ["default"]},
            "loggers": {
                "uvicorn": {
                    "handlers": ["default"],
                    "level": log_level,
                    "propagate": False,
                },
                "uvicorn.error": {
                    "handlers": ["default"],
                    "level": log_level,
                    "propagate": False,
                },
                "uvicorn.access": {
                    "handlers": ["default"],
                    "level": log_level,
                    "propagate": False,
                },
            },
        }
    )


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Flip the ``up`` gauge while serving and release the upstream session on shutdown."""

    metrics: MetricsBundle = app.state.metrics
    collector: GaiadCollector = app.state.collector
    endpoint = collector.client.base_url

    if endpoint:
        LOGGER.info(
            "Using connection endpoint: %s",
            endpoint,
            extra=build_log_extra(url=endpoint),
        )
    else:
        LOGGER.warning("GAIAD_ENDPOINT is not set; every scrape will fail until it is configured.")

    metrics.exporter.up.set(1)

    try:
        yield
    finally:
        metrics.exporter.up.set(0)
        collector.client.close()


def create_app(
    settings: AppSettings | None = None,
    *,
    metrics: MetricsBundle | None = None,
    client: UpstreamClient | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    """Create a FastAPI instance serving the gaiad metrics.

    Args:
        settings: Resolved settings (defaults to the environment-derived settings).
        metrics: Optional metrics bundle for dependency injection; a fresh
            registry is created otherwise.
        client: Optional upstream client for dependency injection.
        clock: Optional reference clock for the block time difference.

    Returns:
        FastAPI application instance with all routes registered.
    """
    resolved_settings = settings or get_settings()
    metrics_path = normalize_metrics_path(resolved_settings.server.metrics_path)

    metrics_bundle = metrics or create_metrics()
    upstream_client = client or UpstreamClient.from_settings(
        resolved_settings.upstream,
        metrics=metrics_bundle.upstream,
    )

    collector = GaiadCollector(upstream_client, metrics=metrics_bundle, clock=clock)
    metrics_bundle.registry.register(collector)

    app = FastAPI(
        title=APP_TITLE,
        description=APP_DESCRIPTION,
        lifespan=_lifespan,
    )

    app.state.settings = resolved_settings
    app.state.metrics = metrics_bundle
    app.state.collector = collector

    register_routes(app, metrics_path)

    return app
