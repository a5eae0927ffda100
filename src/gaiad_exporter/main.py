import asyncio
import sys

import uvicorn

from .app import create_app
from .config import parse_listen_address
from .settings import AppSettings, get_settings


async def serve(settings: AppSettings) -> None:
    """Serve the exporter on the configured listen address until shutdown.

    uvicorn handles SIGTERM and SIGINT itself and exits with status 1 when
    the listen address cannot be bound.
    """
    host, port = parse_listen_address(settings.server.listen_address)

    config = uvicorn.Config(
        create_app(settings),
        host=host,
        port=port,
        log_config=None,
    )

    server = uvicorn.Server(config)

    await server.serve()


def run(settings: AppSettings | None = None) -> None:
    """Run the metrics server, exiting cleanly on interrupt."""

    try:
        asyncio.run(serve(settings or get_settings()))
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    run()
