"""Command-line entry point for the gaiad exporter."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict, replace

from .app import _configure_logging
from .config import load_env_file, normalize_endpoint, normalize_metrics_path, parse_listen_address
from .exceptions import ValidationError
from .main import run
from .settings import AppSettings, get_settings, reset_settings_cache


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Prometheus exporter for a gaiad node's status API.",
    )
    parser.add_argument(
        "--listen-address",
        dest="listen_address",
        default=None,
        help="Address to listen on (defaults to LISTEN_ADDRESS or :9101).",
    )
    parser.add_argument(
        "--metrics-path",
        dest="metrics_path",
        default=None,
        help="Path to expose metrics (defaults to METRICS_PATH or /metrics).",
    )
    parser.add_argument(
        "--config-file-path",
        dest="config_file_path",
        default="",
        help="Path to environment file (defaults to ./.env when present).",
    )
    parser.add_argument(
        "--print-resolved",
        action="store_true",
        help="Output the resolved settings and exit (endpoint masked by default).",
    )
    parser.add_argument(
        "--show-secrets",
        action="store_true",
        help="Include the upstream endpoint when printing the resolved settings.",
    )
    return parser


def resolve_settings(args: argparse.Namespace) -> AppSettings:
    """Load the env file, re-read the environment and apply flag overrides."""

    load_env_file(args.config_file_path or None)
    reset_settings_cache()

    settings = get_settings()

    server = settings.server
    if args.listen_address is not None:
        server = replace(server, listen_address=args.listen_address)
    if args.metrics_path is not None:
        server = replace(server, metrics_path=args.metrics_path)

    upstream = replace(settings.upstream, endpoint=normalize_endpoint(settings.upstream.endpoint))

    return replace(settings, server=server, upstream=upstream)


def _render_settings(settings: AppSettings, *, show_secrets: bool) -> str:
    payload = asdict(settings)

    if not show_secrets and payload["upstream"]["endpoint"]:
        payload["upstream"]["endpoint"] = "<masked>"

    return json.dumps(payload, indent=2, sort_keys=True)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point used by the ``gaiad-exporter`` script."""

    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(get_settings())

    settings = resolve_settings(args)

    try:
        parse_listen_address(settings.server.listen_address)
        normalize_metrics_path(settings.server.metrics_path)
    except ValidationError as exc:
        parser.error(str(exc))

    if args.print_resolved:
        print(_render_settings(settings, show_secrets=args.show_secrets))
        return 0

    _configure_logging(settings)

    run(settings)

    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
