"""Rendering of the registry into the Prometheus text exposition format."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from prometheus_client import CollectorRegistry, generate_latest


def format_metrics_payload(payload: bytes) -> bytes:
    """Rewrite sample values from scientific notation to plain decimals.

    prometheus_client renders values such as block heights as ``1.2345678e+07``;
    comment lines and label sets are left untouched.
    """
    text = payload.decode()

    lines = []

    for line in text.splitlines():
        if not line or line.startswith("#"):
            lines.append(line)

            continue

        parts = line.rsplit(" ", 1)

        if len(parts) != 2:
            lines.append(line)

            continue

        metric, value = parts

        if "e" in value.lower():
            try:
                value = format(Decimal(value), "f")
            except InvalidOperation:
                pass

        lines.append(f"{metric} {value}")

    return ("\n".join(lines) + "\n").encode()


def render_metrics(registry: CollectorRegistry) -> bytes:
    """Collect every registered collector and return the formatted payload.

    Raises:
        ScrapeError: Propagated from the chain collector when the upstream fails.
    """
    return format_metrics_payload(generate_latest(registry))


__all__ = [
    "format_metrics_payload",
    "render_metrics",
]
