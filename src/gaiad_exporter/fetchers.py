"""Fetchers that turn upstream API documents into typed records."""

from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar

from .exceptions import UpstreamSchemaError
from .logging import build_log_extra, get_logger
from .models import UpstreamNetworkInfo, UpstreamStatus
from .upstream import NETWORK_API, STATUS_API, UpstreamClient

LOGGER = get_logger(__name__)

DocumentT = TypeVar("DocumentT")


class _DocumentFetcher(Generic[DocumentT]):
    """One GET against a fixed API path, parsed into a typed record."""

    api: str

    def __init__(self, client: UpstreamClient) -> None:
        self._client = client

    @property
    def client(self) -> UpstreamClient:
        return self._client

    def _fetch(self, parse: Callable[[Any], DocumentT]) -> DocumentT:
        payload = self._client.get_json(self.api)

        try:
            return parse(payload)
        except UpstreamSchemaError as exc:
            raise UpstreamSchemaError(
                f"Unexpected {self.api} response: {exc.message}",
                field=exc.field,
                value=exc.value,
                api=self.api,
                url=self._client.url_for(self.api),
            ) from exc


class StatusFetcher(_DocumentFetcher[UpstreamStatus]):
    """Reads node identity and sync state from ``GET {base}/status``."""

    api = STATUS_API

    def fetch(self) -> UpstreamStatus:
        status = self._fetch(UpstreamStatus.from_payload)

        LOGGER.debug(
            "Fetched status at height %s.",
            status.latest_block_height,
            extra=build_log_extra(api=self.api, node_id=status.node_id, chain_id=status.chain_id),
        )

        return status


class NetworkFetcher(_DocumentFetcher[UpstreamNetworkInfo]):
    """Reads the peer count from ``GET {base}/net_info``."""

    api = NETWORK_API

    def fetch(self) -> UpstreamNetworkInfo:
        return self._fetch(UpstreamNetworkInfo.from_payload)


__all__ = [
    "NetworkFetcher",
    "StatusFetcher",
]
