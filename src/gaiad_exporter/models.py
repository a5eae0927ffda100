"""Typed views of the upstream status documents and the samples derived from them."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from .exceptions import UpstreamSchemaError

RFC3339_PATTERN = re.compile(
    r"(?P<date>\d{4}-\d{2}-\d{2})[Tt]"
    r"(?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:\d{2})",
    re.ASCII,
)

# Plain decimal or exponent notation, optionally signed, plus Inf/Infinity and NaN.
NUMERIC_PATTERN = re.compile(
    r"[+-]?(?:(?P<finite>(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)|inf(?:inity)?)|nan",
    re.ASCII | re.IGNORECASE,
)

MetricKind = Literal["counter", "gauge"]


def _require_mapping(value: Any, location: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise UpstreamSchemaError(
            f"Expected an object at '{location}', got {type(value).__name__}.",
            field=location,
        )

    return value


def _require_key(data: dict[str, Any], key: str, location: str) -> Any:
    field = f"{location}.{key}" if location else key

    if key not in data:
        raise UpstreamSchemaError(f"Missing required field '{field}'.", field=field)

    return data[key]


def _require_object(data: dict[str, Any], key: str, location: str) -> dict[str, Any]:
    field = f"{location}.{key}" if location else key

    return _require_mapping(_require_key(data, key, location), field)


def _require_string(data: dict[str, Any], key: str, location: str) -> str:
    field = f"{location}.{key}" if location else key
    value = _require_key(data, key, location)

    if not isinstance(value, str):
        raise UpstreamSchemaError(
            f"Expected a string at '{field}', got {type(value).__name__}.",
            field=field,
            value=value,
        )

    return value


def parse_numeric_string(value: str, field: str) -> float:
    """Parse the decimal string encoding used by the daemon for counts and heights.

    Whitespace, digit separators and non-ASCII digits are rejected, as is a
    finite literal too large for a float.
    """
    match = NUMERIC_PATTERN.fullmatch(value)
    parsed = float(value) if match is not None else None

    if parsed is None or (match.group("finite") is not None and math.isinf(parsed)):
        raise UpstreamSchemaError(
            f"Field '{field}' is not numeric: {value!r}.",
            field=field,
            value=value,
        )

    return parsed


def parse_rfc3339(value: str, field: str = "timestamp") -> datetime:
    """Parse an RFC3339 timestamp into an aware datetime.

    Fractional seconds of any length are accepted; digits beyond microsecond
    precision are truncated.
    """
    match = RFC3339_PATTERN.fullmatch(value)

    if match is None:
        raise UpstreamSchemaError(
            f"Field '{field}' is not an RFC3339 timestamp: {value!r}.",
            field=field,
            value=value,
        )

    fraction = (match.group("fraction") or "0")[:6].ljust(6, "0")
    offset = match.group("offset")
    if offset in ("Z", "z"):
        offset = "+00:00"

    try:
        return datetime.fromisoformat(f"{match.group('date')}T{match.group('time')}.{fraction}{offset}")
    except ValueError as exc:
        raise UpstreamSchemaError(
            f"Field '{field}' is not a valid timestamp: {value!r}.",
            field=field,
            value=value,
        ) from exc


@dataclass(frozen=True, slots=True)
class NodeInfo:
    id: str
    network: str

    @classmethod
    def from_payload(cls, data: dict[str, Any], location: str = "result.node_info") -> "NodeInfo":
        return cls(
            id=_require_string(data, "id", location),
            network=_require_string(data, "network", location),
        )


@dataclass(frozen=True, slots=True)
class SyncInfo:
    latest_block_height: float
    latest_block_time: datetime

    @classmethod
    def from_payload(cls, data: dict[str, Any], location: str = "result.sync_info") -> "SyncInfo":
        raw_height = _require_string(data, "latest_block_height", location)
        raw_time = _require_string(data, "latest_block_time", location)

        return cls(
            latest_block_height=parse_numeric_string(raw_height, f"{location}.latest_block_height"),
            latest_block_time=parse_rfc3339(raw_time, f"{location}.latest_block_time"),
        )


@dataclass(frozen=True, slots=True)
class UpstreamStatus:
    """Node identity and sync state taken from one ``/status`` document."""

    node_info: NodeInfo
    sync_info: SyncInfo

    @classmethod
    def from_payload(cls, payload: Any) -> "UpstreamStatus":
        document = _require_mapping(payload, "$")
        result = _require_object(document, "result", "")

        return cls(
            node_info=NodeInfo.from_payload(_require_object(result, "node_info", "result")),
            sync_info=SyncInfo.from_payload(_require_object(result, "sync_info", "result")),
        )

    @property
    def node_id(self) -> str:
        return self.node_info.id

    @property
    def chain_id(self) -> str:
        return self.node_info.network

    @property
    def latest_block_height(self) -> float:
        return self.sync_info.latest_block_height

    @property
    def latest_block_time(self) -> datetime:
        return self.sync_info.latest_block_time

    def block_time_diff(self, now: datetime) -> float:
        """Seconds elapsed between the latest block and ``now``; negative under clock skew."""

        return (now - self.latest_block_time).total_seconds()


@dataclass(frozen=True, slots=True)
class UpstreamNetworkInfo:
    """Peer count taken from one ``/net_info`` document."""

    peer_count: float

    @classmethod
    def from_payload(cls, payload: Any) -> "UpstreamNetworkInfo":
        document = _require_mapping(payload, "$")
        result = _require_object(document, "result", "")
        raw_peers = _require_string(result, "n_peers", "result")

        return cls(peer_count=parse_numeric_string(raw_peers, "result.n_peers"))


@dataclass(frozen=True, slots=True)
class ScrapeLabels:
    """Identity labels shared by every sample of one scrape."""

    node_id: str
    chain_id: str

    @classmethod
    def from_status(cls, status: UpstreamStatus) -> "ScrapeLabels":
        return cls(node_id=status.node_id, chain_id=status.chain_id)

    def as_tuple(self) -> tuple[str, str]:
        return (self.node_id, self.chain_id)

    def as_dict(self) -> dict[str, str]:
        return {"node_id": self.node_id, "chain_id": self.chain_id}


@dataclass(frozen=True, slots=True)
class MetricSample:
    name: str
    kind: MetricKind
    value: float
    labels: ScrapeLabels


@dataclass(frozen=True, slots=True)
class ScrapeResult:
    """Upstream documents and reference time gathered during one scrape."""

    status: UpstreamStatus
    network: UpstreamNetworkInfo
    observed_at: datetime

    @property
    def labels(self) -> ScrapeLabels:
        return ScrapeLabels.from_status(self.status)


__all__ = [
    "MetricKind",
    "MetricSample",
    "NodeInfo",
    "ScrapeLabels",
    "ScrapeResult",
    "SyncInfo",
    "UpstreamNetworkInfo",
    "UpstreamStatus",
    "parse_numeric_string",
    "parse_rfc3339",
]
