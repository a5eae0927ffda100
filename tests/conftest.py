from __future__ import annotations

import json
from typing import Any, Callable

import pytest
import requests

from gaiad_exporter.settings import reset_settings_cache
from gaiad_exporter.upstream import UpstreamClient

BASE_URL = "http://gaiad.local:26657"


def _build_status_payload(
    *,
    node_id: str = "abc123",
    network: str = "testnet-1",
    height: Any = "500",
    block_time: Any = "2024-01-01T00:00:00Z",
) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": -1,
        "result": {
            "node_info": {"id": node_id, "network": network, "moniker": "validator-0"},
            "sync_info": {
                "latest_block_height": height,
                "latest_block_time": block_time,
                "catching_up": False,
            },
        },
    }


def _build_net_info_payload(n_peers: Any = "3") -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": -1, "result": {"listening": True, "n_peers": n_peers, "peers": []}}


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "") -> None:
        self.status_code = status_code
        self.text = text
        self.closed = False

    def json(self) -> Any:
        return json.loads(self.text)

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Stand-in for requests.Session routing GETs by URL suffix."""

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes: dict[str, Any] = routes or {}
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def get(self, url: str, *, timeout: float | None = None, verify: bool = True) -> FakeResponse:
        self.calls.append({"url": url, "timeout": timeout, "verify": verify})

        for suffix, route in self.routes.items():
            if url.endswith(suffix):
                if isinstance(route, BaseException):
                    raise route
                if isinstance(route, FakeResponse):
                    return FakeResponse(route.status_code, route.text)
                return FakeResponse(200, json.dumps(route))

        raise requests.ConnectionError(f"no route for {url}")

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def reset_exporter_state() -> None:
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def status_payload() -> Callable[..., dict[str, Any]]:
    """Builder for ``/status`` documents; keyword overrides replace single fields."""

    return _build_status_payload


@pytest.fixture
def net_info_payload() -> Callable[..., dict[str, Any]]:
    return _build_net_info_payload


@pytest.fixture
def make_response() -> Callable[..., FakeResponse]:
    return FakeResponse


@pytest.fixture
def make_session() -> Callable[..., FakeSession]:
    return FakeSession


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession(
        {
            "/status": _build_status_payload(),
            "/net_info": _build_net_info_payload(),
        }
    )


@pytest.fixture
def make_client() -> Callable[..., UpstreamClient]:
    def _make(session: FakeSession, **kwargs: Any) -> UpstreamClient:
        return UpstreamClient(BASE_URL, session=session, **kwargs)

    return _make
