from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any

import pytest
import uvicorn
from fastapi import FastAPI

import gaiad_exporter.main as main_module
from gaiad_exporter.exceptions import ValidationError
from gaiad_exporter.settings import AppSettings, get_settings


def _settings_with_listen_address(listen_address: str) -> AppSettings:
    base_settings = get_settings()

    return replace(base_settings, server=replace(base_settings.server, listen_address=listen_address))


def test_serve_starts_uvicorn_on_listen_address(monkeypatch: pytest.MonkeyPatch) -> None:
    captured_configs: list[uvicorn.Config] = []

    async def _fake_serve(self: Any) -> None:
        captured_configs.append(self.config)

    monkeypatch.setattr(uvicorn.Server, "serve", _fake_serve)

    asyncio.run(main_module.serve(_settings_with_listen_address("127.0.0.1:9300")))

    assert len(captured_configs) == 1
    config = captured_configs[0]
    assert config.host == "127.0.0.1"
    assert config.port == 9300
    assert config.log_config is None
    assert isinstance(config.app, FastAPI)


def test_serve_binds_all_interfaces_for_empty_host(monkeypatch: pytest.MonkeyPatch) -> None:
    captured_configs: list[uvicorn.Config] = []

    async def _fake_serve(self: Any) -> None:
        captured_configs.append(self.config)

    monkeypatch.setattr(uvicorn.Server, "serve", _fake_serve)

    asyncio.run(main_module.serve(_settings_with_listen_address(":9101")))

    assert captured_configs[0].host == "0.0.0.0"
    assert captured_configs[0].port == 9101


def test_serve_rejects_malformed_listen_address() -> None:
    with pytest.raises(ValidationError):
        asyncio.run(main_module.serve(_settings_with_listen_address("nonsense")))


def test_run_exits_cleanly_on_keyboard_interrupt(monkeypatch: pytest.MonkeyPatch) -> None:
    def _interrupt(coroutine: Any) -> None:
        coroutine.close()
        raise KeyboardInterrupt

    monkeypatch.setattr(main_module.asyncio, "run", _interrupt)

    with pytest.raises(SystemExit) as exc_info:
        main_module.run(get_settings())

    assert exc_info.value.code == 0
