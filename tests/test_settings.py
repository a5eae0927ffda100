from pathlib import Path

import pytest

from gaiad_exporter.settings import _as_bool, _as_float, get_settings, reset_settings_cache


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "GAIAD_ENDPOINT",
        "GAIAD_TLS_INSECURE_SKIP_VERIFY",
        "GAIAD_REQUEST_TIMEOUT_SECONDS",
        "LISTEN_ADDRESS",
        "METRICS_PATH",
        "GAIAD_EXPORTER_ENV_FILE",
    ):
        monkeypatch.delenv(key, raising=False)

    settings = get_settings()

    assert settings.upstream.endpoint == ""
    assert settings.upstream.insecure_skip_verify is False
    assert settings.upstream.timeout == 10.0
    assert settings.server.listen_address == ":9101"
    assert settings.server.metrics_path == "/metrics"
    assert settings.config.env_file_path is None


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GAIAD_ENDPOINT", "https://node.example:26657")
    monkeypatch.setenv("GAIAD_TLS_INSECURE_SKIP_VERIFY", "yes")
    monkeypatch.setenv("GAIAD_REQUEST_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("LISTEN_ADDRESS", "127.0.0.1:9200")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FORMAT", "JSON")

    settings = get_settings()

    assert settings.upstream.endpoint == "https://node.example:26657"
    assert settings.upstream.insecure_skip_verify is True
    assert settings.upstream.timeout == 2.5
    assert settings.server.listen_address == "127.0.0.1:9200"
    assert settings.logging.level == "DEBUG"
    assert settings.logging.format == "json"


def test_settings_are_cached_until_reset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GAIAD_ENDPOINT", "https://first")
    first = get_settings()

    monkeypatch.setenv("GAIAD_ENDPOINT", "https://second")
    assert get_settings() is first

    reset_settings_cache()
    assert get_settings().upstream.endpoint == "https://second"


def test_resolve_env_path_prefers_configured_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    env_file = tmp_path.joinpath("exporter.env")
    monkeypatch.setenv("GAIAD_EXPORTER_ENV_FILE", str(env_file))

    assert get_settings().config.resolve_env_path() == env_file.resolve()


def test_resolve_env_path_defaults_to_cwd(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("GAIAD_EXPORTER_ENV_FILE", raising=False)
    monkeypatch.chdir(tmp_path)

    assert get_settings().config.resolve_env_path() == tmp_path.joinpath(".env").resolve()


@pytest.mark.parametrize(
    ("value", "expected"),
    [("1", True), ("On", True), ("false", False), ("no", False), ("maybe", True), (None, True)],
)
def test_as_bool(value: str | None, expected: bool) -> None:
    assert _as_bool(value, True) is expected


def test_as_float_falls_back_on_garbage() -> None:
    assert _as_float("soon", 10.0) == 10.0
    assert _as_float("0.5", 10.0) == 0.5
