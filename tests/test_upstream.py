from __future__ import annotations

import warnings

import pytest
import requests
import urllib3
from prometheus_client import CollectorRegistry

from gaiad_exporter.exceptions import (
    UpstreamProtocolError,
    UpstreamSchemaError,
    UpstreamTimeoutError,
    UpstreamTransportError,
)
from gaiad_exporter.metrics import create_metrics
from gaiad_exporter.settings import UpstreamSettings
from gaiad_exporter.upstream import STATUS_API, UpstreamClient


def _insecure_request_warning(host: str) -> urllib3.exceptions.InsecureRequestWarning:
    return urllib3.exceptions.InsecureRequestWarning(
        f"Unverified HTTPS request is being made to host '{host}'. "
        "Adding certificate verification is strongly advised."
    )


def test_get_json_returns_decoded_document(fake_session, make_client, status_payload, base_url: str) -> None:
    client = make_client(fake_session)

    assert client.get_json(STATUS_API) == status_payload()
    assert fake_session.calls == [{"url": f"{base_url}/status", "timeout": None, "verify": True}]


def test_base_url_trailing_slash_is_stripped(fake_session, base_url: str) -> None:
    client = UpstreamClient(f"{base_url}/", session=fake_session)

    client.get_json(STATUS_API)

    assert fake_session.calls[0]["url"] == f"{base_url}/status"


def test_from_settings_applies_tls_and_timeout(fake_session, base_url: str) -> None:
    settings = UpstreamSettings(
        endpoint=base_url,
        insecure_skip_verify=True,
        request_timeout_seconds=2.5,
    )

    client = UpstreamClient.from_settings(settings, session=fake_session)
    client.get_json(STATUS_API)

    assert client.verify_tls is False
    assert fake_session.calls[0]["verify"] is False
    assert fake_session.calls[0]["timeout"] == 2.5


def test_zero_timeout_disables_request_timeout(base_url: str) -> None:
    settings = UpstreamSettings(endpoint=base_url, insecure_skip_verify=False, request_timeout_seconds=0)

    assert settings.timeout is None


def test_skipping_tls_verification_only_silences_warnings_for_its_host(fake_session) -> None:
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")

        UpstreamClient("https://node.example:26657", verify_tls=False, session=fake_session)

        warnings.warn(_insecure_request_warning("node.example"))
        warnings.warn(_insecure_request_warning("other.example"))

    messages = [str(warning.message) for warning in caught]
    assert len(messages) == 1
    assert "'other.example'" in messages[0]


def test_verified_client_leaves_warning_filters_untouched(fake_session, base_url: str) -> None:
    before = list(warnings.filters)

    UpstreamClient(base_url, session=fake_session)

    assert warnings.filters == before


@pytest.mark.parametrize(
    ("raised", "expected", "error_type"),
    [
        (requests.ConnectTimeout("connect timed out"), UpstreamTimeoutError, "timeout"),
        (requests.ReadTimeout("read timed out"), UpstreamTimeoutError, "timeout"),
        (requests.ConnectionError("Connection refused"), UpstreamTransportError, "connection_error"),
        (requests.exceptions.SSLError("certificate verify failed"), UpstreamTransportError, "connection_error"),
        (requests.exceptions.ChunkedEncodingError("truncated"), UpstreamProtocolError, "protocol_error"),
    ],
)
def test_request_exceptions_are_categorized(
    make_session,
    make_client,
    base_url: str,
    raised,
    expected,
    error_type,
) -> None:
    client = make_client(make_session({"/status": raised}))

    with pytest.raises(expected) as exc_info:
        client.get_json(STATUS_API)

    error = exc_info.value
    assert error.error_type == error_type
    assert error.api == "/status"
    assert error.url == f"{base_url}/status"
    assert error.__cause__ is raised


def test_missing_endpoint_is_a_transport_error() -> None:
    client = UpstreamClient("", session=requests.Session())

    with pytest.raises(UpstreamTransportError) as exc_info:
        client.get_json(STATUS_API)

    assert exc_info.value.context["original_exception"] == "MissingSchema"


def test_non_success_status_is_protocol_error(make_session, make_response, make_client) -> None:
    client = make_client(make_session({"/status": make_response(500, "internal error")}))

    with pytest.raises(UpstreamProtocolError) as exc_info:
        client.get_json(STATUS_API)

    assert exc_info.value.status_code == 500
    assert "HTTP 500" in str(exc_info.value)


def test_invalid_json_is_schema_error(make_session, make_response, make_client) -> None:
    client = make_client(make_session({"/status": make_response(200, "<html>oops</html>")}))

    with pytest.raises(UpstreamSchemaError, match="not valid JSON"):
        client.get_json(STATUS_API)


def test_deeply_nested_json_is_schema_error(make_session, make_response, make_client) -> None:
    depth = 200_000
    client = make_client(make_session({"/status": make_response(200, "[" * depth + "]" * depth)}))

    with pytest.raises(UpstreamSchemaError, match="not valid JSON") as exc_info:
        client.get_json(STATUS_API)

    assert isinstance(exc_info.value.__cause__, RecursionError)


def test_successful_request_records_duration(fake_session, base_url: str) -> None:
    metrics = create_metrics(CollectorRegistry())
    client = UpstreamClient(base_url, session=fake_session, metrics=metrics.upstream)

    client.get_json(STATUS_API)

    count = metrics.registry.get_sample_value(
        "gaiad_exporter_upstream_request_duration_seconds_count",
        {"api": "/status"},
    )
    assert count == 1.0


def test_close_closes_session(fake_session, base_url: str) -> None:
    with UpstreamClient(base_url, session=fake_session):
        pass

    assert fake_session.closed is True
