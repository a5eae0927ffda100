"""HTTP transport for the upstream daemon's JSON status API."""

from __future__ import annotations

import re
import warnings
from typing import Any
from urllib.parse import urlsplit

import requests
import urllib3

from .exceptions import (
    UpstreamError,
    UpstreamProtocolError,
    UpstreamSchemaError,
    UpstreamTimeoutError,
    UpstreamTransportError,
)
from .logging import build_log_extra, get_logger, timed
from .metrics import UpstreamMetrics
from .settings import UpstreamSettings

LOGGER = get_logger(__name__)

STATUS_API = "/status"
NETWORK_API = "/net_info"


def _wrap_request_exception(exception: requests.RequestException, *, api: str, url: str) -> UpstreamError:
    """Map a requests exception onto the upstream error hierarchy.

    Args:
        exception: The exception raised by requests.
        api: The upstream API path.
        url: The full request URL.

    Returns:
        An UpstreamError subclass describing the failure.
    """
    message = f"Request to {url} failed: {exception}"
    context = {"original_exception": type(exception).__name__}

    if isinstance(exception, requests.Timeout):
        return UpstreamTimeoutError(message, api=api, url=url, context=context)

    if isinstance(exception, (requests.exceptions.ChunkedEncodingError, requests.exceptions.ContentDecodingError)):
        return UpstreamProtocolError(message, api=api, url=url, context=context)

    # ConnectionError covers SSLError and proxy failures; anything else (invalid
    # or missing URL, too many redirects) still means the daemon was not reached.
    return UpstreamTransportError(message, api=api, url=url, context=context)


def _ignore_insecure_request_warnings(base_url: str) -> None:
    """Silence urllib3's unverified HTTPS warning for ``base_url``'s host only.

    Requests made elsewhere in the process to other hosts still warn.
    """
    try:
        host = urlsplit(base_url).hostname
    except ValueError:
        host = None

    if not host:
        return

    warnings.filterwarnings(
        "ignore",
        message=rf"Unverified HTTPS request is being made to host '{re.escape(host)}'",
        category=urllib3.exceptions.InsecureRequestWarning,
    )


class UpstreamClient:
    """Issues single, unretried GET requests against the daemon and decodes JSON bodies."""

    def __init__(
        self,
        base_url: str,
        *,
        verify_tls: bool = True,
        timeout_seconds: float | None = None,
        session: requests.Session | None = None,
        metrics: UpstreamMetrics | None = None,
    ) -> None:
        self._base_url = base_url.strip().rstrip("/")
        self._verify_tls = verify_tls
        self._timeout_seconds = timeout_seconds
        self._session = session or requests.Session()
        self._metrics = metrics

        if not verify_tls:
            _ignore_insecure_request_warnings(self._base_url)
            LOGGER.warning(
                "TLS certificate verification is disabled for %s.",
                self._base_url or "<unset>",
                extra=build_log_extra(url=self._base_url),
            )

    @classmethod
    def from_settings(
        cls,
        settings: UpstreamSettings,
        *,
        session: requests.Session | None = None,
        metrics: UpstreamMetrics | None = None,
    ) -> "UpstreamClient":
        return cls(
            settings.endpoint,
            verify_tls=not settings.insecure_skip_verify,
            timeout_seconds=settings.timeout,
            session=session,
            metrics=metrics,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def verify_tls(self) -> bool:
        return self._verify_tls

    @property
    def timeout_seconds(self) -> float | None:
        return self._timeout_seconds

    def url_for(self, api: str) -> str:
        return f"{self._base_url}{api}"

    def get_json(self, api: str) -> Any:
        """GET ``{base_url}{api}`` and return the decoded JSON document.

        Raises:
            UpstreamTransportError: The daemon could not be reached.
            UpstreamTimeoutError: The request exceeded the configured timeout.
            UpstreamProtocolError: Non-2xx status or unreadable body.
            UpstreamSchemaError: The body is not valid JSON.
        """
        url = self.url_for(api)

        with timed(LOGGER, "upstream_request", extra=build_log_extra(api=api, url=url)) as timing:
            payload = self._request(api, url)

        if self._metrics is not None:
            self._metrics.record_request_duration(api, timing.elapsed)

        return payload

    def _request(self, api: str, url: str) -> Any:
        try:
            response = self._session.get(url, timeout=self._timeout_seconds, verify=self._verify_tls)
        except requests.RequestException as exc:
            raise _wrap_request_exception(exc, api=api, url=url) from exc

        try:
            if not 200 <= response.status_code < 300:
                raise UpstreamProtocolError(
                    f"Request to {url} returned HTTP {response.status_code}.",
                    api=api,
                    url=url,
                    status_code=response.status_code,
                )

            try:
                return response.json()
            except (ValueError, RecursionError) as exc:
                raise UpstreamSchemaError(
                    f"Response from {url} is not valid JSON: {exc}",
                    api=api,
                    url=url,
                ) from exc
        finally:
            response.close()

    def close(self) -> None:
        LOGGER.debug("Closing upstream session for %s.", self._base_url)
        self._session.close()

    def __enter__(self) -> "UpstreamClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = [
    "NETWORK_API",
    "STATUS_API",
    "UpstreamClient",
]
