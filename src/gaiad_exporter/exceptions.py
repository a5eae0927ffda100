"""Custom exception hierarchy for the gaiad exporter."""

from __future__ import annotations


class GaiadExporterError(Exception):
    """Base exception for all gaiad exporter errors.

    All custom exceptions in this module inherit from this base class so
    callers can catch every exporter-specific failure in one place while
    keeping the more specific types available.
    """

    def __init__(
        self,
        message: str,
        *,
        context: dict[str, object] | None = None,
    ) -> None:
        """Initialize the exception with a message and optional context.

        Args:
            message: The error message.
            context: Optional context dictionary with additional error information.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class UpstreamError(GaiadExporterError):
    """Base exception for failures talking to the upstream daemon."""

    error_type = "upstream_error"

    def __init__(
        self,
        message: str,
        *,
        api: str | None = None,
        url: str | None = None,
        context: dict[str, object] | None = None,
    ) -> None:
        """Initialize the upstream error with request context.

        Args:
            message: The error message.
            api: The upstream API path that failed (e.g. "/status").
            url: The full request URL.
            context: Optional additional context.
        """
        upstream_context: dict[str, object] = {}
        if api:
            upstream_context["api"] = api
        if url:
            upstream_context["url"] = url
        if context:
            upstream_context.update(context)

        super().__init__(message, context=upstream_context)
        self.api = api
        self.url = url


class UpstreamTransportError(UpstreamError):
    """Raised when the upstream daemon cannot be reached (connection, DNS, TLS)."""

    error_type = "connection_error"


class UpstreamTimeoutError(UpstreamTransportError):
    """Raised when an upstream request exceeds the configured timeout."""

    error_type = "timeout"


class UpstreamProtocolError(UpstreamError):
    """Raised on a non-success HTTP status or an unreadable response body."""

    error_type = "protocol_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        **kwargs: object,
    ) -> None:
        context = kwargs.pop("context", {}) or {}
        if status_code is not None:
            context["status_code"] = status_code
        kwargs["context"] = context
        super().__init__(message, **kwargs)
        self.status_code = status_code


class UpstreamSchemaError(UpstreamError):
    """Raised when a response body does not match the expected document shape.

    Covers JSON decoding failures, missing keys, values of the wrong type and
    values that cannot be parsed as numbers or RFC3339 timestamps.
    """

    error_type = "schema_error"

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: object | None = None,
        **kwargs: object,
    ) -> None:
        context = kwargs.pop("context", {}) or {}
        if field:
            context["field"] = field
        if value is not None:
            context["value"] = value
        kwargs["context"] = context
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value


class ScrapeError(GaiadExporterError):
    """Raised when a scrape cycle fails; the upstream cause is chained."""

    def __init__(
        self,
        message: str,
        *,
        error_type: str,
        api: str | None = None,
        context: dict[str, object] | None = None,
    ) -> None:
        scrape_context: dict[str, object] = {"error_type": error_type}
        if api:
            scrape_context["api"] = api
        if context:
            scrape_context.update(context)

        super().__init__(message, context=scrape_context)
        self.error_type = error_type
        self.api = api


class ConfigError(GaiadExporterError):
    """Raised when process configuration cannot be resolved."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        context: dict[str, object] | None = None,
    ) -> None:
        config_context: dict[str, object] = {}
        if config_key:
            config_context["config_key"] = config_key
        if context:
            config_context.update(context)

        super().__init__(message, context=config_context)
        self.config_key = config_key


class ValidationError(ConfigError):
    """Raised when a configuration value has an invalid format."""

    def __init__(
        self,
        message: str,
        *,
        value: object | None = None,
        expected_type: str | None = None,
        **kwargs: object,
    ) -> None:
        context = kwargs.pop("context", {}) or {}
        if value is not None:
            context["value"] = value
        if expected_type:
            context["expected_type"] = expected_type
        kwargs["context"] = context
        super().__init__(message, **kwargs)
        self.value = value
        self.expected_type = expected_type


__all__ = [
    "ConfigError",
    "GaiadExporterError",
    "ScrapeError",
    "UpstreamError",
    "UpstreamProtocolError",
    "UpstreamSchemaError",
    "UpstreamTimeoutError",
    "UpstreamTransportError",
    "ValidationError",
]
