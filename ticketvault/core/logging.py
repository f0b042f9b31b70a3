"""Logging and tracing setup."""

from __future__ import annotations

import logging
from logging.config import dictConfig

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from ticketvault.core.config import Settings

_TRACER_INITIALISED = False


def parse_headers(header_string: str | None) -> dict[str, str]:
    """Parse ``key=value,key2=value2`` OTLP header strings."""

    if not header_string:
        return {}
    headers: dict[str, str] = {}
    for item in header_string.split(","):
        key, separator, value = item.partition("=")
        if not separator or not key.strip():
            continue
        headers[key.strip()] = value.strip()
    return headers


def configure_logging(settings: Settings) -> logging.Logger:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": settings.log_format}},
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": level,
                }
            },
            "loggers": {
                # Horizon polling is chatty at INFO.
                "httpx": {"level": max(level, logging.WARNING)},
            },
            "root": {"handlers": ["default"], "level": level},
        }
    )

    logger = logging.getLogger(settings.app_name)
    logger.setLevel(level)
    return logger


def init_tracer(settings: Settings) -> TracerProvider | None:
    """Install an OTLP tracer provider when tracing is enabled."""

    global _TRACER_INITIALISED

    if _TRACER_INITIALISED or not settings.otel_enabled:
        return None

    provider = TracerProvider(resource=Resource(attributes={"service.name": settings.otel_service_name}))

    exporter_kwargs: dict[str, object] = {}
    if settings.otel_exporter_otlp_endpoint:
        exporter_kwargs["endpoint"] = settings.otel_exporter_otlp_endpoint
    headers = parse_headers(settings.otel_exporter_otlp_headers)
    if headers:
        exporter_kwargs["headers"] = headers

    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(**exporter_kwargs)))
    trace.set_tracer_provider(provider)
    _TRACER_INITIALISED = True
    return provider


def shutdown_tracer(provider: TracerProvider | None) -> None:
    if provider is None:
        return

    global _TRACER_INITIALISED
    provider.shutdown()
    _TRACER_INITIALISED = False
