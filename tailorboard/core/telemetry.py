"""Logging and tracing setup for the client process.

Everything is driven by ``Settings``; no OTEL_* environment variables are
read here. Spans stay in-process unless ``TB_OTEL_EXPORTER_OTLP_ENDPOINT``
is set.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import DEPLOYMENT_ENVIRONMENT, SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

from tailorboard.core.config import Settings
from tailorboard.schemas.identity import Identity

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
CORRELATED_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s trace_id=%(trace_id)s span_id=%(span_id)s %(message)s"


class TraceContextFilter(logging.Filter):
    """Stamps ``trace_id``/``span_id`` of the active span onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = trace.get_current_span().get_span_context()
        record.trace_id = format(context.trace_id, "032x") if context.is_valid else "-"
        record.span_id = format(context.span_id, "016x") if context.is_valid else "-"
        return True


def configure_client_logging(settings: Settings) -> logging.Handler:
    handler = logging.StreamHandler()
    if settings.otel_log_correlation:
        handler.addFilter(TraceContextFilter())
        handler.setFormatter(logging.Formatter(CORRELATED_LOG_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return handler


@dataclass(slots=True)
class ClientTelemetry:
    provider: TracerProvider | None = None
    instrumentor: HTTPXClientInstrumentor | None = None

    @property
    def enabled(self) -> bool:
        return self.provider is not None

    def shutdown(self) -> None:
        if self.instrumentor is not None:
            self.instrumentor.uninstrument()
        if self.provider is not None:
            self.provider.force_flush()
            self.provider.shutdown()


def client_resource(settings: Settings) -> Resource:
    return Resource.create(
        {
            SERVICE_NAME: settings.otel_service_name,
            DEPLOYMENT_ENVIRONMENT: settings.environment,
            "tailorboard.app_name": settings.app_name,
            "tailorboard.backend_configured": bool(settings.supabase_url),
        }
    )


def setup_client_telemetry(settings: Settings) -> ClientTelemetry:
    if not settings.otel_enabled:
        return ClientTelemetry()

    provider = TracerProvider(
        resource=client_resource(settings),
        sampler=ParentBased(TraceIdRatioBased(settings.otel_trace_sample_ratio)),
    )
    if settings.otel_exporter_otlp_endpoint:
        exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            headers=otlp_headers(settings.otel_exporter_otlp_headers),
        )
        provider.add_span_processor(BatchSpanProcessor(exporter))
    else:
        logger.info("no OTLP endpoint configured; spans stay local service=%s", settings.otel_service_name)
    trace.set_tracer_provider(provider)

    instrumentor = HTTPXClientInstrumentor()
    instrumentor.instrument(tracer_provider=provider)
    return ClientTelemetry(provider=provider, instrumentor=instrumentor)


def tag_identity(identity: Identity | None) -> None:
    """Attach the signed-in user to the current span, if one is recording."""
    span = trace.get_current_span()
    if identity is None:
        span.set_attribute("enduser.authenticated", False)
        return
    span.set_attribute("enduser.authenticated", True)
    span.set_attribute("enduser.id", identity.id)
    span.set_attribute("enduser.role", identity.role.value)
    span.set_attribute("tailorboard.subscription_tier", identity.subscription_tier.value)


def otlp_headers(raw: str | None) -> dict[str, str]:
    """Parse ``key=value,key=value``; entries without a key are dropped."""
    pairs = (item.partition("=") for item in (raw or "").split(","))
    return {key.strip(): value.strip() for key, separator, value in pairs if separator and key.strip()}
