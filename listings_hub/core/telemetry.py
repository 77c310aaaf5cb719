import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from listings_hub.core.config import settings
from listings_hub.core.db import engine


log = logging.getLogger(__name__)


def setup_telemetry(app) -> None:
    """
    Export traces over OTLP/HTTP. The bulk pipeline opens its own
    "listings.bulk_import" span; request and SQL spans come from the instrumentors.
    Disabled (tests, local scripts) the global no-op tracer stays in place.
    """
    if not settings.telemetry_enabled:
        log.info("telemetry disabled")
        return

    resource = Resource.create({
        "service.name": settings.service_name,
        "service.version": app.version,
        "deployment.environment": settings.env,
    })
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=f"{settings.otlp_endpoint.rstrip('/')}/v1/traces"))
    )
    trace.set_tracer_provider(provider)

    # health probes would drown out the import traffic
    FastAPIInstrumentor.instrument_app(app, excluded_urls="/v1/health")
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)
    log.info("telemetry exporting to %s", settings.otlp_endpoint)
