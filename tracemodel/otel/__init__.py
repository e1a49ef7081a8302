"""OpenTelemetry interoperability for the span model."""

from tracemodel.otel.converter import from_readable_span
from tracemodel.otel.exporter import ModelSpanExporter

__all__ = [
    "from_readable_span",
    "ModelSpanExporter",
]
