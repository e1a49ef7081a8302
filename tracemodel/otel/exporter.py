"""OpenTelemetry exporter writing spans as proto3 JSON lines."""

from __future__ import annotations

import logging
import sys
from typing import Sequence

from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult

from tracemodel import runtime_config
from tracemodel.codec import jsonpb
from tracemodel.otel.converter import from_readable_span

logger = logging.getLogger(__name__)


class ModelSpanExporter(SpanExporter):
    """Converts finished spans to the span model and prints one JSON line each."""

    def __init__(self, stream=None) -> None:
        self.stream = stream or sys.stdout
        self._shutdown = False

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        if self._shutdown:
            logger.warning("export called after shutdown; dropping %d spans", len(spans))
            return SpanExportResult.FAILURE
        try:
            for otel_span in spans:
                span = from_readable_span(otel_span)
                if runtime_config.get_normalize_timestamps():
                    span.normalize_timestamps()
                print(jsonpb.marshal(span), file=self.stream)
        except (OSError, ValueError) as e:
            logger.warning("failed to export %d spans: %s", len(spans), e)
            return SpanExportResult.FAILURE
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        self._shutdown = True

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        flush = getattr(self.stream, "flush", None)
        if flush is not None:
            flush()
        return True
