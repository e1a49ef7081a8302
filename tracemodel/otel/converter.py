"""Conversion from OpenTelemetry SDK spans to the span model."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, List, Mapping, Optional

from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.trace import SpanKind, StatusCode

from tracemodel.model.flags import Flags
from tracemodel.model.ids import SpanID, TraceID
from tracemodel.model.keyvalue import KeyValue, Log, Process
from tracemodel.model.span import EPOCH, SPAN_KIND_KEY, Span
from tracemodel.model.span_ref import SpanRef, maybe_add_parent_span_id, new_follows_from_ref
from tracemodel.utils.helpers import format_span_id, format_trace_id

logger = logging.getLogger(__name__)

SERVICE_NAME_KEY = "service.name"
EVENT_KEY = "event"

_SPAN_KIND_VALUES = {
    SpanKind.CLIENT: "client",
    SpanKind.SERVER: "server",
    SpanKind.PRODUCER: "producer",
    SpanKind.CONSUMER: "consumer",
}


def from_readable_span(otel_span: ReadableSpan) -> Span:
    """
    Convert a finished OpenTelemetry span into a model Span.

    Links become FOLLOWS_FROM references; the parent, if any, is added as a
    CHILD_OF reference ahead of them so it is the derived parent.
    """
    ctx = otel_span.get_span_context()
    trace_id = TraceID.from_int(ctx.trace_id)

    references: List[SpanRef] = [
        new_follows_from_ref(TraceID.from_int(link.context.trace_id), SpanID(link.context.span_id))
        for link in (otel_span.links or ())
    ]
    if otel_span.parent is not None:
        references = maybe_add_parent_span_id(
            trace_id, SpanID(otel_span.parent.span_id), references
        )

    flags = Flags()
    if ctx.trace_flags.sampled:
        flags.set_sampled()

    start_ns = otel_span.start_time or 0
    end_ns = otel_span.end_time
    duration = timedelta(0)
    if end_ns is not None and end_ns >= start_ns:
        duration = _ns_to_timedelta(end_ns - start_ns)

    span = Span(
        trace_id=trace_id,
        span_id=SpanID(ctx.span_id),
        operation_name=otel_span.name,
        references=references,
        flags=flags,
        start_time=EPOCH + _ns_to_timedelta(start_ns),
        duration=duration,
        tags=_span_tags(otel_span),
        logs=[_event_to_log(event) for event in (otel_span.events or ())],
        process=_resource_to_process(otel_span),
        warnings=_dropped_warnings(otel_span),
    )
    logger.debug(
        "converted span trace_id=%s span_id=%s parent=%s refs=%d",
        format_trace_id(ctx.trace_id),
        format_span_id(ctx.span_id),
        span.parent_span_id(),
        len(references),
    )
    return span


def _ns_to_timedelta(ns: int) -> timedelta:
    return timedelta(microseconds=ns // 1000)


def _attributes_to_tags(attributes: Optional[Mapping[str, Any]]) -> List[KeyValue]:
    if not attributes:
        return []
    return [KeyValue.from_value(key, value) for key, value in attributes.items()]


def _span_tags(otel_span: ReadableSpan) -> List[KeyValue]:
    tags = _attributes_to_tags(otel_span.attributes)
    kind = _SPAN_KIND_VALUES.get(otel_span.kind)
    if kind is not None:
        tags.append(KeyValue.string(SPAN_KIND_KEY, kind))
    status = otel_span.status
    if status is not None and status.status_code == StatusCode.ERROR:
        tags.append(KeyValue.bool_("error", True))
        if status.description:
            tags.append(KeyValue.string("otel.status_description", status.description))
    return tags


def _event_to_log(event) -> Log:
    fields = [KeyValue.string(EVENT_KEY, event.name)]
    fields.extend(_attributes_to_tags(event.attributes))
    return Log(timestamp=EPOCH + _ns_to_timedelta(event.timestamp or 0), fields=fields)


def _resource_to_process(otel_span: ReadableSpan) -> Optional[Process]:
    resource = otel_span.resource
    if resource is None:
        return None
    attributes = dict(resource.attributes)
    service_name = str(attributes.pop(SERVICE_NAME_KEY, ""))
    return Process(service_name=service_name, tags=_attributes_to_tags(attributes))


def _dropped_warnings(otel_span: ReadableSpan) -> List[str]:
    warnings = []
    for what in ("attributes", "events", "links"):
        dropped = getattr(otel_span, f"dropped_{what}", 0) or 0
        if dropped:
            warnings.append(f"dropped {dropped} {what} due to span limits")
    return warnings
