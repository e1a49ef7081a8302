"""Span data model: identifiers, flags, references and the span aggregate."""

from tracemodel.model.flags import DEBUG, SAMPLED, Flags
from tracemodel.model.ids import ZERO_SPAN_ID, SpanID, TraceID
from tracemodel.model.keyvalue import KeyValue, KeyValues, Log, Process, ValueType
from tracemodel.model.span import Span
from tracemodel.model.span_ref import (
    CHILD_OF,
    FOLLOWS_FROM,
    SpanRef,
    SpanRefType,
    maybe_add_parent_span_id,
    new_child_of_ref,
    new_follows_from_ref,
)

__all__ = [
    "TraceID",
    "SpanID",
    "ZERO_SPAN_ID",
    "Flags",
    "SAMPLED",
    "DEBUG",
    "SpanRefType",
    "CHILD_OF",
    "FOLLOWS_FROM",
    "SpanRef",
    "new_child_of_ref",
    "new_follows_from_ref",
    "maybe_add_parent_span_id",
    "ValueType",
    "KeyValue",
    "KeyValues",
    "Log",
    "Process",
    "Span",
]
