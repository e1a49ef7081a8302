"""tracemodel: identifier, reference and span model for distributed tracing."""

from tracemodel.errors import (
    FormatError,
    LengthError,
    TraceModelError,
    UnknownValueError,
    UnsupportedMethodError,
)
from tracemodel.model import (
    CHILD_OF,
    FOLLOWS_FROM,
    Flags,
    KeyValue,
    Log,
    Process,
    Span,
    SpanID,
    SpanRef,
    SpanRefType,
    TraceID,
    maybe_add_parent_span_id,
    new_child_of_ref,
    new_follows_from_ref,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "TraceID",
    "SpanID",
    "Flags",
    "SpanRefType",
    "CHILD_OF",
    "FOLLOWS_FROM",
    "SpanRef",
    "new_child_of_ref",
    "new_follows_from_ref",
    "maybe_add_parent_span_id",
    "KeyValue",
    "Log",
    "Process",
    "Span",
    "TraceModelError",
    "LengthError",
    "FormatError",
    "UnknownValueError",
    "UnsupportedMethodError",
]
