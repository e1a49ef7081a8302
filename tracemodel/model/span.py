"""Span aggregate: identifiers, references, flags, tags and logs."""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, BinaryIO, List, Optional

from tracemodel.model.flags import Flags
from tracemodel.model.ids import ZERO_SPAN_ID, SpanID, TraceID
from tracemodel.model.keyvalue import KeyValue, KeyValues, Log, Process
from tracemodel.model.span_ref import SpanRef, SpanRefType, maybe_add_parent_span_id

SPAN_KIND_KEY = "span.kind"
SPAN_KIND_CLIENT = "client"
SPAN_KIND_SERVER = "server"

EPOCH = datetime.fromtimestamp(0, timezone.utc)


@dataclass
class Span:
    """
    A unit of work in an application, such as an RPC or a database call.

    The parent span id is not stored; it is derived from references.
    """

    trace_id: TraceID = field(default_factory=TraceID)
    span_id: SpanID = field(default_factory=SpanID)
    operation_name: str = ""
    references: List[SpanRef] = field(default_factory=list)
    flags: Flags = field(default_factory=Flags)
    start_time: datetime = EPOCH
    duration: timedelta = timedelta(0)
    tags: List[KeyValue] = field(default_factory=list)
    logs: List[Log] = field(default_factory=list)
    process: Optional[Process] = None
    warnings: List[str] = field(default_factory=list)

    def hash(self, sink: BinaryIO) -> None:
        """
        Write a deterministic serialization of every field to sink.

        Fields are walked generically, so a field added to Span (or to any
        nested record) is covered without touching this method. Values of a
        type the walker does not know raise TypeError.
        """
        encoded = json.dumps(
            _fingerprint(self),
            separators=(",", ":"),
            ensure_ascii=False,
        )
        sink.write(encoded.encode("utf-8"))

    def has_span_kind(self, kind: str) -> bool:
        """Return True if the span has a `span.kind` tag set to kind."""
        tag, ok = KeyValues(self.tags).find_by_key(SPAN_KIND_KEY)
        if ok:
            return tag.as_string() == kind
        return False

    def is_rpc_client(self) -> bool:
        return self.has_span_kind(SPAN_KIND_CLIENT)

    def is_rpc_server(self) -> bool:
        return self.has_span_kind(SPAN_KIND_SERVER)

    def normalize_timestamps(self) -> None:
        """Change all timestamps in this span to UTC."""
        self.start_time = _to_utc(self.start_time)
        for log in self.logs:
            log.timestamp = _to_utc(log.timestamp)

    def parent_span_id(self) -> SpanID:
        """
        Return the id of the parent span, or the zero SpanID.

        The parent is the first ChildOf reference pointing to the same trace.
        """
        for ref in self.references:
            if ref.trace_id == self.trace_id and ref.ref_type == SpanRefType.CHILD_OF:
                return ref.span_id
        return ZERO_SPAN_ID

    def replace_parent_id(self, new_parent_id: SpanID) -> None:
        """Replace the span id in the parent span reference, adding one if missing."""
        old_parent_id = self.parent_span_id()
        for ref in self.references:
            if ref.span_id == old_parent_id and ref.trace_id == self.trace_id:
                ref.span_id = new_parent_id
                return
        self.references = maybe_add_parent_span_id(
            self.trace_id, new_parent_id, self.references
        )


def _to_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _fingerprint(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return [
            type(value).__name__,
            [[f.name, _fingerprint(getattr(value, f.name))] for f in dataclasses.fields(value)],
        ]
    if isinstance(value, Flags):
        return ["Flags", value.value]
    if isinstance(value, Enum):
        return [type(value).__name__, value.value]
    if isinstance(value, datetime):
        return ["datetime", value.isoformat()]
    if isinstance(value, timedelta):
        return ["timedelta", value.days, value.seconds, value.microseconds]
    if isinstance(value, (bytes, bytearray)):
        return ["bytes", bytes(value).hex()]
    if isinstance(value, (list, tuple)):
        return [_fingerprint(v) for v in value]
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    raise TypeError(f"cannot fingerprint value of type {type(value).__name__}")
