"""Typed span-to-span references and parent reference bookkeeping."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Union

from tracemodel import runtime_config
from tracemodel.errors import UnknownValueError
from tracemodel.model.ids import SpanID, TraceID
from tracemodel.utils.helpers import unquote

logger = logging.getLogger(__name__)


class SpanRefType(IntEnum):
    """
    Kind of relationship between two spans.

    Any integer is a valid SpanRefType: values other than CHILD_OF and
    FOLLOWS_FROM become unnamed pseudo members that render as their decimal
    value. Only parsing from a name is strict.
    """

    CHILD_OF = 0
    FOLLOWS_FROM = 1

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            pseudo = int.__new__(cls, value)
            pseudo._name_ = None
            pseudo._value_ = value
            return pseudo
        return None

    def __str__(self) -> str:
        if self._name_ is None:
            return str(self._value_)
        return self._name_

    def __repr__(self) -> str:
        return f"<{type(self).__name__}.{self}: {self._value_}>"

    def __format__(self, format_spec: str) -> str:
        return str(self).__format__(format_spec)

    def to_string(self) -> str:
        return str(self)

    @classmethod
    def from_string(cls, s: str) -> "SpanRefType":
        """
        Convert a name such as "CHILD_OF" to a SpanRefType.

        Raises:
            UnknownValueError: if s is not a recognized name
        """
        member = cls.__members__.get(s)
        if member is None:
            raise UnknownValueError(
                f"not a valid SpanRefType string {s}",
                details={"value": s},
            )
        return member

    def marshal_jsonpb(self) -> bytes:
        # unnamed values are written as bare numbers, as proto3 JSON does
        if self._name_ is None:
            return str(self._value_).encode("ascii")
        return f'"{self}"'.encode("ascii")

    @classmethod
    def unmarshal_jsonpb(cls, data: Union[str, bytes]) -> "SpanRefType":
        """
        Decode a JSON enum value: a quoted name, or a bare integer as
        proto3 JSON permits.
        """
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode("utf-8", errors="replace")
        try:
            if data.startswith('"'):
                return cls.from_string(unquote(data, "SpanRefType"))
            if re.fullmatch(r"-?[0-9]+", data):
                return cls(int(data))
            raise UnknownValueError(
                f"not a valid SpanRefType value {data}",
                details={"value": data},
            )
        except ValueError as e:
            if runtime_config.get_debug():
                logger.debug("failed to decode SpanRefType %r: %s", data, e)
            raise

    def marshal_text(self) -> bytes:
        return str(self).encode("ascii")

    @classmethod
    def unmarshal_text(cls, data: Union[str, bytes]) -> "SpanRefType":
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode("utf-8", errors="replace")
        return cls.from_string(data)


CHILD_OF = SpanRefType.CHILD_OF
FOLLOWS_FROM = SpanRefType.FOLLOWS_FROM


@dataclass
class SpanRef:
    """
    Directed edge from a span to the span identified by (trace_id, span_id).

    May point across traces.
    """

    trace_id: TraceID = field(default_factory=TraceID)
    span_id: SpanID = field(default_factory=SpanID)
    ref_type: SpanRefType = SpanRefType.CHILD_OF


def new_child_of_ref(trace_id: TraceID, span_id: SpanID) -> SpanRef:
    """Create a new ChildOf reference."""
    return SpanRef(trace_id=trace_id, span_id=span_id, ref_type=SpanRefType.CHILD_OF)


def new_follows_from_ref(trace_id: TraceID, span_id: SpanID) -> SpanRef:
    """Create a new FollowsFrom reference."""
    return SpanRef(trace_id=trace_id, span_id=span_id, ref_type=SpanRefType.FOLLOWS_FROM)


def maybe_add_parent_span_id(
    trace_id: TraceID,
    parent_id: SpanID,
    references: Optional[List[SpanRef]],
) -> List[SpanRef]:
    """
    Convert a parent span id into a ChildOf reference, if needed.

    Returns references unchanged when parent_id is zero or when a ChildOf
    reference to trace_id already exists. Otherwise returns a new list with
    the parent reference prepended, so it wins parent derivation.
    """
    if references is None:
        references = []
    if not parent_id:
        return references
    for ref in references:
        if ref.trace_id == trace_id and ref.ref_type == SpanRefType.CHILD_OF:
            return references
    new_refs = [new_child_of_ref(trace_id, parent_id)]
    new_refs.extend(references)
    return new_refs
