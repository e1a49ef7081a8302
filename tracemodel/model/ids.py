"""Fixed-width trace and span identifiers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from tracemodel import runtime_config
from tracemodel.errors import LengthError, UnsupportedMethodError
from tracemodel.utils.helpers import (
    check_uint64,
    join_trace_id,
    parse_hex_uint64,
    split_trace_id,
    unquote,
)

logger = logging.getLogger(__name__)

TRACE_ID_MAX_HEX_LEN = 32
SPAN_ID_MAX_HEX_LEN = 16


@dataclass(frozen=True)
class TraceID:
    """
    Random 128-bit identifier for a trace, stored as two 64-bit halves.

    Encoded on the wire with marshal_jsonpb/unmarshal_jsonpb only; the
    generic marshal_text path is disabled so a TraceID never ends up with
    two different encodings.
    """

    high: int = 0
    low: int = 0

    def __post_init__(self) -> None:
        check_uint64(self.high, "TraceID.high")
        check_uint64(self.low, "TraceID.low")

    def __str__(self) -> str:
        if self.high == 0:
            return format(self.low, "x")
        return f"{self.high:x}{self.low:016x}"

    def __int__(self) -> int:
        return join_trace_id(self.high, self.low)

    def __bool__(self) -> bool:
        return bool(self.high or self.low)

    def to_string(self) -> str:
        return str(self)

    @classmethod
    def from_int(cls, value: int) -> "TraceID":
        """Build a TraceID from a single 128-bit integer (OTel representation)."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"trace id must be an int, got {type(value).__name__}")
        if value < 0 or value >> 128:
            raise ValueError(f"trace id out of unsigned 128-bit range: {value}")
        high, low = split_trace_id(value)
        return cls(high=high, low=low)

    @classmethod
    def from_string(cls, s: str) -> "TraceID":
        """
        Create a TraceID from a hexadecimal string.

        Raises:
            LengthError: if s is longer than 32 characters
            FormatError: if either half is not valid hex
        """
        if len(s) > TRACE_ID_MAX_HEX_LEN:
            raise LengthError(
                f"TraceID cannot be longer than {TRACE_ID_MAX_HEX_LEN} hex characters: {s}"
            )
        high = 0
        if len(s) > 16:
            high_len = len(s) - 16
            high = parse_hex_uint64(s[:high_len])
            low = parse_hex_uint64(s[high_len:])
        else:
            low = parse_hex_uint64(s)
        return cls(high=high, low=low)

    def marshal_jsonpb(self) -> bytes:
        """Render the trace id as a single quoted hex string."""
        return f'"{self}"'.encode("ascii")

    @classmethod
    def unmarshal_jsonpb(cls, data: Union[str, bytes]) -> "TraceID":
        try:
            return cls.from_string(unquote(data, "TraceID"))
        except ValueError as e:
            if runtime_config.get_debug():
                logger.debug("failed to decode TraceID %r: %s", data, e)
            raise

    def marshal_text(self) -> bytes:
        raise UnsupportedMethodError(
            "unsupported method TraceID.marshal_text; "
            "please use tracemodel.codec.jsonpb for marshalling"
        )

    @classmethod
    def unmarshal_text(cls, data: Union[str, bytes]) -> "TraceID":
        raise UnsupportedMethodError(
            "unsupported method TraceID.unmarshal_text; "
            "please use tracemodel.codec.jsonpb for unmarshalling"
        )


@dataclass(frozen=True)
class SpanID:
    """Random 64-bit identifier for a span."""

    value: int = 0

    def __post_init__(self) -> None:
        check_uint64(self.value, "SpanID")

    def __str__(self) -> str:
        return format(self.value, "x")

    def __int__(self) -> int:
        return self.value

    def __bool__(self) -> bool:
        return self.value != 0

    def to_string(self) -> str:
        return str(self)

    @classmethod
    def from_string(cls, s: str) -> "SpanID":
        """
        Create a SpanID from a hexadecimal string.

        Raises:
            LengthError: if s is longer than 16 characters
            FormatError: if s is not valid hex
        """
        if len(s) > SPAN_ID_MAX_HEX_LEN:
            raise LengthError(
                f"SpanID cannot be longer than {SPAN_ID_MAX_HEX_LEN} hex characters: {s}"
            )
        return cls(parse_hex_uint64(s))

    def marshal_jsonpb(self) -> bytes:
        return f'"{self}"'.encode("ascii")

    @classmethod
    def unmarshal_jsonpb(cls, data: Union[str, bytes]) -> "SpanID":
        try:
            return cls.from_string(unquote(data, "SpanID"))
        except ValueError as e:
            if runtime_config.get_debug():
                logger.debug("failed to decode SpanID %r: %s", data, e)
            raise

    def marshal_text(self) -> bytes:
        """Allow SpanID to serialize itself in generic JSON as a hex string."""
        return str(self).encode("ascii")

    @classmethod
    def unmarshal_text(cls, data: Union[str, bytes]) -> "SpanID":
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode("ascii", errors="replace")
        return cls.from_string(data)


ZERO_SPAN_ID = SpanID(0)
