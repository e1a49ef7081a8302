"""Helper functions for identifier parsing and OpenTelemetry compatibility."""

from __future__ import annotations

import re
from typing import Tuple, Union

from tracemodel.errors import FormatError

UINT64_MAX = (1 << 64) - 1

_HEX_RE = re.compile(r"[0-9a-fA-F]+")


def check_uint64(value: int, name: str) -> int:
    """
    Validate that value fits an unsigned 64-bit integer.

    Raises:
        TypeError: if value is not an int (bools included)
        ValueError: if value is out of range
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0 or value > UINT64_MAX:
        raise ValueError(f"{name} out of unsigned 64-bit range: {value}")
    return value


def parse_hex_uint64(hex_string: str) -> int:
    """
    Parse a base-16 string into an unsigned 64-bit integer.

    Unlike int(s, 16) this rejects signs, "0x" prefixes, underscores and
    surrounding whitespace.

    Raises:
        FormatError: if hex_string is not a valid hex number in range
    """
    if not _HEX_RE.fullmatch(hex_string):
        raise FormatError(
            f"invalid hex number: {hex_string!r}",
            details={"value": hex_string},
        )
    value = int(hex_string, 16)
    if value > UINT64_MAX:
        raise FormatError(
            f"hex number out of unsigned 64-bit range: {hex_string!r}",
            details={"value": hex_string},
        )
    return value


def unquote(data: Union[str, bytes], type_name: str) -> str:
    """
    Strip the double quotes from a JSON string value.

    Raises:
        FormatError: if data is shorter than 3 characters or not quoted
    """
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8", errors="replace")
    if len(data) < 3:
        raise FormatError(f"{type_name} JSON string cannot be shorter than 3 chars: {data}")
    if data[0] != '"' or data[-1] != '"':
        raise FormatError(f"{type_name} JSON string must be enclosed in quotes: {data}")
    return data[1:-1]


def split_trace_id(trace_id: int) -> Tuple[int, int]:
    """
    Split an OTel 128-bit trace_id into (high, low) 64-bit halves.

    Args:
        trace_id: OTel trace_id as a 128-bit int

    Returns:
        (high, low) tuple
    """
    return (trace_id >> 64) & UINT64_MAX, trace_id & UINT64_MAX


def join_trace_id(high: int, low: int) -> int:
    """Join (high, low) 64-bit halves into an OTel 128-bit trace_id."""
    return (high << 64) | low


def format_trace_id(trace_id: int) -> str:
    """
    Format OTel trace_id (128-bit int) to the W3C 32-character hex string.
    """
    return format(trace_id, '032x')


def format_span_id(span_id: int) -> str:
    """
    Format OTel span_id (64-bit int) to the W3C 16-character hex string.
    """
    return format(span_id, '016x')
