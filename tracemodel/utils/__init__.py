"""Utility functions for tracemodel."""

from tracemodel.utils.helpers import (
    UINT64_MAX,
    check_uint64,
    parse_hex_uint64,
    unquote,
    split_trace_id,
    join_trace_id,
    format_trace_id,
    format_span_id,
)

__all__ = [
    "UINT64_MAX",
    "check_uint64",
    "parse_hex_uint64",
    "unquote",
    "split_trace_id",
    "join_trace_id",
    "format_trace_id",
    "format_span_id",
]
