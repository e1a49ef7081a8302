"""Encodings for the span model: the jsonpb wire codec and the generic text path."""

from tracemodel.codec import jsonpb, text

__all__ = [
    "jsonpb",
    "text",
]
