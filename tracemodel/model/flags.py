"""Span-level flags packed into a 32-bit bitmask."""

from __future__ import annotations

from tracemodel.utils.helpers import check_uint64

UINT32_MAX = (1 << 32) - 1

# SAMPLED is the bit set in Flags in order to define a span as a sampled span
SAMPLED = 1
# DEBUG is the bit set in Flags in order to define a span as a debug span
DEBUG = 2


class Flags:
    """
    Bit map of flags for a span.

    Setters OR in their bit and leave every other bit (including the
    reserved ones) untouched.
    """

    __slots__ = ("value",)

    def __init__(self, value: int = 0) -> None:
        check_uint64(value, "Flags")
        if value > UINT32_MAX:
            raise ValueError(f"Flags out of unsigned 32-bit range: {value}")
        self.value = value

    def set_sampled(self) -> None:
        self._set_flags(SAMPLED)

    def set_debug(self) -> None:
        self._set_flags(DEBUG)

    def _set_flags(self, bit: int) -> None:
        self.value |= bit

    def is_sampled(self) -> bool:
        return self._check_flags(SAMPLED)

    def is_debug(self) -> bool:
        """Debugging can be useful in testing tracing availability or correctness."""
        return self._check_flags(DEBUG)

    def _check_flags(self, bit: int) -> bool:
        return self.value & bit == bit

    def __int__(self) -> int:
        return self.value

    def __eq__(self, other) -> bool:
        if isinstance(other, Flags):
            return self.value == other.value
        if isinstance(other, int) and not isinstance(other, bool):
            return self.value == other
        return NotImplemented

    # Mutable, so unhashable.
    __hash__ = None

    def __repr__(self) -> str:
        return f"Flags({self.value:#x})"
