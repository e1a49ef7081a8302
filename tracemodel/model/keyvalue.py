"""Typed tags, logs and process descriptors attached to a span."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, List, Optional, Tuple

from tracemodel import runtime_config


class ValueType(IntEnum):
    STRING = 0
    BOOL = 1
    INT64 = 2
    FLOAT64 = 3
    BINARY = 4


@dataclass
class KeyValue:
    """A typed key/value pair; only the field matching v_type is meaningful."""

    key: str
    v_type: ValueType = ValueType.STRING
    v_str: str = ""
    v_bool: bool = False
    v_int64: int = 0
    v_float64: float = 0.0
    v_binary: bytes = b""

    @classmethod
    def string(cls, key: str, value: str) -> "KeyValue":
        return cls(key=key, v_type=ValueType.STRING, v_str=value)

    @classmethod
    def bool_(cls, key: str, value: bool) -> "KeyValue":
        return cls(key=key, v_type=ValueType.BOOL, v_bool=value)

    @classmethod
    def int64(cls, key: str, value: int) -> "KeyValue":
        return cls(key=key, v_type=ValueType.INT64, v_int64=value)

    @classmethod
    def float64(cls, key: str, value: float) -> "KeyValue":
        return cls(key=key, v_type=ValueType.FLOAT64, v_float64=value)

    @classmethod
    def binary(cls, key: str, value: bytes) -> "KeyValue":
        return cls(key=key, v_type=ValueType.BINARY, v_binary=value)

    @classmethod
    def from_value(cls, key: str, value: Any) -> "KeyValue":
        """Pick the typed constructor matching a Python value."""
        if isinstance(value, bool):
            return cls.bool_(key, value)
        if isinstance(value, int):
            return cls.int64(key, value)
        if isinstance(value, float):
            return cls.float64(key, value)
        if isinstance(value, (bytes, bytearray)):
            return cls.binary(key, bytes(value))
        if isinstance(value, (list, tuple)):
            return cls.string(key, ",".join(str(v) for v in value))
        return cls.string(key, str(value))

    def value(self) -> Any:
        if self.v_type == ValueType.BOOL:
            return self.v_bool
        if self.v_type == ValueType.INT64:
            return self.v_int64
        if self.v_type == ValueType.FLOAT64:
            return self.v_float64
        if self.v_type == ValueType.BINARY:
            return self.v_binary
        return self.v_str

    def as_string(self) -> str:
        """Render the value as a string regardless of its type."""
        if self.v_type == ValueType.BOOL:
            return "true" if self.v_bool else "false"
        if self.v_type == ValueType.INT64:
            return str(self.v_int64)
        if self.v_type == ValueType.FLOAT64:
            return format(self.v_float64, ".10g")
        if self.v_type == ValueType.BINARY:
            limit = runtime_config.get_binary_tag_max_length()
            if len(self.v_binary) > limit:
                return self.v_binary[:limit].hex() + "..."
            return self.v_binary.hex()
        return self.v_str


class KeyValues(list):
    """List of KeyValue with lookup helpers."""

    def find_by_key(self, key: str) -> Tuple[Optional[KeyValue], bool]:
        """Return the first tag with the given key, and whether it was found."""
        for kv in self:
            if kv.key == key:
                return kv, True
        return None, False


@dataclass
class Log:
    timestamp: datetime = field(default_factory=lambda: datetime.fromtimestamp(0, timezone.utc))
    fields: List[KeyValue] = field(default_factory=list)


@dataclass
class Process:
    service_name: str = ""
    tags: List[KeyValue] = field(default_factory=list)
