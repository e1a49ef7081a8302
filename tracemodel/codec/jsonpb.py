"""
Proto3-JSON wire codec for the span model.

This is the canonical structured-markup path. Identifier values are written
and read through their marshal_jsonpb/unmarshal_jsonpb hooks, which see the
raw JSON text of the value (quotes included).
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Type, Union

from tracemodel import runtime_config
from tracemodel.errors import FormatError, UnknownValueError
from tracemodel.model.flags import Flags
from tracemodel.model.ids import SpanID, TraceID
from tracemodel.model.keyvalue import KeyValue, Log, Process, ValueType
from tracemodel.model.span import Span
from tracemodel.model.span_ref import SpanRef, SpanRefType

logger = logging.getLogger(__name__)

_TIMESTAMP_RE = re.compile(
    r"(\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d)(?:\.(\d{1,9}))?(Z|[+-]\d\d:\d\d)", re.ASCII
)
_DURATION_RE = re.compile(r"(-)?(\d+)(?:\.(\d{1,9}))?s", re.ASCII)
_INT64_RE = re.compile(r"-?[0-9]+")

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


class _Field(NamedTuple):
    json_name: str
    proto_name: str
    attr: str
    # encode returns a JSON fragment, or None to omit the field
    encode: Callable[[Any], Optional[str]]
    decode: Callable[[Any], Any]


def marshal(obj: Any) -> str:
    """
    Encode a model value as compact proto3 JSON.

    >>> marshal(SpanRef(TraceID(low=0x42), SpanID(0x43), SpanRefType.FOLLOWS_FROM))
    '{"traceID":"42","spanID":"43","refType":"FOLLOWS_FROM"}'
    """
    fields = _fields_for(type(obj))
    parts = []
    for f in fields:
        fragment = f.encode(getattr(obj, f.attr))
        if fragment is not None:
            parts.append(f"{json.dumps(f.json_name)}:{fragment}")
    return "{" + ",".join(parts) + "}"


def unmarshal(data: Union[str, bytes], cls: Type) -> Any:
    """
    Decode proto3 JSON into an instance of cls.

    Raises:
        FormatError: malformed JSON, unknown fields or malformed values
        LengthError: identifier strings that are too long
        UnknownValueError: unrecognized enum names
    """
    try:
        raw = json.loads(data)
    except (TypeError, ValueError) as e:
        raise FormatError(f"invalid JSON for {cls.__name__}: {e}") from e
    try:
        return _decode_object(raw, cls)
    except ValueError as e:
        if runtime_config.get_debug():
            logger.debug("failed to unmarshal %s: %s", cls.__name__, e)
        raise


def _fields_for(cls: Type) -> List[_Field]:
    try:
        return _FIELDS[cls]
    except KeyError:
        raise TypeError(f"no jsonpb mapping for type {cls.__name__}") from None


def _decode_object(raw: Any, cls: Type) -> Any:
    if not isinstance(raw, dict):
        raise FormatError(f"{cls.__name__} JSON value must be an object: {raw!r}")
    by_name: Dict[str, _Field] = {}
    for f in _fields_for(cls):
        by_name[f.json_name] = f
        by_name[f.proto_name] = f
    kwargs = {}
    for key, value in raw.items():
        f = by_name.get(key)
        if f is None:
            raise FormatError(
                f"unknown field {key!r} in {cls.__name__}",
                details={"field": key},
            )
        if value is None:
            continue
        kwargs[f.attr] = f.decode(value)
    try:
        return cls(**kwargs)
    except TypeError as e:
        raise FormatError(f"incomplete {cls.__name__} JSON object: {e}") from e


# ------- scalar encoders -------

def _raw(value: Any) -> str:
    """Re-serialize a decoded JSON value so custom hooks see its raw text."""
    return json.dumps(value)


def _encode_hook(value: Any) -> str:
    return value.marshal_jsonpb().decode("ascii")


def _encode_str(value: str) -> Optional[str]:
    return json.dumps(value) if value else None


def _decode_str(value: Any) -> str:
    if not isinstance(value, str):
        raise FormatError(f"expected JSON string, got {value!r}")
    return value


def _encode_bool(value: bool) -> Optional[str]:
    return "true" if value else None


def _decode_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise FormatError(f"expected JSON bool, got {value!r}")
    return value


def _encode_int64(value: int) -> Optional[str]:
    # proto3 JSON renders 64-bit integers as strings
    return f'"{value}"' if value else None


def _decode_int64(value: Any) -> int:
    if isinstance(value, bool):
        raise FormatError(f"expected int64, got {value!r}")
    # 20 characters covers "-9223372036854775808"
    if isinstance(value, str) and len(value) <= 20 and _INT64_RE.fullmatch(value):
        value = int(value)
    if not isinstance(value, int):
        raise FormatError(f"expected int64, got {value!r}")
    if not INT64_MIN <= value <= INT64_MAX:
        raise FormatError(f"int64 out of range: {value}", details={"value": value})
    return value


def _encode_float(value: float) -> Optional[str]:
    if not value:
        return None
    if value != value:
        return '"NaN"'
    if value in (float("inf"), float("-inf")):
        return '"Infinity"' if value > 0 else '"-Infinity"'
    return json.dumps(value)


def _decode_float(value: Any) -> float:
    if isinstance(value, bool):
        raise FormatError(f"expected float64, got {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if value in ("NaN", "Infinity", "-Infinity"):
        return float(value.replace("Infinity", "inf"))
    raise FormatError(f"expected float64, got {value!r}")


def _encode_bytes(value: bytes) -> Optional[str]:
    if not value:
        return None
    return json.dumps(base64.b64encode(value).decode("ascii"))


def _decode_bytes(value: Any) -> bytes:
    if not isinstance(value, str):
        raise FormatError(f"expected base64 string, got {value!r}")
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as e:
        raise FormatError(f"invalid base64 value: {value!r}") from e


def _encode_flags(value: Flags) -> Optional[str]:
    return str(value.value) if value.value else None


def _decode_flags(value: Any) -> Flags:
    if isinstance(value, bool) or not isinstance(value, int):
        raise FormatError(f"flags must be a JSON integer, got {value!r}")
    try:
        return Flags(value)
    except ValueError as e:
        raise FormatError(str(e)) from e


def _encode_value_type(value: ValueType) -> Optional[str]:
    return f'"{value.name}"' if value != ValueType.STRING else None


def _decode_value_type(value: Any) -> ValueType:
    if isinstance(value, str):
        member = ValueType.__members__.get(value)
        if member is not None:
            return member
    elif isinstance(value, int) and not isinstance(value, bool):
        try:
            return ValueType(value)
        except ValueError:
            pass
    raise UnknownValueError(f"not a valid ValueType {value!r}", details={"value": value})


def _encode_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        if value.microsecond % 1000 == 0:
            text += f".{value.microsecond // 1000:03d}"
        else:
            text += f".{value.microsecond:06d}"
    return json.dumps(text + "Z")


def _decode_timestamp(value: Any) -> datetime:
    match = _TIMESTAMP_RE.fullmatch(value) if isinstance(value, str) else None
    if match is None:
        raise FormatError(f"invalid RFC 3339 timestamp: {value!r}")
    base, fraction, offset = match.groups()
    if offset == "Z":
        offset = "+00:00"
    try:
        ts = datetime.fromisoformat(base + offset)
    except ValueError as e:
        raise FormatError(f"invalid RFC 3339 timestamp: {value!r}") from e
    if fraction:
        # nanoseconds are truncated to microseconds
        ts = ts.replace(microsecond=int(fraction[:6].ljust(6, "0")))
    return ts


def _encode_duration(value: timedelta) -> Optional[str]:
    if not value:
        return None
    total_us = (value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds
    sign = "-" if total_us < 0 else ""
    seconds, micros = divmod(abs(total_us), 1_000_000)
    if micros == 0:
        return f'"{sign}{seconds}s"'
    if micros % 1000 == 0:
        return f'"{sign}{seconds}.{micros // 1000:03d}s"'
    return f'"{sign}{seconds}.{micros:06d}s"'


def _decode_duration(value: Any) -> timedelta:
    match = _DURATION_RE.fullmatch(value) if isinstance(value, str) else None
    if match is None:
        raise FormatError(f"invalid duration: {value!r}")
    sign, seconds, fraction = match.groups()
    micros = int((fraction or "")[:6].ljust(6, "0"))
    try:
        delta = timedelta(seconds=int(seconds), microseconds=micros)
    except (OverflowError, ValueError) as e:
        raise FormatError(f"duration out of range: {value!r}") from e
    return -delta if sign else delta


def _encode_list(cls: Type) -> Callable[[list], Optional[str]]:
    def encode(values: list) -> Optional[str]:
        if not values:
            return None
        if cls is str:
            return json.dumps(list(values), separators=(",", ":"))
        return "[" + ",".join(marshal(v) for v in values) + "]"
    return encode


def _decode_list(cls: Type) -> Callable[[Any], list]:
    def decode(values: Any) -> list:
        if not isinstance(values, list):
            raise FormatError(f"expected JSON array of {cls.__name__}, got {values!r}")
        if cls is str:
            return [_decode_str(v) for v in values]
        return [_decode_object(v, cls) for v in values]
    return decode


def _encode_message(value: Any) -> Optional[str]:
    return marshal(value) if value is not None else None


_FIELDS: Dict[Type, List[_Field]] = {
    SpanRef: [
        _Field("traceID", "trace_id", "trace_id", _encode_hook, lambda v: TraceID.unmarshal_jsonpb(_raw(v))),
        _Field("spanID", "span_id", "span_id", _encode_hook, lambda v: SpanID.unmarshal_jsonpb(_raw(v))),
        _Field("refType", "ref_type", "ref_type", _encode_hook, lambda v: SpanRefType.unmarshal_jsonpb(_raw(v))),
    ],
    KeyValue: [
        _Field("key", "key", "key", lambda v: json.dumps(v), _decode_str),
        _Field("vType", "v_type", "v_type", _encode_value_type, _decode_value_type),
        _Field("vStr", "v_str", "v_str", _encode_str, _decode_str),
        _Field("vBool", "v_bool", "v_bool", _encode_bool, _decode_bool),
        _Field("vInt64", "v_int64", "v_int64", _encode_int64, _decode_int64),
        _Field("vFloat64", "v_float64", "v_float64", _encode_float, _decode_float),
        _Field("vBinary", "v_binary", "v_binary", _encode_bytes, _decode_bytes),
    ],
    Log: [
        _Field("timestamp", "timestamp", "timestamp", _encode_timestamp, _decode_timestamp),
        _Field("fields", "fields", "fields", _encode_list(KeyValue), _decode_list(KeyValue)),
    ],
    Process: [
        _Field("serviceName", "service_name", "service_name", _encode_str, _decode_str),
        _Field("tags", "tags", "tags", _encode_list(KeyValue), _decode_list(KeyValue)),
    ],
    Span: [
        _Field("traceID", "trace_id", "trace_id", _encode_hook, lambda v: TraceID.unmarshal_jsonpb(_raw(v))),
        _Field("spanID", "span_id", "span_id", _encode_hook, lambda v: SpanID.unmarshal_jsonpb(_raw(v))),
        _Field("operationName", "operation_name", "operation_name", _encode_str, _decode_str),
        _Field("references", "references", "references", _encode_list(SpanRef), _decode_list(SpanRef)),
        _Field("flags", "flags", "flags", _encode_flags, _decode_flags),
        _Field("startTime", "start_time", "start_time", _encode_timestamp, _decode_timestamp),
        _Field("duration", "duration", "duration", _encode_duration, _decode_duration),
        _Field("tags", "tags", "tags", _encode_list(KeyValue), _decode_list(KeyValue)),
        _Field("logs", "logs", "logs", _encode_list(Log), _decode_list(Log)),
        _Field("process", "process", "process", _encode_message, lambda v: _decode_object(v, Process)),
        _Field("warnings", "warnings", "warnings", _encode_list(str), _decode_list(str)),
    ],
}
