"""
Generic JSON encoding driven by the marshal_text/unmarshal_text hooks.

This is the catch-all path any dataclass goes through with the json module.
It is not the wire format: TraceID refuses it outright and callers are
pointed at tracemodel.codec.jsonpb instead.
"""

from __future__ import annotations

import base64
import binascii
import dataclasses
import json
import re
import typing
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Type, Union

from tracemodel.errors import FormatError, UnknownValueError
from tracemodel.model.flags import Flags


def json_name(attr: str) -> str:
    """Map a snake_case attribute to its JSON key: trace_id -> traceID."""
    head, *rest = attr.split("_")
    return head + "".join("ID" if part == "id" else part.capitalize() for part in rest)


def dumps(obj: Any) -> str:
    """
    Encode obj as JSON.

    Raises:
        UnsupportedMethodError: if obj contains a value whose marshal_text is disabled
    """
    return json.dumps(_to_tree(obj), separators=(",", ":"))


def loads(data: Union[str, bytes], cls: Type) -> Any:
    """
    Decode JSON into an instance of cls.

    Raises:
        FormatError: malformed JSON or values of the wrong shape
        UnknownValueError: unrecognized enum names
        UnsupportedMethodError: if cls contains a value whose unmarshal_text is disabled
    """
    try:
        raw = json.loads(data)
    except (TypeError, ValueError) as e:
        raise FormatError(f"invalid JSON for {cls.__name__}: {e}") from e
    return _from_tree(raw, cls)


def _to_tree(value: Any) -> Any:
    marshal_text = getattr(value, "marshal_text", None)
    if marshal_text is not None:
        return marshal_text().decode("utf-8")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            json_name(f.name): _to_tree(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if isinstance(value, Flags):
        return value.value
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, (list, tuple)):
        return [_to_tree(v) for v in value]
    return value


def _from_tree(raw: Any, tp: Any) -> Any:
    if raw is None:
        return None
    origin = typing.get_origin(tp)
    if origin is Union:
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        return _from_tree(raw, args[0])
    if origin in (list, typing.List):
        (item_tp,) = typing.get_args(tp) or (Any,)
        if not isinstance(raw, list):
            raise FormatError(f"expected JSON array, got {raw!r}")
        return [_from_tree(v, item_tp) for v in raw]
    if tp is Any:
        return raw
    unmarshal_text = getattr(tp, "unmarshal_text", None)
    if unmarshal_text is not None:
        if not isinstance(raw, str):
            raise FormatError(f"{tp.__name__} must be a JSON string, got {raw!r}")
        return unmarshal_text(raw)
    if dataclasses.is_dataclass(tp):
        return _from_object(raw, tp)
    if tp is Flags:
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise FormatError(f"flags must be a JSON integer, got {raw!r}")
        return Flags(raw)
    if isinstance(tp, type) and issubclass(tp, Enum):
        member = tp.__members__.get(raw) if isinstance(raw, str) else None
        if member is None:
            raise UnknownValueError(f"not a valid {tp.__name__} {raw!r}", details={"value": raw})
        return member
    if tp is datetime:
        try:
            return datetime.fromisoformat(raw)
        except (TypeError, ValueError) as e:
            raise FormatError(f"invalid datetime: {raw!r}") from e
    if tp is timedelta:
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise FormatError(f"invalid duration: {raw!r}")
        try:
            return timedelta(seconds=raw)
        except (OverflowError, ValueError) as e:
            raise FormatError(f"duration out of range: {raw!r}") from e
    if tp is bytes:
        try:
            return base64.b64decode(raw, validate=True)
        except (TypeError, binascii.Error) as e:
            raise FormatError(f"invalid base64 value: {raw!r}") from e
    if tp is float and isinstance(raw, int) and not isinstance(raw, bool):
        return float(raw)
    if tp in (str, int, float, bool) and type(raw) is not tp:
        raise FormatError(f"expected {tp.__name__}, got {raw!r}")
    return raw


def _from_object(raw: Any, cls: Type) -> Any:
    if not isinstance(raw, dict):
        raise FormatError(f"{cls.__name__} JSON value must be an object: {raw!r}")
    hints = typing.get_type_hints(cls)
    by_name = {json_name(f.name): f for f in dataclasses.fields(cls)}
    kwargs = {}
    for key, value in raw.items():
        f = by_name.get(key)
        if f is None:
            raise FormatError(f"unknown field {key!r} in {cls.__name__}", details={"field": key})
        kwargs[f.name] = _from_tree(value, hints[f.name])
    try:
        return cls(**kwargs)
    except TypeError as e:
        raise FormatError(f"incomplete {cls.__name__} JSON object: {e}") from e
