"""Tests for the jsonpb wire codec and the generic text path."""

import json
import logging
from datetime import datetime, timedelta, timezone

import pytest

from tracemodel import runtime_config
from tracemodel.codec import jsonpb, text
from tracemodel.errors import (
    FormatError,
    LengthError,
    UnknownValueError,
    UnsupportedMethodError,
)
from tracemodel.model import (
    CHILD_OF,
    FOLLOWS_FROM,
    Flags,
    KeyValue,
    Log,
    Process,
    Span,
    SpanID,
    SpanRef,
    SpanRefType,
    TraceID,
    ValueType,
    new_child_of_ref,
)

REF_JSON = '{"traceID":"42","spanID":"43","refType":"FOLLOWS_FROM"}'


def make_ref():
    return SpanRef(trace_id=TraceID(low=0x42), span_id=SpanID(0x43), ref_type=FOLLOWS_FROM)


def make_span():
    trace_id = TraceID(high=0x2A, low=0x43)
    return Span(
        trace_id=trace_id,
        span_id=SpanID(0xBEEF),
        operation_name="checkout",
        references=[new_child_of_ref(trace_id, SpanID(0x10)), make_ref()],
        flags=Flags(3),
        start_time=datetime(2017, 1, 26, 16, 46, 31, 639875, tzinfo=timezone.utc),
        duration=timedelta(seconds=1, microseconds=500000),
        tags=[
            KeyValue.string("span.kind", "server"),
            KeyValue.bool_("error", True),
            KeyValue.int64("http.status_code", 500),
            KeyValue.float64("ratio", 0.25),
            KeyValue.binary("payload", b"\x00\x01\x02"),
        ],
        logs=[
            Log(
                timestamp=datetime(2017, 1, 26, 16, 46, 32, tzinfo=timezone.utc),
                fields=[KeyValue.string("event", "retry")],
            )
        ],
        process=Process(service_name="shop", tags=[KeyValue.string("hostname", "web-1")]),
        warnings=["clock skew adjusted"],
    )


class TestJsonpbSpanRef:
    """Canonical wire form of references."""

    def test_marshal(self):
        assert jsonpb.marshal(make_ref()) == REF_JSON

    def test_unmarshal(self):
        assert jsonpb.unmarshal(REF_JSON, SpanRef) == make_ref()

    def test_unmarshal_bytes(self):
        assert jsonpb.unmarshal(REF_JSON.encode("utf-8"), SpanRef) == make_ref()

    def test_child_of_is_emitted(self):
        ref = new_child_of_ref(TraceID(high=1, low=2), SpanID(3))
        assert jsonpb.marshal(ref) == (
            '{"traceID":"10000000000000002","spanID":"3","refType":"CHILD_OF"}'
        )

    def test_proto_field_names_accepted(self):
        data = '{"trace_id":"42","span_id":"43","ref_type":"FOLLOWS_FROM"}'
        assert jsonpb.unmarshal(data, SpanRef) == make_ref()

    def test_enum_number_accepted(self):
        data = '{"traceID":"42","spanID":"43","refType":1}'
        assert jsonpb.unmarshal(data, SpanRef).ref_type is FOLLOWS_FROM

    def test_unnamed_ref_type_is_a_bare_number(self):
        ref = SpanRef(trace_id=TraceID(low=1), span_id=SpanID(2), ref_type=SpanRefType(5))
        data = jsonpb.marshal(ref)
        assert data == '{"traceID":"1","spanID":"2","refType":5}'
        assert jsonpb.unmarshal(data, SpanRef).ref_type == 5

    def test_missing_ref_type_defaults_to_child_of(self):
        ref = jsonpb.unmarshal('{"traceID":"42","spanID":"43"}', SpanRef)
        assert ref.ref_type is CHILD_OF

    def test_bad_ref_type(self):
        with pytest.raises(UnknownValueError):
            jsonpb.unmarshal('{"refType":"BAD"}', SpanRef)

    @pytest.mark.parametrize(
        "data",
        [
            '{"traceID":42}',
            '{"traceID":12345}',
            '{"traceID":""}',
            '{"spanID":43}',
            '{"spanID":"xyz"}',
            '{"traceID":"not-hex"}',
        ],
    )
    def test_malformed_ids(self, data):
        with pytest.raises(FormatError):
            jsonpb.unmarshal(data, SpanRef)

    def test_too_long_ids(self):
        with pytest.raises(LengthError):
            jsonpb.unmarshal('{"traceID":"%s"}' % ("1" * 33), SpanRef)
        with pytest.raises(LengthError):
            jsonpb.unmarshal('{"spanID":"%s"}' % ("1" * 17), SpanRef)

    def test_invalid_json(self):
        with pytest.raises(FormatError):
            jsonpb.unmarshal("{not json", SpanRef)

    def test_non_object(self):
        with pytest.raises(FormatError):
            jsonpb.unmarshal("[]", SpanRef)

    def test_unknown_field(self):
        with pytest.raises(FormatError):
            jsonpb.unmarshal('{"parentID":"1"}', SpanRef)

    def test_decode_failure_logged_in_debug(self, caplog):
        runtime_config.set_debug(True)
        with caplog.at_level(logging.DEBUG, logger="tracemodel"):
            with pytest.raises(UnknownValueError):
                jsonpb.unmarshal('{"refType":"BAD"}', SpanRef)
        assert any("SpanRefType" in record.getMessage() for record in caplog.records)


class TestJsonpbSpan:
    """Whole-span wire encoding."""

    def test_round_trip(self):
        span = make_span()
        assert jsonpb.unmarshal(jsonpb.marshal(span), Span) == span

    def test_field_names_and_formats(self):
        doc = json.loads(jsonpb.marshal(make_span()))
        assert doc["traceID"] == "2a0000000000000043"
        assert doc["spanID"] == "beef"
        assert doc["operationName"] == "checkout"
        assert doc["flags"] == 3
        assert doc["startTime"] == "2017-01-26T16:46:31.639875Z"
        assert doc["duration"] == "1.500s"
        assert doc["references"][1] == json.loads(REF_JSON)
        assert doc["tags"][1] == {"key": "error", "vType": "BOOL", "vBool": True}
        assert doc["tags"][2] == {"key": "http.status_code", "vType": "INT64", "vInt64": "500"}
        assert doc["tags"][4]["vBinary"] == "AAEC"
        assert doc["logs"][0]["timestamp"] == "2017-01-26T16:46:32Z"
        assert doc["process"] == {
            "serviceName": "shop",
            "tags": [{"key": "hostname", "vStr": "web-1"}],
        }
        assert doc["warnings"] == ["clock skew adjusted"]

    def test_zero_values_omitted(self):
        doc = json.loads(jsonpb.marshal(Span(trace_id=TraceID(low=1), span_id=SpanID(2))))
        assert doc == {
            "traceID": "1",
            "spanID": "2",
            "startTime": "1970-01-01T00:00:00Z",
        }

    def test_parent_survives_round_trip(self):
        span = jsonpb.unmarshal(jsonpb.marshal(make_span()), Span)
        assert span.parent_span_id() == SpanID(0x10)

    def test_timestamp_with_offset_and_nanos(self):
        data = '{"traceID":"1","spanID":"2","startTime":"2020-05-01T12:00:00.123456789+02:00"}'
        span = jsonpb.unmarshal(data, Span)
        assert span.start_time == datetime(2020, 5, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)

    @pytest.mark.parametrize("flags", ['"1"', "true", "-1", "4294967296"])
    def test_bad_flags(self, flags):
        with pytest.raises(FormatError):
            jsonpb.unmarshal('{"flags":%s}' % flags, Span)

    @pytest.mark.parametrize("duration", ['"1.5"', '"abc"', "1.5"])
    def test_bad_duration(self, duration):
        with pytest.raises(FormatError):
            jsonpb.unmarshal('{"duration":%s}' % duration, Span)

    def test_duration_out_of_range(self):
        with pytest.raises(FormatError):
            jsonpb.unmarshal('{"duration":"99999999999999999999s"}', Span)

    @pytest.mark.parametrize(
        "value",
        ['"99999999999999999999999"', "9223372036854775808", '"-9223372036854775809"'],
    )
    def test_int64_out_of_range(self, value):
        with pytest.raises(FormatError):
            jsonpb.unmarshal('{"key":"k","vType":"INT64","vInt64":%s}' % value, KeyValue)

    def test_int64_bounds(self):
        data = '{"key":"k","vType":"INT64","vInt64":"-9223372036854775808"}'
        assert jsonpb.unmarshal(data, KeyValue).v_int64 == -(1 << 63)
        data = '{"key":"k","vType":"INT64","vInt64":9223372036854775807}'
        assert jsonpb.unmarshal(data, KeyValue).v_int64 == (1 << 63) - 1

    def test_int64_non_ascii_digits_rejected(self):
        with pytest.raises(FormatError):
            jsonpb.unmarshal('{"key":"k","vType":"INT64","vInt64":"١٢"}', KeyValue)

    def test_negative_duration(self):
        span = jsonpb.unmarshal('{"duration":"-0.250s"}', Span)
        assert span.duration == timedelta(milliseconds=-250)

    def test_bad_value_type(self):
        with pytest.raises(UnknownValueError):
            jsonpb.unmarshal('{"key":"k","vType":"COMPLEX"}', KeyValue)

    def test_key_value_defaults_to_string(self):
        kv = jsonpb.unmarshal('{"key":"k","vStr":"v"}', KeyValue)
        assert kv == KeyValue.string("k", "v")
        assert kv.v_type is ValueType.STRING

    def test_key_value_requires_key(self):
        with pytest.raises(FormatError):
            jsonpb.unmarshal('{"vStr":"v"}', KeyValue)

    def test_unmapped_type(self):
        with pytest.raises(TypeError):
            jsonpb.marshal(object())


class TestTextPath:
    """The generic encoding refuses TraceID and stays strict on enum names."""

    def test_trace_id_is_refused(self):
        with pytest.raises(UnsupportedMethodError):
            text.dumps(TraceID(low=0x42))

    def test_ref_containing_trace_id_is_refused(self):
        with pytest.raises(UnsupportedMethodError):
            text.dumps(make_ref())

    def test_span_id_encodes_as_hex_string(self):
        assert text.dumps(SpanID(0x43)) == '"43"'
        assert text.loads('"43"', SpanID) == SpanID(0x43)

    def test_decoding_trace_id_is_refused(self):
        with pytest.raises(UnsupportedMethodError):
            text.loads('{"traceID":"42"}', SpanRef)

    def test_bad_ref_type(self):
        with pytest.raises(UnknownValueError):
            text.loads('{"refType":"BAD"}', SpanRef)

    def test_ref_without_trace_id(self):
        ref = text.loads('{"spanID":"43","refType":"FOLLOWS_FROM"}', SpanRef)
        assert ref == SpanRef(span_id=SpanID(0x43), ref_type=FOLLOWS_FROM)

    def test_duration_out_of_range(self):
        with pytest.raises(FormatError):
            text.loads('{"duration":1e300}', Span)

    def test_key_value_round_trip(self):
        kv = KeyValue.binary("payload", b"\x00\x01")
        assert text.loads(text.dumps(kv), KeyValue) == kv

    def test_process_round_trip(self):
        process = Process(service_name="shop", tags=[KeyValue.int64("pid", 7)])
        assert json.loads(text.dumps(process))["serviceName"] == "shop"
        assert text.loads(text.dumps(process), Process) == process

    def test_json_name(self):
        assert text.json_name("trace_id") == "traceID"
        assert text.json_name("operation_name") == "operationName"
        assert text.json_name("v_int64") == "vInt64"
        assert text.json_name("key") == "key"
