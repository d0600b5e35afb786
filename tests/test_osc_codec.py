"""OSC datagram decoding into OscEvent records."""

import struct

import pytest
from pythonosc import osc_bundle_builder, osc_message_builder

from fluxviewer.errors import DecodeError
from fluxviewer.protocols.osc import decode_packet, format_sender, type_tags
from fluxviewer.records import OscArgKind, OscArgument

SENDER = "127.0.0.1:9000"


def _message(address, *args):
    builder = osc_message_builder.OscMessageBuilder(address=address)
    for arg in args:
        builder.add_arg(arg)
    return builder.build()


def _bundle(*contents):
    builder = osc_bundle_builder.OscBundleBuilder(osc_bundle_builder.IMMEDIATELY)
    for content in contents:
        builder.add_content(content)
    return builder.build()


def _raw_message(address: bytes, tags: bytes, payload: bytes = b"") -> bytes:
    def pad(s: bytes) -> bytes:
        s += b"\x00"
        return s + b"\x00" * (-len(s) % 4)
    return pad(address) + pad(b"," + tags) + payload


class TestMessages:
    def test_single_message(self):
        events = decode_packet(_message("/mixer/fader1", 0.5).dgram, SENDER, "ts")
        assert len(events) == 1
        event = events[0]
        assert event.address == "/mixer/fader1"
        assert event.arguments == (OscArgument(OscArgKind.FLOAT, 0.5),)
        assert event.sender == SENDER
        assert event.timestamp == "ts"

    def test_basic_argument_kinds(self):
        dgram = _message("/all", 7, "text", b"\x01\x02", True, False, None).dgram
        (event,) = decode_packet(dgram, SENDER)
        assert [arg.kind for arg in event.arguments] == [
            OscArgKind.INT,
            OscArgKind.STRING,
            OscArgKind.BLOB,
            OscArgKind.BOOL,
            OscArgKind.BOOL,
            OscArgKind.NIL,
        ]
        assert event.arguments[0].value == 7
        assert event.arguments[1].value == "text"
        assert event.arguments[2].value == b"\x01\x02"
        assert event.arguments[3].value is True
        assert event.arguments[4].value is False

    def test_no_arguments(self):
        (event,) = decode_packet(_raw_message(b"/ping", b""), SENDER)
        assert event.address == "/ping"
        assert event.arguments == ()

    def test_infinitum(self):
        (event,) = decode_packet(_raw_message(b"/inf", b"I"), SENDER)
        assert event.arguments == (OscArgument(OscArgKind.INF),)

    def test_int64_becomes_debug_string(self):
        dgram = _raw_message(b"/big", b"h", struct.pack(">q", 2 ** 40))
        (event,) = decode_packet(dgram, SENDER)
        assert event.arguments == (OscArgument(OscArgKind.STRING, repr(2 ** 40)),)

    def test_timestamp_taken_when_missing(self):
        (event,) = decode_packet(_message("/a", 1).dgram, SENDER)
        assert event.timestamp


class TestBundles:
    def test_bundle_yields_one_event_per_message(self):
        bundle = _bundle(_message("/a", 1), _message("/b", 2), _message("/c", 3))
        events = decode_packet(bundle.dgram, SENDER)
        assert [e.address for e in events] == ["/a", "/b", "/c"]
        assert len({e.timestamp for e in events}) == 1
        assert {e.sender for e in events} == {SENDER}

    def test_nested_bundles_are_discarded(self):
        inner = _bundle(_message("/inner", 1))
        outer = _bundle(_message("/outer", 2), inner)
        events = decode_packet(outer.dgram, SENDER)
        assert [e.address for e in events] == ["/outer"]

    def test_bundle_of_only_bundles_is_empty(self):
        outer = _bundle(_bundle(_message("/inner", 1)))
        assert decode_packet(outer.dgram, SENDER) == []


class TestMalformed:
    def test_not_osc(self):
        with pytest.raises(DecodeError):
            decode_packet(b"hello world", SENDER)

    def test_truncated_argument(self):
        with pytest.raises(DecodeError):
            decode_packet(_raw_message(b"/abc", b"i", b"\x01"), SENDER)


def test_format_sender():
    assert format_sender(("10.0.0.5", 53000)) == "10.0.0.5:53000"


def test_type_tags():
    builder = osc_message_builder.OscMessageBuilder(address="/mix")
    builder.add_arg(1)
    builder.add_arg("a")
    assert type_tags(builder.build()) == "is"
