"""
OSC packet decoding.

python-osc parses the packet grammar; this module turns its messages into
OscEvent records:

- a message yields one event
- a bundle yields one event per top-level message; nested bundles are
  discarded without being recursed into
- timestamp and sender are taken once per packet and shared by all events
- arguments map 1:1 onto OscArgument; types outside Int/Float/String/Blob/
  Bool/Nil/Inf become a String holding a debug rendering
"""

import logging
import math
from typing import Any, List, Optional, Sequence, Tuple

from pythonosc import osc_bundle, osc_message
from pythonosc.parsing import osc_types

from ..errors import DecodeError
from ..records import OscArgKind, OscArgument, OscEvent, arrival_timestamp

logger = logging.getLogger(__name__)

_PARSE_ERRORS = (
    osc_message.ParseError,
    osc_bundle.ParseError,
    osc_types.ParseError,
    IndexError,
    ValueError,
)

# Tags python-osc decodes into a value
_VALUE_TAGS = frozenset("ihfdsbrmtTFN")

_KINDS = {
    "i": OscArgKind.INT,
    "f": OscArgKind.FLOAT,
    "s": OscArgKind.STRING,
    "b": OscArgKind.BLOB,
    "T": OscArgKind.BOOL,
    "F": OscArgKind.BOOL,
    "N": OscArgKind.NIL,
}


def format_sender(address: Sequence[Any]) -> str:
    """Render a socket address tuple as ``host:port``."""
    return f"{address[0]}:{address[1]}"


def type_tags(message: osc_message.OscMessage) -> str:
    """Type-tag string of a parsed message, without the leading comma."""
    dgram = message.dgram
    _, index = osc_types.get_string(dgram, 0)
    if index >= len(dgram):
        return ""
    tags, _ = osc_types.get_string(dgram, index)
    return tags[1:] if tags.startswith(",") else tags


def normalize_arguments(tags: str, params: Sequence[Any]) -> Tuple[OscArgument, ...]:
    """
    Pair each type tag with python-osc's decoded value.

    Arrays are rendered as one String argument; tags python-osc skips
    produce no value and are rendered as a marker.
    """
    args: List[OscArgument] = []
    pos = 0
    depth = 0

    for tag in tags:
        if tag == "[":
            if depth == 0:
                array = params[pos] if pos < len(params) else []
                pos += 1
                args.append(OscArgument.unsupported(repr(array)))
            depth += 1
            continue
        if tag == "]":
            depth = max(0, depth - 1)
            continue
        if depth:
            continue

        if tag == "I":
            # Older python-osc skips 'I', newer ones may decode it to inf
            if pos < len(params) and isinstance(params[pos], float) and math.isinf(params[pos]):
                pos += 1
            args.append(OscArgument(OscArgKind.INF))
            continue

        if tag not in _VALUE_TAGS:
            args.append(OscArgument.unsupported(f"<unsupported tag {tag!r}>"))
            continue

        value = params[pos] if pos < len(params) else None
        pos += 1
        kind = _KINDS.get(tag)
        if kind is None:
            args.append(OscArgument.unsupported(repr(value)))
        elif kind == OscArgKind.BLOB:
            args.append(OscArgument(kind, bytes(value)))
        elif kind == OscArgKind.NIL:
            args.append(OscArgument(kind))
        else:
            args.append(OscArgument(kind, value))

    return tuple(args)


def message_to_event(message: osc_message.OscMessage, timestamp: str, sender: str) -> OscEvent:
    return OscEvent(
        address=message.address,
        arguments=normalize_arguments(type_tags(message), message.params),
        timestamp=timestamp,
        sender=sender,
    )


def decode_packet(dgram: bytes, sender: str, timestamp: Optional[str] = None) -> List[OscEvent]:
    """
    Decode one UDP datagram into OSC events.

    Args:
        dgram: Raw datagram
        sender: Textual source address (``host:port``)
        timestamp: Arrival time; taken now when omitted

    Returns:
        Events in packet order

    Raises:
        DecodeError: datagram is not a valid OSC message or bundle
    """
    timestamp = timestamp or arrival_timestamp(with_date=True)

    try:
        if osc_bundle.OscBundle.dgram_is_bundle(dgram):
            bundle = osc_bundle.OscBundle(dgram)
            contents = list(bundle)
            messages = [c for c in contents if isinstance(c, osc_message.OscMessage)]
            nested = len(contents) - len(messages)
            if nested:
                logger.debug(f"Discarded {nested} nested bundle(s) from {sender}")
        elif osc_message.OscMessage.dgram_is_message(dgram):
            messages = [osc_message.OscMessage(dgram)]
        else:
            raise DecodeError(f"Not an OSC packet ({len(dgram)} bytes from {sender})")

        return [message_to_event(m, timestamp, sender) for m in messages]
    except _PARSE_ERRORS as exc:
        raise DecodeError(f"Malformed OSC packet from {sender}: {exc}") from exc
