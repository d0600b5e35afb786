"""Hex and ASCII renderings of raw serial reads."""

from typing import Optional

from ..records import SerialEvent, arrival_timestamp

PRINTABLE_MIN = 0x20
PRINTABLE_MAX = 0x7E


def hex_dump(data: bytes) -> str:
    """``b"\\x01\\xab"`` -> ``"01 AB"``."""
    return " ".join(f"{b:02X}" for b in data)


def ascii_dump(data: bytes) -> str:
    """Printable bytes as characters, everything else as ``.``."""
    return "".join(chr(b) if PRINTABLE_MIN <= b <= PRINTABLE_MAX else "." for b in data)


def serial_event(data: bytes, timestamp: Optional[str] = None) -> SerialEvent:
    data = bytes(data)
    return SerialEvent(
        timestamp=timestamp or arrival_timestamp(),
        data=data,
        hex=hex_dump(data),
        ascii=ascii_dump(data),
    )
