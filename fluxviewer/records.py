"""
Canonical Records

Immutable, protocol-agnostic records emitted by the listeners. One record per
received frame; every record is stamped with its local arrival time.

    DmxFrame     - 512 DMX channels of one universe (sACN, Art-Net)
    OscEvent     - one OSC message with normalized arguments
    OscArgument  - tagged OSC argument value
    SerialEvent  - raw serial read rendered as hex and ascii
    SerialPortInfo - enumerated serial device
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


DMX_UNIVERSE_SIZE = 512

PROTOCOL_OSC = "osc"
PROTOCOL_SACN = "sacn"
PROTOCOL_ARTNET = "artnet"
PROTOCOL_SERIAL = "serial"


def normalize_channels(payload) -> bytes:
    """Exactly 512 channel bytes: zero-padded when short, truncated when long."""
    data = bytes(payload[:DMX_UNIVERSE_SIZE])
    return data + bytes(DMX_UNIVERSE_SIZE - len(data))


def arrival_timestamp(with_date: bool = False, now: Optional[datetime] = None) -> str:
    """
    Render a local wall-clock timestamp with millisecond precision.

    Args:
        with_date: Prefix with ``YYYY-MM-DD``
        now: Fixed instant (tests); defaults to ``datetime.now()``

    Returns:
        ``HH:MM:SS.mmm`` or ``YYYY-MM-DD HH:MM:SS.mmm``
    """
    now = now or datetime.now()
    fmt = "%Y-%m-%d %H:%M:%S.%f" if with_date else "%H:%M:%S.%f"
    return now.strftime(fmt)[:-3]


# =============================================================================
# DMX
# =============================================================================

@dataclass(frozen=True)
class DmxFrame:
    """One universe worth of DMX data. ``channels`` is always 512 bytes."""
    universe: int
    channels: bytes
    timestamp: str = ""
    protocol: str = PROTOCOL_ARTNET

    def __post_init__(self):
        if len(self.channels) != DMX_UNIVERSE_SIZE:
            raise ValueError(
                f"DmxFrame needs {DMX_UNIVERSE_SIZE} channels, got {len(self.channels)}"
            )
        if not 0 <= self.universe <= 0xFFFF:
            raise ValueError(f"Universe out of range: {self.universe}")

    @classmethod
    def from_payload(
        cls,
        universe: int,
        payload,
        timestamp: str = "",
        protocol: str = PROTOCOL_ARTNET,
    ) -> "DmxFrame":
        """Build a frame from a payload of any length (zero-padded / truncated)."""
        return cls(
            universe=universe,
            channels=normalize_channels(payload),
            timestamp=timestamp,
            protocol=protocol,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "protocol": self.protocol,
            "universe": self.universe,
            "channels": list(self.channels),
            "timestamp": self.timestamp,
        }


# =============================================================================
# OSC
# =============================================================================

class OscArgKind(Enum):
    """OSC argument variants. Values are the names used in serialized records."""
    INT = "Int"
    FLOAT = "Float"
    STRING = "String"
    BLOB = "Blob"
    BOOL = "Bool"
    NIL = "Nil"
    INF = "Inf"


@dataclass(frozen=True)
class OscArgument:
    """
    Tagged OSC argument.

    Unsupported wire types are carried as ``STRING`` holding a debug
    rendering of the value instead of failing the whole message.
    """
    kind: OscArgKind
    value: Any = None

    @classmethod
    def unsupported(cls, rendering: str) -> "OscArgument":
        return cls(OscArgKind.STRING, rendering)

    def to_dict(self) -> Dict[str, Any]:
        if self.kind in (OscArgKind.NIL, OscArgKind.INF):
            return {"type": self.kind.value}
        if self.kind == OscArgKind.BLOB:
            return {"type": self.kind.value, "value": list(self.value)}
        return {"type": self.kind.value, "value": self.value}


@dataclass(frozen=True)
class OscEvent:
    """One received OSC message."""
    address: str
    arguments: Tuple[OscArgument, ...] = field(default_factory=tuple)
    timestamp: str = ""
    sender: str = ""
    protocol: str = PROTOCOL_OSC

    def to_dict(self) -> Dict[str, Any]:
        return {
            "protocol": self.protocol,
            "address": self.address,
            "args": [arg.to_dict() for arg in self.arguments],
            "timestamp": self.timestamp,
            "sender": self.sender,
        }


# =============================================================================
# SERIAL
# =============================================================================

@dataclass(frozen=True)
class SerialEvent:
    """One non-empty serial read, rendered three ways from the same bytes."""
    timestamp: str
    data: bytes
    hex: str
    ascii: str
    protocol: str = PROTOCOL_SERIAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "protocol": self.protocol,
            "timestamp": self.timestamp,
            "bytes": list(self.data),
            "hex": self.hex,
            "ascii": self.ascii,
        }


@dataclass(frozen=True)
class SerialPortInfo:
    """Serial device as reported by the OS."""
    name: str
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description}
