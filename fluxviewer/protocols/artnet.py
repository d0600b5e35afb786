"""
Art-Net packet decoding (receive side only).

Layout of an ArtDmx ("Output") packet, Art-Net 4:

     0..7   : "Art-Net\\0"
     8..9   : OpCode (little-endian) = 0x5000
    10..11  : ProtVer (big-endian)
    12      : Sequence
    13      : Physical
    14      : SubUni (Sub-Net << 4 | Universe)
    15      : Net (7 bits)
    16..17  : Length (big-endian)
    18..    : DMX data (Length bytes)

Only ArtDmx packets carry channel data; every other op-code decodes to None.
"""

import struct
from dataclasses import dataclass
from typing import Optional

from ..errors import ArtNetDecodeError

ARTNET_PORT = 6454
ARTNET_ID = b"Art-Net\x00"

OP_POLL = 0x2000
OP_POLL_REPLY = 0x2100
OP_OUTPUT = 0x5000  # OpDmx

HEADER_SIZE = 10
DMX_HEADER_SIZE = 18

_OPCODE = struct.Struct("<H")
_DMX_HEADER = struct.Struct(">HBB")  # ProtVer, Sequence, Physical
_PORT_ADDRESS = struct.Struct("<H")  # SubUni, Net
_LENGTH = struct.Struct(">H")


@dataclass(frozen=True)
class ArtDmx:
    """Decoded ArtDmx packet."""
    port_address: int
    sequence: int
    physical: int
    version: int
    data: bytes

    @property
    def net(self) -> int:
        return (self.port_address >> 8) & 0x7F

    @property
    def sub_net(self) -> int:
        return (self.port_address >> 4) & 0x0F

    @property
    def universe(self) -> int:
        """15-bit Port-Address used as the universe number."""
        return self.port_address


def opcode(data: bytes) -> int:
    """Return the op-code of an Art-Net packet. Raises ArtNetDecodeError."""
    if len(data) < HEADER_SIZE:
        raise ArtNetDecodeError(f"Art-Net packet too short: {len(data)} bytes")
    if data[:8] != ARTNET_ID:
        raise ArtNetDecodeError("Missing Art-Net id")
    return _OPCODE.unpack_from(data, 8)[0]


def decode(data: bytes) -> Optional[ArtDmx]:
    """
    Decode an Art-Net datagram.

    Returns:
        ArtDmx for Output packets, None for every other packet kind

    Raises:
        ArtNetDecodeError: bad id, short header or truncated DMX payload
    """
    if opcode(data) != OP_OUTPUT:
        return None

    if len(data) < DMX_HEADER_SIZE:
        raise ArtNetDecodeError(f"ArtDmx header too short: {len(data)} bytes")

    version, sequence, physical = _DMX_HEADER.unpack_from(data, HEADER_SIZE)
    port_address = _PORT_ADDRESS.unpack_from(data, 14)[0] & 0x7FFF
    length = _LENGTH.unpack_from(data, 16)[0]

    payload = data[DMX_HEADER_SIZE:DMX_HEADER_SIZE + length]
    if len(payload) < length:
        raise ArtNetDecodeError(
            f"ArtDmx payload truncated: header says {length}, got {len(payload)}"
        )

    return ArtDmx(
        port_address=port_address,
        sequence=sequence,
        physical=physical,
        version=version,
        data=bytes(payload),
    )

