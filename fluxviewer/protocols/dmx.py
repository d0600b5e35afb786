"""DMX normalization shared by the sACN and Art-Net listeners."""

from typing import Any

from ..records import PROTOCOL_ARTNET, PROTOCOL_SACN, DmxFrame, normalize_channels
from .artnet import ArtDmx

# Start code of a plain DMX level packet; others (0xDD priority, ...) carry no levels
DMX_START_CODE = 0x00


def is_level_data(packet: Any) -> bool:
    """True when a ``sacn`` DataPacket carries DMX levels."""
    return getattr(packet, "dmxStartCode", DMX_START_CODE) == DMX_START_CODE


def sacn_frame(packet: Any, timestamp: str = "") -> DmxFrame:
    """
    Build a DmxFrame from a ``sacn`` DataPacket.

    The library splits the start code off into ``dmxStartCode``, so
    ``dmxData`` already starts at channel 1.
    """
    return DmxFrame.from_payload(packet.universe, packet.dmxData, timestamp, PROTOCOL_SACN)


def artnet_frame(packet: ArtDmx, timestamp: str = "") -> DmxFrame:
    return DmxFrame.from_payload(packet.universe, packet.data, timestamp, PROTOCOL_ARTNET)


__all__ = ["DMX_START_CODE", "is_level_data", "normalize_channels", "sacn_frame", "artnet_frame"]
