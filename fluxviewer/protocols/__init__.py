"""
Protocol decoders - wire frame to canonical record.

    osc          - decode_packet (python-osc messages and bundles)
    artnet       - decode (ArtDmx header parsing)
    dmx          - normalize_channels, sacn_frame, artnet_frame
    serial_text  - hex_dump, ascii_dump, serial_event
"""

from .artnet import ArtDmx, decode as decode_artnet
from .dmx import artnet_frame, is_level_data, normalize_channels, sacn_frame
from .osc import decode_packet as decode_osc
from .serial_text import ascii_dump, hex_dump, serial_event

__all__ = [
    "ArtDmx",
    "decode_artnet",
    "decode_osc",
    "artnet_frame",
    "sacn_frame",
    "normalize_channels",
    "is_level_data",
    "hex_dump",
    "ascii_dump",
    "serial_event",
]
