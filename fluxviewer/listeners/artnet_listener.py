"""
Art-Net Listener

Binds UDP 6454 and emits a DmxFrame for every ArtDmx packet whose universe
is subscribed. Other op-codes (ArtPoll, ArtPollReply, ...) are ignored.
"""

import logging
import socket
from typing import List, Optional

from ..commands import ArtnetStart
from ..config import ArtnetConfig, LoopConfig
from ..protocols import artnet
from ..protocols.dmx import artnet_frame
from ..records import PROTOCOL_ARTNET, DmxFrame
from .base import UniverseListener
from .udp import Datagram, describe_socket, open_udp_socket, receive

logger = logging.getLogger(__name__)


class ArtnetListener(UniverseListener):
    """Art-Net receiver with application-level universe filtering."""

    protocol = PROTOCOL_ARTNET
    start_command = ArtnetStart

    def __init__(self, config: Optional[ArtnetConfig] = None, loop_config: Optional[LoopConfig] = None):
        super().__init__(loop_config)
        self.config = config or ArtnetConfig()

    def open(self, command: ArtnetStart) -> socket.socket:
        return open_udp_socket(command.ip, self.config.port, self.loop_config.read_timeout)

    def close(self, sock: socket.socket) -> None:
        sock.close()

    def read(self, sock: socket.socket) -> Optional[Datagram]:
        return receive(sock, self.config.buffer_size)

    def decode(self, datagram: Datagram) -> List[DmxFrame]:
        packet = artnet.decode(datagram.data)
        if packet is None:
            logger.debug(f"[artnet] ignoring non-DMX packet from {datagram.address[0]}")
            return []
        if not self.is_subscribed(packet.universe):
            return []
        return [artnet_frame(packet, datagram.timestamp)]

    def describe(self, sock: socket.socket) -> str:
        return describe_socket(sock)
