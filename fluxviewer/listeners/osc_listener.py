"""
OSC Listener

Receives OSC over UDP and emits one OscEvent per message (bundles are
flattened one level).

Usage:
    loop = ListenerLoop(OscListener())
    loop.spawn()
    loop.send(OscStart(ip="0.0.0.0", port=8000))
"""

import logging
import socket
from typing import List, Optional

from ..commands import OscStart
from ..config import LoopConfig, OscConfig
from ..protocols.osc import decode_packet, format_sender
from ..records import PROTOCOL_OSC, OscEvent
from .base import Listener
from .udp import Datagram, describe_socket, open_udp_socket, receive

logger = logging.getLogger(__name__)


class OscListener(Listener):
    protocol = PROTOCOL_OSC
    start_command = OscStart

    def __init__(self, config: Optional[OscConfig] = None, loop_config: Optional[LoopConfig] = None):
        super().__init__(loop_config)
        self.config = config or OscConfig()

    def open(self, command: OscStart) -> socket.socket:
        return open_udp_socket(command.ip, command.port, self.loop_config.read_timeout)

    def close(self, sock: socket.socket) -> None:
        sock.close()

    def read(self, sock: socket.socket) -> Optional[Datagram]:
        return receive(sock, self.config.buffer_size, with_date=True)

    def decode(self, datagram: Datagram) -> List[OscEvent]:
        return decode_packet(datagram.data, format_sender(datagram.address), datagram.timestamp)

    def describe(self, sock: socket.socket) -> str:
        return describe_socket(sock)
