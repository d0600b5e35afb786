"""
sACN (E1.31) Listener

The ``sacn`` library owns framing, multicast membership and per-universe
dispatch and runs its own receive thread. Its callbacks only push packets
into the transport's inbox; the listener loop drains the inbox with the
usual bounded read, so all records still leave from the loop thread.
"""

import logging
import queue
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

import sacn

from ..commands import SacnStart
from ..config import LoopConfig, SacnConfig
from ..protocols.dmx import is_level_data, sacn_frame
from ..records import PROTOCOL_SACN, DmxFrame, arrival_timestamp
from .base import UniverseListener

logger = logging.getLogger(__name__)

# (arrival timestamp, sacn DataPacket)
Arrival = Tuple[str, Any]


@dataclass
class SacnTransport:
    """A started receiver plus the inbox its callback feeds."""
    receiver: Any
    inbox: "queue.Queue[Arrival]"
    address: Tuple[str, int]
    callback: Optional[Callable[[Any], None]] = None
    dropped: int = 0


class SacnListener(UniverseListener):
    protocol = PROTOCOL_SACN
    start_command = SacnStart

    def __init__(self, config: Optional[SacnConfig] = None, loop_config: Optional[LoopConfig] = None):
        super().__init__(loop_config)
        self.config = config or SacnConfig()

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def open(self, command: SacnStart) -> SacnTransport:
        inbox: "queue.Queue[Arrival]" = queue.Queue(maxsize=self.config.inbox_size)
        receiver = sacn.sACNreceiver(bind_address=command.ip, bind_port=self.config.port)

        transport = SacnTransport(
            receiver=receiver,
            inbox=inbox,
            address=(command.ip, self.config.port),
        )
        transport.callback = self._make_callback(transport)

        try:
            receiver.start()
            for universe in self.universes:
                self.on_subscribe(transport, universe)
        except Exception:
            receiver.stop()
            raise
        return transport

    def _make_callback(self, transport: SacnTransport) -> Callable[[Any], None]:
        def on_packet(packet: Any) -> None:
            try:
                transport.inbox.put_nowait((arrival_timestamp(), packet))
            except queue.Full:
                transport.dropped += 1
                logger.debug(f"[sacn] inbox full, dropped packet for universe {packet.universe}")
        return on_packet

    def close(self, transport: SacnTransport) -> None:
        transport.receiver.stop()

    def on_subscribe(self, transport: SacnTransport, universe: int) -> None:
        try:
            transport.receiver.register_listener("universe", transport.callback, universe=universe)
        except Exception as exc:
            logger.warning(f"[sacn] could not listen on universe {universe}: {exc}")
            return
        try:
            transport.receiver.join_multicast(universe)
        except Exception as exc:
            logger.warning(f"[sacn] could not join multicast for universe {universe}: {exc}")

    def on_unsubscribe(self, transport: SacnTransport, universe: int) -> None:
        try:
            transport.receiver.remove_listener_from_universe(universe)
        except Exception as exc:
            logger.warning(f"[sacn] could not remove listener for universe {universe}: {exc}")
        try:
            transport.receiver.leave_multicast(universe)
        except Exception as exc:
            logger.warning(f"[sacn] could not leave multicast for universe {universe}: {exc}")

    # -------------------------------------------------------------------------
    # Read / decode
    # -------------------------------------------------------------------------

    def read(self, transport: SacnTransport) -> Optional[List[Arrival]]:
        """Wait up to read_timeout for one packet, then take whatever else is queued."""
        try:
            first = transport.inbox.get(timeout=self.loop_config.read_timeout)
        except queue.Empty:
            return None

        arrivals = [first]
        while True:
            try:
                arrivals.append(transport.inbox.get_nowait())
            except queue.Empty:
                return arrivals

    def decode(self, arrivals: List[Arrival]) -> List[DmxFrame]:
        frames = []
        for timestamp, packet in arrivals:
            if not is_level_data(packet):
                logger.debug(f"[sacn] skipping start code {packet.dmxStartCode:#04x}")
                continue
            # Packets queued before an unsubscribe was applied
            if not self.is_subscribed(packet.universe):
                continue
            try:
                frames.append(sacn_frame(packet, timestamp))
            except (AttributeError, TypeError, ValueError) as exc:
                logger.warning(f"[sacn] dropped malformed packet: {exc}")
        return frames

    def describe(self, transport: SacnTransport) -> str:
        ip, port = transport.address
        return f"sacn://{ip}:{port}"
