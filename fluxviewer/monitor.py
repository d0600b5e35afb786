"""
Protocol Monitor - composition root for the four listeners.

Builds one ListenerLoop per protocol, spawns their threads, attaches their
event channels to a Relay and exposes the control surface the monitor panels
use (osc_start, sacn_subscribe_universe, artnet_start_listener,
serial_start_listener, serial_list_ports, ...).

Usage:
    monitor = ProtocolMonitor(load_config())
    monitor.subscribe("artnet", on_frame)
    monitor.start()
    monitor.artnet_start_listener("0.0.0.0")
    monitor.artnet_subscribe_universe(1)
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Union

from .commands import (
    ArtnetStart,
    Command,
    OscStart,
    SacnStart,
    SerialStart,
    Stop,
    SubscribeUniverse,
    UnsubscribeUniverse,
    parse_command,
)
from .config import MonitorConfig
from .errors import UnknownProtocolError
from .listeners import (
    ArtnetListener,
    ListenerLoop,
    OscListener,
    SacnListener,
    SerialListener,
    list_ports,
)
from .records import (
    PROTOCOL_ARTNET,
    PROTOCOL_OSC,
    PROTOCOL_SACN,
    PROTOCOL_SERIAL,
    SerialPortInfo,
)
from .relay import Relay

logger = logging.getLogger(__name__)

# Event names the presentation layer listens for
EVENT_NAMES = {
    PROTOCOL_OSC: "osc_data",
    PROTOCOL_SACN: "dmx-universe-data",
    PROTOCOL_ARTNET: "artnet-universe-data",
    PROTOCOL_SERIAL: "serial-data",
}


class ProtocolMonitor:
    """Owns the listener loops and the relay."""

    def __init__(self, config: Optional[MonitorConfig] = None, relay: Optional[Relay] = None):
        self.config = config or MonitorConfig()
        self.relay = relay or Relay()
        self._started = False

        loop_config = self.config.loop
        self._loops: Dict[str, ListenerLoop] = {
            PROTOCOL_OSC: ListenerLoop(OscListener(self.config.osc, loop_config)),
            PROTOCOL_SACN: ListenerLoop(SacnListener(self.config.sacn, loop_config)),
            PROTOCOL_ARTNET: ListenerLoop(ArtnetListener(self.config.artnet, loop_config)),
            PROTOCOL_SERIAL: ListenerLoop(SerialListener(self.config.serial, loop_config)),
        }
        for protocol, loop in self._loops.items():
            self.relay.attach(protocol, loop.events)

        if self.config.osc.auto_start:
            self._loops[PROTOCOL_OSC].send(OscStart(ip=self.config.osc.ip, port=self.config.osc.port))

    @property
    def is_started(self) -> bool:
        return self._started

    def loop(self, protocol: str) -> ListenerLoop:
        try:
            return self._loops[protocol]
        except KeyError:
            raise UnknownProtocolError(f"Unknown protocol: {protocol!r}") from None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> None:
        """Spawn every listener thread and start the relay."""
        if self._started:
            return
        for loop in self._loops.values():
            loop.spawn()
        self.relay.start()
        self._started = True
        logger.info("Protocol monitor started")

    def stop(self) -> None:
        """Release every transport and stop forwarding."""
        if not self._started:
            return
        for loop in self._loops.values():
            if loop.is_alive:
                loop.send(Stop())
        self.relay.stop()
        self._started = False
        logger.info("Protocol monitor stopped")

    def subscribe(self, protocol: str, handler: Callable[[Any], None]) -> None:
        """Receive every record of a protocol ("*" for all) on a relay thread."""
        self.relay.subscribe(protocol, handler)

    def unsubscribe(self, protocol: str, handler: Callable[[Any], None]) -> None:
        self.relay.unsubscribe(protocol, handler)

    # =========================================================================
    # CONTROL
    # =========================================================================

    def dispatch(self, protocol: str, command: Union[Command, Dict[str, Any]]) -> Command:
        """
        Send a command (model or JSON-style dict) to a listener.

        Raises:
            UnknownProtocolError: protocol is not known
            pydantic.ValidationError: dict payload is not a valid command
            ListenerClosedError: the listener thread is gone
        """
        loop = self.loop(protocol)
        if isinstance(command, dict):
            command = parse_command(protocol, command)
        loop.send(command)
        return command

    def osc_start(self, ip: str = "0.0.0.0", port: int = 8000) -> None:
        self.dispatch(PROTOCOL_OSC, OscStart(ip=ip, port=port))

    def osc_stop(self) -> None:
        self.dispatch(PROTOCOL_OSC, Stop())

    def sacn_start(self, ip: str) -> None:
        self.dispatch(PROTOCOL_SACN, SacnStart(ip=ip))

    def sacn_stop(self) -> None:
        self.dispatch(PROTOCOL_SACN, Stop())

    def sacn_subscribe_universe(self, universe: int) -> None:
        self.dispatch(PROTOCOL_SACN, SubscribeUniverse(universe=universe))

    def sacn_unsubscribe_universe(self, universe: int) -> None:
        self.dispatch(PROTOCOL_SACN, UnsubscribeUniverse(universe=universe))

    def artnet_start_listener(self, ip: str) -> None:
        self.dispatch(PROTOCOL_ARTNET, ArtnetStart(ip=ip))

    def artnet_stop_listener(self) -> None:
        self.dispatch(PROTOCOL_ARTNET, Stop())

    def artnet_subscribe_universe(self, universe: int) -> None:
        self.dispatch(PROTOCOL_ARTNET, SubscribeUniverse(universe=universe))

    def artnet_unsubscribe_universe(self, universe: int) -> None:
        self.dispatch(PROTOCOL_ARTNET, UnsubscribeUniverse(universe=universe))

    def serial_start_listener(self, port: str, baud_rate: int = 115200) -> None:
        self.dispatch(PROTOCOL_SERIAL, SerialStart(port=port, baud_rate=baud_rate))

    def serial_stop_listener(self) -> None:
        self.dispatch(PROTOCOL_SERIAL, Stop())

    def serial_list_ports(self) -> List[SerialPortInfo]:
        return list_ports()

    # =========================================================================
    # STATUS
    # =========================================================================

    def get_status(self) -> Dict[str, Any]:
        return {
            "started": self._started,
            "listeners": {p: loop.get_status() for p, loop in self._loops.items()},
            "relay": self.relay.get_stats(),
        }
