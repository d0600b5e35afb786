"""
fluxviewer - live monitor for OSC, sACN, Art-Net and serial traffic

Four independent listeners normalize wire traffic into canonical records
(DmxFrame, OscEvent, SerialEvent) and publish them on bounded event channels.

Public API:
    ProtocolMonitor  - builds and controls all four listeners
    ListenerLoop     - generic polling loop driving one listener
    Relay            - forwards records to subscribed handlers
    parse_command    - JSON-style dict -> validated command
    load_config      - YAML configuration
    list_ports       - enumerate serial devices
"""

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
from .config import MonitorConfig, load_config
from .errors import (
    ConfigError,
    DecodeError,
    FluxviewerError,
    ListenerClosedError,
    UnknownProtocolError,
)
from .listeners import EventChannel, ListenerLoop, ListenerState, list_ports
from .monitor import ProtocolMonitor
from .records import DmxFrame, OscArgKind, OscArgument, OscEvent, SerialEvent, SerialPortInfo
from .relay import Relay
from .universes import parse_universes

__version__ = "0.1.0"

__all__ = [
    "ArtnetStart",
    "Command",
    "OscStart",
    "SacnStart",
    "SerialStart",
    "Stop",
    "SubscribeUniverse",
    "UnsubscribeUniverse",
    "parse_command",
    "MonitorConfig",
    "load_config",
    "ConfigError",
    "DecodeError",
    "FluxviewerError",
    "ListenerClosedError",
    "UnknownProtocolError",
    "EventChannel",
    "ListenerLoop",
    "ListenerState",
    "list_ports",
    "ProtocolMonitor",
    "DmxFrame",
    "OscArgKind",
    "OscArgument",
    "OscEvent",
    "SerialEvent",
    "SerialPortInfo",
    "Relay",
    "parse_universes",
]
