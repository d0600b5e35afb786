"""
Protocol listeners.

Each listener is a strategy driven by the generic ListenerLoop:

    OscListener      - UDP, OscStart / Stop
    SacnListener     - sacn receiver, SacnStart / Stop / (Un)SubscribeUniverse
    ArtnetListener   - UDP 6454, ArtnetStart / Stop / (Un)SubscribeUniverse
    SerialListener   - pyserial, SerialStart / Stop
"""

from .artnet_listener import ArtnetListener
from .base import EventChannel, Listener, ListenerLoop, ListenerState, UniverseListener
from .osc_listener import OscListener
from .sacn_listener import SacnListener
from .serial_listener import SerialListener, list_ports

__all__ = [
    "EventChannel",
    "Listener",
    "ListenerLoop",
    "ListenerState",
    "UniverseListener",
    "OscListener",
    "SacnListener",
    "ArtnetListener",
    "SerialListener",
    "list_ports",
]
