"""
Shared fixtures.

Listener loops are driven through run_once() on the test thread so every
assertion is deterministic; only a few tests spawn the loop thread.
"""

import socket
import struct
import time
from types import SimpleNamespace

import pytest

from fluxviewer.config import LoopConfig

# Short waits keep loop-driven tests fast
FAST_LOOP = LoopConfig(read_timeout=0.05, idle_interval=0.01, event_queue_size=64)


def wait_for(predicate, timeout: float = 1.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def run_until(loop, predicate, max_iterations: int = 40) -> bool:
    """Drive a ListenerLoop on the test thread until predicate() holds."""
    for _ in range(max_iterations):
        loop.run_once()
        if predicate():
            return True
    return False


def artnet_dmx_packet(universe: int, data: bytes, sequence: int = 0, physical: int = 0) -> bytes:
    """ArtDmx (OpOutput) datagram as a console would send it."""
    return (
        b"Art-Net\x00"
        + struct.pack("<H", 0x5000)
        + struct.pack(">H", 14)
        + bytes([sequence, physical])
        + struct.pack("<H", universe & 0x7FFF)
        + struct.pack(">H", len(data))
        + bytes(data)
    )


def artnet_poll_packet() -> bytes:
    return b"Art-Net\x00" + struct.pack("<H", 0x2000) + struct.pack(">H", 14) + b"\x00\x00"


def sacn_packet(universe: int, data, start_code: int = 0x00):
    """Stand-in for sacn.DataPacket with the attributes the listener reads."""
    return SimpleNamespace(universe=universe, dmxData=tuple(data), dmxStartCode=start_code)


@pytest.fixture
def loop_config() -> LoopConfig:
    return LoopConfig(
        read_timeout=FAST_LOOP.read_timeout,
        idle_interval=FAST_LOOP.idle_interval,
        event_queue_size=FAST_LOOP.event_queue_size,
    )


@pytest.fixture
def free_udp_port() -> int:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


@pytest.fixture
def udp_sender():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def send(data: bytes, port: int, host: str = "127.0.0.1") -> None:
        sock.sendto(data, (host, port))

    yield send
    sock.close()
