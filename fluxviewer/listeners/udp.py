"""UDP socket helpers for the OSC and Art-Net listeners."""

import socket
from typing import NamedTuple, Optional, Tuple

from ..records import arrival_timestamp


class Datagram(NamedTuple):
    """One received datagram with its source and arrival time."""
    data: bytes
    address: Tuple[str, int]
    timestamp: str


def open_udp_socket(ip: str, port: int, timeout: float) -> socket.socket:
    """
    Bind a UDP socket with SO_REUSEADDR and a receive timeout.

    Raises:
        OSError: address unavailable, port in use, bad host
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((ip, port))
        sock.settimeout(timeout)
    except OSError:
        sock.close()
        raise
    return sock


def receive(sock: socket.socket, buffer_size: int, with_date: bool = False) -> Optional[Datagram]:
    """One bounded recvfrom. None on timeout."""
    try:
        data, address = sock.recvfrom(buffer_size)
    except (socket.timeout, BlockingIOError):
        return None
    return Datagram(data, address, arrival_timestamp(with_date=with_date))


def describe_socket(sock: socket.socket) -> str:
    try:
        host, port = sock.getsockname()[:2]
    except OSError:
        return "udp://<closed>"
    return f"udp://{host}:{port}"
