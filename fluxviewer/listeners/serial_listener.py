"""
Serial Listener

Opens a serial device (or any pyserial URL such as ``loop://``) and emits one
SerialEvent per non-empty read. list_ports() enumerates devices and does not
depend on any listener state.
"""

import logging
from typing import List, Optional, Tuple

import serial
import serial.tools.list_ports

from ..commands import SerialStart
from ..config import LoopConfig, SerialConfig
from ..protocols.serial_text import serial_event
from ..records import PROTOCOL_SERIAL, SerialEvent, SerialPortInfo, arrival_timestamp
from .base import Listener

logger = logging.getLogger(__name__)


def list_ports() -> List[SerialPortInfo]:
    """Available serial ports, sorted by device name."""
    ports = [
        SerialPortInfo(name=port.device, description=port.description or "")
        for port in serial.tools.list_ports.comports()
    ]
    return sorted(ports, key=lambda p: p.name)


class SerialListener(Listener):
    protocol = PROTOCOL_SERIAL
    start_command = SerialStart

    def __init__(self, config: Optional[SerialConfig] = None, loop_config: Optional[LoopConfig] = None):
        super().__init__(loop_config)
        self.config = config or SerialConfig()

    def open(self, command: SerialStart) -> serial.SerialBase:
        return serial.serial_for_url(
            command.port,
            baudrate=command.baud_rate,
            timeout=self.loop_config.read_timeout,
        )

    def close(self, handle: serial.SerialBase) -> None:
        handle.close()

    def read(self, handle: serial.SerialBase) -> Optional[Tuple[bytes, str]]:
        limit = self.config.read_buffer_size
        data = handle.read(max(1, min(handle.in_waiting, limit)))
        if not data:
            return None
        # the blocking read returns on the first byte; pick up the rest of the burst
        rest = min(handle.in_waiting, limit - len(data))
        if rest > 0:
            data += handle.read(rest)
        return data, arrival_timestamp()

    def decode(self, payload: Tuple[bytes, str]) -> List[SerialEvent]:
        data, timestamp = payload
        return [serial_event(data, timestamp)]

    def describe(self, handle: serial.SerialBase) -> str:
        return f"{handle.port} @ {handle.baudrate} baud"
