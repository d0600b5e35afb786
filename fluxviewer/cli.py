#!/usr/bin/env python3
"""
fluxviewer command line monitor

Starts one listener and prints every record it emits.

Usage:
    python -m fluxviewer osc --port 8000
    python -m fluxviewer artnet --ip 0.0.0.0 --universes "0-3"
    python -m fluxviewer sacn --ip 0.0.0.0 --universes 1,2
    python -m fluxviewer serial /dev/ttyUSB0 --baud-rate 115200 --json
    python -m fluxviewer list-ports
"""

import argparse
import json
import logging
import sys
import time
from typing import Any, Callable, List, Optional

from .config import MonitorConfig, load_config
from .errors import ConfigError
from .listeners import list_ports
from .monitor import EVENT_NAMES, ProtocolMonitor
from .records import PROTOCOL_ARTNET, PROTOCOL_SACN, DmxFrame, OscEvent, SerialEvent
from .universes import parse_universes

logger = logging.getLogger("fluxviewer")

DMX_PREVIEW_CHANNELS = 16


def format_record(record: Any) -> str:
    """One-line human readable rendering of a record."""
    if isinstance(record, OscEvent):
        args = " ".join(
            arg.kind.value if arg.value is None else f"{arg.kind.value}:{arg.value!r}"
            for arg in record.arguments
        )
        return f"[{record.timestamp}] {record.sender} {record.address} {args}".rstrip()
    if isinstance(record, DmxFrame):
        active = sum(1 for value in record.channels if value)
        preview = " ".join(f"{value:3d}" for value in record.channels[:DMX_PREVIEW_CHANNELS])
        return (
            f"[{record.timestamp}] {record.protocol} universe {record.universe} "
            f"({active} active): {preview} ..."
        )
    if isinstance(record, SerialEvent):
        return f"[{record.timestamp}] {record.hex} | {record.ascii}"
    return repr(record)


def format_json(record: Any) -> str:
    payload = {"event": EVENT_NAMES.get(record.protocol, record.protocol)}
    payload.update(record.to_dict())
    return json.dumps(payload)


def create_printer(as_json: bool) -> Callable[[Any], None]:
    render = format_json if as_json else format_record

    def emit(record: Any) -> None:
        print(render(record), flush=True)

    return emit


def build_config(args: argparse.Namespace) -> MonitorConfig:
    config = load_config(args.config)
    # The CLI starts exactly the listener that was asked for
    config.osc.auto_start = False
    return config


def start_listener(monitor: ProtocolMonitor, args: argparse.Namespace) -> bool:
    config = monitor.config
    if args.mode == "osc":
        monitor.osc_start(args.ip or config.osc.ip, args.port or config.osc.port)
    elif args.mode == "sacn":
        monitor.sacn_start(args.ip or config.sacn.ip)
        for universe in parse_universes(args.universes or config.sacn.universes):
            monitor.sacn_subscribe_universe(universe)
    elif args.mode == "artnet":
        monitor.artnet_start_listener(args.ip or config.artnet.ip)
        for universe in parse_universes(args.universes or config.artnet.universes):
            monitor.artnet_subscribe_universe(universe)
    elif args.mode == "serial":
        port = args.port or config.serial.port
        if not port:
            logger.error("No serial port given (argument or serial.port in config)")
            return False
        monitor.serial_start_listener(port, args.baud_rate or config.serial.baud_rate)
    return True


def run_monitor(args: argparse.Namespace) -> int:
    try:
        config = build_config(args)
    except ConfigError as exc:
        logger.error(str(exc))
        return 1

    monitor = ProtocolMonitor(config)
    monitor.subscribe(args.mode, create_printer(args.json))
    monitor.start()
    if not start_listener(monitor, args):
        monitor.stop()
        return 1

    end_time = time.monotonic() + args.duration if args.duration else None
    try:
        while True:
            if end_time and time.monotonic() > end_time:
                break
            time.sleep(0.25)
    except KeyboardInterrupt:
        logger.info("Stopping (Ctrl+C pressed)...")
    finally:
        monitor.stop()

    return 0


def show_ports(args: argparse.Namespace) -> int:
    ports = list_ports()
    if args.json:
        print(json.dumps([port.to_dict() for port in ports]))
        return 0
    if not ports:
        print("No serial ports found.")
        return 0
    for port in ports:
        print(f"{port.name}  {port.description}")
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Monitor OSC, sACN, Art-Net and serial traffic")
    parser.add_argument("--config", default=None, help="YAML config file (default: ~/.config/fluxviewer/config.yaml)")
    parser.add_argument("--json", action="store_true", help="Print one JSON record per line")
    parser.add_argument("--duration", type=float, default=0.0, help="Stop after N seconds (0 = until Ctrl+C)")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    sub = parser.add_subparsers(dest="mode")

    osc = sub.add_parser("osc", help="Listen for OSC over UDP")
    osc.add_argument("--ip", default=None, help="Bind address (default 0.0.0.0)")
    osc.add_argument("--port", type=int, default=None, help="UDP port (default 8000)")

    for name, label in ((PROTOCOL_SACN, "sACN (E1.31)"), (PROTOCOL_ARTNET, "Art-Net")):
        dmx = sub.add_parser(name, help=f"Listen for {label} DMX universes")
        dmx.add_argument("--ip", default=None, help="Bind address (default 0.0.0.0)")
        dmx.add_argument("--universes", default=None, help='Universe selection, e.g. "1,3-5" (default 1)')

    ser = sub.add_parser("serial", help="Read a serial port")
    ser.add_argument("port", nargs="?", default=None, help="Device or pyserial URL (e.g. /dev/ttyUSB0, loop://)")
    ser.add_argument("--baud-rate", type=int, default=None, help="Baud rate (default 115200)")

    sub.add_parser("list-ports", help="List serial ports")

    args = parser.parse_args(argv)
    if args.mode is None:
        parser.error("mode is required: osc | sacn | artnet | serial | list-ports")
    return args


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.mode == "list-ports":
        return show_ports(args)
    return run_monitor(args)


if __name__ == "__main__":
    sys.exit(main())
