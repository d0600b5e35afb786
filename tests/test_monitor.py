"""ProtocolMonitor composition and control surface."""

from types import SimpleNamespace

import pytest
import serial.tools.list_ports
from pydantic import ValidationError

from conftest import artnet_dmx_packet, wait_for
from fluxviewer.commands import OscStart, Stop, SubscribeUniverse
from fluxviewer.config import MonitorConfig
from fluxviewer.errors import ListenerClosedError, UnknownProtocolError
from fluxviewer.listeners import ListenerState
from fluxviewer.monitor import EVENT_NAMES, ProtocolMonitor
from fluxviewer.records import DmxFrame, SerialPortInfo


@pytest.fixture
def config(free_udp_port):
    config = MonitorConfig()
    config.osc.auto_start = False
    config.artnet.port = free_udp_port
    return config


@pytest.fixture
def monitor(config):
    monitor = ProtocolMonitor(config)
    yield monitor
    monitor.stop()


class TestComposition:
    def test_one_loop_per_protocol(self, monitor):
        for protocol in ("osc", "sacn", "artnet", "serial"):
            assert monitor.loop(protocol).name == protocol
            assert monitor.loop(protocol).state is ListenerState.IDLE

    def test_unknown_protocol(self, monitor):
        with pytest.raises(UnknownProtocolError):
            monitor.loop("dmx512")
        with pytest.raises(UnknownProtocolError):
            monitor.dispatch("midi", Stop())

    def test_event_names(self):
        assert EVENT_NAMES["sacn"] == "dmx-universe-data"
        assert EVENT_NAMES["artnet"] == "artnet-universe-data"

    def test_osc_auto_start(self, free_udp_port):
        config = MonitorConfig()
        config.osc.ip = "127.0.0.1"
        config.osc.port = free_udp_port
        monitor = ProtocolMonitor(config)
        loop = monitor.loop("osc")
        loop.run_once()
        try:
            assert loop.state is ListenerState.BOUND
            assert loop.transport.getsockname()[1] == free_udp_port
        finally:
            loop.apply(Stop())


class TestDispatch:
    def test_dict_payload_is_validated(self, monitor):
        command = monitor.dispatch("artnet", {"command": "subscribe_universe", "universe": 4})
        assert command == SubscribeUniverse(universe=4)
        monitor.loop("artnet").run_once()
        assert monitor.loop("artnet").listener.universes == (4,)

    def test_invalid_payload(self, monitor):
        with pytest.raises(ValidationError):
            monitor.dispatch("serial", {"command": "start", "port": "loop://", "baudRate": -5})

    def test_dead_listener(self, monitor):
        loop = monitor.loop("osc")
        loop.run_forever = lambda: None
        loop.spawn().join(timeout=1.0)
        with pytest.raises(ListenerClosedError):
            monitor.osc_start()

    def test_named_helpers_queue_commands(self, monitor):
        monitor.sacn_subscribe_universe(1)
        monitor.serial_start_listener("loop://", 9600)
        monitor.loop("sacn").run_once()
        serial_loop = monitor.loop("serial")
        serial_loop.run_once()
        try:
            assert monitor.loop("sacn").listener.universes == (1,)
            assert serial_loop.state is ListenerState.BOUND
            assert serial_loop.transport.baudrate == 9600
        finally:
            serial_loop.apply(Stop())

    def test_serial_list_ports(self, monitor, monkeypatch):
        ports = [SimpleNamespace(device="COM4", description="USB Serial")]
        monkeypatch.setattr(serial.tools.list_ports, "comports", lambda: ports)
        assert monitor.serial_list_ports() == [SerialPortInfo("COM4", "USB Serial")]


class TestEndToEnd:
    def test_artnet_frames_reach_subscriber(self, monitor, config, udp_sender):
        frames = []
        monitor.subscribe("artnet", frames.append)
        monitor.start()
        assert monitor.is_started

        monitor.artnet_start_listener("127.0.0.1")
        monitor.artnet_subscribe_universe(3)
        loop = monitor.loop("artnet")
        assert wait_for(lambda: loop.listener.universes == (3,) and loop.state is ListenerState.BOUND)

        udp_sender(artnet_dmx_packet(5, b"\x09"), config.artnet.port)
        udp_sender(artnet_dmx_packet(3, bytes([1, 2, 3, 4])), config.artnet.port)
        assert wait_for(lambda: len(frames) == 1, timeout=2.0)
        assert frames[0].universe == 3
        assert frames[0].channels[:5] == bytes([1, 2, 3, 4, 0])

        status = monitor.get_status()
        assert status["started"] is True
        assert status["listeners"]["artnet"]["state"] == "bound"
        assert status["listeners"]["artnet"]["universes"] == [3]
        assert wait_for(lambda: monitor.get_status()["relay"]["artnet"]["forwarded"] == 1)

        monitor.stop()
        assert not monitor.is_started
        assert wait_for(lambda: loop.state is ListenerState.IDLE)

    def test_osc_start_and_stop(self, monitor):
        monitor.start()
        monitor.dispatch("osc", OscStart(ip="127.0.0.1", port=0))
        loop = monitor.loop("osc")
        assert wait_for(lambda: loop.state is ListenerState.BOUND)
        monitor.osc_stop()
        assert wait_for(lambda: loop.state is ListenerState.IDLE)

    def test_records_flow_after_restart(self, monitor):
        frames = []
        monitor.subscribe("artnet", frames.append)
        monitor.start()
        monitor.stop()
        monitor.start()

        channel = monitor.loop("artnet").events
        assert channel.put(DmxFrame.from_payload(1, [7], "t")) is True
        assert wait_for(lambda: len(frames) == 1)
        assert frames[0].channels[0] == 7
        assert channel.get_stats()["discarded"] == 0
