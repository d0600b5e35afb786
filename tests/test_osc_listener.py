"""OSC listener over loopback UDP."""

import logging

import pytest
from pythonosc import osc_message_builder

from conftest import run_until
from fluxviewer.commands import OscStart, Stop
from fluxviewer.config import OscConfig
from fluxviewer.listeners import ListenerLoop, ListenerState, OscListener
from fluxviewer.records import OscArgKind, OscEvent


def _osc(address, *args) -> bytes:
    builder = osc_message_builder.OscMessageBuilder(address=address)
    for arg in args:
        builder.add_arg(arg)
    return builder.build().dgram


@pytest.fixture
def osc_loop(loop_config):
    loop = ListenerLoop(OscListener(OscConfig(), loop_config))
    yield loop
    loop.apply(Stop())


class TestOscListener:
    def test_receives_message(self, osc_loop, free_udp_port, udp_sender):
        osc_loop.send(OscStart(ip="127.0.0.1", port=free_udp_port))
        osc_loop.run_once()
        assert osc_loop.state is ListenerState.BOUND

        udp_sender(_osc("/layer/1/opacity", 0.75), free_udp_port)
        assert run_until(osc_loop, lambda: len(osc_loop.events) > 0)

        event = osc_loop.events.get(timeout=0)
        assert isinstance(event, OscEvent)
        assert event.address == "/layer/1/opacity"
        assert event.arguments[0].kind is OscArgKind.FLOAT
        assert event.sender.startswith("127.0.0.1:")
        # Date-prefixed arrival time
        assert len(event.timestamp) == len("2024-01-01 00:00:00.000")

    def test_malformed_datagram_keeps_listening(self, osc_loop, free_udp_port, udp_sender, caplog):
        osc_loop.apply(OscStart(ip="127.0.0.1", port=free_udp_port))
        with caplog.at_level(logging.WARNING):
            udp_sender(b"definitely not osc", free_udp_port)
            udp_sender(_osc("/ok", 1), free_udp_port)
            assert run_until(osc_loop, lambda: len(osc_loop.events) > 0)
        assert osc_loop.state is ListenerState.BOUND
        assert [e.address for e in osc_loop.events.drain()] == ["/ok"]
        assert "dropped packet" in caplog.text

    def test_bind_failure_stays_idle(self, osc_loop, caplog):
        with caplog.at_level(logging.ERROR):
            osc_loop.apply(OscStart(ip="192.0.2.1", port=9000))
        assert osc_loop.state is ListenerState.IDLE
        assert "start failed" in caplog.text

    def test_stop_closes_socket(self, osc_loop, free_udp_port):
        osc_loop.apply(OscStart(ip="127.0.0.1", port=free_udp_port))
        sock = osc_loop.transport
        osc_loop.apply(Stop())
        assert sock.fileno() == -1
        assert osc_loop.state is ListenerState.IDLE

    def test_restart_on_new_port(self, osc_loop, free_udp_port, udp_sender):
        osc_loop.apply(OscStart(ip="127.0.0.1", port=free_udp_port))
        first = osc_loop.transport
        osc_loop.apply(OscStart(ip="127.0.0.1", port=0))
        assert first.fileno() == -1
        port = osc_loop.transport.getsockname()[1]

        udp_sender(_osc("/moved"), port)
        assert run_until(osc_loop, lambda: len(osc_loop.events) > 0)
        assert osc_loop.events.get(timeout=0).address == "/moved"

    def test_describe(self, osc_loop, free_udp_port):
        osc_loop.apply(OscStart(ip="127.0.0.1", port=free_udp_port))
        assert osc_loop.get_status()["transport"] == f"udp://127.0.0.1:{free_udp_port}"
