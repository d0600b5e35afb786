"""
Relay - forwards listener records to the presentation layer.

Architecture:
- One worker thread per attached EventChannel
- Records are forwarded FIFO and untransformed
- Handlers subscribe per protocol, or to every protocol with ALL
- A failing handler is logged and skipped; forwarding continues
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .listeners.base import EventChannel

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]

ALL = "*"
CHANNEL_POLL_TIMEOUT = 0.1
WORKER_JOIN_TIMEOUT = 0.5


@dataclass
class _RelayStats:
    forwarded: int = 0
    handler_errors: int = 0


class Relay:
    """
    Usage:
        relay = Relay()
        relay.attach("artnet", loop.events)
        relay.subscribe("artnet", lambda frame: print(frame.universe))
        relay.start()
    """

    def __init__(self):
        self._channels: Dict[str, EventChannel] = {}
        self._workers: Dict[str, threading.Thread] = {}
        self._stop_event = threading.Event()
        self._started = False

        self._handlers: Dict[str, List[Handler]] = {}
        self._handlers_lock = threading.Lock()
        self._snapshot: Dict[str, Tuple[Handler, ...]] = {}

        self._stats_lock = threading.Lock()
        self._stats: Dict[str, _RelayStats] = {}

    @property
    def is_started(self) -> bool:
        return self._started

    def attach(self, protocol: str, channel: EventChannel) -> None:
        """Register a listener's event channel. Starts its worker if running."""
        self._channels[protocol] = channel
        with self._stats_lock:
            self._stats.setdefault(protocol, _RelayStats())
        if self._started:
            self._start_worker(protocol)

    def subscribe(self, protocol: str, handler: Handler) -> None:
        with self._handlers_lock:
            handlers = self._handlers.setdefault(protocol, [])
            if handler not in handlers:
                handlers.append(handler)
            self._refresh_snapshot()

    def unsubscribe(self, protocol: str, handler: Handler) -> None:
        with self._handlers_lock:
            handlers = self._handlers.get(protocol, [])
            if handler in handlers:
                handlers.remove(handler)
                if not handlers:
                    del self._handlers[protocol]
                self._refresh_snapshot()

    def start(self) -> None:
        if self._started:
            return
        self._stop_event.clear()
        self._started = True
        for protocol, channel in self._channels.items():
            channel.reopen()
            self._start_worker(protocol)
        logger.info(f"Relay started ({', '.join(self._channels) or 'no channels'})")

    def stop(self) -> None:
        """Stop workers; listeners then discard records silently."""
        if not self._started:
            return
        self._started = False
        self._stop_event.set()
        for protocol, worker in list(self._workers.items()):
            worker.join(timeout=WORKER_JOIN_TIMEOUT)
            if worker.is_alive():
                logger.warning(f"Relay worker {protocol} stop timed out; continuing shutdown")
        self._workers.clear()
        for channel in self._channels.values():
            channel.close()
            channel.drain()
        logger.info("Relay stopped")

    def get_stats(self) -> Dict[str, Dict[str, Any]]:
        with self._stats_lock:
            stats = {p: _RelayStats(**vars(s)) for p, s in self._stats.items()}
        return {
            protocol: {
                "forwarded": s.forwarded,
                "handler_errors": s.handler_errors,
                "channel": self._channels[protocol].get_stats(),
            }
            for protocol, s in stats.items()
        }

    def _refresh_snapshot(self) -> None:
        self._snapshot = {p: tuple(h) for p, h in self._handlers.items() if h}

    def _start_worker(self, protocol: str) -> None:
        worker = self._workers.get(protocol)
        if worker and worker.is_alive():
            return
        worker = threading.Thread(
            target=self._worker_loop,
            args=(protocol, self._channels[protocol]),
            name=f"Relay-{protocol}",
            daemon=True,
        )
        self._workers[protocol] = worker
        worker.start()

    def _worker_loop(self, protocol: str, channel: EventChannel) -> None:
        while not self._stop_event.is_set():
            record = channel.get(timeout=CHANNEL_POLL_TIMEOUT)
            if record is None:
                continue
            self._dispatch(protocol, record)

    def _dispatch(self, protocol: str, record: Any) -> None:
        snapshot = self._snapshot
        handlers = snapshot.get(protocol, ()) + snapshot.get(ALL, ())
        errors = 0
        for handler in handlers:
            try:
                handler(record)
            except Exception as exc:
                errors += 1
                logger.error(f"Relay handler error for {protocol}: {exc}")
        with self._stats_lock:
            stats = self._stats.setdefault(protocol, _RelayStats())
            stats.forwarded += 1
            stats.handler_errors += errors

    def forward_pending(self, protocol: Optional[str] = None) -> int:
        """Forward everything queued right now on the calling thread. Returns the count."""
        protocols = [protocol] if protocol else list(self._channels)
        count = 0
        for name in protocols:
            for record in self._channels[name].drain():
                self._dispatch(name, record)
                count += 1
        return count
