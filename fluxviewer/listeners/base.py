"""
Listener Loop - control/data interleaving shared by every protocol.

Architecture:
- One daemon thread per listener, nothing shared with other listeners
- Command queue (unbounded), drained without blocking, one command per iteration
- One bounded read per iteration (100 ms), the only blocking call
- EventChannel (bounded, drop-oldest) carries decoded records to the relay

A Listener supplies the protocol-specific parts: acquire/release the
transport, read once, decode, handle subscription commands. ListenerLoop
owns the state (IDLE | BOUND) and the transport.
"""

import logging
import queue
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple, Type

from ..commands import Command, Stop, SubscribeUniverse, UnsubscribeUniverse
from ..config import LoopConfig
from ..errors import DecodeError, ListenerClosedError

logger = logging.getLogger(__name__)

EVENT_QUEUE_MAXSIZE = 4096


class ListenerState(Enum):
    IDLE = "idle"
    BOUND = "bound"


# =============================================================================
# EVENT CHANNEL
# =============================================================================

@dataclass
class _ChannelStats:
    enqueued: int = 0
    dropped: int = 0
    discarded: int = 0
    peak: int = 0


class EventChannel:
    """
    Bounded FIFO from one listener to its consumer.

    put() never blocks: when full, the oldest record is dropped to make room.
    Once closed (consumer gone) records are discarded.
    """

    def __init__(self, maxsize: int = EVENT_QUEUE_MAXSIZE):
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()
        self._stats_lock = threading.Lock()
        self._stats = _ChannelStats()

    @property
    def capacity(self) -> int:
        return self._queue.maxsize

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def __len__(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self._closed.set()

    def reopen(self) -> None:
        """Accept records again after close()."""
        self._closed.clear()

    def put(self, record: Any) -> bool:
        """Enqueue a record. Returns False if it was discarded."""
        if self._closed.is_set():
            with self._stats_lock:
                self._stats.discarded += 1
            return False

        try:
            self._queue.put_nowait(record)
        except queue.Full:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                pass
            with self._stats_lock:
                self._stats.dropped += 1
            try:
                self._queue.put_nowait(record)
            except queue.Full:
                with self._stats_lock:
                    self._stats.discarded += 1
                return False

        size = self._queue.qsize()
        with self._stats_lock:
            self._stats.enqueued += 1
            if size > self._stats.peak:
                self._stats.peak = size
        return True

    def get(self, timeout: float = 0.1) -> Optional[Any]:
        """Next record, or None if nothing arrived within timeout."""
        try:
            if timeout <= 0:
                return self._queue.get_nowait()
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> List[Any]:
        """All records currently queued, oldest first."""
        records = []
        while True:
            try:
                records.append(self._queue.get_nowait())
            except queue.Empty:
                return records

    def get_stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            stats = _ChannelStats(**vars(self._stats))
        return {
            "depth": self._queue.qsize(),
            "capacity": self._queue.maxsize,
            "peak": stats.peak,
            "enqueued": stats.enqueued,
            "dropped": stats.dropped,
            "discarded": stats.discarded,
            "closed": self.closed,
        }


# =============================================================================
# LISTENER STRATEGY
# =============================================================================

class Listener(ABC):
    """
    Protocol strategy driven by ListenerLoop.

    Subclasses set ``protocol`` and ``start_command`` and implement the
    transport hooks. Hooks run on the loop thread only.
    """

    protocol: str = ""
    start_command: Type[Command] = Command

    def __init__(self, loop_config: Optional[LoopConfig] = None):
        self.loop_config = loop_config or LoopConfig()

    @abstractmethod
    def open(self, command: Command) -> Any:
        """Acquire the transport for a start command. Raises on failure."""

    @abstractmethod
    def close(self, transport: Any) -> None:
        """Release the transport."""

    @abstractmethod
    def read(self, transport: Any) -> Optional[Any]:
        """One bounded read. Returns None on timeout / would-block."""

    @abstractmethod
    def decode(self, payload: Any) -> List[Any]:
        """Payload from read() to records. Raises DecodeError."""

    def handle(self, command: Command, transport: Optional[Any]) -> bool:
        """Apply a non-lifecycle command. Returns False if unsupported."""
        return False

    def reset(self) -> None:
        """Clear protocol state after Stop."""

    def describe(self, transport: Any) -> str:
        return repr(transport)

    def get_status(self) -> Dict[str, Any]:
        return {}


class UniverseListener(Listener):
    """
    Listener with a subscribed-universe set (sACN, Art-Net).

    The set is updated even while idle; on_subscribe/on_unsubscribe only run
    when a transport is open.
    """

    def __init__(self, loop_config: Optional[LoopConfig] = None):
        super().__init__(loop_config)
        self._universes: Set[int] = set()

    @property
    def universes(self) -> Tuple[int, ...]:
        return tuple(sorted(self._universes))

    def is_subscribed(self, universe: int) -> bool:
        return universe in self._universes

    def handle(self, command: Command, transport: Optional[Any]) -> bool:
        if isinstance(command, SubscribeUniverse):
            self.subscribe(command.universe, transport)
            return True
        if isinstance(command, UnsubscribeUniverse):
            self.unsubscribe(command.universe, transport)
            return True
        return False

    def subscribe(self, universe: int, transport: Optional[Any] = None) -> None:
        if universe in self._universes:
            logger.debug(f"[{self.protocol}] universe {universe} already subscribed")
            return
        self._universes.add(universe)
        logger.info(f"[{self.protocol}] subscribed to universe {universe}")
        if transport is not None:
            self.on_subscribe(transport, universe)

    def unsubscribe(self, universe: int, transport: Optional[Any] = None) -> None:
        if universe not in self._universes:
            logger.debug(f"[{self.protocol}] universe {universe} was not subscribed")
            return
        self._universes.discard(universe)
        logger.info(f"[{self.protocol}] unsubscribed from universe {universe}")
        if transport is not None:
            self.on_unsubscribe(transport, universe)

    def on_subscribe(self, transport: Any, universe: int) -> None:
        pass

    def on_unsubscribe(self, transport: Any, universe: int) -> None:
        pass

    def reset(self) -> None:
        self._universes.clear()

    def get_status(self) -> Dict[str, Any]:
        return {"universes": list(self.universes)}


# =============================================================================
# LISTENER LOOP
# =============================================================================

class ListenerLoop:
    """
    Polling loop for one listener.

    Usage:
        loop = ListenerLoop(ArtnetListener())
        loop.spawn()
        loop.send(ArtnetStart(ip="127.0.0.1"))
        loop.send(SubscribeUniverse(universe=3))
        frame = loop.events.get(timeout=1.0)
    """

    def __init__(
        self,
        listener: Listener,
        events: Optional[EventChannel] = None,
        config: Optional[LoopConfig] = None,
    ):
        self.listener = listener
        self.config = config or listener.loop_config
        self.events = events or EventChannel(self.config.event_queue_size)
        self._commands: queue.Queue = queue.Queue()
        self._state = ListenerState.IDLE
        self._transport: Optional[Any] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def name(self) -> str:
        return self.listener.protocol

    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def transport(self) -> Optional[Any]:
        return self._transport

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # -------------------------------------------------------------------------
    # Control plane
    # -------------------------------------------------------------------------

    def send(self, command: Command) -> None:
        """
        Queue a command for the loop thread.

        Raises:
            ListenerClosedError: the loop thread was spawned and has exited
        """
        if self._thread is not None and not self._thread.is_alive():
            raise ListenerClosedError(f"[{self.name}] listener thread is not running")
        self._commands.put(command)

    def spawn(self) -> threading.Thread:
        """Run the loop on a dedicated daemon thread."""
        if self._thread and self._thread.is_alive():
            return self._thread
        self._thread = threading.Thread(
            target=self.run_forever,
            name=f"{self.name.capitalize()}Listener",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    # -------------------------------------------------------------------------
    # Loop
    # -------------------------------------------------------------------------

    def run_forever(self) -> None:
        logger.info(f"[{self.name}] listener loop running")
        while True:
            try:
                self.run_once()
            except Exception:
                logger.exception(f"[{self.name}] unexpected error in listener loop")
                time.sleep(self.config.idle_interval)

    def run_once(self) -> None:
        """One iteration: apply at most one command, then read once if bound."""
        self._poll_command()
        if self._state is ListenerState.BOUND:
            self._poll_transport()
        else:
            time.sleep(self.config.idle_interval)

    def _poll_command(self) -> None:
        try:
            command = self._commands.get_nowait()
        except queue.Empty:
            return
        self.apply(command)

    def apply(self, command: Command) -> None:
        """Apply one command on the calling thread."""
        if isinstance(command, self.listener.start_command):
            self._start(command)
        elif isinstance(command, Stop):
            self._stop()
        elif not self.listener.handle(command, self._transport):
            logger.warning(f"[{self.name}] ignoring unsupported command {command!r}")

    def _start(self, command: Command) -> None:
        if self._transport is not None:
            logger.info(f"[{self.name}] restarting, releasing current transport")
            self._release()

        try:
            transport = self.listener.open(command)
        except Exception as exc:
            logger.error(f"[{self.name}] start failed: {exc}")
            return

        self._transport = transport
        self._state = ListenerState.BOUND
        logger.info(f"[{self.name}] listening on {self.listener.describe(transport)}")

    def _stop(self) -> None:
        self._release()
        self.listener.reset()
        logger.info(f"[{self.name}] listener stopped")

    def _release(self) -> None:
        transport, self._transport = self._transport, None
        self._state = ListenerState.IDLE
        if transport is None:
            return
        try:
            self.listener.close(transport)
        except Exception as exc:
            logger.error(f"[{self.name}] error releasing transport: {exc}")

    def _poll_transport(self) -> None:
        try:
            payload = self.listener.read(self._transport)
        except Exception as exc:
            logger.error(f"[{self.name}] read error: {exc}")
            time.sleep(self.config.idle_interval)
            return

        if payload is None:
            return

        try:
            records = self.listener.decode(payload)
        except DecodeError as exc:
            logger.warning(f"[{self.name}] dropped packet: {exc}")
            return

        for record in records:
            self.events.put(record)

    def get_status(self) -> Dict[str, Any]:
        transport = self._transport
        status = {
            "protocol": self.name,
            "state": self._state.value,
            "transport": self.listener.describe(transport) if transport is not None else None,
            "alive": self.is_alive,
            "events": self.events.get_stats(),
        }
        status.update(self.listener.get_status())
        return status
