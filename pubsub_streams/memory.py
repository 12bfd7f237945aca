"""
In-memory pub/sub client.

This client is primarily used for:
- Local development without a real pub/sub service
- Unit testing of code built on the bridge
- Demo purposes

Events are delivered synchronously on the thread that emits them, so tests
choose the delivery thread simply by choosing where to call emit().
"""
import logging
import threading
from typing import Any, Dict, Generic, List, Optional, TypeVar

from .client import Operation, PubSubClient, ResultCallback, SubscribeListener
from .models import (
    Event,
    ListenerHandle,
    MessageActionEvent,
    MessageEvent,
    ObjectEvent,
    PresenceEvent,
    SignalEvent,
    Status,
    StatusEvent,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MemoryPubSubClient(PubSubClient):
    """
    In-memory pub/sub client for development and testing.

    Features:
    - Thread-safe listener table
    - Synchronous delivery on the emitting thread
    - Registration counters for asserting on listener lifecycle
    """

    def __init__(self):
        """Initialize the memory client."""
        self._lock = threading.RLock()
        self._listeners: Dict[str, SubscribeListener] = {}
        self.add_calls = 0
        self.remove_calls = 0

    # =========================================================================
    # Listener Registration
    # =========================================================================

    def add_listener(self, listener: SubscribeListener) -> ListenerHandle:
        handle = ListenerHandle()
        with self._lock:
            self._listeners[handle.id] = listener
            self.add_calls += 1
        logger.debug(f"Added listener {handle.id}")
        return handle

    def remove_listener(self, handle: ListenerHandle) -> None:
        with self._lock:
            self.remove_calls += 1
            if self._listeners.pop(handle.id, None) is None:
                logger.warning(f"Listener {handle.id} not found")
                return
        logger.debug(f"Removed listener {handle.id}")

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def has_listener(self, handle: ListenerHandle) -> bool:
        with self._lock:
            return handle.id in self._listeners

    # =========================================================================
    # Delivery
    # =========================================================================

    def emit(self, event: Event) -> None:
        """
        Deliver an event to every registered listener.

        Listeners registered or removed during delivery do not affect the
        current round. Errors raised by a listener propagate to the caller.
        """
        with self._lock:
            listeners: List[SubscribeListener] = list(self._listeners.values())

        if not listeners:
            logger.debug(f"No listeners for {event.kind.value} event")
            return

        for listener in listeners:
            listener.dispatch(event)

    def emit_status(self, status: Status) -> None:
        self.emit(StatusEvent(status=status))

    def emit_message(self, payload: Any) -> None:
        self.emit(MessageEvent(payload=payload))

    def emit_message_action(self, payload: Any) -> None:
        self.emit(MessageActionEvent(payload=payload))

    def emit_object(self, payload: Any) -> None:
        self.emit(ObjectEvent(payload=payload))

    def emit_presence(self, payload: Any) -> None:
        self.emit(PresenceEvent(payload=payload))

    def emit_signal(self, payload: Any) -> None:
        self.emit(SignalEvent(payload=payload))


class MemoryOperation(Operation[T], Generic[T]):
    """
    One-shot operation completing with a fixed outcome.

    Completes inline inside execute() when ``delay`` is None, otherwise on a
    timer thread after ``delay`` seconds. ``repeat`` makes the operation
    invoke its callback more than once, which a well-behaved client never does.
    """

    def __init__(
        self,
        value: Optional[T],
        status: Status,
        delay: Optional[float] = None,
        repeat: int = 1,
    ):
        self.value = value
        self.status = status
        self.delay = delay
        self.repeat = repeat
        self.executed = False
        self.cancelled = False
        self._timer: Optional[threading.Timer] = None

    def execute(self, callback: ResultCallback) -> None:
        if self.executed:
            raise RuntimeError("MemoryOperation can only be executed once")
        self.executed = True

        if self.delay is None:
            self._fire(callback)
            return

        self._timer = threading.Timer(self.delay, self._fire, args=(callback,))
        self._timer.daemon = True
        self._timer.start()

    def _fire(self, callback: ResultCallback) -> None:
        for _ in range(self.repeat):
            if self.cancelled:
                return
            callback(self.value, self.status)

    def silent_cancel(self) -> None:
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()
        logger.debug("Memory operation cancelled")
