"""
Event bridge for the pubsub-streams package.

This module turns the listener callbacks of a pub/sub client into an asyncio
async iterator. Each stream owns exactly one listener registration, which is
removed when the stream is closed.

Usage:
    from pubsub_streams import open_event_stream, StatusError

    async with open_event_stream(client) as stream:
        try:
            async for event in stream:
                print(f"Got {event.kind}: {event}")
        except StatusError as e:
            print(f"Subscription failed: {e.status.category}")

Delivery:
    Callbacks may fire on any thread. When they fire off the consumer's event
    loop, each push blocks the delivering thread until the bounded queue has
    room, so a slow consumer throttles the client instead of losing events.
    A callback firing on the loop thread cannot block; if it finds the queue
    full the stream fails with BackpressureError.
"""
import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Callable, FrozenSet, Generic, Optional, Set, TypeVar

from .client import PubSubClient, SubscribeListener
from .config import settings
from .errors import BackpressureError, BridgeError, StatusError
from .models import (
    PAYLOAD_EVENT_TYPES,
    Event,
    EventKind,
    ListenerHandle,
    Status,
    StatusEvent,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

ALL_KINDS: FrozenSet[EventKind] = frozenset(EventKind)
PUBSUB_KINDS: FrozenSet[EventKind] = ALL_KINDS - {EventKind.STATUS}

# Queue marker used to wake a consumer waiting on an empty queue
_WAKEUP = object()

# SubscribeListener attribute for each payload variant
_LISTENER_FIELDS = {
    EventKind.MESSAGE: "message",
    EventKind.MESSAGE_ACTION: "message_action",
    EventKind.OBJECT: "object_event",
    EventKind.PRESENCE: "presence",
    EventKind.SIGNAL: "signal",
}


class EventStream(Generic[T]):
    """
    Async iterator over the notifications of one listener registration.

    A stream is created already registered with the client. Closing it, either
    with aclose() or by leaving an ``async with`` block, removes the listener
    exactly once; any later close is a no-op.

    Attributes:
        client: The pub/sub client the listener is registered with
        kinds: Variant tags this stream forwards
    """

    def __init__(
        self,
        client: PubSubClient,
        kinds: FrozenSet[EventKind] = ALL_KINDS,
        fail_on_error_status: bool = True,
        transform: Optional[Callable[[Event], T]] = None,
        max_queue_size: Optional[int] = None,
    ):
        """
        Register a listener with the client and prepare the queue.

        Must be called from a running event loop; the loop becomes the
        consumer loop of the stream.

        Args:
            client: The pub/sub client to listen to
            kinds: Variant tags to forward; others are ignored
            fail_on_error_status: End the stream with StatusError when an error
                status arrives instead of forwarding it
            transform: Optional mapping applied to each forwarded event
            max_queue_size: Bound of the hand-off queue (defaults to settings)
        """
        self.client = client
        self.kinds = kinds
        self._fail_on_error_status = fail_on_error_status
        self._transform = transform
        self._loop = asyncio.get_running_loop()
        self._loop_thread_id = threading.get_ident()

        maxsize = max_queue_size if max_queue_size is not None else settings.stream_max_queue_size
        if maxsize < 1:
            raise ValueError("max_queue_size must be at least 1")
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

        # Shared with delivery threads
        self._lock = threading.Lock()
        self._accepting = True
        self._closed = False
        self._failure: Optional[BaseException] = None
        self._pending_puts: Set[concurrent.futures.Future] = set()

        # Callbacks may fire before add_listener() returns
        self._handle: Optional[ListenerHandle] = None
        self._handle = client.add_listener(self._build_listener())
        logger.info(f"Registered listener {self._handle.id} with {client.name} for {sorted(k.value for k in kinds)}")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def handle(self) -> Optional[ListenerHandle]:
        """Registration token of this stream (None once deregistered)."""
        return self._handle

    @property
    def closed(self) -> bool:
        """Whether the consumer side of the stream has been closed."""
        return self._closed

    # =========================================================================
    # Listener Side
    # =========================================================================

    def _build_listener(self) -> SubscribeListener:
        listener = SubscribeListener()
        if EventKind.STATUS in self.kinds:
            listener.status = self._on_status
        for kind, event_type in PAYLOAD_EVENT_TYPES.items():
            if kind in self.kinds:
                setattr(listener, _LISTENER_FIELDS[kind], self._payload_callback(event_type))
        return listener

    def _payload_callback(self, event_type) -> Callable[[Any], None]:
        def callback(payload: Any) -> None:
            self._deliver(event_type(payload=payload))
        return callback

    def _on_status(self, status: Status) -> None:
        if status.error and self._fail_on_error_status:
            logger.warning(
                f"Error status on listener {self._handle.id if self._handle else '?'}: "
                f"{status.category.value} ({status.error_message})"
            )
            self._fail(StatusError(status))
            return
        self._deliver(StatusEvent(status=status))

    def _deliver(self, event: Event) -> None:
        """Push one event into the queue, blocking off-loop deliverers when full."""
        if not self._accepting:
            logger.debug(f"Dropping {event.kind.value} event delivered after close")
            return

        item = self._transform(event) if self._transform else event

        if threading.get_ident() == self._loop_thread_id:
            try:
                self._queue.put_nowait(item)
            except asyncio.QueueFull:
                self._fail(BackpressureError(
                    f"Stream queue full ({self._queue.maxsize}) on event loop delivery"
                ))
            return

        with self._lock:
            if not self._accepting:
                logger.debug(f"Dropping {event.kind.value} event delivered after close")
                return
            try:
                future = asyncio.run_coroutine_threadsafe(self._queue.put(item), self._loop)
            except RuntimeError:
                logger.debug("Consumer loop closed, dropping event")
                return
            self._pending_puts.add(future)

        try:
            future.result()
        except concurrent.futures.CancelledError:
            logger.debug(f"Pending {event.kind.value} delivery cancelled by close")
        finally:
            with self._lock:
                self._pending_puts.discard(future)

    def _fail(self, error: BridgeError) -> None:
        """Stop accepting events and make the consumer end with ``error``."""
        with self._lock:
            if not self._accepting:
                return
            self._accepting = False
        if threading.get_ident() == self._loop_thread_id:
            self._set_failure(error)
        else:
            try:
                self._loop.call_soon_threadsafe(self._set_failure, error)
            except RuntimeError:
                logger.debug("Consumer loop closed, failure not delivered")

    def _set_failure(self, error: BaseException) -> None:
        self._failure = error
        self._wake_consumer()

    def _wake_consumer(self) -> None:
        # A full queue means the consumer is not waiting on get()
        try:
            self._queue.put_nowait(_WAKEUP)
        except asyncio.QueueFull:
            pass

    # =========================================================================
    # Consumer Side
    # =========================================================================

    def __aiter__(self) -> "EventStream[T]":
        return self

    async def __anext__(self) -> T:
        while True:
            if self._closed:
                raise StopAsyncIteration
            if self._failure is not None and self._queue.empty():
                failure = self._failure
                self._failure = None
                await self.aclose()
                raise failure
            item = await self._queue.get()
            if item is _WAKEUP:
                continue
            return item

    async def aclose(self) -> None:
        """
        Close the stream and remove its listener.

        Idempotent: only the first call deregisters. Deliveries that are
        blocked waiting for queue space are released and dropped.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._accepting = False
            pending = list(self._pending_puts)

        for future in pending:
            future.cancel()

        handle, self._handle = self._handle, None
        if handle is not None:
            self.client.remove_listener(handle)
            logger.info(f"Removed listener {handle.id} from {self.client.name}")

        self._wake_consumer()

    async def __aenter__(self) -> "EventStream[T]":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


# =============================================================================
# Stream Factories
# =============================================================================


def open_event_stream(
    client: PubSubClient,
    max_queue_size: Optional[int] = None,
) -> EventStream[Event]:
    """
    Open a stream of every listener notification.

    Error statuses are not yielded: they end the stream with StatusError.

    Args:
        client: The pub/sub client to listen to
        max_queue_size: Bound of the hand-off queue (defaults to settings)

    Returns:
        A registered EventStream yielding Event models
    """
    return EventStream(client, ALL_KINDS, fail_on_error_status=True, max_queue_size=max_queue_size)


def open_pubsub_stream(
    client: PubSubClient,
    max_queue_size: Optional[int] = None,
) -> EventStream[Event]:
    """
    Open a stream of message, message action, object, presence and signal
    events. Status notifications are ignored.
    """
    return EventStream(client, PUBSUB_KINDS, fail_on_error_status=False, max_queue_size=max_queue_size)


def open_status_stream(
    client: PubSubClient,
    max_queue_size: Optional[int] = None,
) -> EventStream[Status]:
    """
    Open a stream of status records.

    Every status is yielded, including error statuses, so that callers can
    observe connection state changes without the stream ending.
    """
    return EventStream(
        client,
        frozenset({EventKind.STATUS}),
        fail_on_error_status=False,
        transform=lambda event: event.status,
        max_queue_size=max_queue_size,
    )
