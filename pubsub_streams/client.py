"""
Interface of the external pub/sub client wrapped by the bridge.

Everything the bridge needs from the client is captured here: registering and
removing listeners, and running one-shot operations that report their outcome
through a callback. Transport, subscription state and retries stay inside the
client implementation.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Optional, TypeVar

from .models import Event, EventKind, ListenerHandle, Status

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Callback invoked once by an operation with (value, status)
ResultCallback = Callable[[Optional[Any], Status], None]


def _noop(_: Any) -> None:
    pass


@dataclass
class SubscribeListener:
    """
    Set of per-variant callbacks registered with the external client.

    Every callback defaults to a no-op. Status callbacks receive the
    ``Status`` record; the other callbacks receive the payload exactly as
    the external client produced it.
    """
    status: Callable[[Status], None] = field(default=_noop)
    message: Callable[[Any], None] = field(default=_noop)
    message_action: Callable[[Any], None] = field(default=_noop)
    object_event: Callable[[Any], None] = field(default=_noop)
    presence: Callable[[Any], None] = field(default=_noop)
    signal: Callable[[Any], None] = field(default=_noop)

    def dispatch(self, event: Event) -> None:
        """Route an event to the callback matching its variant tag."""
        kind = event.kind
        if kind == EventKind.STATUS:
            self.status(event.status)
        elif kind == EventKind.MESSAGE:
            self.message(event.payload)
        elif kind == EventKind.MESSAGE_ACTION:
            self.message_action(event.payload)
        elif kind == EventKind.OBJECT:
            self.object_event(event.payload)
        elif kind == EventKind.PRESENCE:
            self.presence(event.payload)
        elif kind == EventKind.SIGNAL:
            self.signal(event.payload)
        else:
            logger.debug(f"Unknown event kind: {kind}")


class PubSubClient(ABC):
    """
    Abstract base class for the wrapped pub/sub client.

    Implementations may invoke listener callbacks on any thread. Callbacks of
    a single listener are expected to run sequentially.
    """

    @abstractmethod
    def add_listener(self, listener: SubscribeListener) -> ListenerHandle:
        """
        Register a listener.

        Args:
            listener: Callbacks to invoke for incoming notifications

        Returns:
            Handle required to remove this listener later
        """
        pass

    @abstractmethod
    def remove_listener(self, handle: ListenerHandle) -> None:
        """
        Remove a listener previously registered with add_listener().

        Args:
            handle: The handle returned from add_listener()
        """
        pass

    @property
    def name(self) -> str:
        """Return the client name for logging."""
        return self.__class__.__name__


class Operation(ABC, Generic[T]):
    """
    One-shot asynchronous operation of the external client.

    The operation reports its outcome by calling the callback exactly once,
    with a value and a non-error status on success, or with an error status
    on failure.
    """

    @abstractmethod
    def execute(self, callback: ResultCallback) -> None:
        """
        Start the operation.

        Args:
            callback: Invoked with (value, status) when the operation finishes
        """
        pass

    @abstractmethod
    def silent_cancel(self) -> None:
        """Abort the in-flight operation without invoking the callback."""
        pass
