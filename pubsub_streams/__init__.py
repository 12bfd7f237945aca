"""
pubsub-streams - asyncio streams over callback-based pub/sub clients.
"""

__version__ = "0.1.0"

from .models import (
    BaseDTO,
    ClientException,
    # Status records
    Status,
    StatusCategory,
    # Listener events
    Event,
    EventKind,
    StatusEvent,
    MessageEvent,
    MessageActionEvent,
    ObjectEvent,
    PresenceEvent,
    SignalEvent,
    # Registration and results
    ListenerHandle,
    Result,
)
from .errors import (
    BridgeError,
    StatusError,
    OperationError,
    BackpressureError,
)
from .client import (
    Operation,
    PubSubClient,
    SubscribeListener,
)
from .bridge import (
    EventStream,
    open_event_stream,
    open_pubsub_stream,
    open_status_stream,
)
from .filters import (
    filter_by_variant,
    statuses,
    messages,
    message_actions,
    object_events,
    presences,
    signals,
    on_variant,
    on_message,
    on_message_action,
    on_object,
    on_presence,
    on_signal,
)
from .fanout import StreamBroadcaster
from .listeners import subscribe_by
from .single import (
    await_single_result,
    await_single,
    run_single,
    run_single_result,
)
from .memory import MemoryOperation, MemoryPubSubClient
from .config import Settings, settings, configure_logging

__all__ = [
    "__version__",
    "BaseDTO",
    "ClientException",
    "Status",
    "StatusCategory",
    "Event",
    "EventKind",
    "StatusEvent",
    "MessageEvent",
    "MessageActionEvent",
    "ObjectEvent",
    "PresenceEvent",
    "SignalEvent",
    "ListenerHandle",
    "Result",
    "BridgeError",
    "StatusError",
    "OperationError",
    "BackpressureError",
    "Operation",
    "PubSubClient",
    "SubscribeListener",
    "EventStream",
    "open_event_stream",
    "open_pubsub_stream",
    "open_status_stream",
    "filter_by_variant",
    "statuses",
    "messages",
    "message_actions",
    "object_events",
    "presences",
    "signals",
    "on_variant",
    "on_message",
    "on_message_action",
    "on_object",
    "on_presence",
    "on_signal",
    "StreamBroadcaster",
    "subscribe_by",
    "await_single_result",
    "await_single",
    "run_single",
    "run_single_result",
    "MemoryOperation",
    "MemoryPubSubClient",
    "Settings",
    "settings",
    "configure_logging",
]
