"""
Plain callback registration on a pub/sub client.
"""
import logging
from typing import Any, Callable, Optional

from .client import PubSubClient, SubscribeListener
from .models import ListenerHandle, Status

logger = logging.getLogger(__name__)


def subscribe_by(
    client: PubSubClient,
    on_status: Optional[Callable[[Status], None]] = None,
    on_message: Optional[Callable[[Any], None]] = None,
    on_message_action: Optional[Callable[[Any], None]] = None,
    on_object: Optional[Callable[[Any], None]] = None,
    on_presence: Optional[Callable[[Any], None]] = None,
    on_signal: Optional[Callable[[Any], None]] = None,
) -> ListenerHandle:
    """
    Register per-variant callbacks without opening a stream.

    Callbacks that are not given default to no-ops. The caller owns the
    returned handle and removes the listener with
    ``client.remove_listener(handle)``.

    Usage:
        handle = subscribe_by(
            client,
            on_message=lambda payload: print(payload),
            on_status=lambda status: print(status.category),
        )

    Returns:
        Handle of the new listener registration
    """
    listener = SubscribeListener()
    if on_status is not None:
        listener.status = on_status
    if on_message is not None:
        listener.message = on_message
    if on_message_action is not None:
        listener.message_action = on_message_action
    if on_object is not None:
        listener.object_event = on_object
    if on_presence is not None:
        listener.presence = on_presence
    if on_signal is not None:
        listener.signal = on_signal

    handle = client.add_listener(listener)
    logger.debug(f"Registered callback listener {handle.id} with {client.name}")
    return handle
