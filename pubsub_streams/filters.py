"""
Filtering and tapping helpers over event streams.

All helpers are async generators that consume any async iterable of Event
models. They match on the variant tag only and never look at payloads.

Usage:
    async with open_event_stream(client) as stream:
        async for message in messages(stream):
            print(message.payload)
"""
import inspect
from typing import Any, AsyncIterable, AsyncIterator, Callable, Union

from .models import (
    Event,
    EventKind,
    MessageActionEvent,
    MessageEvent,
    ObjectEvent,
    PresenceEvent,
    SignalEvent,
    StatusEvent,
)

# Tap action: sync or async callable receiving the matching event
EventAction = Callable[[Any], Any]


async def filter_by_variant(
    stream: AsyncIterable[Event],
    kind: Union[EventKind, str],
) -> AsyncIterator[Event]:
    """
    Yield only the events whose tag matches ``kind``, in their original order.

    Args:
        stream: Source of Event models
        kind: Variant tag to keep (EventKind or its string value)
    """
    kind = EventKind(kind)
    async for event in stream:
        if event.kind == kind:
            yield event


def statuses(stream: AsyncIterable[Event]) -> AsyncIterator[StatusEvent]:
    return filter_by_variant(stream, EventKind.STATUS)


def messages(stream: AsyncIterable[Event]) -> AsyncIterator[MessageEvent]:
    return filter_by_variant(stream, EventKind.MESSAGE)


def message_actions(stream: AsyncIterable[Event]) -> AsyncIterator[MessageActionEvent]:
    return filter_by_variant(stream, EventKind.MESSAGE_ACTION)


def object_events(stream: AsyncIterable[Event]) -> AsyncIterator[ObjectEvent]:
    return filter_by_variant(stream, EventKind.OBJECT)


def presences(stream: AsyncIterable[Event]) -> AsyncIterator[PresenceEvent]:
    return filter_by_variant(stream, EventKind.PRESENCE)


def signals(stream: AsyncIterable[Event]) -> AsyncIterator[SignalEvent]:
    return filter_by_variant(stream, EventKind.SIGNAL)


# =============================================================================
# Taps
# =============================================================================


async def on_variant(
    stream: AsyncIterable[Event],
    kind: Union[EventKind, str],
    action: EventAction,
) -> AsyncIterator[Event]:
    """
    Run ``action`` for each event tagged ``kind`` and pass every event through.

    The action may be a plain function or a coroutine function. Exceptions
    raised by the action propagate to the consumer.

    Args:
        stream: Source of Event models
        kind: Variant tag that triggers the action
        action: Callable receiving the matching event
    """
    kind = EventKind(kind)
    async for event in stream:
        if event.kind == kind:
            result = action(event)
            if inspect.isawaitable(result):
                await result
        yield event


def on_message(stream: AsyncIterable[Event], action: EventAction) -> AsyncIterator[Event]:
    return on_variant(stream, EventKind.MESSAGE, action)


def on_message_action(stream: AsyncIterable[Event], action: EventAction) -> AsyncIterator[Event]:
    return on_variant(stream, EventKind.MESSAGE_ACTION, action)


def on_object(stream: AsyncIterable[Event], action: EventAction) -> AsyncIterator[Event]:
    return on_variant(stream, EventKind.OBJECT, action)


def on_presence(stream: AsyncIterable[Event], action: EventAction) -> AsyncIterator[Event]:
    return on_variant(stream, EventKind.PRESENCE, action)


def on_signal(stream: AsyncIterable[Event], action: EventAction) -> AsyncIterator[Event]:
    return on_variant(stream, EventKind.SIGNAL, action)
