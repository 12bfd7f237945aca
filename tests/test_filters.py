"""
Tests for variant filters and taps.
"""
import pytest

from pubsub_streams.bridge import open_event_stream
from pubsub_streams.filters import (
    filter_by_variant,
    message_actions,
    messages,
    object_events,
    on_message,
    on_presence,
    on_variant,
    presences,
    signals,
    statuses,
)
from pubsub_streams.models import (
    EventKind,
    MessageActionEvent,
    MessageEvent,
    ObjectEvent,
    PresenceEvent,
    SignalEvent,
    Status,
    StatusEvent,
)


def sample_events():
    return [
        StatusEvent(status=Status.ok()),
        MessageEvent(payload="m1"),
        PresenceEvent(payload="p1"),
        MessageEvent(payload="m2"),
        SignalEvent(payload="s1"),
        MessageActionEvent(payload="a1"),
        ObjectEvent(payload="o1"),
        MessageEvent(payload="m3"),
        PresenceEvent(payload="p2"),
    ]


async def source(events):
    for event in events:
        yield event


async def drain(iterator):
    return [item async for item in iterator]


class TestFilterByVariant:
    """Tests for filter_by_variant() and its shorthands."""

    async def test_keeps_matching_subsequence(self):
        """Only events with the requested tag remain, in their original order."""
        events = sample_events()

        result = await drain(filter_by_variant(source(events), EventKind.MESSAGE))

        assert result == [e for e in events if e.kind == EventKind.MESSAGE]
        assert [e.payload for e in result] == ["m1", "m2", "m3"]

    async def test_accepts_string_tag(self):
        """The tag can be given as its string value."""
        result = await drain(filter_by_variant(source(sample_events()), "presence"))

        assert [e.payload for e in result] == ["p1", "p2"]

    async def test_rejects_unknown_tag(self):
        """An unknown tag is a ValueError."""
        with pytest.raises(ValueError):
            await drain(filter_by_variant(source(sample_events()), "file"))

    async def test_empty_when_nothing_matches(self):
        events = [MessageEvent(payload="only")]

        assert await drain(signals(source(events))) == []

    @pytest.mark.parametrize(
        "helper,expected",
        [
            (statuses, 1),
            (messages, 3),
            (presences, 2),
            (signals, 1),
            (message_actions, 1),
            (object_events, 1),
        ],
    )
    async def test_shorthands(self, helper, expected):
        """Each shorthand filters on its own variant."""
        result = await drain(helper(source(sample_events())))

        assert len(result) == expected
        assert len({e.kind for e in result}) == 1

    async def test_independent_filters_on_same_data(self):
        """Filters hold no state between sources."""
        events = sample_events()

        first = await drain(messages(source(events)))
        second = await drain(messages(source(events)))

        assert first == second

    async def test_filter_over_bridge_stream(self, client):
        """Filters compose directly with a bridge stream."""
        async with open_event_stream(client) as stream:
            client.emit_presence("join")
            client.emit_message("hello")

            message = await messages(stream).__anext__()

        assert message.payload == "hello"


class TestTaps:
    """Tests for on_variant() and its shorthands."""

    async def test_tap_passes_everything_through(self):
        """Taps run the action for matches and yield every element."""
        seen = []
        events = sample_events()

        result = await drain(on_message(source(events), lambda e: seen.append(e.payload)))

        assert result == events
        assert seen == ["m1", "m2", "m3"]

    async def test_async_action(self):
        """Coroutine actions are awaited."""
        seen = []

        async def record(event):
            seen.append(event.payload)

        await drain(on_presence(source(sample_events()), record))

        assert seen == ["p1", "p2"]

    async def test_chained_taps(self):
        """Taps chain without affecting each other."""
        seen = []
        events = sample_events()

        stream = on_variant(source(events), EventKind.SIGNAL, lambda e: seen.append(("signal", e.payload)))
        stream = on_message(stream, lambda e: seen.append(("message", e.payload)))
        result = await drain(stream)

        assert result == events
        assert seen == [
            ("message", "m1"),
            ("message", "m2"),
            ("signal", "s1"),
            ("message", "m3"),
        ]

    async def test_action_error_propagates(self):
        """Exceptions raised by an action reach the consumer."""
        def fail(event):
            raise RuntimeError("handler failed")

        with pytest.raises(RuntimeError, match="handler failed"):
            await drain(on_message(source(sample_events()), fail))
