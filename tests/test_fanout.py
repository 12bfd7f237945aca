"""
Tests for StreamBroadcaster.
"""
import asyncio

import pytest

from pubsub_streams.bridge import open_event_stream
from pubsub_streams.errors import StatusError
from pubsub_streams.fanout import StreamBroadcaster
from pubsub_streams.filters import messages, presences
from pubsub_streams.models import Status


async def take(iterator, count):
    return [await iterator.__anext__() for _ in range(count)]


class TestStreamBroadcaster:
    """Tests for sharing one bridge stream between consumers."""

    async def test_every_consumer_sees_every_event(self, client):
        """Each consumer receives all elements in source order."""
        async with StreamBroadcaster(open_event_stream(client)) as broadcaster:
            first = broadcaster.subscribe()
            second = broadcaster.subscribe()
            broadcaster.start()

            def deliver():
                client.emit_message("a")
                client.emit_presence("b")
                client.emit_message("c")

            await asyncio.to_thread(deliver)

            first_events = await take(first, 3)
            second_events = await take(second, 3)

        assert [e.payload for e in first_events] == ["a", "b", "c"]
        assert first_events == second_events

    async def test_single_registration(self, client):
        """Fan-out keeps one listener on the client and removes it on close."""
        broadcaster = StreamBroadcaster(open_event_stream(client))
        broadcaster.subscribe()
        broadcaster.subscribe()
        broadcaster.subscribe()
        broadcaster.start()

        assert broadcaster.consumer_count == 3
        assert client.listener_count == 1

        await broadcaster.aclose()
        await broadcaster.aclose()

        assert client.listener_count == 0
        assert client.remove_calls == 1

    async def test_per_consumer_filters(self, client):
        """Consumers can filter the shared stream by variant."""
        async with StreamBroadcaster(open_event_stream(client)) as broadcaster:
            message_feed = messages(broadcaster.subscribe())
            presence_feed = presences(broadcaster.subscribe())
            broadcaster.start()

            client.emit_presence("join")
            client.emit_message("hello")
            client.emit_presence("leave")

            message = await message_feed.__anext__()
            presence_events = await take(presence_feed, 2)

        assert message.payload == "hello"
        assert [p.payload for p in presence_events] == ["join", "leave"]

    async def test_failure_reaches_every_consumer(self, client):
        """A terminal source failure is raised in each consumer."""
        async with StreamBroadcaster(open_event_stream(client)) as broadcaster:
            first = broadcaster.subscribe()
            second = broadcaster.subscribe()
            broadcaster.start()

            client.emit_message("before")
            client.emit_status(Status.failure("denied"))

            for consumer in (first, second):
                event = await consumer.__anext__()
                assert event.payload == "before"
                with pytest.raises(StatusError):
                    await consumer.__anext__()

    async def test_close_ends_consumers(self, client):
        """Closing the broadcaster ends waiting consumers."""
        broadcaster = StreamBroadcaster(open_event_stream(client))
        consumer = broadcaster.subscribe()
        broadcaster.start()

        async def consume():
            return [event async for event in consumer]

        task = asyncio.create_task(consume())
        await asyncio.sleep(0.01)
        await broadcaster.aclose()

        assert await asyncio.wait_for(task, timeout=1.0) == []

    async def test_subscribe_after_start_rejected(self, client):
        async with StreamBroadcaster(open_event_stream(client)) as broadcaster:
            broadcaster.start()
            with pytest.raises(RuntimeError):
                broadcaster.subscribe()

    async def test_unread_failure_survives_close(self, client):
        """A source failure queued before close is still raised in the consumer."""
        broadcaster = StreamBroadcaster(open_event_stream(client))
        consumer = broadcaster.subscribe()
        broadcaster.start()

        client.emit_message("dropped on close")
        client.emit_status(Status.failure("denied"))
        await asyncio.sleep(0.05)

        await broadcaster.aclose()

        with pytest.raises(StatusError):
            await consumer.__anext__()

    @pytest.mark.parametrize("size", [0, -1])
    async def test_invalid_queue_size(self, client, size):
        """Consumer queues must be bounded."""
        stream = open_event_stream(client)

        with pytest.raises(ValueError):
            StreamBroadcaster(stream, max_queue_size=size)

        await stream.aclose()
