"""
Fan-out of one event stream to several consumers.

A process should hold a single listener registration per client and share its
stream. StreamBroadcaster pumps that stream into one bounded queue per
consumer; each consumer can then apply its own variant filter.

Usage:
    stream = open_event_stream(client)
    async with StreamBroadcaster(stream) as broadcaster:
        message_feed = messages(broadcaster.subscribe())
        presence_feed = presences(broadcaster.subscribe())
        broadcaster.start()
        ...
"""
import asyncio
import logging
from typing import AsyncIterator, Generic, List, Optional, TypeVar

from .bridge import EventStream
from .config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_END = object()


class _Failure:
    """Queue item carrying the terminal error of the source stream."""

    def __init__(self, error: BaseException):
        self.error = error


class StreamBroadcaster(Generic[T]):
    """
    Share one EventStream with several consumers.

    Every consumer receives every element in source order. The pump waits for
    the slowest consumer, so nothing is dropped. A terminal failure of the
    source is raised in every consumer.
    """

    def __init__(self, source: EventStream[T], max_queue_size: Optional[int] = None):
        """
        Args:
            source: The stream to share
            max_queue_size: Bound of each consumer queue (defaults to settings)
        """
        self._source = source
        maxsize = max_queue_size if max_queue_size is not None else settings.stream_max_queue_size
        if maxsize < 1:
            raise ValueError("max_queue_size must be at least 1")
        self._max_queue_size = maxsize
        self._queues: List[asyncio.Queue] = []
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def consumer_count(self) -> int:
        return len(self._queues)

    def subscribe(self) -> AsyncIterator[T]:
        """
        Add a consumer.

        Returns:
            Async iterator over the shared elements

        Raises:
            RuntimeError: If the broadcaster has already been started
        """
        if self._task is not None:
            raise RuntimeError("Consumers must subscribe before start()")
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
        self._queues.append(queue)
        logger.debug(f"Added broadcast consumer #{len(self._queues)}")
        return self._consume(queue)

    def start(self) -> None:
        """Start pumping the source stream into the consumer queues."""
        if self._task is not None:
            logger.warning("Broadcaster already started")
            return
        self._task = asyncio.create_task(self._pump())

    async def _pump(self) -> None:
        try:
            async for item in self._source:
                for queue in self._queues:
                    await queue.put(item)
        except Exception as e:
            logger.warning(f"Broadcast source failed: {e}")
            for queue in self._queues:
                await queue.put(_Failure(e))
            return
        for queue in self._queues:
            await queue.put(_END)

    async def _consume(self, queue: asyncio.Queue) -> AsyncIterator[T]:
        while True:
            item = await queue.get()
            if item is _END:
                return
            if isinstance(item, _Failure):
                raise item.error
            yield item

    async def aclose(self) -> None:
        """
        Stop the pump, close the source stream and end every consumer.

        Pending elements are discarded, but a source failure that has not
        been read yet is still raised in its consumer. Idempotent.
        """
        if self._closed:
            return
        self._closed = True

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        await self._source.aclose()

        for queue in self._queues:
            terminal = _END
            while not queue.empty():
                item = queue.get_nowait()
                if isinstance(item, _Failure):
                    terminal = item
            queue.put_nowait(terminal)

    async def __aenter__(self) -> "StreamBroadcaster[T]":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
