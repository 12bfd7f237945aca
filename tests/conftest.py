"""
Pytest configuration for pubsub-streams tests.
"""
import os

import pytest

# Keep test runs independent of a developer's .env
os.environ.setdefault("PUBSUB_STREAMS_STREAM_MAX_QUEUE_SIZE", "64")
os.environ.setdefault("PUBSUB_STREAMS_LOG_LEVEL", "DEBUG")

from pubsub_streams.memory import MemoryPubSubClient


@pytest.fixture
def client():
    """Create an in-memory pub/sub client."""
    return MemoryPubSubClient()
