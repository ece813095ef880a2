"""Shared fixtures for the event sink tests."""

import pytest

from eventsink.ring import RingBuffer
from eventsink.sink import EventSink


@pytest.fixture
def history():
    return RingBuffer()


@pytest.fixture
def sink():
    sink = EventSink()
    yield sink
    sink.close()


@pytest.fixture
def history_sink(history):
    sink = EventSink(history)
    yield sink
    sink.close()
