"""Tests for the outbound event stream."""

import threading

import pytest

from eventsink.errors import StreamClosedError, StreamLockedError
from eventsink.stream import EventStream


class TestWriter:

    def test_single_writer(self):
        stream = EventStream()
        stream.get_writer()
        assert stream.locked
        with pytest.raises(StreamLockedError):
            stream.get_writer()

    def test_release_unlocks(self):
        stream = EventStream()
        writer = stream.get_writer()
        writer.release()
        writer.release()
        assert not stream.locked
        with pytest.raises(StreamClosedError):
            writer.write('late')
        stream.get_writer()

    def test_write_after_close(self):
        stream = EventStream()
        writer = stream.get_writer()
        stream.close()
        with pytest.raises(StreamClosedError):
            writer.write('late')


class TestChunks:

    def test_chunks_in_write_order(self):
        stream = EventStream()
        writer = stream.get_writer()
        for text in ('one', 'two', 'three'):
            writer.write(text)
        stream.close()
        assert list(stream.chunks()) == [b'one', b'two', b'three']

    def test_utf8_encoding(self):
        stream = EventStream()
        writer = stream.get_writer()
        assert writer.write('é') == 2
        stream.close()
        assert list(stream.chunks()) == ['é'.encode('utf-8')]

    def test_close_is_idempotent(self):
        stream = EventStream()
        assert stream.close() is True
        assert stream.close() is False
        assert list(stream.chunks()) == []

    def test_reader_wakes_on_write_from_other_thread(self):
        stream = EventStream(keep_interval=0)
        writer = stream.get_writer()
        body = stream.chunks()

        def produce():
            writer.write('late')
            stream.close()

        timer = threading.Timer(0.05, produce)
        timer.start()
        try:
            assert list(body) == [b'late']
        finally:
            timer.join()

    def test_keep_alive_when_idle(self):
        stream = EventStream(keep_interval=0.01)
        stream.WAIT_INTERVAL = 0.01
        body = stream.chunks()
        assert next(body) == b': keep-alive\n\n'
        body.close()

    def test_keep_alive_disabled(self):
        stream = EventStream(keep_interval=0)
        stream.WAIT_INTERVAL = 0.01
        writer = stream.get_writer()
        threading.Timer(0.05, stream.close).start()
        assert list(stream.chunks()) == []
        with pytest.raises(StreamClosedError):
            writer.write('late')


class TestCancel:

    def test_closing_reader_cancels(self):
        calls = []
        stream = EventStream(on_cancel=lambda s, reason: calls.append((s, reason)))
        writer = stream.get_writer()
        writer.write('a')
        writer.write('b')
        body = stream.chunks()
        assert next(body) == b'a'
        body.close()
        assert stream.cancelled
        assert stream.closed
        assert stream.pending == 0
        assert calls == [(stream, 'reader disconnected')]
        with pytest.raises(StreamClosedError):
            writer.write('c')

    def test_cancel_only_once(self):
        calls = []
        stream = EventStream(on_cancel=lambda s, reason: calls.append(reason))
        stream.cancel('gone')
        stream.cancel('gone again')
        assert calls == ['gone']

    def test_normal_end_does_not_cancel(self):
        calls = []
        stream = EventStream(on_cancel=lambda s, reason: calls.append(reason))
        stream.close()
        assert list(stream.chunks()) == []
        assert calls == []
        assert not stream.cancelled
