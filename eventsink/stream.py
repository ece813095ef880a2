import threading
import time
from collections import deque
from typing import Callable, Deque, Generator, Optional

from eventsink.errors import StreamClosedError, StreamLockedError
from eventsink.event import KEEP_ALIVE
from eventsink.logger import logger


class StreamWriter:
    def __init__(self, stream: 'EventStream') -> None:
        self._stream = stream
        self.released = False

    def write(self, text: str) -> int:
        if self.released:
            raise StreamClosedError('writer has been released')
        return self._stream._enqueue(text)

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        self._stream._release_writer(self)


class EventStream:
    ENCODING = 'utf-8'
    WAIT_INTERVAL = 1.00
    KEEP_INTERVAL = 15.0

    def __init__(self, keep_interval: Optional[float] = None,
                 on_cancel: Optional[Callable[['EventStream', str], None]] = None) -> None:
        if keep_interval is not None:
            self.KEEP_INTERVAL = float(keep_interval)
        self.on_cancel = on_cancel

        self._chunks: Deque[bytes] = deque()
        self._cond = threading.Condition()
        self._writer: Optional[StreamWriter] = None
        self._closed = False
        self._cancelled = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def locked(self) -> bool:
        return self._writer is not None

    @property
    def pending(self) -> int:
        with self._cond:
            return len(self._chunks)

    def get_writer(self) -> StreamWriter:
        with self._cond:
            if self._writer is not None:
                raise StreamLockedError('stream already has a writer')
            self._writer = StreamWriter(self)
            return self._writer

    def _release_writer(self, writer: StreamWriter) -> None:
        with self._cond:
            if self._writer is writer:
                self._writer = None

    def _enqueue(self, text: str) -> int:
        data = text.encode(self.ENCODING)
        with self._cond:
            if self._closed:
                raise StreamClosedError('stream is closed')
            self._chunks.append(data)
            self._cond.notify_all()
        return len(data)

    def close(self) -> bool:
        with self._cond:
            if self._closed:
                return False
            self._closed = True
            pending = len(self._chunks)
            self._cond.notify_all()
        logger.debug("EventStream.close: pending=%d", pending)
        return True

    def cancel(self, reason: str = 'cancelled') -> None:
        with self._cond:
            if self._cancelled:
                return
            self._cancelled = True
            self._closed = True
            dropped = len(self._chunks)
            self._chunks.clear()
            self._cond.notify_all()
        logger.debug("EventStream.cancel: reason=%s dropped=%d", reason, dropped)
        if self.on_cancel is not None:
            self.on_cancel(self, reason)

    def chunks(self) -> Generator[bytes, None, None]:
        finished = False
        last_sent = time.monotonic()
        try:
            while True:
                chunk: Optional[bytes] = None
                with self._cond:
                    if not self._chunks and not self._closed:
                        self._cond.wait(timeout=self.WAIT_INTERVAL)
                    if self._chunks:
                        chunk = self._chunks.popleft()
                    elif self._closed:
                        finished = True
                        break

                if chunk is None:
                    if self.KEEP_INTERVAL and time.monotonic() - last_sent >= self.KEEP_INTERVAL:
                        chunk = KEEP_ALIVE.encode(self.ENCODING)
                    else:
                        continue

                last_sent = time.monotonic()
                yield chunk
        finally:
            if not finished:
                self.cancel('reader disconnected')

        logger.debug("EventStream.chunks exiting")
