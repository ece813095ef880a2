import threading
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Union

from flask import Response
from werkzeug.datastructures import Headers
from werkzeug.wsgi import ClosingIterator

from eventsink.errors import StreamClosedError
from eventsink.event import Event, format_event, make_event
from eventsink.logger import logger
from eventsink.stream import EventStream


class SinkState(str, Enum):
    UNINITIALIZED = 'uninitialized'
    STREAMING = 'streaming'
    CLOSED = 'closed'


LIFECYCLE_EVENTS = ('open', 'close', 'error')


class EventSink:
    HEADERS = {
        'Content-Type': 'text/event-stream',
        'Cache-Control': 'no-store',
        'X-Accel-Buffering': 'no',  # nginx
    }

    def __init__(self, history=None, keep_interval: Optional[float] = None) -> None:
        self.history = history
        self.keep_interval = keep_interval
        self.state = SinkState.UNINITIALIZED

        self._lock = threading.Lock()
        self._listeners: Dict[str, List[Callable]] = {name: [] for name in LIFECYCLE_EVENTS}
        self._response: Optional[Response] = None
        self._closed = False
        self._setup_streams()

    def _setup_streams(self) -> None:
        self._stream = EventStream(keep_interval=self.keep_interval, on_cancel=self._on_stream_cancel)
        self._writer = self._stream.get_writer()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def stream(self) -> EventStream:
        return self._stream

    def add_listener(self, name: str, callback: Callable) -> None:
        if name not in self._listeners:
            raise ValueError(f'unknown sink event {name!r}, expected one of {LIFECYCLE_EVENTS}')
        self._listeners[name].append(callback)

    def remove_listener(self, name: str, callback: Callable) -> None:
        try:
            self._listeners[name].remove(callback)
        except (KeyError, ValueError):
            pass

    def _emit(self, name: str, payload) -> None:
        for callback in list(self._listeners[name]):
            try:
                callback(payload)
            except Exception:
                logger.exception("EventSink: %s listener failed", name)

    def _send(self, event: Event) -> bool:
        try:
            self._writer.write(format_event(event))
        except StreamClosedError as e:
            logger.debug("EventSink: dropped event id=%s name=%s: %s", event.id, event.name, e)
            if not self._closed:
                self._emit('error', e)
            return False
        return True

    def dispatch_event(self, event: Union[Event, str], name: Optional[str] = None,
                       event_id: Optional[str] = None, comments: Optional[Sequence[str]] = None) -> bool:
        if not isinstance(event, Event):
            event = make_event(event, name=name, event_id=event_id, comments=comments)
        logger.debug("dispatch_event: id=%s name=%s", event.id, event.name)

        if self.history is not None:
            self.history.push(event)
        return self._send(event)

    def replay_since(self, last_event_id: str) -> int:
        if self.history is None:
            logger.warning("No history provided to EventSink, cannot replay events")
            return 0
        if self._response is None:
            logger.warning("Response not yet created, cannot replay events")
            return 0

        found = False
        sent = 0
        for i in range(len(self.history)):
            event = self.history.get(i)
            if not found and event.id == last_event_id:
                found = True
            if found and self._send(event):
                sent += 1
        logger.debug("replay_since: last_event_id=%s found=%s sent=%d", last_event_id, found, sent)
        return sent

    def close(self, reason: Optional[str] = None) -> bool:
        with self._lock:
            if self._closed:
                return False
            self._closed = True
            self._writer.release()
            self._stream.close()
            self.state = SinkState.CLOSED
        reason = reason or 'connection closed'
        logger.debug("EventSink.close: %s", reason)
        self._emit('close', reason)
        return True

    def _on_stream_cancel(self, stream: EventStream, reason: str) -> None:
        # a stream replaced by reset() may still be torn down by its old reader
        if stream is not self._stream:
            return
        self.close(reason)

    def get_response(self, headers: Optional[Mapping[str, str]] = None) -> Response:
        if self._response is None:
            h = Headers(headers) if headers else Headers()
            for key, value in self.HEADERS.items():
                h.set(key, value)
            # closing the body cancels the stream even if it was never iterated
            stream = self._stream
            body = ClosingIterator(stream.chunks(), lambda: stream.cancel('reader disconnected'))
            self._response = Response(body, headers=h)
            if not self._closed:
                self.state = SinkState.STREAMING
            self._emit('open', self._response)
        elif headers is not None:
            logger.warning("Headers were provided to EventSink.get_response, "
                           "but the response has already been created")
        return self._response

    def reset(self) -> None:
        self._response = None
        self.close('reset')
        self._setup_streams()
        self.state = SinkState.STREAMING
