from typing import Any, Callable, Iterator, Optional

from eventsink.logger import logger


class RingBuffer:
    def __init__(self, capacity: int = 10):
        self.capacity = int(capacity)
        if self.capacity < 0:
            raise ValueError(f'capacity must be >= 0, got {capacity!r}')
        self.buf: list = [None] * self.capacity
        self.head = 0
        self.length = 0

    def __len__(self) -> int:
        return self.length

    def __iter__(self) -> Iterator[Any]:
        for i in range(self.length):
            yield self.buf[self._offset(i)]

    def __repr__(self) -> str:
        return f'RingBuffer(capacity={self.capacity}, length={self.length}, head={self.head})'

    def _offset(self, index: int) -> int:
        return (self.head + index) % self.capacity

    def is_empty(self) -> bool:
        return self.length == 0

    def is_full(self) -> bool:
        return self.length >= self.capacity

    def get(self, index: int) -> Optional[Any]:
        if index < 0 or index >= self.length:
            return None
        return self.buf[self._offset(index)]

    def push(self, value: Any) -> int:
        if self.capacity == 0:
            return 0
        if self.is_full():
            # evict the logical head to make room at the tail
            self.head = (self.head + 1) % self.capacity
            self.length -= 1
            logger.debug("RingBuffer.push: full, evicted head, new_head=%d", self.head)
        self.buf[self._offset(self.length)] = value
        self.length += 1
        return self.length

    def pop(self) -> Optional[Any]:
        if self.length == 0:
            return None
        pos = self._offset(self.length - 1)
        value = self.buf[pos]
        self.buf[pos] = None
        self.length -= 1
        return value

    def unshift(self, value: Any) -> int:
        if self.capacity == 0:
            return 0
        # when full, the new head slot is the old tail slot
        self.head = (self.head - 1) % self.capacity
        self.buf[self.head] = value
        if self.length < self.capacity:
            self.length += 1
        else:
            logger.debug("RingBuffer.unshift: full, evicted tail, new_head=%d", self.head)
        return self.length

    def shift(self) -> Optional[Any]:
        if self.length == 0:
            return None
        value = self.buf[self.head]
        self.buf[self.head] = None
        self.head = (self.head + 1) % self.capacity
        self.length -= 1
        return value

    def find_index(self, predicate: Callable[[Any], bool]) -> int:
        for i, value in enumerate(self):
            if predicate(value):
                return i
        return -1

    def purge(self) -> None:
        self.buf[:] = [None] * self.capacity
        self.head = 0
        self.length = 0
