import threading
from queue import Queue
from typing import Optional

from models import Transaction

_CLOSED = object()


class LaneQueue:
    """
    FIFO inbound queue for a single client lane.
    All synchronization is internal - callers never need to lock.

    close() is the explicit end-of-stream signal: it enqueues a marker behind
    every message already published, so a consumer sees all of them before
    consume_message() starts returning None.
    """

    def __init__(self, maxsize: int = 0):
        self._queue: Queue = Queue(maxsize=maxsize)
        self._closed_event = threading.Event()
        self._drained_event = threading.Event()

    def publish_message(self, message: Transaction) -> None:
        """Add message to the queue, blocking while a bounded queue is full."""
        if self._closed_event.is_set():
            raise RuntimeError("cannot publish to a closed lane queue")
        self._queue.put(message)

    def consume_message(self) -> Optional[Transaction]:
        """
        Block until the next message is available.
        Returns None once the queue has been closed and drained.
        """
        if self._drained_event.is_set():
            return None
        message = self._queue.get()
        if message is _CLOSED:
            self._drained_event.set()
            return None
        return message

    def is_empty(self) -> bool:
        """Check if the queue holds no unconsumed messages."""
        return self.qsize() == 0

    def qsize(self) -> int:
        """Return approximate number of unconsumed messages."""
        size = self._queue.qsize()
        if self._closed_event.is_set() and not self._drained_event.is_set():
            size -= 1
        return max(size, 0)

    def close(self) -> None:
        """Signal no more messages will be published."""
        if self._closed_event.is_set():
            return
        self._closed_event.set()
        self._queue.put(_CLOSED)

    def is_closed(self) -> bool:
        """Check if close has been signaled."""
        return self._closed_event.is_set()
