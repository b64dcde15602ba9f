"""ProgressStream — observable compile progress for another thread."""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterator

_CLOSED = object()


class ProgressStream:
    """Thread-safe stream of progress milestones (0-100).

    The producer calls :meth:`report` and finally :meth:`close`; a consumer
    in another thread iterates the stream until it is closed.  Values are
    ordered checkpoints, not a measured percentage.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[object] = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def report(self, value: float) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("Progress stream already closed")
            self._queue.put(float(value))

    def close(self) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("Progress stream already closed")
            self._closed = True
            self._queue.put(_CLOSED)

    def __iter__(self) -> Iterator[float]:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                return
            yield item  # type: ignore[misc]
