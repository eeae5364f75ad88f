"""Background page fetching for list endpoints.

A producer thread requests pages one after another and hands each to the
consumer through a single-slot queue, so at most one page is buffered ahead
of the caller. A fetch error stops the producer; it is stored in a separate
slot and re-raised by the consumer only once the producer has signalled the
end of the stream. A stream closed by the caller ends without raising.
"""
from __future__ import annotations
import logging
import queue
import threading
from typing import Callable, Generic, Iterator, TypeVar

logger = logging.getLogger(__name__)

P = TypeVar("P")

_CLOSED = object()
_POLL_INTERVAL = 0.1


class PageStream(Generic[P]):
    """Iterate pages produced by ``fetch_page(page_number)``.

    Args:
        fetch_page: Returns page ``page_number`` (1-based)
        is_last: Tells whether a page is the final one
        name: Thread name used in logs
    """

    def __init__(self, fetch_page: Callable[[int], P], is_last: Callable[[P], bool], name: str = "page-producer"):
        self._fetch_page = fetch_page
        self._is_last = is_last
        self._pages: "queue.Queue[object]" = queue.Queue(maxsize=1)
        self._errors: "queue.Queue[BaseException]" = queue.Queue(maxsize=1)
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._produce, name=name, daemon=True)
        self._started = False

    def _produce(self) -> None:
        page_number = 1
        try:
            while not self._stop.is_set():
                page = self._fetch_page(page_number)
                self._put(page)
                if self._is_last(page):
                    break
                page_number += 1
        except Exception as exc:  # handed to the consumer with the close sentinel
            logger.debug("Page producer stopped on page %d: %s", page_number, exc)
            self._errors.put_nowait(exc)
        finally:
            self._put(_CLOSED)

    def _put(self, item: object) -> None:
        # Give up once the consumer has gone away
        while not self._stop.is_set():
            try:
                self._pages.put(item, timeout=_POLL_INTERVAL)
                return
            except queue.Full:
                continue

    def __iter__(self) -> Iterator[P]:
        if self._started:
            raise RuntimeError("PageStream can only be iterated once")
        self._started = True
        self._thread.start()
        finished = False
        try:
            while not self._stop.is_set():
                try:
                    item = self._pages.get(timeout=_POLL_INTERVAL)
                except queue.Empty:
                    continue
                if item is _CLOSED:
                    finished = True
                    break
                yield item  # type: ignore[misc]
        finally:
            self.close()
        if not finished:
            return
        try:
            error = self._errors.get_nowait()
        except queue.Empty:
            return
        raise error

    def close(self) -> None:
        """Stop the stream; a consumer still iterating ends after its current page."""
        self._stop.set()
