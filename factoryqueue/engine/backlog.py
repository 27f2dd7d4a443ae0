"""
The backlog holds fetched items until they are processed.

Fetch admission uses a projected backlog size instead of the measured one:
every fetch in flight is assumed to deliver a full page. This allows
pipelined read-ahead with several concurrent fetches, but pages can still
overshoot :code:`queue_limit` when they arrive, so the limit is advisory.
"""

from collections import deque
from collections.abc import Iterable
from typing import Any


class Backlog:
    """FIFO of fetched but not yet processed items."""

    def __init__(self, items: Iterable[Any] = ()) -> None:
        self._items: deque[Any] = deque(items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def extend(self, items: Iterable[Any]) -> None:
        """Append items at the tail."""
        self._items.extend(items)

    def popleft(self) -> Any:
        """Remove and return the item at the head."""
        return self._items.popleft()

    def projected_size(self, page_size: int, active_fetches: int, held: int = 0) -> int:
        """Backlog size if all fetches in flight plus one more deliver a full page.

        :code:`held` items are fetched but not yet released into the backlog.
        """
        return len(self._items) + held + page_size * (active_fetches + 1)

    def admits_page(
        self, page_size: int, active_fetches: int, queue_limit: int, held: int = 0
    ) -> bool:
        """Whether one more page may be fetched without the projection reaching
        :code:`queue_limit`. An empty backlog with nothing held and no fetch in flight
        always admits one page, otherwise a page size at or above the limit would never fetch."""
        if not self._items and not held and active_fetches == 0:
            return True
        return self.projected_size(page_size, active_fetches, held) < queue_limit


class PageSequencer:
    """Hands fetched pages to the backlog.

    Pages are numbered in the order they were requested. Without
    :code:`preserve_order` they are appended as they arrive. With it, a page
    that arrives early is held until all pages requested before it arrived.
    """

    def __init__(self, backlog: Backlog, preserve_order: bool = False) -> None:
        self._backlog = backlog
        self._preserve_order = preserve_order
        self._next_sequence = 0
        self._held: dict[int, list] = {}
        self._held_items = 0

    @property
    def held_pages(self) -> int:
        """Number of pages waiting for an earlier page."""
        return len(self._held)

    @property
    def held_items(self) -> int:
        """Number of items in pages waiting for an earlier page."""
        return self._held_items

    def deliver(self, sequence: int, items: list) -> int:
        """Deliver the page with the given sequence number.

        Returns
        -------
        int
            Number of items that entered the backlog.
        """
        if not self._preserve_order:
            self._backlog.extend(items)
            return len(items)
        self._held[sequence] = items
        self._held_items += len(items)
        released = 0
        while self._next_sequence in self._held:
            page = self._held.pop(self._next_sequence)
            self._held_items -= len(page)
            self._backlog.extend(page)
            released += len(page)
            self._next_sequence += 1
        return released
