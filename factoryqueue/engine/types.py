"""
Data records and callable contracts shared by the queue components.

The fetch and process callables are supplied by the caller. Both may be plain
functions or coroutine functions.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from attrs import define, field, validators

FetchCallable = Callable[[int, int, Any], Any | Awaitable[Any]]
ProcessCallable = Callable[[Any], Any | Awaitable[Any]]
ProgressCallback = Callable[["Progress"], None]


@define(kw_only=True, frozen=True)
class FetchResponse:
    """One page as reported by the source."""

    total: int = field(validator=[validators.instance_of(int), validators.ge(0)])
    """Number of items (or pages in paged mode) the source currently holds."""
    items: list = field(factory=list, converter=list)
    """Items of this page. May be empty."""


@define(kw_only=True, frozen=True)
class Progress:
    """Notification emitted after every successfully processed item."""

    offset: int
    queue_size: int
    processed: int

    def as_dict(self) -> dict:
        """Return the notification in its wire shape."""
        return {"offset": self.offset, "queueSize": self.queue_size, "processed": self.processed}


@define(kw_only=True, frozen=True)
class RunResult:
    """Outcome of a successful run."""

    status: str = "done"
    fetched: int
    processed: int
    time: float
    """Elapsed seconds between start and completion."""

    def as_dict(self) -> dict:
        """Return the result in its wire shape."""
        return {
            "status": self.status,
            "fetched": self.fetched,
            "processed": self.processed,
            "time": self.time,
        }
