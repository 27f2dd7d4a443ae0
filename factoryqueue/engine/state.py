"""Mutable state of a single run.

A :code:`RunState` is owned by exactly one :code:`FactoryQueue`. Both schedulers
and the watchdog read and mutate it from the same event loop and only while
holding the queue's condition lock, so no two mutations interleave.
"""

import logging
import time
from typing import Any

from attrs import define, field

from factoryqueue.engine.backlog import Backlog
from factoryqueue.engine.exceptions import SourceEmptyError

logger = logging.getLogger("RunState")


@define(kw_only=True)
class RunState:
    """Counters, cursor, error slot and timestamps of a run."""

    cursor: int = 0
    """Current read position. An item offset, or a page index in paged mode."""
    start: int = 0
    """Cursor the run started at. Items before it are not part of the run."""
    page_size: int
    paged: bool = False
    total: int | None = None
    """Known or assumed size of the source. :code:`None` until discovered."""
    max_limit: int | None = None
    backlog: Backlog = field(factory=Backlog)
    active_fetches: int = 0
    active_processes: int = 0
    processed: int = 0
    error: Any = None
    started_at: float = field(factory=time.monotonic)
    finished_at: float | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def finished(self) -> bool:
        return self.finished_at is not None

    @property
    def stopped(self) -> bool:
        """No new fetch or process operation may be admitted."""
        return self.failed or self.finished

    @property
    def fetch_exhausted(self) -> bool:
        """The cursor reached the known total or the max limit."""
        if self.total is not None:
            # page indices run one past the page count
            end = self.total + 1 if self.paged else self.total
            if self.cursor >= end:
                return True
        return self.max_limit is not None and self.cursor >= self.max_limit

    @property
    def completion_reached(self) -> bool:
        """All items the run is responsible for are processed.

        The target is :code:`total` (counted from :code:`start`) in offset mode and
        :code:`total * page_size` in paged mode. :code:`max_limit` is a target too.
        """
        if self.paged:
            targets = (
                None if self.total is None else self.total * self.page_size,
                self.max_limit,
            )
        else:
            targets = (
                None if self.total is None else self.total - self.start,
                None if self.max_limit is None else self.max_limit - self.start,
            )
        return any(target is not None and self.processed >= target for target in targets)

    def advance_cursor(self) -> int:
        """Advance the cursor by one page and return the position before the advance."""
        cursor = self.cursor
        self.cursor += 1 if self.paged else self.page_size
        return cursor

    def update_total(self, reported: int) -> None:
        """Track the total reported by the source.

        Raises
        ------
        SourceEmptyError
            If no total was known yet and the source reports zero.
        """
        if self.total is None and reported == 0:
            raise SourceEmptyError()
        total = reported
        if self.max_limit is not None and self.max_limit < total:
            total = self.max_limit
        if total != self.total:
            logger.debug("Total changed from %s to %s", self.total, total)
            self.total = total

    def record_error(self, error: Any) -> bool:
        """Record the first failure of the run. Failures after the run stopped are ignored.

        Returns
        -------
        bool
            Whether this error was recorded.
        """
        if self.stopped:
            logger.debug("Ignoring error of stopped run: %r", error)
            return False
        self.error = error
        return True

    def mark_finished(self) -> None:
        if self.finished_at is None:
            self.finished_at = time.monotonic()

    def elapsed(self) -> float:
        """Seconds since start, or until completion once finished."""
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return end - self.started_at

    def summary(self) -> dict:
        return {"fetched": self.total, "processed": self.processed, "time": self.elapsed()}
