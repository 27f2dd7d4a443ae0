"""Issues fetches against the source and fills the backlog."""

import logging

from factoryqueue.engine.backlog import PageSequencer
from factoryqueue.engine.capabilities import FetchCapability
from factoryqueue.engine.exceptions import SourceEmptyError
from factoryqueue.engine.options import FetchOptions, QueueOptions
from factoryqueue.engine.scheduler import Scheduler
from factoryqueue.engine.types import FetchResponse

logger = logging.getLogger("FetchScheduler")


class FetchScheduler(Scheduler):
    """Admits fetches while the concurrency and backlog limits allow it.

    The cursor advances when a fetch is admitted, before its result is known,
    so that several fetches can read ahead with :code:`request_limit > 1`.
    """

    logger = logger

    def __init__(
        self,
        *args,
        fetch: FetchCapability,
        fetch_options: FetchOptions,
        queue_options: QueueOptions,
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._fetch = fetch
        self._fetch_options = fetch_options
        self._queue_options = queue_options
        self._sequencer = PageSequencer(self._state.backlog, queue_options.preserve_order)
        self._issued = 0

    def admits(self) -> bool:
        state = self._state
        if state.stopped:
            return False
        if state.active_fetches >= self._queue_options.request_limit:
            return False
        if not state.backlog.admits_page(
            self._fetch_options.limit,
            state.active_fetches,
            self._queue_options.queue_limit,
            held=self._sequencer.held_items,
        ):
            return False
        return not state.fetch_exhausted

    def _admit(self) -> tuple[int, int]:
        self._state.active_fetches += 1
        cursor = self._state.advance_cursor()
        sequence = self._issued
        self._issued += 1
        logger.debug("Fetching %d items at cursor %d", self._fetch_options.limit, cursor)
        return sequence, cursor

    async def _execute(self, sequence: int, cursor: int) -> None:
        response, error = None, None
        try:
            response = await self._fetch(self._fetch_options.limit, cursor)
        except Exception as exc:  # pylint: disable=broad-except
            error = exc
        async with self._condition:
            self._state.active_fetches -= 1
            self._metrics.number_of_fetches += 1
            if error is None and not self._state.stopped:
                try:
                    self._deliver(sequence, cursor, response)
                except SourceEmptyError as exc:
                    error = exc
            if error is not None:
                self._fail(error, f"Fetch at cursor {cursor}")
            self._condition.notify_all()

    def _deliver(self, sequence: int, cursor: int, response: FetchResponse) -> None:
        state = self._state
        state.update_total(response.total)
        added = self._sequencer.deliver(sequence, response.items)
        logger.debug(
            "Finished fetching at cursor %d, added %d items (total %s)", cursor, added, state.total
        )
        self._metrics.number_of_fetched_items += len(response.items)
        self._metrics.backlog_size += len(state.backlog)
        if state.completion_reached:
            state.mark_finished()
