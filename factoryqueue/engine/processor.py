"""Drains the backlog through the process callable."""

import logging
from typing import Any

from factoryqueue.engine.capabilities import ProcessCapability
from factoryqueue.engine.options import QueueOptions
from factoryqueue.engine.scheduler import Scheduler
from factoryqueue.engine.types import Progress, ProgressCallback

logger = logging.getLogger("ProcessScheduler")


class ProcessScheduler(Scheduler):
    """Admits one process operation per backlog item up to :code:`processing_limit`.

    After every successful operation the processed counter increases, the
    completion condition is checked and a :code:`Progress` notification is
    handed to the progress callback. With :code:`process_timeout` the
    concurrency slot is freed only after that delay.
    """

    logger = logger

    def __init__(
        self,
        *args,
        process: ProcessCapability,
        queue_options: QueueOptions,
        on_progress: ProgressCallback | None = None,
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._process = process
        self._queue_options = queue_options
        self._on_progress = on_progress

    def admits(self) -> bool:
        state = self._state
        return (
            not state.stopped
            and bool(state.backlog)
            and state.active_processes < self._queue_options.processing_limit
        )

    def _admit(self) -> tuple[Any]:
        state = self._state
        state.active_processes += 1
        item = state.backlog.popleft()
        self._metrics.backlog_size += len(state.backlog)
        return (item,)

    async def _execute(self, item: Any) -> None:
        error = None
        try:
            await self._process(item)
        except Exception as exc:  # pylint: disable=broad-except
            error = exc
        hold_back = error is None and bool(self._queue_options.process_timeout)
        async with self._condition:
            if not hold_back:
                self._state.active_processes -= 1
            if error is None and not self._state.stopped:
                error = self._complete()
            if error is not None:
                self._fail(error, f"Processing of {item!r}")
            self._condition.notify_all()
        if hold_back:
            await self._release_after_hold_back()

    async def _release_after_hold_back(self) -> None:
        # the item is already counted, only the concurrency slot is held
        await self._process.hold_back()
        async with self._condition:
            self._state.active_processes -= 1
            self._condition.notify_all()

    def _complete(self) -> Exception | None:
        state = self._state
        state.processed += 1
        self._metrics.number_of_processed_items += 1
        if state.completion_reached:
            state.mark_finished()
            logger.debug("Processed all %d items", state.processed)
        progress = Progress(
            offset=state.cursor, queue_size=len(state.backlog), processed=state.processed
        )
        logger.debug("Progress: %s", progress.as_dict())
        if self._on_progress is None:
            return None
        try:
            self._on_progress(progress)
        except Exception as error:  # pylint: disable=broad-except
            return error
        return None
