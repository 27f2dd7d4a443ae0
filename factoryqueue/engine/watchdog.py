"""Settles the outcome of a run."""

import asyncio
import logging

from factoryqueue.engine.exceptions import QueueError, QueueTimeoutError
from factoryqueue.engine.state import RunState
from factoryqueue.engine.types import RunResult

logger = logging.getLogger("Watchdog")


class TerminationWatchdog:
    """Waits until the run failed, finished or ran out of time.

    The schedulers notify the shared condition on every state change, so the
    watchdog wakes up as soon as a terminal condition holds. Conditions are
    evaluated in the order error, completion, elapsed runtime.
    """

    def __init__(
        self, state: RunState, condition: asyncio.Condition, max_runtime_seconds: float
    ) -> None:
        self._state = state
        self._condition = condition
        self._max_runtime_seconds = max_runtime_seconds

    async def watch(self) -> RunResult:
        """Block until the run settled.

        Returns
        -------
        RunResult
            The result of a finished run.

        Raises
        ------
        QueueError
            If a fetch or process operation failed or the source was empty.
        QueueTimeoutError
            If the run exceeded :code:`max_runtime_seconds`.
        """
        remaining = max(self._max_runtime_seconds - self._state.elapsed(), 0)
        async with self._condition:
            timed_out = False
            try:
                async with asyncio.timeout(remaining):
                    await self._condition.wait_for(lambda: self._state.stopped)
            except TimeoutError:
                timed_out = True
            return self._settle(timed_out)

    def _settle(self, timed_out: bool) -> RunResult:
        """Called with the lock held. A timeout is recorded as the run's error, so
        operations still in flight are discarded like after any other failure."""
        state = self._state
        if state.failed:
            meta = state.summary()
            logger.error("Error in queue: %r %s", state.error, meta)
            error = state.error
            raise QueueError(error, meta) from (error if isinstance(error, BaseException) else None)
        if state.finished:
            result = RunResult(fetched=state.total, processed=state.processed, time=state.elapsed())
            logger.info("Queue done: %s", result.as_dict())
            return result
        if timed_out:
            meta = state.summary()
            error = QueueTimeoutError(meta)
            state.record_error(error)
            self._condition.notify_all()
            logger.error("Queue reached max runtime of %ss: %s", self._max_runtime_seconds, meta)
            raise error
        raise RuntimeError("Watchdog woke up without a terminal condition")  # pragma: no cover
