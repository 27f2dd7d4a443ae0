"""
FactoryQueue
============

A queue where items are fetched from a source and then processed by some action.

* A fetch callable and a process callable are passed.
* The queue keeps track of the cursor and advances it until the total number of
  items is fetched.
* The process callable is invoked for every fetched item, one item per call.
* Via options, the number of concurrent fetches and concurrent process
  operations is bounded and the backlog of fetched items is throttled.

..  code-block:: python
    :caption: Example

    async def fetch(limit, offset, fetch_options):
        page = await api.get_items(limit=limit, offset=offset)
        return {"total": page.total, "items": page.items}

    async def process(item):
        await database.store(item)

    result = await fetch_and_process(
        fetch,
        process,
        fetch_options={"limit": 50},
        queue_options={"processing_limit": 2, "queue_limit": 150},
        on_progress=print,
    )
"""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from attrs import define, field
from prometheus_client import CollectorRegistry

from factoryqueue.engine.backlog import Backlog
from factoryqueue.engine.capabilities import FetchCapability, ProcessCapability
from factoryqueue.engine.fetcher import FetchScheduler
from factoryqueue.engine.options import FetchOptions, QueueOptions, resolve_options
from factoryqueue.engine.processor import ProcessScheduler
from factoryqueue.engine.state import RunState
from factoryqueue.engine.types import FetchCallable, ProcessCallable, ProgressCallback, RunResult
from factoryqueue.engine.watchdog import TerminationWatchdog
from factoryqueue.metrics import metrics
from factoryqueue.metrics.metrics import CounterMetric, GaugeMetric
from factoryqueue.util.async_helpers import cancel_task_and_wait, create_task, drain_tasks

logger = logging.getLogger("FactoryQueue")

LOOP_CANCEL_TIMEOUT_S = 1.0


class FactoryQueue:
    """Fetches pages from a source and processes their items one by one.

    An instance performs exactly one run.
    """

    @define(kw_only=True)
    class Metrics(metrics.Metrics):
        """Tracks statistics about a queue run"""

        number_of_fetches: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of finished fetch operations",
                name="number_of_fetches",
            )
        )
        """Number of finished fetch operations"""
        number_of_fetched_items: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of items returned by the source",
                name="number_of_fetched_items",
            )
        )
        """Number of items returned by the source"""
        number_of_processed_items: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of successfully processed items",
                name="number_of_processed_items",
            )
        )
        """Number of successfully processed items"""
        number_of_errors: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of failures that aborted a run",
                name="number_of_errors",
            )
        )
        """Number of failures that aborted a run"""
        backlog_size: GaugeMetric = field(
            factory=lambda: GaugeMetric(
                description="Number of fetched items waiting to be processed",
                name="backlog_size",
            )
        )
        """Number of fetched items waiting to be processed"""

    def __init__(
        self,
        source: FetchCallable | Sequence,
        process: ProcessCallable,
        fetch_options: Mapping | FetchOptions | None = None,
        queue_options: Mapping | QueueOptions | None = None,
        on_progress: ProgressCallback | None = None,
        name: str = "factoryqueue",
        registry: CollectorRegistry | None = None,
    ) -> None:
        self.options = resolve_options(source, fetch_options, queue_options)
        self.name = name
        self.metrics = self.Metrics(labels={"queue": name}, registry=registry)
        self._source = source
        self._process = process
        self._on_progress = on_progress
        self._state: RunState | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._started = False

    @property
    def state(self) -> RunState | None:
        """The state of the run, :code:`None` before it started."""
        return self._state

    def _spawn(self, factory, *args) -> asyncio.Task:
        task = create_task(factory, *args)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _create_state(self) -> RunState:
        fetch = self.options.fetch
        total = fetch.total
        if total is not None and fetch.max_limit is not None:
            total = min(total, fetch.max_limit)
        return RunState(
            cursor=fetch.offset,
            start=0 if self.options.array_mode else fetch.offset,
            page_size=fetch.limit,
            paged=fetch.paged,
            total=total,
            max_limit=fetch.max_limit,
            backlog=Backlog(self.options.items or ()),
        )

    def _create_schedulers(self, state: RunState, condition: asyncio.Condition) -> list:
        common = {
            "state": state,
            "condition": condition,
            "spawn": self._spawn,
            "metrics": self.metrics,
        }
        schedulers: list = [
            ProcessScheduler(
                process=ProcessCapability(self._process, self.options.queue),
                queue_options=self.options.queue,
                on_progress=self._on_progress,
                **common,
            )
        ]
        if not self.options.array_mode:
            schedulers.append(
                FetchScheduler(
                    fetch=FetchCapability(self._source, self.options.fetch),
                    fetch_options=self.options.fetch,
                    queue_options=self.options.queue,
                    **common,
                )
            )
        return schedulers

    async def run(self) -> RunResult:
        """Run the queue until all items are processed, an operation failed or
        the maximum runtime is exceeded.

        Returns
        -------
        RunResult
            Status, fetched total, processed count and elapsed seconds.

        Raises
        ------
        QueueError
            If a fetch or process operation failed or the source reported to be empty.
        QueueTimeoutError
            If the run took longer than :code:`max_runtime_seconds`.
        """
        if self._started:
            raise RuntimeError(f"FactoryQueue '{self.name}' can only run once")
        self._started = True
        options = self.options
        if options.array_mode and not options.items:
            logger.info("Source is an empty sequence, nothing to process")
            return RunResult(fetched=0, processed=0, time=0.0)
        state = self._state = self._create_state()
        if state.completion_reached:
            state.mark_finished()
        condition = asyncio.Condition()
        logger.debug(
            "Starting queue '%s' with fetch options %s and queue options %s",
            self.name,
            options.fetch,
            options.queue,
        )
        schedulers = self._create_schedulers(state, condition)
        loops = [create_task(scheduler.run) for scheduler in schedulers]
        watchdog = TerminationWatchdog(state, condition, options.queue.max_runtime_seconds)
        try:
            return await watchdog.watch()
        finally:
            await self._shut_down(loops)

    async def _shut_down(self, loops: list[asyncio.Task]) -> None:
        for loop in loops:
            await cancel_task_and_wait(loop, LOOP_CANCEL_TIMEOUT_S)
        await drain_tasks(self._tasks, self.options.queue.shutdown_timeout_s)
        logger.debug("Queue '%s' shut down", self.name)


async def fetch_and_process(
    source: FetchCallable | Sequence,
    process: ProcessCallable,
    fetch_options: Mapping | FetchOptions | None = None,
    queue_options: Mapping | QueueOptions | None = None,
    on_progress: ProgressCallback | None = None,
    **kwargs,
) -> RunResult:
    """Fetch all items from :code:`source` and process them with :code:`process`.

    Parameters
    ----------
    source : FetchCallable | Sequence
        Called as :code:`source(limit, cursor, fetch_options)` and returns (or resolves to)
        a mapping with :code:`total` and :code:`items`. A finite sequence is processed
        as is without fetching.
    process : ProcessCallable
        Called with a single item. May be a coroutine function.
    fetch_options : Mapping | FetchOptions | None
        Options for the source, see :code:`FetchOptions`.
    queue_options : Mapping | QueueOptions | None
        Options for concurrency and runtime, see :code:`QueueOptions`.
    on_progress : ProgressCallback | None
        Called with a :code:`Progress` after every processed item.

    Returns
    -------
    RunResult
        The outcome of the finished run.
    """
    queue = FactoryQueue(source, process, fetch_options, queue_options, on_progress, **kwargs)
    return await queue.run()
