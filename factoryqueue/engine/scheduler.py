"""
Scheduler loop shared by the fetch and the process side of a queue.

A scheduler waits on the queue's condition until its admission policy holds,
admits one operation under the lock and spawns it as a task. It then loops
right away, so it keeps admitting until its concurrency limit is saturated.
Every finished operation notifies the condition, which re-arms both
schedulers. The loop ends as soon as the run stopped.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine
from typing import Any

from factoryqueue.engine.state import RunState

Spawn = Callable[..., asyncio.Task]


class Scheduler(ABC):
    """Admission loop over a shared :code:`RunState`."""

    logger: logging.Logger

    def __init__(
        self,
        state: RunState,
        condition: asyncio.Condition,
        spawn: Spawn,
        metrics: Any,
    ) -> None:
        self._state = state
        self._condition = condition
        self._spawn = spawn
        self._metrics = metrics

    @abstractmethod
    def admits(self) -> bool:
        """Whether one more operation may be started now."""

    @abstractmethod
    def _admit(self) -> tuple:
        """Reserve one operation in the run state. Called with the lock held.

        Returns the arguments for :code:`_execute`.
        """

    @abstractmethod
    def _execute(self, *args: Any) -> Coroutine[Any, Any, None]:
        """Run one admitted operation."""

    def _may_proceed(self) -> bool:
        return self._state.stopped or self.admits()

    async def run(self) -> None:
        """Admit operations until the run stopped."""
        while True:
            async with self._condition:
                await self._condition.wait_for(self._may_proceed)
                if self._state.stopped:
                    self.logger.debug("Run stopped, no more admissions")
                    return
                args = self._admit()
            self._spawn(self._execute, *args)

    def _fail(self, error: Any, context: str) -> None:
        """Record a failure. Called with the lock held."""
        if self._state.record_error(error):
            self.logger.error("%s failed: %r", context, error)
            self._metrics.number_of_errors += 1
