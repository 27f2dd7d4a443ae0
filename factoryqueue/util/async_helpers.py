"""A collection of helper utilities for async code"""

import asyncio
import logging
from collections.abc import Callable, Collection, Coroutine
from typing import Any, ParamSpec, TypeVar

T = TypeVar("T")
P = ParamSpec("P")

logger = logging.getLogger("AsyncHelpers")


def create_task(
    factory: Callable[P, Coroutine[Any, Any, T]], *args: P.args, **kwargs: P.kwargs
) -> asyncio.Task[T]:
    """
    Wraps :code:`asyncio.create_task` to automatically assign a name derived from
    the factory, e.g. :code:`FetchScheduler.run`.

    Parameters
    ----------
    factory : Callable[P, Coroutine[Any, Any, T]]
        The coroutine function to run as task.

    Returns
    -------
    asyncio.Task[T]
        The scheduled task.
    """
    factory_self = getattr(factory, "__self__", None)
    name = (
        f"{factory_self.__class__.__name__}.{factory.__name__}"
        if factory_self is not None
        else f"{factory.__name__}"
    )
    return asyncio.create_task(factory(*args, **kwargs), name=name)


async def cancel_task_and_wait(task: asyncio.Task[T], timeout_s: float) -> None:
    """Cancels the given task and waits for it to actually stop.
    Raises a :code:`TimeoutError` if timeout expires.

    Parameters
    ----------
    task : asyncio.Task[T]
        The task to cancel
    timeout_s : float
        The timeout in seconds to wait

    Raises
    ------
    TimeoutError
        Raised if the timeout expires and the task is still not done.
    """
    task.cancel()
    done, _ = await asyncio.wait([task], timeout=timeout_s)
    if not done:
        raise TimeoutError(f"Task {task.get_name()} did not stop in time after cancellation")


async def drain_tasks(tasks: Collection[asyncio.Task[Any]], timeout_s: float) -> None:
    """Gives tasks :code:`timeout_s` seconds to finish and cancels the rest.

    Results and exceptions of the tasks are not propagated.
    """
    tasks = [task for task in tasks if not task.done()]
    if not tasks:
        return
    logger.debug("waiting for termination of %d tasks", len(tasks))
    pending = set(tasks)
    if timeout_s > 0:
        _, pending = await asyncio.wait(tasks, timeout=timeout_s)
    if pending:
        logger.debug(
            "[%d/%d] did not stop gracefully. Cancelling: [%s]",
            len(pending),
            len(tasks),
            ", ".join(map(asyncio.Task.get_name, pending)),
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
