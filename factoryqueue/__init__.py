"""Fetch pages of items from a source and process them one by one."""

from factoryqueue.engine import (
    FactoryQueue,
    FetchOptions,
    FetchResponse,
    Progress,
    QueueError,
    QueueOptions,
    QueueTimeoutError,
    RunResult,
    SourceEmptyError,
    fetch_and_process,
)

__all__ = [
    "FactoryQueue",
    "FetchOptions",
    "FetchResponse",
    "Progress",
    "QueueError",
    "QueueOptions",
    "QueueTimeoutError",
    "RunResult",
    "SourceEmptyError",
    "fetch_and_process",
]
