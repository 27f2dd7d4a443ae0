"""The fetch and process engine."""
# pylint: disable=unused-import

from factoryqueue.engine.exceptions import QueueError, QueueTimeoutError, SourceEmptyError
from factoryqueue.engine.factory_queue import FactoryQueue, fetch_and_process
from factoryqueue.engine.options import FetchOptions, QueueOptions
from factoryqueue.engine.types import FetchResponse, Progress, RunResult
