"""Adapters around the fetch and process callables supplied by the caller."""

import asyncio
import inspect
from collections.abc import Mapping
from typing import Any

from factoryqueue.engine.exceptions import InvalidFetchResponseError
from factoryqueue.engine.options import FetchOptions, QueueOptions
from factoryqueue.engine.types import FetchCallable, FetchResponse, ProcessCallable


async def _call(function, *args) -> Any:
    result = function(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _hold_back(milliseconds: int | float) -> None:
    if milliseconds:
        await asyncio.sleep(milliseconds / 1000)


def to_fetch_response(response: Any) -> FetchResponse:
    """Normalize what a fetch callable returned into a :code:`FetchResponse`.

    Accepts a :code:`FetchResponse`, a mapping with :code:`total` and :code:`items`
    keys or an object exposing these attributes.
    """
    if isinstance(response, FetchResponse):
        return response
    if isinstance(response, Mapping):
        total, items = response.get("total"), response.get("items")
    else:
        total, items = getattr(response, "total", None), getattr(response, "items", None)
    if items is None:
        items = []
    try:
        return FetchResponse(total=total, items=items)
    except (TypeError, ValueError) as error:
        raise InvalidFetchResponseError(response) from error


class FetchCapability:
    """Calls the fetch callable with :code:`(limit, cursor, fetch_options)`."""

    def __init__(self, fetch: FetchCallable, options: FetchOptions) -> None:
        self._fetch = fetch
        self._options = options

    async def __call__(self, limit: int, cursor: int) -> FetchResponse:
        response = to_fetch_response(await _call(self._fetch, limit, cursor, self._options))
        await _hold_back(self._options.fetch_timeout)
        return response


class ProcessCapability:
    """Calls the process callable with a single item.

    :code:`process_timeout` is not part of the call. The process scheduler awaits
    :code:`hold_back` after counting the item, before it frees the concurrency slot.
    """

    def __init__(self, process: ProcessCallable, options: QueueOptions) -> None:
        self._process = process
        self._options = options

    async def __call__(self, item: Any) -> None:
        await _call(self._process, item)

    async def hold_back(self) -> None:
        """Wait for :code:`process_timeout` milliseconds."""
        await _hold_back(self._options.process_timeout)
