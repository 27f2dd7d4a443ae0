# pylint: disable=missing-docstring
from types import SimpleNamespace
from unittest import mock

import pytest

from factoryqueue.engine.capabilities import (
    FetchCapability,
    ProcessCapability,
    to_fetch_response,
)
from factoryqueue.engine.exceptions import InvalidFetchResponseError
from factoryqueue.engine.options import FetchOptions, QueueOptions
from factoryqueue.engine.types import FetchResponse


class TestToFetchResponse:
    @pytest.mark.parametrize(
        "response",
        [
            {"total": 3, "items": [1, 2]},
            SimpleNamespace(total=3, items=(1, 2)),
            FetchResponse(total=3, items=[1, 2]),
        ],
    )
    def test_accepts_pages(self, response):
        assert to_fetch_response(response) == FetchResponse(total=3, items=[1, 2])

    def test_missing_items_are_an_empty_page(self):
        assert to_fetch_response({"total": 4}).items == []

    @pytest.mark.parametrize(
        "response",
        [None, {}, {"items": [1]}, {"total": -1, "items": []}, {"total": "3", "items": []}],
    )
    def test_rejects_malformed_responses(self, response):
        with pytest.raises(InvalidFetchResponseError, match="Fetch must return"):
            to_fetch_response(response)


class TestFetchCapability:
    @pytest.mark.asyncio
    async def test_calls_fetch_with_limit_cursor_and_options(self):
        options = FetchOptions(limit=7)
        fetch = mock.MagicMock(return_value={"total": 1, "items": ["x"]})
        response = await FetchCapability(fetch, options)(7, 14)
        fetch.assert_called_once_with(7, 14, options)
        assert response.items == ["x"]

    @pytest.mark.asyncio
    async def test_awaits_coroutine_functions(self):
        async def fetch(limit, cursor, _):
            return {"total": 10, "items": list(range(cursor, cursor + limit))}

        response = await FetchCapability(fetch, FetchOptions())(2, 4)
        assert response == FetchResponse(total=10, items=[4, 5])

    @pytest.mark.asyncio
    async def test_holds_back_result_for_fetch_timeout(self):
        fetch = mock.MagicMock(return_value={"total": 1, "items": []})
        with mock.patch("asyncio.sleep", new=mock.AsyncMock()) as sleep:
            await FetchCapability(fetch, FetchOptions(fetch_timeout=250))(1, 0)
        sleep.assert_awaited_once_with(0.25)

    @pytest.mark.asyncio
    async def test_propagates_fetch_errors(self):
        fetch = mock.MagicMock(side_effect=ConnectionError("down"))
        with pytest.raises(ConnectionError, match="down"):
            await FetchCapability(fetch, FetchOptions())(1, 0)


class TestProcessCapability:
    @pytest.mark.asyncio
    async def test_calls_process_with_item(self):
        process = mock.AsyncMock()
        await ProcessCapability(process, QueueOptions())("item")
        process.assert_awaited_once_with("item")

    @pytest.mark.asyncio
    async def test_call_does_not_hold_back(self):
        process = ProcessCapability(
            mock.MagicMock(return_value=None), QueueOptions(process_timeout=100)
        )
        with mock.patch("asyncio.sleep", new=mock.AsyncMock()) as sleep:
            await process("item")
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_hold_back_waits_for_process_timeout(self):
        process = ProcessCapability(
            mock.MagicMock(return_value=None), QueueOptions(process_timeout=100)
        )
        with mock.patch("asyncio.sleep", new=mock.AsyncMock()) as sleep:
            await process.hold_back()
        sleep.assert_awaited_once_with(0.1)

    @pytest.mark.asyncio
    async def test_no_hold_back_without_process_timeout(self):
        process = ProcessCapability(mock.MagicMock(return_value=None), QueueOptions())
        with mock.patch("asyncio.sleep", new=mock.AsyncMock()) as sleep:
            await process.hold_back()
        sleep.assert_not_awaited()
