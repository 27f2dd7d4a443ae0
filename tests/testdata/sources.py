"""In-memory sources and sinks to drive queues in tests"""

import asyncio


class SourceFailure(Exception):
    """Raised by a source or sink configured to fail"""


class PagedSource:
    """Answers fetches like a paginated api over the items :code:`0..total-1`.

    In paged mode the cursor is a page index and the reported total is the
    number of pages.
    """

    def __init__(self, total, delay=0.0, paged=False, fail_at=None, delays=None):
        self.items = list(range(total))
        self.delay = delay
        self.delays = delays or {}
        self.paged = paged
        self.fail_at = fail_at
        self.calls = []
        self.active = 0
        self.max_active = 0

    async def __call__(self, limit, cursor, fetch_options):
        self.calls.append((limit, cursor))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(cursor, self.delay))
            if self.fail_at == cursor:
                raise SourceFailure(f"fetch at {cursor} failed")
            start = cursor * limit if self.paged else cursor
            total = -(-len(self.items) // limit) if self.paged else len(self.items)
            return {"total": total, "items": self.items[start : start + limit]}
        finally:
            self.active -= 1


class Recorder:
    """Process callable remembering every item it was called with"""

    def __init__(self, delay=0.0, fail_on=None):
        self.delay = delay
        self.fail_on = fail_on
        self.calls = []
        self.processed = []
        self.active = 0
        self.max_active = 0

    async def __call__(self, item):
        self.calls.append(item)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            if item == self.fail_on:
                raise SourceFailure(f"processing of {item} failed")
            self.processed.append(item)
        finally:
            self.active -= 1


def fetch(limit, offset, _):
    """Synchronous fetch over 12 items for the command line tests"""
    items = list(range(12))
    return {"total": len(items), "items": items[offset : offset + limit]}


def process(_):
    """Synchronous process callable for the command line tests"""


def failing_process(item):
    """Fails on the fifth item"""
    if item == 4:
        raise SourceFailure(f"processing of {item} failed")


async def slow_process(_):
    """Too slow for a short max runtime"""
    await asyncio.sleep(0.05)


ITEMS = ["a", "b", "c"]
