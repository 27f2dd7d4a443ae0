"""Exceptions raised by the queue engine."""

from typing import Any

from factoryqueue.abc.exceptions import FactoryQueueException


class SourceEmptyError(FactoryQueueException):
    """Raise if the source reports a total of zero before any total was known."""

    def __init__(self) -> None:
        super().__init__("Source is empty.")


class InvalidFetchResponseError(FactoryQueueException):
    """Raise if the fetch callable returned something that is not a page."""

    def __init__(self, response: Any) -> None:
        super().__init__(
            f"Fetch must return a mapping or object with 'total' and 'items', got {response!r}"
        )


class QueueError(FactoryQueueException):
    """Raise if a run failed. Carries the original failure and a run summary."""

    def __init__(self, error: Any, meta: dict) -> None:
        self.error = error
        self.meta = meta
        super().__init__(f"Error in queue: {error!r}", meta)

    def as_dict(self) -> dict:
        """Return the failure in its wire shape."""
        return {"error": self.error, "meta": self.meta}


class QueueTimeoutError(FactoryQueueException):
    """Raise if a run exceeded its maximum runtime."""

    kind = "timeout"

    def __init__(self, meta: dict) -> None:
        self.meta = meta
        super().__init__("maxRuntime reached.", meta)

    def as_dict(self) -> dict:
        """Return the failure in its wire shape."""
        return {"type": self.kind, "message": self.message}
