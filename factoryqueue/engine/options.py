"""
Options
=======

A run is configured by two option sets. Both can be given as a mapping, as an
options instance or be omitted. Given values are laid over the defaults.

..  code-block:: yaml
    :caption: Example of both option sets in a configuration file

    fetch:
        limit: 50
        offset: 0
        paged: false
        fetch_timeout: 0
    queue:
        request_limit: 1
        processing_limit: 2
        queue_limit: 150
        max_runtime_seconds: 3600

If the source handed to the queue is a finite sequence instead of a fetch
callable, the queue runs in *array mode*: the sequence becomes the backlog,
:code:`total` is its length and no fetch is ever issued.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from attrs import define, evolve, field, fields, validators

from factoryqueue.abc.exceptions import InvalidConfigurationError
from factoryqueue.util.defaults import (
    DEFAULT_FETCH_LIMIT,
    DEFAULT_FETCH_OFFSET,
    DEFAULT_MAX_RUNTIME_SECONDS,
    DEFAULT_PROCESSING_LIMIT,
    DEFAULT_QUEUE_LIMIT,
    DEFAULT_REQUEST_LIMIT,
    DEFAULT_SHUTDOWN_TIMEOUT,
)

logger = logging.getLogger("Options")

_NUMBER = (int, float)


@define(kw_only=True, frozen=True)
class FetchOptions:
    """Options for the data source. This object is passed to the fetch callable."""

    limit: int = field(
        validator=[validators.instance_of(int), validators.gt(0)], default=DEFAULT_FETCH_LIMIT
    )
    """Number of items requested per fetch (page size). Defaults to :code:`50`."""
    offset: int = field(
        validator=[validators.instance_of(int), validators.ge(0)], default=DEFAULT_FETCH_OFFSET
    )
    """Starting cursor. Increased by :code:`limit` after every fetch, or by 1 if
    :code:`paged` is set. Defaults to :code:`0`."""
    max_limit: int | None = field(
        validator=validators.optional([validators.instance_of(int), validators.gt(0)]),
        default=None,
    )
    """Hard cap on the cursor and on the number of processed items."""
    paged: bool = field(validator=validators.instance_of(bool), default=False)
    """Treat :code:`limit`/:code:`offset` as per-page/page. In paged mode the source
    reports its :code:`total` as a number of pages."""
    total: int | None = field(
        validator=validators.optional([validators.instance_of(int), validators.ge(0)]),
        default=None,
    )
    """Forced total. Skips discovery of the total from the fetch responses."""
    fetch_timeout: int | float = field(
        validator=[validators.instance_of(_NUMBER), validators.ge(0)], default=0
    )
    """Milliseconds to hold back each fetch result. Can be used to throttle requests."""


@define(kw_only=True, frozen=True)
class QueueOptions:
    """Options for concurrency, backlog size and runtime."""

    request_limit: int = field(
        validator=[validators.instance_of(int), validators.gt(0)], default=DEFAULT_REQUEST_LIMIT
    )
    """Number of concurrent fetches."""
    processing_limit: int = field(
        validator=[validators.instance_of(int), validators.gt(0)],
        default=DEFAULT_PROCESSING_LIMIT,
    )
    """Number of concurrent process operations."""
    queue_limit: int = field(
        validator=[validators.instance_of(int), validators.gt(0)], default=DEFAULT_QUEUE_LIMIT
    )
    """Soft backlog limit. New fetches are held back while the projected backlog
    would reach this number of items. It is advisory, not a hard cap."""
    max_runtime_seconds: int | float = field(
        validator=[validators.instance_of(_NUMBER), validators.gt(0)],
        default=DEFAULT_MAX_RUNTIME_SECONDS,
    )
    """After this many seconds the run is aborted with a timeout error."""
    process_timeout: int | float = field(
        validator=[validators.instance_of(_NUMBER), validators.ge(0)], default=0
    )
    """Milliseconds to hold back each process result. Can be used to throttle processing."""
    preserve_order: bool = field(validator=validators.instance_of(bool), default=False)
    """Insert fetched pages into the backlog in the order they were requested
    instead of the order they arrived. Only matters with :code:`request_limit > 1`."""
    shutdown_timeout_s: int | float = field(
        validator=[validators.instance_of(_NUMBER), validators.ge(0)],
        default=DEFAULT_SHUTDOWN_TIMEOUT,
    )
    """Seconds in-flight operations get to finish after the run settled before they
    are cancelled."""


@define(kw_only=True, frozen=True)
class ResolvedOptions:
    """The effective configuration of one run."""

    fetch: FetchOptions
    queue: QueueOptions
    items: list | None = None
    """The pre-materialized items in array mode, :code:`None` otherwise."""

    @property
    def array_mode(self) -> bool:
        """Whether the source is a finite sequence instead of a fetch callable."""
        return self.items is not None


def is_array_source(source: Any) -> bool:
    """Return whether the source is a finite, already materialized sequence."""
    return isinstance(source, Sequence) and not isinstance(source, (str, bytes, bytearray))


def build_options(options_class: type, given: Any) -> Any:
    """Lay a mapping of options over the defaults of :code:`options_class`."""
    if given is None:
        return options_class()
    if isinstance(given, options_class):
        return given
    if not isinstance(given, Mapping):
        raise InvalidConfigurationError(
            f"{options_class.__name__} must be a mapping, got {type(given).__name__}"
        )
    known = {attribute.name for attribute in fields(options_class)}
    unknown = sorted(set(given) - known)
    if unknown:
        raise InvalidConfigurationError(
            f"Unknown {options_class.__name__} option(s): {', '.join(map(str, unknown))}"
        )
    try:
        return options_class(**given)
    except (TypeError, ValueError) as error:
        raise InvalidConfigurationError(f"Invalid {options_class.__name__}: {error}") from error


def resolve_options(
    source: Any,
    fetch_options: Mapping | FetchOptions | None = None,
    queue_options: Mapping | QueueOptions | None = None,
) -> ResolvedOptions:
    """Lay the given options over the defaults and detect array mode.

    Parameters
    ----------
    source : Callable | Sequence
        The fetch callable or a finite sequence of items.
    fetch_options : Mapping | FetchOptions | None
        Partial fetch options.
    queue_options : Mapping | QueueOptions | None
        Partial queue options.

    Returns
    -------
    ResolvedOptions
        Both fully populated option sets and, in array mode, the items.

    Raises
    ------
    InvalidConfigurationError
        If an option is unknown or invalid or the source is neither callable nor a sequence.
    """
    fetch = build_options(FetchOptions, fetch_options)
    queue = build_options(QueueOptions, queue_options)
    if callable(source):
        return ResolvedOptions(fetch=fetch, queue=queue)
    if is_array_source(source):
        items = list(source)
        logger.debug("Source is a sequence of %d items, running in array mode", len(items))
        return ResolvedOptions(fetch=evolve(fetch, total=len(items)), queue=queue, items=items)
    raise InvalidConfigurationError(
        f"Source must be a fetch callable or a sequence, got {type(source).__name__}"
    )
