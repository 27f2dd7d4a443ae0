# pylint: disable=missing-docstring
import pytest

from factoryqueue.abc.exceptions import InvalidConfigurationError
from factoryqueue.engine.options import (
    FetchOptions,
    QueueOptions,
    build_options,
    is_array_source,
    resolve_options,
)


def fetch(limit, offset, _):
    return {"total": 0, "items": []}


class TestFetchOptions:
    def test_defaults(self):
        options = FetchOptions()
        assert options.limit == 50
        assert options.offset == 0
        assert options.max_limit is None
        assert options.paged is False
        assert options.total is None
        assert options.fetch_timeout == 0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"limit": 0},
            {"limit": "5"},
            {"offset": -1},
            {"max_limit": 0},
            {"total": -1},
            {"paged": "yes"},
            {"fetch_timeout": -5},
        ],
    )
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises((TypeError, ValueError)):
            FetchOptions(**kwargs)


class TestQueueOptions:
    def test_defaults(self):
        options = QueueOptions()
        assert options.request_limit == 1
        assert options.processing_limit == 1
        assert options.queue_limit == 1000
        assert options.max_runtime_seconds == 15000
        assert options.process_timeout == 0
        assert options.preserve_order is False
        assert options.shutdown_timeout_s == 5.0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"request_limit": 0},
            {"processing_limit": -1},
            {"queue_limit": 0},
            {"max_runtime_seconds": 0},
            {"process_timeout": -1},
            {"shutdown_timeout_s": -1},
        ],
    )
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises((TypeError, ValueError)):
            QueueOptions(**kwargs)


class TestBuildOptions:
    def test_none_gives_defaults(self):
        assert build_options(QueueOptions, None) == QueueOptions()

    def test_instance_is_passed_through(self):
        options = FetchOptions(limit=3)
        assert build_options(FetchOptions, options) is options

    def test_mapping_is_laid_over_defaults(self):
        options = build_options(QueueOptions, {"processing_limit": 4})
        assert options.processing_limit == 4
        assert options.request_limit == 1

    def test_unknown_key_raises(self):
        with pytest.raises(InvalidConfigurationError, match="Unknown FetchOptions option"):
            build_options(FetchOptions, {"limt": 3})

    def test_invalid_value_raises_configuration_error(self):
        with pytest.raises(InvalidConfigurationError, match="Invalid FetchOptions"):
            build_options(FetchOptions, {"limit": 0})

    def test_non_mapping_raises(self):
        with pytest.raises(InvalidConfigurationError, match="must be a mapping"):
            build_options(QueueOptions, [1, 2])


class TestResolveOptions:
    def test_callable_source_runs_in_fetch_mode(self):
        options = resolve_options(fetch, {"limit": 10})
        assert not options.array_mode
        assert options.items is None
        assert options.fetch.limit == 10
        assert options.fetch.total is None

    def test_sequence_source_runs_in_array_mode(self):
        options = resolve_options(("a", "b", "c"), {"total": 99})
        assert options.array_mode
        assert options.items == ["a", "b", "c"]
        assert options.fetch.total == 3

    def test_empty_sequence_is_array_mode(self):
        options = resolve_options([])
        assert options.array_mode
        assert options.fetch.total == 0

    @pytest.mark.parametrize("source", ["abc", b"abc", 42, None, {"a": 1}])
    def test_rejects_other_sources(self, source):
        with pytest.raises(InvalidConfigurationError, match="Source must be"):
            resolve_options(source)

    @pytest.mark.parametrize(
        "source, expected",
        [([1], True), ((1,), True), (range(3), True), ("text", False), (iter([1]), False)],
    )
    def test_is_array_source(self, source, expected):
        assert is_array_source(source) is expected
