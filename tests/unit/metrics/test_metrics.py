# pylint: disable=missing-docstring
# pylint: disable=protected-access
import pytest
from attrs import define, field
from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest

from factoryqueue.engine.factory_queue import FactoryQueue
from factoryqueue.metrics import metrics
from factoryqueue.metrics.metrics import CounterMetric, GaugeMetric


class TestMetric:
    def setup_method(self):
        self.custom_registry = CollectorRegistry()

    def test_init_tracker_returns_collector(self):
        metric = CounterMetric(
            name="testmetric",
            description="empty description",
            labels={"A": "a"},
            registry=self.custom_registry,
        )
        metric.init_tracker()
        assert isinstance(metric.tracker, Counter)

    def test_init_tracker_does_not_raise_if_initialized_twice(self):
        metric1 = CounterMetric(
            name="testmetric",
            description="empty description",
            labels={"A": "a"},
            registry=self.custom_registry,
        )
        metric2 = CounterMetric(
            name="testmetric",
            description="empty description",
            labels={"A": "a"},
            registry=self.custom_registry,
        )
        metric1.init_tracker()
        metric2.init_tracker()
        assert metric1.tracker == metric2.tracker

    def test_init_tracker_raises_on_type_clash(self):
        CounterMetric(
            name="clash", description="empty", labels={"A": "a"}, registry=self.custom_registry
        ).init_tracker()
        gauge = GaugeMetric(
            name="clash", description="empty", labels={"A": "a"}, registry=self.custom_registry
        )
        with pytest.raises(ValueError, match="already exists with different type"):
            gauge.init_tracker()

    def test_fullname_is_prefixed(self):
        metric = CounterMetric(name="bla", description="empty description")
        assert metric.fullname == "factoryqueue_bla"

    def test_counter_metric_increments(self):
        metric = CounterMetric(
            name="bla",
            description="empty description",
            labels={"queue": "q1"},
            registry=self.custom_registry,
        )
        metric.init_tracker()
        metric += 1
        metric += 2
        value = self.custom_registry.get_sample_value("factoryqueue_bla_total", {"queue": "q1"})
        assert value == 3

    def test_gauge_metric_sets_value(self):
        metric = GaugeMetric(
            name="size",
            description="empty description",
            labels={"queue": "q1"},
            registry=self.custom_registry,
        )
        metric.init_tracker()
        metric += 7
        metric += 3
        assert isinstance(metric.tracker, Gauge)
        assert self.custom_registry.get_sample_value("factoryqueue_size", {"queue": "q1"}) == 3

    def test_labels_must_be_strings(self):
        with pytest.raises(TypeError):
            CounterMetric(name="bla", description="empty description", labels={"A": 1})


class TestMetrics:
    def setup_method(self):
        self.custom_registry = CollectorRegistry()

    def test_group_assigns_labels_and_registry(self):
        @define(kw_only=True)
        class Group(metrics.Metrics):
            number_of_things: CounterMetric = field(
                factory=lambda: CounterMetric(description="things", name="number_of_things")
            )

        group = Group(labels={"queue": "q1"}, registry=self.custom_registry)
        group.number_of_things += 5
        assert group.number_of_things.labels == {"queue": "q1"}
        assert (
            self.custom_registry.get_sample_value(
                "factoryqueue_number_of_things_total", {"queue": "q1"}
            )
            == 5
        )

    def test_queue_metrics_are_exposed(self):
        FactoryQueue.Metrics(labels={"queue": "exposed"}, registry=self.custom_registry)
        exposition = generate_latest(self.custom_registry).decode("utf8")
        for name in (
            "factoryqueue_number_of_fetches_total",
            "factoryqueue_number_of_fetched_items_total",
            "factoryqueue_number_of_processed_items_total",
            "factoryqueue_number_of_errors_total",
            "factoryqueue_backlog_size",
        ):
            assert f'{name}{{queue="exposed"}}' in exposition

    def test_two_queues_share_a_registry(self):
        first = FactoryQueue.Metrics(labels={"queue": "first"}, registry=self.custom_registry)
        second = FactoryQueue.Metrics(labels={"queue": "second"}, registry=self.custom_registry)
        first.number_of_errors += 1
        second.number_of_errors += 2
        sample = self.custom_registry.get_sample_value
        assert sample("factoryqueue_number_of_errors_total", {"queue": "first"}) == 1
        assert sample("factoryqueue_number_of_errors_total", {"queue": "second"}) == 2
