"""
factoryqueue tracks the progress of a run with
`prometheus python client <https://github.com/prometheus/client_python>`_ metrics, e.g.
:code:`factoryqueue_number_of_processed_items_total` or :code:`factoryqueue_backlog_size`.

Metrics are only exported if a :code:`CollectorRegistry` is handed to the queue.
The command line interface does this if it is started with :code:`--metrics-port`
or with :code:`metrics.enabled` set in the configuration file.

Metrics Overview
================

.. autoclass:: factoryqueue.engine.factory_queue.FactoryQueue.Metrics
   :members:
   :undoc-members:
   :private-members:
   :inherited-members:
"""

from abc import ABC, abstractmethod
from typing import Any, Union

from attrs import asdict, define, field, validators
from prometheus_client import CollectorRegistry, Counter, Gauge


@define(kw_only=True, slots=False)
class Metric(ABC):
    """Metric base class"""

    name: str = field(validator=validators.instance_of(str))
    description: str = field(validator=validators.instance_of(str))
    labels: dict = field(
        validator=[
            validators.instance_of(dict),
            validators.deep_mapping(
                key_validator=validators.instance_of(str),
                value_validator=validators.instance_of(str),
            ),
        ],
        factory=dict,
    )
    _registry: CollectorRegistry | None = field(default=None)
    _prefix: str = field(default="factoryqueue_")
    tracker: Union[Counter, Gauge] = field(init=False, default=None)

    @property
    def fullname(self):
        """returns the fullname"""
        return f"{self._prefix}{self.name}"

    def init_tracker(self) -> None:
        """initializes the tracker and registers it in the registry if one is given"""
        try:
            if isinstance(self, CounterMetric):
                self.tracker = Counter(
                    name=self.fullname,
                    documentation=self.description,
                    labelnames=self.labels.keys(),
                    registry=self._registry,
                )
            if isinstance(self, GaugeMetric):
                self.tracker = Gauge(
                    name=self.fullname,
                    documentation=self.description,
                    labelnames=self.labels.keys(),
                    registry=self._registry,
                )
        except ValueError as error:
            # pylint: disable=protected-access
            self.tracker = self._registry._names_to_collectors.get(self.fullname)
            # pylint: enable=protected-access
            if not isinstance(self.tracker, METRIC_TO_COLLECTOR_TYPE[type(self)]):
                raise ValueError(
                    f"Metric {self.fullname} already exists with different type"
                ) from error
        self.tracker.labels(**self.labels)

    @abstractmethod
    def __add__(self, other):
        """Add"""


@define(kw_only=True)
class CounterMetric(Metric):
    """Wrapper for prometheus Counter metric"""

    def __add__(self, other: Any) -> "CounterMetric":
        self.tracker.labels(**self.labels).inc(other)
        return self


@define(kw_only=True)
class GaugeMetric(Metric):
    """Wrapper for prometheus Gauge metric"""

    def __add__(self, other: Any) -> "GaugeMetric":
        self.tracker.labels(**self.labels).set(other)
        return self


METRIC_TO_COLLECTOR_TYPE = {
    CounterMetric: Counter,
    GaugeMetric: Gauge,
}


@define(kw_only=True)
class Metrics:
    """Base class for a group of metrics sharing labels and registry"""

    _labels: dict
    _registry: CollectorRegistry | None = None

    def __attrs_post_init__(self):
        for attribute in asdict(self, recurse=False):
            attribute = getattr(self, attribute)
            if isinstance(attribute, Metric):
                attribute.labels = self._labels
                attribute._registry = self._registry  # pylint: disable=protected-access
                attribute.init_tracker()
