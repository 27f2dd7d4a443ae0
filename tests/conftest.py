"""Global configuration and fixtures for all pytest-based tests"""

import pytest
from prometheus_client import CollectorRegistry

from testdata.sources import PagedSource, Recorder


@pytest.fixture(name="registry")
def fixture_registry():
    return CollectorRegistry()


@pytest.fixture(name="recorder")
def fixture_recorder():
    return Recorder()


@pytest.fixture(name="source")
def fixture_source():
    return PagedSource(10)
