"""Shared fixtures for mockhttp tests."""

import socket

import pytest

from mockhttp.common import FailureReporter
from mockhttp.mock.server import MockConfig, MockServer


pytest_plugins = ["pytester"]


@pytest.fixture
def reporter():
    """Fresh failure channel, inspected by the test itself."""
    return FailureReporter(name="test")


@pytest.fixture
def server(reporter):
    """Unstarted MockServer; its listener is always released after the test."""
    mock = MockServer(reporter=reporter)
    yield mock
    mock.teardown()


@pytest.fixture
def free_port():
    """A TCP port that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(('127.0.0.1', 0))
        return sock.getsockname()[1]


@pytest.fixture
def static_server(reporter, free_port):
    mock = MockServer(config=MockConfig(port=free_port), reporter=reporter)
    yield mock
    mock.teardown()
