"""
mockhttp pytest plugin

Registered through the `pytest11` entry point, so the fixtures are available
in any project that installs mockhttp.

Example:
    def test_isbn_lookup(mock_server):
        mock_server.get('/isbn').times(2).respond(status_code(403))
        mock_server.get('/isbn').respond(status_code(200))
        mock_server.start()

        client = BookClient(base_url=mock_server.url)
        assert client.lookup_with_retries('123') == 200

    # at teardown: listener stopped, call counts verified, every failure
    # (route misses, matcher mismatches, wrong counts) fails the test
"""

from typing import Generator

import pytest

from .common import FailureReporter
from .mock import MockConfig, MockServer


@pytest.fixture
def mock_server_config() -> MockConfig:
    """Listener configuration; override this fixture to pin a port or host."""
    return MockConfig.from_env()


@pytest.fixture
def mock_server(request, mock_server_config: MockConfig) -> Generator[MockServer, None, None]:
    """
    Unstarted MockServer verified at teardown.

    Register endpoints, then call start() inside the test.
    """
    reporter = FailureReporter(name=request.node.nodeid)
    server = MockServer(config=mock_server_config, reporter=reporter)

    yield server

    failures = server.cleanup()
    if failures:
        pytest.fail(reporter.summary(), pytrace=False)
