"""
Tests for the mockhttp pytest plugin
"""


PASSING_TEST = """
import httpx
from mockhttp import status_code

def test_isbn(mock_server):
    mock_server.get('/isbn').times(2).respond(status_code(403))
    mock_server.get('/isbn').respond(status_code(200))
    mock_server.start()

    statuses = [httpx.get(mock_server.url + '/isbn').status_code for _ in range(3)]

    assert statuses == [403, 403, 200]
"""

UNVERIFIED_TEST = """
import httpx
from mockhttp import status_code

def test_missing_calls(mock_server):
    mock_server.get('/get').respond(status_code(204))
    mock_server.get('/other').respond(status_code(204))
    mock_server.start()

    httpx.post(mock_server.url + '/unregistered-path')
"""


class TestMockServerFixture:
    """Test the mock_server fixture end to end."""

    def test_passing_expectations(self, pytester):
        pytester.makepyfile(PASSING_TEST)

        result = pytester.runpytest('-p', 'no:cacheprovider')

        result.assert_outcomes(passed=1)

    def test_failures_reported_at_teardown(self, pytester):
        pytester.makepyfile(UNVERIFIED_TEST)

        result = pytester.runpytest('-p', 'no:cacheprovider')

        result.assert_outcomes(passed=1, errors=1)
        result.stdout.fnmatch_lines([
            '*3 failure(s)*',
            '*no matching route found for POST /unregistered-path*',
            '*expected endpoint was not called: GET /get*',
            '*expected endpoint was not called: GET /other*',
        ])

    def test_config_fixture_override(self, pytester):
        pytester.makeconftest("""
import pytest
from mockhttp import MockConfig

@pytest.fixture
def mock_server_config():
    return MockConfig(log_level='error')
""")
        pytester.makepyfile("""
def test_config(mock_server):
    assert mock_server.config.log_level == 'error'
""")

        result = pytester.runpytest('-p', 'no:cacheprovider')

        result.assert_outcomes(passed=1)
