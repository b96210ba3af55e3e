"""
mockhttp

HTTP test double for pytest: register expected requests with scripted
responses, serve them in a deterministic order, and verify call counts at
teardown.
"""

from .mock import (
    MockServer,
    MockConfig,
    MockMetrics,
    create_mock_server,
    Scenario,
    ResponseRecorder,
    MockRequest,
    match_query_params,
    match_headers,
    match_json_body,
    status_code,
    headers,
    json_body,
    json_file_body,
    string_body,
)
from .common import FailureReporter, MockHttpError, ServerStartError, EndpointStateError

__all__ = [
    'MockServer',
    'MockConfig',
    'MockMetrics',
    'create_mock_server',
    'Scenario',
    'ResponseRecorder',
    'MockRequest',
    'match_query_params',
    'match_headers',
    'match_json_body',
    'status_code',
    'headers',
    'json_body',
    'json_file_body',
    'string_body',
    'FailureReporter',
    'MockHttpError',
    'ServerStartError',
    'EndpointStateError',
]

__version__ = '1.0.0'
