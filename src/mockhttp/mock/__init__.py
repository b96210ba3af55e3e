"""
mockhttp Mock Server Module

Programmable HTTP test double serving scripted responses.

This module provides:
- FastAPI-based mock server with a background uvicorn listener
- Endpoint/scenario response-plan playback
- Request matchers and response builders
- Call-count verification at teardown
"""

from .server import MockServer, MockConfig, MockMetrics, create_mock_server
from .endpoint import Endpoint, EndpointState, build_response_plan
from .scenario import Scenario
from .recorder import ResponseRecorder
from .request import MockRequest
from .matcher import Matcher, match_query_params, match_headers, match_json_body
from .responder import (
    Responder,
    status_code,
    headers,
    json_body,
    json_file_body,
    string_body,
    apply_responders,
)

__all__ = [
    # Server
    'MockServer',
    'MockConfig',
    'MockMetrics',
    'create_mock_server',

    # Core
    'Endpoint',
    'EndpointState',
    'build_response_plan',
    'Scenario',
    'ResponseRecorder',
    'MockRequest',

    # Matcher
    'Matcher',
    'match_query_params',
    'match_headers',
    'match_json_body',

    # Responder
    'Responder',
    'status_code',
    'headers',
    'json_body',
    'json_file_body',
    'string_body',
    'apply_responders',
]

__version__ = '1.0.0'
