"""
mockhttp Request Matchers

Composable request validators. A matcher is any callable taking the
FailureReporter of the running test and the MockRequest being served. It
records a failure on mismatch and never raises, so the configured response
is still returned.

Example:
    server.get(
        '/search',
        match_query_params({'q': 'python'}),
        match_headers({'Authorization': 'Bearer token'}),
    ).respond(status_code(200))
"""

import json
from typing import Any, Callable, Mapping

from .request import MockRequest
from ..common import FailureReporter, MultiValue, normalize_multi_values


Matcher = Callable[[FailureReporter, MockRequest], None]


def match_query_params(expected: Mapping[str, MultiValue]) -> Matcher:
    """
    Matcher asserting the full query string equals the expected values.

    Args:
        expected: Parameter name to value or list of values
    """
    normalized = normalize_multi_values(expected)

    def matcher(reporter: FailureReporter, request: MockRequest):
        if request.query_params != normalized:
            reporter.error(
                f"query params mismatch for {request.method} {request.path}: "
                f"expected {normalized}, got {request.query_params}"
            )
    return matcher


def match_headers(expected: Mapping[str, MultiValue]) -> Matcher:
    """
    Matcher asserting the request carries every expected header.

    Header names are compared case-insensitively; other request headers are
    ignored.
    """
    normalized = normalize_multi_values(expected, lower_keys=True)

    def matcher(reporter: FailureReporter, request: MockRequest):
        for name, values in normalized.items():
            actual = request.headers.get(name)
            if actual != values:
                reporter.error(
                    f"header {name!r} mismatch for {request.method} {request.path}: "
                    f"expected {values}, got {actual}"
                )
    return matcher


def match_json_body(expected: Any) -> Matcher:
    """
    Matcher asserting the request body is semantically equal JSON.

    Args:
        expected: A JSON document as str/bytes, or the equivalent Python value
    """
    if isinstance(expected, (str, bytes)):
        expected_value = json.loads(expected)
    else:
        expected_value = expected

    def matcher(reporter: FailureReporter, request: MockRequest):
        try:
            actual = json.loads(request.body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            reporter.error(
                f"request body of {request.method} {request.path} is not valid JSON: {e}"
            )
            return

        if actual != expected_value:
            reporter.error(
                f"JSON body mismatch for {request.method} {request.path}: "
                f"expected {json.dumps(expected_value, sort_keys=True)}, "
                f"got {json.dumps(actual, sort_keys=True)}"
            )
    return matcher
