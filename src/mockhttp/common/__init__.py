"""
mockhttp Common Utilities

Shared utilities, errors and failure reporting used across mockhttp modules.
"""

from .errors import MockHttpError, ServerStartError, EndpointStateError
from .reporting import FailureReporter
from .utils import (
    AtomicCounter,
    MultiValue,
    endpoint_name,
    normalize_multi_values,
    group_pairs,
    to_json_bytes,
    safe_json_parse,
)

__all__ = [
    'MockHttpError',
    'ServerStartError',
    'EndpointStateError',
    'FailureReporter',
    'AtomicCounter',
    'MultiValue',
    'endpoint_name',
    'normalize_multi_values',
    'group_pairs',
    'to_json_bytes',
    'safe_json_parse',
]
