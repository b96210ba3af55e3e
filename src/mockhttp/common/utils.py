"""
mockhttp Common Utilities

Shared helpers for counters, multi-valued maps and JSON handling.
"""

import json
import threading
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union


MultiValue = Union[str, Iterable[str]]


class AtomicCounter:
    """
    Lock-guarded integer counter.

    increment() returns the value held *before* the increment, so concurrent
    callers each receive a distinct index with no gaps or duplicates.

    Example:
        counter = AtomicCounter()
        first = counter.increment()   # 0
        second = counter.increment()  # 1
        counter.value                 # 2
    """

    def __init__(self, initial: int = 0):
        self._value = initial
        self._lock = threading.Lock()

    def increment(self) -> int:
        with self._lock:
            previous = self._value
            self._value += 1
            return previous

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def __repr__(self) -> str:
        return f"AtomicCounter({self.value})"


def endpoint_name(method: str, path: str) -> str:
    """Build the display name of an endpoint, e.g. 'GET /users'."""
    return f"{method.upper()} {path}"


def normalize_multi_values(
    values: Mapping[str, MultiValue],
    lower_keys: bool = False
) -> Dict[str, List[str]]:
    """
    Normalize a mapping whose values are a single string or a list of strings.

    Args:
        values: Mapping such as {'foo': 'bar'} or {'foo': ['bar', 'baz']}
        lower_keys: Lower-case keys (for case-insensitive header names)

    Returns:
        Dictionary mapping every key to a list of strings

    Example:
        normalize_multi_values({'X-App': 'foo'}, lower_keys=True)
        # {'x-app': ['foo']}
    """
    normalized: Dict[str, List[str]] = {}
    for key, value in values.items():
        name = key.lower() if lower_keys else key
        if isinstance(value, (str, bytes)):
            items = [value.decode() if isinstance(value, bytes) else value]
        else:
            items = [str(v) for v in value]
        normalized.setdefault(name, []).extend(items)
    return normalized


def group_pairs(pairs: Iterable[Tuple[str, str]], lower_keys: bool = False) -> Dict[str, List[str]]:
    """Group (key, value) pairs into a multi-valued dictionary, keeping order."""
    grouped: Dict[str, List[str]] = {}
    for key, value in pairs:
        name = key.lower() if lower_keys else key
        grouped.setdefault(name, []).append(value)
    return grouped


def to_json_bytes(value: Any) -> bytes:
    """
    Encode a response body value as JSON bytes.

    Strings and bytes are taken as already-encoded JSON documents.
    """
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode('utf-8')
    return json.dumps(value).encode('utf-8')


def safe_json_parse(json_string: Union[str, bytes, None], default: Any = None) -> Any:
    """
    Safely parse JSON string with error handling.

    Args:
        json_string: JSON string to parse
        default: Default value to return if parsing fails

    Returns:
        Parsed JSON object, or default if parsing fails
    """
    if not json_string:
        return default

    try:
        return json.loads(json_string)
    except (json.JSONDecodeError, TypeError, ValueError):
        return default
