"""
mockhttp Responders

Composable response-construction steps. A responder is any callable that
takes a ResponseRecorder and mutates its headers, status code or body.

Example:
    server.post('/users').respond(
        json_body({'id': 1}),
        status_code(201),
    )
"""

from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Union

from .recorder import ResponseRecorder
from ..common import MultiValue, normalize_multi_values, to_json_bytes


Responder = Callable[[ResponseRecorder], None]

JSON_CONTENT_TYPE = 'application/json'


def status_code(code: int) -> Responder:
    """Responder that defines the response status code."""
    def responder(recorder: ResponseRecorder):
        recorder.write_header(code)
    return responder


def headers(values: Mapping[str, MultiValue]) -> Responder:
    """Responder that appends response headers; values may be lists."""
    normalized = normalize_multi_values(values)

    def responder(recorder: ResponseRecorder):
        for name, items in normalized.items():
            for item in items:
                recorder.headers.append(name, item)
    return responder


def json_body(value: Any) -> Responder:
    """
    Responder that defines the response body as JSON.

    Args:
        value: A JSON document as str/bytes, or any json-serializable object
    """
    content = to_json_bytes(value)

    def responder(recorder: ResponseRecorder):
        recorder.headers.append('Content-Type', JSON_CONTENT_TYPE)
        recorder.write(content)
    return responder


def json_file_body(file_path: Union[str, Path]) -> Responder:
    """
    Responder that defines the response body as the content of a JSON file.

    The file is read when the responder is declared, so a missing fixture
    fails the test during setup rather than while serving.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"JSON body file not found: {path}")
    content = path.read_bytes()

    def responder(recorder: ResponseRecorder):
        recorder.headers.append('Content-Type', JSON_CONTENT_TYPE)
        recorder.write(content)
    return responder


def string_body(text: str) -> Responder:
    """Responder that defines a raw string response body."""
    content = text.encode('utf-8')

    def responder(recorder: ResponseRecorder):
        recorder.write(content)
    return responder


def apply_responders(responders: Iterable[Responder], recorder: ResponseRecorder) -> ResponseRecorder:
    """Apply responders in declaration order."""
    for responder in responders:
        responder(recorder)
    return recorder
