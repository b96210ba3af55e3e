"""
mockhttp Response Recorder

In-memory response sink that decouples the order responders are declared in
from the write-order-sensitive semantics of a live HTTP response.
"""

from typing import Optional

from fastapi import Response
from starlette.datastructures import MutableHeaders


NO_BODY_STATUSES = (204, 304)

class ResponseRecorder:
    """
    Accumulates the mutations of a set of responders for one request.

    Headers accumulate across responders. The status code and the body are
    overwritten by the most recent responder that sets them, so a body
    responder declared before a status responder still yields the declared
    status.

    Example:
        recorder = ResponseRecorder()
        recorder.write(b'{"result": true}')
        recorder.write_header(201)
        response = recorder.flush()   # 201 with the JSON body
    """

    def __init__(self):
        self.headers = MutableHeaders()
        self.body: bytes = b''
        self.status_code: Optional[int] = None
        self._flushed = False

    def write(self, data: bytes) -> int:
        """Record the full body, replacing anything written before."""
        if isinstance(data, str):
            data = data.encode('utf-8')
        self.body = bytes(data)
        return len(self.body)

    def write_header(self, status_code: int):
        self.status_code = status_code

    @property
    def flushed(self) -> bool:
        return self._flushed

    def flush(self) -> Response:
        """
        Build the live response: headers, then status (if set), then body
        (if non-empty). A recorder can only be flushed once.

        Returns:
            FastAPI Response carrying the recorded state

        Raises:
            RuntimeError: If the recorder was already flushed
        """
        if self._flushed:
            raise RuntimeError("ResponseRecorder already flushed")
        self._flushed = True

        response = Response()

        # Content-Length is always derived from the recorded body
        for key, value in self.headers.items():
            if key == 'content-length':
                continue
            response.headers.append(key, value)

        if self.status_code:
            response.status_code = self.status_code

        # 1xx, 204 and 304 responses carry neither a body nor a Content-Length
        if response.status_code < 200 or response.status_code in NO_BODY_STATUSES:
            del response.headers['content-length']
        elif self.body:
            response.body = self.body
            response.headers['content-length'] = str(len(self.body))

        return response
