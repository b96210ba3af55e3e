"""
mockhttp Scenario

One mocked case of an endpoint: request matchers, response responders and
the number of times the case is expected to be served.
"""

import logging
from typing import List, Optional, Sequence

from fastapi import Response

from .matcher import Matcher
from .recorder import ResponseRecorder
from .request import MockRequest
from .responder import Responder, apply_responders
from ..common import AtomicCounter, EndpointStateError, FailureReporter


logger = logging.getLogger("mockhttp.mock.scenario")


class Scenario:
    """
    A mocked case belonging to exactly one endpoint.

    Scenarios are returned by the MockServer registration methods and are
    configured by chaining:

        server.get('/isbn').times(2).respond(status_code(403))
        server.get('/isbn').respond(status_code(200))

    times() and respond() are only valid before the server starts; the
    execution counter is the only state that changes while serving.
    """

    def __init__(self, name: str, matchers: Optional[Sequence[Matcher]] = None):
        """
        Initialize scenario.

        Args:
            name: Name of the owning endpoint, e.g. 'GET /isbn'
            matchers: Request validators run on every served request
        """
        self.name = name
        self.matchers: List[Matcher] = list(matchers or [])
        self.responders: List[Responder] = []
        self.expected_times = 1
        self._calls = AtomicCounter()
        self._frozen = False

    def times(self, n: int) -> 'Scenario':
        """
        Set how many requests this scenario is expected to serve.

        Raises:
            ValueError: If n is lower than 1
            EndpointStateError: If the server already started
        """
        self._ensure_mutable()
        if not isinstance(n, int) or isinstance(n, bool) or n < 1:
            raise ValueError(f"times must be an integer >= 1, got {n!r}")
        self.expected_times = n
        return self

    def respond(self, *responders: Responder) -> 'Scenario':
        """Set the ordered responders used to build the response."""
        self._ensure_mutable()
        self.responders = list(responders)
        return self

    def freeze(self):
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def times_called(self) -> int:
        return self._calls.value

    def match(self, request: MockRequest, reporter: FailureReporter):
        """
        Count the call, then run every matcher against the request.

        Safe to call from concurrent requests. Matchers report failures
        through the reporter; a matcher raising is reported the same way so
        that a response is always produced.
        """
        self._calls.increment()

        for matcher in self.matchers:
            try:
                matcher(reporter, request)
            except Exception as e:
                logger.exception(f"Matcher raised while serving {self.name}")
                reporter.error(f"matcher {_callable_name(matcher)} raised for {self.name}: {e!r}")

    def render(self) -> Response:
        """Apply the responders to a fresh recorder and flush it."""
        recorder = apply_responders(self.responders, ResponseRecorder())
        return recorder.flush()

    def _ensure_mutable(self):
        if self._frozen:
            raise EndpointStateError(f"scenario of {self.name} cannot be changed after the server started")

    def __repr__(self) -> str:
        return f"Scenario({self.name!r}, times={self.expected_times}, called={self.times_called})"


def _callable_name(func) -> str:
    return getattr(func, '__qualname__', None) or repr(func)
