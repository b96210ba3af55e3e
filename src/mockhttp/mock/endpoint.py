"""
mockhttp Endpoint

An HTTP method + path owning an ordered list of scenarios. The endpoint
turns its scenarios into a response plan when the server starts and
dispatches every incoming request to the scenario planned for it.

Response plan:
    Each scenario's index is repeated `times` times, in declaration order.
    Request N is served by plan[min(N, len(plan) - 1)], so once the plan is
    exhausted the last scenario keeps answering. Over-calling is reported by
    verification, never by failing the request.

    scenarios: A(times=2), B(times=1)  ->  plan: [0, 0, 1]
    requests:  A, A, B, B, B, ...
"""

import logging
from enum import Enum
from typing import List, Sequence, Tuple

from fastapi import Response

from .matcher import Matcher
from .request import MockRequest
from .scenario import Scenario
from ..common import AtomicCounter, EndpointStateError, FailureReporter, endpoint_name


logger = logging.getLogger("mockhttp.mock.endpoint")


class EndpointState(str, Enum):
    REGISTERING = "registering"
    SERVING = "serving"
    VERIFIED = "verified"


def build_response_plan(scenarios: Sequence[Scenario]) -> Tuple[int, ...]:
    """
    Flatten scenarios into the call-index -> scenario-index plan.

    Example:
        build_response_plan([a_times_2, b_times_1])  # (0, 0, 1)
    """
    plan: List[int] = []
    for index, scenario in enumerate(scenarios):
        plan.extend([index] * scenario.expected_times)
    return tuple(plan)


class Endpoint:
    """
    Method + path identity serving one or more scenarios.

    Lifecycle: registering (scenarios may be added) -> serving (plan frozen,
    requests counted) -> verified (read-only).

    Example:
        endpoint = Endpoint('GET', '/isbn')
        endpoint.add_scenario(Scenario(endpoint.name)).times(2).respond(status_code(403))
        endpoint.add_scenario(Scenario(endpoint.name)).respond(status_code(200))
        endpoint.freeze()

        endpoint.handle(request, reporter)  # 403, 403, 200, 200, ...
    """

    def __init__(self, method: str, path: str):
        self.method = method.upper()
        self.path = path
        self.name = endpoint_name(self.method, path)
        self.scenarios: List[Scenario] = []
        self.state = EndpointState.REGISTERING
        self._plan: Tuple[int, ...] = ()
        self._requests = AtomicCounter()

    def add_scenario(self, scenario: Scenario) -> Scenario:
        """
        Append a scenario; registration order defines playback order.

        Raises:
            EndpointStateError: If the endpoint is no longer registering
        """
        if self.state is not EndpointState.REGISTERING:
            raise EndpointStateError(f"cannot add a scenario to {self.name} while {self.state.value}")
        self.scenarios.append(scenario)
        return scenario

    def new_scenario(self, matchers: Sequence[Matcher] = ()) -> Scenario:
        return self.add_scenario(Scenario(self.name, matchers))

    def freeze(self):
        """Build the response plan and start serving."""
        if self.state is not EndpointState.REGISTERING:
            raise EndpointStateError(f"{self.name} is already {self.state.value}")
        if not self.scenarios:
            raise EndpointStateError(f"{self.name} has no scenarios")

        for scenario in self.scenarios:
            scenario.freeze()
        self._plan = build_response_plan(self.scenarios)
        self.state = EndpointState.SERVING
        logger.debug(f"{self.name} serving with plan {list(self._plan)}")

    @property
    def plan(self) -> Tuple[int, ...]:
        return self._plan

    @property
    def request_count(self) -> int:
        return self._requests.value

    def scenario_index(self, index: int) -> int:
        """Position of the scenario planned for the index-th request, clamped to the last one."""
        if not self._plan:
            raise EndpointStateError(f"{self.name} has no response plan; was the server started?")
        return self._plan[min(index, len(self._plan) - 1)]

    def scenario_for(self, index: int) -> Scenario:
        return self.scenarios[self.scenario_index(index)]

    def handle(self, request: MockRequest, reporter: FailureReporter) -> Response:
        """
        Serve one request.

        The request counter is read-and-incremented atomically, so concurrent
        requests each get a distinct plan index. Failures are reported, never
        raised.
        """
        index = self._requests.increment()
        position = self.scenario_index(index)
        scenario = self.scenarios[position]
        logger.debug(f"{self.name} request #{index + 1} -> scenario {position + 1}")

        scenario.match(request, reporter)

        try:
            return scenario.render()
        except Exception as e:
            logger.exception(f"Responder raised while serving {self.name}")
            reporter.error(f"responder raised for {self.name}: {e!r}")
            return Response(status_code=500)

    def verify(self, reporter: FailureReporter) -> int:
        """
        Compare actual and expected calls of every scenario.

        Returns:
            Number of failures reported
        """
        failures = 0
        for position, scenario in enumerate(self.scenarios):
            called = scenario.times_called
            expected = scenario.expected_times
            if called == expected:
                continue

            label = self._label(position)
            if called == 0:
                reporter.error(f"expected endpoint was not called: {label}")
            else:
                reporter.error(f"{label} called {called} time(s), expected {expected}")
            failures += 1

        self.state = EndpointState.VERIFIED
        return failures

    def assert_not_called(self, reporter: FailureReporter) -> bool:
        """Report a failure if any request reached this endpoint."""
        if self.request_count > 0:
            reporter.error(
                f"endpoint was called when not expected: {self.name} ({self.request_count} time(s))"
            )
            return False
        return True

    def _label(self, position: int) -> str:
        if len(self.scenarios) == 1:
            return self.name
        return f"{self.name} (scenario {position + 1})"

    def __repr__(self) -> str:
        return f"Endpoint({self.name!r}, scenarios={len(self.scenarios)}, state={self.state.value})"
