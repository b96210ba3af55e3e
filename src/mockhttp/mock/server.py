"""
mockhttp Mock Server

FastAPI-based HTTP test double. Tests register endpoints and scenarios,
start the server, exercise the code under test against `server.url`, and
verify at teardown that every scenario was served the expected number of
times.

Features:
- Ordered multi-scenario playback per endpoint
- Request matchers reporting through an accumulating failure channel
- Unmatched routes answered with 404/405 and reported as failures
- Static or ephemeral port binding
- Lifecycle (start/teardown) on a background uvicorn thread
"""

from __future__ import annotations  # Enable forward references for type hints

import logging
import os
import socket
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import httpx
import uvicorn
import yaml
from fastapi import FastAPI, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.exception_handlers import http_exception_handler
from starlette.exceptions import HTTPException as StarletteHTTPException

from .endpoint import Endpoint, EndpointState
from .matcher import Matcher
from .request import MockRequest
from .scenario import Scenario
from ..common import EndpointStateError, FailureReporter, ServerStartError, endpoint_name


LOG_LEVELS = ('critical', 'error', 'warning', 'info', 'debug', 'trace')
ROUTE_MISS_STATUSES = (404, 405)
ENV_PREFIX = 'MOCKHTTP_'


@dataclass
class MockConfig:
    """Configuration for mock server behavior."""

    # Listener
    host: str = "127.0.0.1"
    port: int = 0  # 0 binds any free port

    # Logging
    log_level: str = "warning"  # uvicorn log level
    access_log: bool = False

    # Lifecycle timeouts in seconds
    startup_timeout: float = 5.0
    shutdown_timeout: float = 5.0

    def __post_init__(self):
        self.port = int(self.port)
        self.log_level = str(self.log_level).lower()
        self.startup_timeout = float(self.startup_timeout)
        self.shutdown_timeout = float(self.shutdown_timeout)

        if not 0 <= self.port <= 65535:
            raise ValueError(f"port must be between 0 and 65535, got {self.port}")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}")
        if self.startup_timeout <= 0 or self.shutdown_timeout <= 0:
            raise ValueError("startup_timeout and shutdown_timeout must be positive")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'MockConfig':
        """Create config from dictionary, ignoring unknown keys."""
        known = cls.__dataclass_fields__.keys()
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> 'MockConfig':
        """
        Load config from a YAML file.

        The settings may sit at the top level or under a `mock_server:` key.
        """
        with open(yaml_path, 'r') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping in {yaml_path}, got {type(data).__name__}")

        return cls.from_dict(data.get('mock_server', data))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'MockConfig':
        """
        Load config from MOCKHTTP_* environment variables.

        Example:
            MOCKHTTP_PORT=60000 MOCKHTTP_LOG_LEVEL=debug pytest
        """
        env = os.environ if environ is None else environ
        data = {
            name: env[ENV_PREFIX + name.upper()]
            for name in cls.__dataclass_fields__
            if ENV_PREFIX + name.upper() in env
        }
        if 'access_log' in data:
            data['access_log'] = data['access_log'].strip().lower() in ('1', 'true', 'yes', 'on')
        return cls.from_dict(data)


@dataclass
class MockMetrics:
    """Track mock server metrics."""

    total_requests: int = 0
    matched_requests: int = 0
    unmatched_requests: int = 0
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, matched: bool):
        with self._lock:
            self.total_requests += 1
            if matched:
                self.matched_requests += 1
            else:
                self.unmatched_requests += 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        uptime_seconds = (datetime.now() - datetime.fromisoformat(self.start_time)).total_seconds()
        with self._lock:
            return {
                'total_requests': self.total_requests,
                'matched_requests': self.matched_requests,
                'unmatched_requests': self.unmatched_requests,
                'match_rate': round((self.matched_requests / self.total_requests * 100) if self.total_requests > 0 else 0, 2),
                'uptime_seconds': round(uptime_seconds, 2),
                'start_time': self.start_time
            }


class MockServer:
    """
    Programmable HTTP test double.

    Example:
        server = MockServer()
        server.get('/isbn').times(2).respond(status_code(403))
        server.get('/isbn').respond(status_code(200))
        server.start()

        httpx.get(f"{server.url}/isbn")  # 403, 403, 200, ...

        server.cleanup()          # stop listener, verify call counts
        server.reporter.assert_ok()

    All endpoints and scenarios MUST be declared before start(). Registering
    the same method + path twice appends a scenario to the same endpoint.
    """

    def __init__(
        self,
        config: Optional[MockConfig] = None,
        reporter: Optional[FailureReporter] = None
    ):
        """
        Initialize mock server.

        Args:
            config: Optional MockConfig for listener behavior
            reporter: Failure channel shared with matchers (created if None)
        """
        self.config = config or MockConfig()
        self.reporter = reporter if reporter is not None else FailureReporter()
        self.metrics = MockMetrics()
        self.endpoints: Dict[Tuple[str, str], Endpoint] = {}

        self.logger = logging.getLogger("mockhttp.mock.server")

        self._registry_lock = threading.Lock()
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None
        self._socket: Optional[socket.socket] = None
        self._port: Optional[int] = None
        self._started = False

        # Setup FastAPI app
        self.app = self._create_app()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, method: str, path: str, *matchers: Matcher) -> Scenario:
        """
        Declare a scenario for method + path.

        Raises:
            EndpointStateError: If the server already started
        """
        key = (method.upper(), path)
        with self._registry_lock:
            if self._started:
                raise EndpointStateError(
                    f"cannot register {endpoint_name(*key)} after the server started"
                )
            endpoint = self.endpoints.get(key)
            if endpoint is None:
                endpoint = Endpoint(*key)
                self.endpoints[key] = endpoint
            return endpoint.new_scenario(matchers)

    def get(self, path: str, *matchers: Matcher) -> Scenario:
        return self.register('GET', path, *matchers)

    def post(self, path: str, *matchers: Matcher) -> Scenario:
        return self.register('POST', path, *matchers)

    def put(self, path: str, *matchers: Matcher) -> Scenario:
        return self.register('PUT', path, *matchers)

    def patch(self, path: str, *matchers: Matcher) -> Scenario:
        return self.register('PATCH', path, *matchers)

    def delete(self, path: str, *matchers: Matcher) -> Scenario:
        return self.register('DELETE', path, *matchers)

    def head(self, path: str, *matchers: Matcher) -> Scenario:
        return self.register('HEAD', path, *matchers)

    def options(self, path: str, *matchers: Matcher) -> Scenario:
        return self.register('OPTIONS', path, *matchers)

    def endpoint(self, method: str, path: str) -> Optional[Endpoint]:
        return self.endpoints.get((method.upper(), path))

    # ------------------------------------------------------------------
    # App
    # ------------------------------------------------------------------

    def _create_app(self) -> FastAPI:
        """Create FastAPI application; endpoint routes are bound on start()."""
        app = FastAPI(
            title="mockhttp Mock Server",
            docs_url=None,
            redoc_url=None,
            openapi_url=None
        )
        app.router.redirect_slashes = False

        @app.exception_handler(StarletteHTTPException)
        async def route_miss(request: Request, exc: StarletteHTTPException):
            """Report requests no registered endpoint can serve."""
            if exc.status_code not in ROUTE_MISS_STATUSES:
                return await http_exception_handler(request, exc)

            self.metrics.record(matched=False)
            self.reporter.error(f"no matching route found for {request.method} {request.url.path}")
            return Response(status_code=exc.status_code, headers=getattr(exc, 'headers', None))

        return app

    def _bind_routes(self):
        for endpoint in self.endpoints.values():
            endpoint.freeze()
            self.app.add_api_route(
                endpoint.path,
                self._make_handler(endpoint),
                methods=[endpoint.method],
                include_in_schema=False,
                name=endpoint.name
            )

    def _make_handler(self, endpoint: Endpoint):
        async def handle(request: Request):
            mock_request = await MockRequest.from_request(request)
            self.metrics.record(matched=True)
            self.logger.debug(f"Incoming: {mock_request.method} {request.url}")
            # Matchers and responders are plain callables; keep them off the event loop
            return await run_in_threadpool(endpoint.handle, mock_request, self.reporter)

        return handle

    def get_app(self) -> FastAPI:
        """
        Get the FastAPI app instance, e.g. to add routes the registration
        methods do not cover. Must be called before start() for the routes
        to be reachable.

        Returns:
            FastAPI application instance
        """
        return self.app

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, reporter: Optional[FailureReporter] = None):
        """
        Bind the listener and serve on a background thread.

        Args:
            reporter: Replace the failure channel (e.g. the one of the running test)

        Raises:
            ServerStartError: If the port cannot be bound, the server does not
                come up within startup_timeout, or start() was already called
        """
        with self._registry_lock:
            if self._started:
                raise ServerStartError("mock server already started")
            self._started = True

        if reporter is not None:
            self.reporter = reporter

        self._bind_routes()
        sock = self._bind_socket()

        config = uvicorn.Config(
            self.app,
            log_level=self.config.log_level,
            access_log=self.config.access_log,
            log_config=None,
            lifespan="off"
        )
        server = uvicorn.Server(config)
        thread = threading.Thread(
            target=server.run,
            kwargs={'sockets': [sock]},
            name=f"mockhttp-{sock.getsockname()[1]}",
            daemon=True
        )

        self._socket = sock
        self._port = sock.getsockname()[1]
        self._server = server
        self._thread = thread
        thread.start()

        deadline = time.monotonic() + self.config.startup_timeout
        while not server.started:
            if not thread.is_alive() or time.monotonic() > deadline:
                message = (
                    f"mock server did not start on {self.config.host}:{self.port} "
                    f"within {self.config.startup_timeout}s"
                )
                self.teardown()
                raise ServerStartError(message)
            time.sleep(0.01)

        self.logger.info(f"Mock server listening on {self.url} ({len(self.endpoints)} endpoints)")

    def _bind_socket(self) -> socket.socket:
        family = socket.AF_INET6 if ':' in self.config.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.config.host, self.config.port))
            sock.listen(128)
        except OSError as e:
            sock.close()
            raise ServerStartError(
                f"cannot listen on {self.config.host}:{self.config.port}: {e}"
            ) from e
        return sock

    @property
    def running(self) -> bool:
        return self._server is not None and self._server.started

    @property
    def port(self) -> int:
        """TCP port the server listens on (the bound one when configured as 0)."""
        if self._port is not None:
            return self._port
        return self.config.port

    @property
    def url(self) -> str:
        host = f"[{self.config.host}]" if ':' in self.config.host else self.config.host
        return f"http://{host}:{self.port}"

    def client(self, **kwargs) -> httpx.Client:
        """httpx client bound to the server URL."""
        return httpx.Client(base_url=self.url, **kwargs)

    def teardown(self):
        """Stop accepting requests and release the listener. Idempotent."""
        server, thread, sock = self._server, self._thread, self._socket
        if server is None:
            return

        self.logger.info(f"Mock server stopping on {self.url}")
        server.should_exit = True
        if thread is not None:
            thread.join(timeout=self.config.shutdown_timeout)
            if thread.is_alive():
                self.logger.warning("Mock server did not stop in time, forcing exit")
                server.force_exit = True
                thread.join(timeout=self.config.shutdown_timeout)

        if sock is not None:
            sock.close()

        self._socket = None
        self._server = None
        self._thread = None

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def assert_expectations(self) -> int:
        """
        Report every scenario whose call count differs from its expected count.

        Returns:
            Number of failures reported
        """
        failures = 0
        for endpoint in self.endpoints.values():
            failures += endpoint.verify(self.reporter)
        return failures

    def assert_not_called(self, method: str, path: str) -> bool:
        """Report a failure if the given endpoint received any request."""
        endpoint = self.endpoint(method, path)
        if endpoint is None:
            self.reporter.error(f"unknown endpoint: {endpoint_name(method, path)}")
            return False
        return endpoint.assert_not_called(self.reporter)

    def cleanup(self) -> List[str]:
        """
        Stop accepting requests, verify every endpoint, release resources.

        Returns:
            All failures recorded during the test
        """
        self.teardown()
        for endpoint in self.endpoints.values():
            # endpoints already checked by an explicit assert_expectations()
            if endpoint.state is not EndpointState.VERIFIED:
                endpoint.verify(self.reporter)
        return self.reporter.failures


def create_mock_server(
    host: str = "127.0.0.1",
    port: int = 0,
    log_level: str = "warning",
    access_log: bool = False,
    startup_timeout: float = 5.0,
    shutdown_timeout: float = 5.0,
    reporter: Optional[FailureReporter] = None
) -> MockServer:
    """
    Convenience function to create and configure a mock server.

    Args:
        host: Host to bind to
        port: Port to bind to (0 for any free port)
        log_level: uvicorn log level
        access_log: Enable uvicorn access logging
        startup_timeout: Seconds to wait for the listener to come up
        shutdown_timeout: Seconds to wait for the listener to stop
        reporter: Failure channel (created if None)

    Returns:
        Configured MockServer instance

    Example:
        server = create_mock_server(port=60000)
        server.get('/health').respond(status_code(204))
        server.start()
    """
    config = MockConfig(
        host=host,
        port=port,
        log_level=log_level,
        access_log=access_log,
        startup_timeout=startup_timeout,
        shutdown_timeout=shutdown_timeout
    )

    return MockServer(config=config, reporter=reporter)
