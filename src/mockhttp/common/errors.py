"""
mockhttp Errors

Exceptions raised during mock setup. Request-path problems are never raised;
they are recorded through a FailureReporter instead.
"""


class MockHttpError(Exception):
    """Base class for all mockhttp setup errors."""


class ServerStartError(MockHttpError):
    """The listener could not be bound or did not become ready in time."""


class EndpointStateError(MockHttpError):
    """An endpoint or scenario was mutated outside of its registering state."""
