"""
mockhttp Mock Request

Snapshot of a live request as seen by matchers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fastapi import Request

from ..common import group_pairs, safe_json_parse


@dataclass(frozen=True)
class MockRequest:
    """
    Immutable view of an incoming request.

    The body is read once by the endpoint handler so matchers can inspect it
    synchronously, from any worker thread, as many times as they need.
    """

    method: str
    path: str
    query_params: Dict[str, List[str]] = field(default_factory=dict)
    headers: Dict[str, List[str]] = field(default_factory=dict)  # lower-cased names
    body: bytes = b''
    path_params: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    async def from_request(cls, request: Request) -> 'MockRequest':
        """Read the body and capture the request state of a FastAPI request."""
        body = await request.body()
        return cls(
            method=request.method,
            path=request.url.path,
            query_params=group_pairs(request.query_params.multi_items()),
            headers=group_pairs(request.headers.items(), lower_keys=True),
            body=body,
            path_params=dict(request.path_params),
        )

    def header(self, name: str) -> Optional[str]:
        """First value of a header, case-insensitive."""
        values = self.headers.get(name.lower())
        return values[0] if values else None

    @property
    def text(self) -> str:
        return self.body.decode('utf-8', errors='replace')

    def json(self, default: Any = None) -> Any:
        return safe_json_parse(self.body, default=default)
