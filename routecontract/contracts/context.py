"""
Per-request state handed to every stage of a route's chain.

RequestContext carries the request parts the pipeline validates and replaces
(params, query, body). ResponseWriter collects what the chain emits and is
turned into a Flask response once the chain finishes.

Both are created per request and never shared between requests.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from flask import Response, g, jsonify, request
from pydantic_core import to_jsonable_python

from ..utils.query import parse_query


@dataclass
class RequestContext:
    """Request parts as seen by chain stages."""
    method: str                           # lower-case verb, e.g. "get"
    path: str                             # route template, e.g. "/users/:id"
    url: str = ""                         # concrete request path, e.g. "/users/7"
    params: Any = field(default_factory=dict)
    query: Any = field(default_factory=dict)
    body: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)
    request_id: Optional[str] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_flask(cls, path: str, view_args: Mapping[str, Any]) -> "RequestContext":
        """Capture the current Flask request. Must run inside a request context."""
        return cls(
            method=request.method.lower(),
            path=path,
            url=request.path,
            params=dict(view_args),
            query=parse_query(request.args.items(multi=True)),
            # None when there is no JSON body at all
            body=request.get_json(silent=True),
            headers=dict(request.headers),
            request_id=getattr(g, 'request_id', None),
        )


class ResponseWriter:
    """
    Mutable response under construction.

    Usage:
        res.status(404).json({"message": "User not found"})
    """

    def __init__(self) -> None:
        self.status_code = 200
        self.headers: Dict[str, str] = {}
        self.body: Any = None
        self.sent = False

    def status(self, code: int) -> "ResponseWriter":
        self.status_code = int(code)
        return self

    def set_header(self, name: str, value: str) -> "ResponseWriter":
        self.headers[name] = value
        return self

    def json(self, body: Any) -> "ResponseWriter":
        """Emit a JSON body. Status must already be set."""
        self.body = body
        self.sent = True
        return self

    def to_flask(self) -> Response:
        """Build the Flask response; an empty body if nothing was emitted."""
        if self.sent:
            # Bodies that skipped a response schema may still hold models, dataclasses or dates
            response = jsonify(to_jsonable_python(self.body))
        else:
            response = Response()
        response.status_code = self.status_code
        for name, value in self.headers.items():
            response.headers[name] = value
        return response
