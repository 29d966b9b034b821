"""
Request correlation IDs.

Each request gets g.request_id before any ContractRouter view runs, so the
same ID shows up in RequestContext.request_id, contract violation logs,
error envelopes ("requestId") and the response header.

A caller-supplied ID is reused only when it is 1-128 characters of
[A-Za-z0-9._:-]; otherwise a fresh UUID is generated.
"""

import re
import uuid
from typing import Optional

from flask import Flask, g, has_request_context, request

from ..config import Config


_VALID_REQUEST_ID = re.compile(r'^[A-Za-z0-9._:-]{1,128}$')


def accept_request_id(candidate: Optional[str]) -> str:
    """Return candidate if it is a usable request ID, else a new UUID."""
    if candidate and _VALID_REQUEST_ID.match(candidate):
        return candidate
    return str(uuid.uuid4())


def setup_request_id_middleware(app: Flask, header: Optional[str] = None) -> None:
    """
    Set up request ID middleware on Flask app.

    Args:
        app: Flask application instance
        header: Header carrying the ID (default: Config.REQUEST_ID_HEADER)
    """
    header = header or Config.REQUEST_ID_HEADER

    @app.before_request
    def inject_request_id():
        g.request_id = accept_request_id(request.headers.get(header))

    @app.after_request
    def add_request_id_header(response):
        request_id = g.get('request_id')
        if request_id:
            response.headers[header] = request_id
        return response


def get_request_id() -> Optional[str]:
    """Current request ID, or None outside a request (or before the middleware ran)."""
    if not has_request_context():
        return None
    return g.get('request_id')
