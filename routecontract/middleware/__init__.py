"""
Global middleware for contract-enforced Flask apps.

Provides:
- Request ID injection (Config.REQUEST_ID_HEADER, X-Request-ID by default)
- Error envelope standardization (including the default contract error handler)
- Request logging tagged with the contract mode (validated, passthrough, none)
"""

from .request_id import setup_request_id_middleware, get_request_id, accept_request_id
from .error_envelope import (
    setup_error_handlers,
    make_error_response,
    error_envelope,
    contract_error_handler,
)
from .request_logging import RequestLogPolicy, setup_request_logging_middleware

__all__ = [
    'setup_request_id_middleware',
    'get_request_id',
    'accept_request_id',
    'setup_error_handlers',
    'make_error_response',
    'error_envelope',
    'contract_error_handler',
    'setup_request_logging_middleware',
    'RequestLogPolicy',
]
