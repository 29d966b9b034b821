"""
routecontract - one route table, two consumers.

- ContractRouter: Flask router facade validating requests/responses
- ContractClient: requests-based client building requests from the same table
"""

from .contracts import (
    METHODS,
    RouteTable,
    RouteDescription,
    RouterConfig,
    ContractRouter,
    RequestValidationError,
    build_route_table,
)
from .client import ContractClient, TransportError, build_request_config
from .app import create_app

__all__ = [
    'METHODS',
    'RouteTable',
    'RouteDescription',
    'RouterConfig',
    'ContractRouter',
    'RequestValidationError',
    'build_route_table',
    'ContractClient',
    'TransportError',
    'build_request_config',
    'create_app',
]
