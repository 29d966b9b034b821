"""
Contract enforcement package.

Provides the route table, the schema capability adapter, the validation
pipeline and the ContractRouter facade.
"""

from .registry import (
    METHODS,
    DEFAULT_RESPONSE,
    RequestSchemas,
    RouteDescription,
    RouteTable,
    RouterConfig,
    build_route_table,
)
from .schema import Schema, EMPTY_OBJECT, OPTIONAL_EMPTY_OBJECT, as_schema
from .context import RequestContext, ResponseWriter
from .validate import (
    OUT_OF_SPEC_BODY,
    OUT_OF_SPEC_STATUS,
    ContractResponseWriter,
    RequestValidationError,
    ResponseSchemaViolation,
    build_request_validator,
    build_response_validator,
)
from .router import ContractRouter, flask_rule, run_chain

__all__ = [
    'METHODS',
    'DEFAULT_RESPONSE',
    'RequestSchemas',
    'RouteDescription',
    'RouteTable',
    'RouterConfig',
    'build_route_table',
    'Schema',
    'EMPTY_OBJECT',
    'OPTIONAL_EMPTY_OBJECT',
    'as_schema',
    'RequestContext',
    'ResponseWriter',
    'OUT_OF_SPEC_BODY',
    'OUT_OF_SPEC_STATUS',
    'ContractResponseWriter',
    'RequestValidationError',
    'ResponseSchemaViolation',
    'build_request_validator',
    'build_response_validator',
    'ContractRouter',
    'flask_rule',
    'run_chain',
]
