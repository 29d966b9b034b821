"""
Error envelope middleware - Standardize all error responses.

Provides consistent error response format:
{
    "error": {
        "code": "INVALID_PARAMS",
        "message": "Invalid request path: ...",
        "requestId": "uuid"
    }
}

Two entry points share the envelope:
- setup_error_handlers(app): Flask error handlers for HTTP exceptions and
  unhandled exceptions
- contract_error_handler(err, req, res): default RouterConfig.error_handler
  for request validation failures
"""

import logging
from typing import Any, Dict, Optional

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from ..config import Config
from ..contracts.validate import RequestValidationError
from .request_id import get_request_id


logger = logging.getLogger('routecontract.middleware.error')


# Error codes reference
ERROR_CODES = {
    # Client errors (4xx)
    "BAD_REQUEST": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "METHOD_NOT_ALLOWED": 405,
    "CONFLICT": 409,
    "UNPROCESSABLE_ENTITY": 422,

    # Contract errors
    "INVALID_PARAMS": 400,
    "RESPONSE_SCHEMA_MISMATCH": 500,

    # Server errors (5xx)
    "INTERNAL_ERROR": 500,
}


def error_envelope(
    code: str,
    message: str,
    request_id: Optional[str] = None,
    field: Optional[str] = None,
    details: Optional[Any] = None,
    hint: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build a standardized error response envelope.

    Args:
        code: Error code (e.g., "INVALID_PARAMS")
        message: Human-readable error message
        request_id: Request correlation ID
        field: Optional field (or request slot) that caused the error
        details: Optional additional details
        hint: Optional hint for fixing the error

    Returns:
        {"error": {"code": ..., "message": ..., "requestId": ..., ...}}
    """
    error: Dict[str, Any] = {
        "code": code,
        "message": message,
        "requestId": request_id,
    }
    if field:
        error["field"] = field
    if details:
        error["details"] = details
    if hint:
        error["hint"] = hint
    return {"error": error}


def make_error_response(
    code: str,
    message: str,
    status_code: int = None,
    field: str = None,
    details: Any = None,
    hint: str = None,
):
    """
    Create a standardized Flask error response.

    Args:
        code: Error code (e.g., "INVALID_PARAMS")
        message: Human-readable error message
        status_code: HTTP status code (defaults based on error code)
        field: Optional field name that caused the error
        details: Optional additional details
        hint: Optional hint for fixing the error

    Returns:
        Tuple of (response, status_code)
    """
    request_id = get_request_id()

    if status_code is None:
        status_code = ERROR_CODES.get(code, 500)

    response = jsonify(error_envelope(code, message, request_id, field, details, hint))
    if request_id:
        response.headers[Config.REQUEST_ID_HEADER] = request_id

    return response, status_code


def contract_error_handler(err: Exception, req: Any, res: Any) -> None:
    """
    Default error handler for request validation failures.

    - Schema rejections (pydantic ValidationError, ValueError) -> 400 INVALID_PARAMS
    - Anything else raised while validating -> 500 INTERNAL_ERROR, logged
    """
    request_id = getattr(req, 'request_id', None)
    if request_id:
        res.set_header(Config.REQUEST_ID_HEADER, request_id)

    if isinstance(err, RequestValidationError) and isinstance(err.error, ValueError):
        res.status(ERROR_CODES["INVALID_PARAMS"])
        res.json(error_envelope(
            code="INVALID_PARAMS",
            message=f"Invalid request {err.slot}",
            request_id=request_id,
            field=err.slot,
            details=err.errors(),
        ))
        return

    logger.exception(
        f"Unexpected error while validating {getattr(req, 'method', '?').upper()} {getattr(req, 'path', '?')}",
        exc_info=err,
        extra={
            "event": "validation_error",
            "request_id": request_id,
            "error_type": type(err).__name__,
        }
    )
    res.status(ERROR_CODES["INTERNAL_ERROR"])
    res.json(error_envelope(
        code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        request_id=request_id,
    ))


def setup_error_handlers(app: Flask) -> None:
    """
    Set up standardized error handlers on Flask app.

    Handles:
    - HTTP exceptions (400, 404, 405, 500, etc.)
    - Unhandled Python exceptions

    Args:
        app: Flask application instance
    """

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        """Handle Flask/Werkzeug HTTP exceptions."""
        # "Not Found" -> "NOT_FOUND"
        code = error.name.upper().replace(' ', '_')
        return make_error_response(code, error.description, status_code=error.code)

    @app.errorhandler(Exception)
    def handle_generic_error(error):
        """Handle unhandled Python exceptions."""
        request_id = get_request_id()

        logger.exception(
            f"Unhandled error: {error}",
            extra={
                "event": "unhandled_error",
                "request_id": request_id,
                "error_type": type(error).__name__,
            }
        )
        return make_error_response("INTERNAL_ERROR", "An unexpected error occurred", status_code=500)
