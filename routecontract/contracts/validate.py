"""
Validation pipeline - the stages injected in front of contract routes.

For every route found in the RouteTable the router builds:

1. request_validator: parses path params, query and body through their
   schemas and replaces them with the parsed values. An undeclared slot
   must be empty. Failures go to RouterConfig.error_handler and stop the
   chain.
2. response_validator (optional): wraps the ResponseWriter so that every
   emitted JSON body is parsed through the schema of the current status
   code. Out-of-contract bodies become a fixed 500 response.

Request errors are policy (the error handler decides the response).
Response errors are not: a server-authored mistake is never sent as-is.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .context import RequestContext, ResponseWriter
from .registry import RouteDescription, RouterConfig
from .schema import EMPTY_OBJECT, OPTIONAL_EMPTY_OBJECT


logger = logging.getLogger('routecontract.contracts')


OUT_OF_SPEC_STATUS = 500
OUT_OF_SPEC_BODY = {
    "status": "Internal server error",
    "message": "Server generated response is out of API spec",
}

# A chain stage: stage(req, res, next) where next(req, res) runs the rest
Next = Callable[..., Any]
Stage = Callable[[RequestContext, ResponseWriter, Next], Any]


def describe_error(err: BaseException) -> List[Dict[str, Any]]:
    """
    JSON-safe description of a schema error.

    pydantic errors are reported per location; anything else as one message.
    """
    errors = getattr(err, 'errors', None)
    if callable(errors):
        try:
            return errors(include_url=False, include_context=False, include_input=False)
        except TypeError:
            # errors() without pydantic's keyword arguments
            pass
    return [{"msg": str(err)}]


class RequestValidationError(Exception):
    """A request part failed its schema. The original error is __cause__."""

    def __init__(self, slot: str, error: BaseException):
        super().__init__(f"Invalid request {slot}: {error}")
        self.slot = slot
        self.error = error

    def errors(self) -> List[Dict[str, Any]]:
        return describe_error(self.error)

    def to_dict(self) -> Dict[str, Any]:
        return {"slot": self.slot, "errors": self.errors()}


@dataclass
class ResponseSchemaViolation(Exception):
    """An emitted body does not match the schema of its status code."""
    message: str
    details: Dict[str, Any]

    def __str__(self):
        return self.message


def _parse_slot(slot: str, schema: Any, raw: Any) -> Any:
    try:
        return schema.parse(raw)
    except Exception as e:
        raise RequestValidationError(slot, e) from e


def build_request_validator(description: RouteDescription, config: RouterConfig) -> Stage:
    """
    Build the request validation stage for one route.

    Every matching request gets all of path, query and body checked
    (body only when config.skip_request_body_validation is off).
    Header and cookie schemas are not enforced here.
    """
    path_schema = description.request.path or EMPTY_OBJECT
    query_schema = description.request.query or EMPTY_OBJECT
    # No declared body: absent or {} are both fine
    body_schema = description.request.body or OPTIONAL_EMPTY_OBJECT
    validate_body = not config.skip_request_body_validation

    def request_validator(req: RequestContext, res: ResponseWriter, next: Next) -> Any:
        try:
            req.params = _parse_slot('path', path_schema, req.params)
            req.query = _parse_slot('query', query_schema, req.query)
            if validate_body:
                req.body = _parse_slot('body', body_schema, req.body)
        except RequestValidationError as e:
            logger.debug(
                f"Request validation failed: {req.method.upper()} {req.path} slot={e.slot}",
                extra={"event": "request_validation_failed", "request_id": req.request_id},
            )
            config.error_handler(e, req, res)
            return None
        return next(req, res)

    return request_validator


class ContractResponseWriter:
    """
    ResponseWriter wrapper that enforces the response schemas of one route.

    The wrapped writer still owns the response state; this object only
    intercepts json() so the body is validated at emit time, after the
    handler has set the status code.
    """

    def __init__(self, inner: ResponseWriter, description: RouteDescription,
                 route: str = "", request_id: Optional[str] = None):
        self._inner = inner
        self._description = description
        self._route = route
        self._request_id = request_id

    @property
    def status_code(self) -> int:
        return self._inner.status_code

    @status_code.setter
    def status_code(self, code: int) -> None:
        self._inner.status_code = int(code)

    @property
    def headers(self) -> Dict[str, str]:
        return self._inner.headers

    @property
    def body(self) -> Any:
        return self._inner.body

    @property
    def sent(self) -> bool:
        return self._inner.sent

    def status(self, code: int) -> "ContractResponseWriter":
        self._inner.status(code)
        return self

    def set_header(self, name: str, value: str) -> "ContractResponseWriter":
        self._inner.set_header(name, value)
        return self

    def json(self, body: Any) -> "ContractResponseWriter":
        """Emit body if it matches the schema for the current status, else a 500."""
        status_code = self._inner.status_code
        schema = self._description.response_schema(status_code)
        if schema is None:
            # Undeclared status codes are not checked
            self._inner.json(body)
            return self

        try:
            emitted = self._validate(schema, body, status_code)
        except ResponseSchemaViolation as e:
            _log_violation(self._route, e, self._request_id)
            self._inner.status(OUT_OF_SPEC_STATUS)
            self._inner.json(dict(OUT_OF_SPEC_BODY))
            return self

        self._inner.json(emitted)
        return self

    def _validate(self, schema: Any, body: Any, status_code: int) -> Any:
        try:
            return schema.dump(schema.parse(body))
        except Exception as e:
            raise ResponseSchemaViolation(
                message=f"Response for status {status_code} does not match contract",
                details={"status": status_code, "errors": describe_error(e)},
            ) from e

    def to_flask(self):
        return self._inner.to_flask()


def build_response_validator(description: RouteDescription) -> Stage:
    """Build the stage that swaps in a ContractResponseWriter for the rest of the chain."""

    def response_validator(req: RequestContext, res: ResponseWriter, next: Next) -> Any:
        writer = ContractResponseWriter(
            res,
            description,
            route=f"{req.method.upper()} {req.path}",
            request_id=req.request_id,
        )
        return next(req, writer)

    return response_validator


def _log_violation(route: str, violation: ResponseSchemaViolation, request_id: Optional[str]) -> None:
    """Log response contract violation for observability."""
    logger.warning(
        f"Contract violation: route={route} stage=response "
        f"request_id={request_id} message={violation.message}",
        extra={
            "event": "contract_violation",
            "route": route,
            "stage": "response",
            "request_id": request_id,
            "details": violation.details,
        }
    )
