"""
Route Table - Single source of truth for API contracts.

A route table maps path -> method -> RouteDescription:

    ROUTES = RouteTable({
        "/users/:id": {
            "get": {
                "request": {"path": UserPath},
                "response": {200: User, 404: NotFound, "default": User},
            },
        },
    })

Each RouteDescription has:
- RequestSchemas: what the client sends (path, query, body, header, cookie)
- Response schemas keyed by status code, plus an optional "default" entry

The "default" response schema is never selected by status code at runtime.
It only documents the most likely response for client code.

Tables are immutable after construction and shared by every request.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple, Union

from ..config import Config
from .schema import as_schema


# All methods supported by ContractRouter and ContractClient
METHODS = ("get", "post", "put", "delete", "patch")

DEFAULT_RESPONSE = "default"

# Request slots, in validation order; header and cookie are informational only
REQUEST_SLOTS = ("path", "query", "body", "header", "cookie")

ResponseKey = Union[int, str]


@dataclass(frozen=True)
class RequestSchemas:
    """Schemas for each part of an incoming request. None means 'must be empty'."""
    path: Any = None
    query: Any = None
    body: Any = None
    header: Any = None
    cookie: Any = None

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> "RequestSchemas":
        raw = raw or {}
        unknown = set(raw) - set(REQUEST_SLOTS)
        if unknown:
            raise ValueError(f"Unknown request slot(s): {sorted(unknown)}")
        return cls(**{slot: as_schema(raw.get(slot)) for slot in REQUEST_SLOTS})


def _normalize_response_key(key: ResponseKey) -> ResponseKey:
    """200 and "200" name the same status; "default" is kept as-is."""
    if key == DEFAULT_RESPONSE:
        return key
    if isinstance(key, bool):
        raise ValueError(f"Invalid response status key: {key!r}")
    try:
        return int(key)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid response status key: {key!r}") from None


@dataclass(frozen=True)
class RouteDescription:
    """Contract for one (path, method) pair."""
    request: RequestSchemas = field(default_factory=RequestSchemas)
    response: Mapping[ResponseKey, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "RouteDescription":
        """
        Build a description from its authored dict form.

        Args:
            raw: {"request": {...slots}, "response": {status: schema}}

        Raises:
            ValueError: On unknown request slots or invalid status keys
        """
        response: Dict[ResponseKey, Any] = {}
        for key, schema in (raw.get('response') or {}).items():
            adapted = as_schema(schema)
            if adapted is not None:
                response[_normalize_response_key(key)] = adapted
        return cls(
            request=RequestSchemas.from_dict(raw.get('request')),
            response=MappingProxyType(response),
        )

    def response_schema(self, status_code: int) -> Optional[Any]:
        """Schema registered for an exact status code. Never falls back to "default"."""
        return self.response.get(status_code)

    @property
    def default_response(self) -> Optional[Any]:
        return self.response.get(DEFAULT_RESPONSE)


class RouteTable:
    """
    Immutable (path, method) -> RouteDescription map.

    Lookups are plain dict access. A miss means the route is not part of the
    contract and is registered without validation (pass-through).
    """

    __slots__ = ('_routes',)

    def __init__(self, routes: Mapping[str, Mapping[str, Any]]):
        built: Dict[str, Mapping[str, RouteDescription]] = {}
        for path, methods in routes.items():
            by_method: Dict[str, RouteDescription] = {}
            for method, description in methods.items():
                name = method.lower()
                if name not in METHODS:
                    raise ValueError(f"Unsupported method '{method}' for path '{path}'")
                if name in by_method:
                    raise ValueError(f"Duplicate description for {name.upper()} {path}")
                if not isinstance(description, RouteDescription):
                    description = RouteDescription.from_dict(description)
                by_method[name] = description
            built[path] = MappingProxyType(by_method)
        self._routes = MappingProxyType(built)

    def lookup(self, path: str, method: str) -> Optional[RouteDescription]:
        """Get the description for (path, method), or None if not in the contract."""
        methods = self._routes.get(path)
        if methods is None:
            return None
        return methods.get(method.lower())

    def methods_for(self, path: str) -> Tuple[str, ...]:
        """Methods declared for a path, in declaration order."""
        return tuple(self._routes.get(path, {}))

    def routes(self) -> Iterator[Tuple[str, str, RouteDescription]]:
        """Iterate over (path, method, description) for every declared route."""
        for path, methods in self._routes.items():
            for method, description in methods.items():
                yield path, method, description

    def __contains__(self, path: object) -> bool:
        return path in self._routes

    def __iter__(self) -> Iterator[str]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __repr__(self) -> str:
        return f"RouteTable({len(list(self.routes()))} routes)"


def build_route_table(routes: Mapping[str, Mapping[str, Any]]) -> RouteTable:
    """Build a RouteTable from its authored dict form (e.g. generated from OpenAPI)."""
    if isinstance(routes, RouteTable):
        return routes
    return RouteTable(routes)


def _default_error_handler() -> Callable:
    from ..middleware.error_envelope import contract_error_handler
    return contract_error_handler


@dataclass(frozen=True)
class RouterConfig:
    """
    Per-router enforcement settings, captured by every registered route.

    attach_response_validator: validate emitted JSON bodies against the
        schema for the current status code
    skip_request_body_validation: leave the body unvalidated, e.g. for
        payloads pydantic cannot describe
    error_handler: called as error_handler(err, req, res) when request
        validation fails; solely responsible for writing the response
    """
    attach_response_validator: bool = field(default_factory=lambda: Config.ATTACH_RESPONSE_VALIDATOR)
    skip_request_body_validation: bool = field(default_factory=lambda: Config.SKIP_REQUEST_BODY_VALIDATION)
    error_handler: Callable[[Exception, Any, Any], None] = field(default_factory=_default_error_handler)

    @classmethod
    def from_env(cls, error_handler: Optional[Callable] = None) -> "RouterConfig":
        """Router config from environment defaults (see Config)."""
        if error_handler is None:
            return cls()
        return cls(error_handler=error_handler)
