"""
ContractRouter - RouteTable-aware router facade over a Flask Blueprint.

Usage:
    users = ContractRouter.new(ROUTES, RouterConfig(attach_response_validator=True))

    @users.get("/users/:id")
    def get_user(req, res, next):
        user = find_user(req.params.id)
        if user is None:
            return res.status(404).json({"message": "User not found"})
        return res.json(user)

    app.register_blueprint(users.blueprint, url_prefix="/api")

Registration is intercepted per verb:
- (path, verb) not in the RouteTable -> handlers registered as given
- (path, verb) in the RouteTable -> [request_validator, response_validator?, *handlers]

Handlers are chain stages: stage(req, res, next). A stage either writes the
response or calls next(req, res) to hand over to the following stage.
Returning a body (or a (body, status) tuple) without writing is shorthand
for res.json(...).

The Blueprint is composed, not patched: code holding the Blueprint sees
exactly the rules this router registered.
"""

import itertools
import logging
import re
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

from flask import Blueprint, g

from .context import RequestContext, ResponseWriter
from .registry import METHODS, RouteTable, RouterConfig, build_route_table
from .validate import (
    ContractResponseWriter,
    Stage,
    build_request_validator,
    build_response_validator,
)


logger = logging.getLogger('routecontract.contracts')

_PLACEHOLDER = re.compile(r':([A-Za-z_][A-Za-z0-9_]*)')

_WRITERS = (ResponseWriter, ContractResponseWriter)

# Suffixes for routers built without an explicit name
_router_ids = itertools.count(1)


def flask_rule(path: str) -> str:
    """Translate a route-table path to a Flask rule: "/users/:id" -> "/users/<id>"."""
    return _PLACEHOLDER.sub(r'<\1>', path)


def _endpoint_name(method: str, path: str) -> str:
    # Blueprint endpoints may not contain dots
    return f"{method} {path}".replace('.', '_')


def _matches_prefix(path: str, prefix: str) -> bool:
    if not prefix or prefix == '/':
        return True
    prefix = prefix.rstrip('/')
    return path == prefix or path.startswith(prefix + '/')


def _emit_returned(res: Any, result: Any) -> None:
    """Emit a handler's return value through the (possibly validating) writer."""
    if isinstance(result, tuple) and len(result) == 2 and isinstance(result[1], int):
        body, status_code = result
        res.status(status_code)
        res.json(body)
    else:
        res.json(result)


def run_chain(stages: Sequence[Stage], req: RequestContext, res: Any) -> None:
    """
    Run stages in order. Each stage decides whether the next one runs.

    next() may be called with replacement req/res objects; omitted
    arguments keep the current ones.
    """
    def dispatch(index: int, req: RequestContext, res: Any) -> None:
        if index >= len(stages):
            return None

        def next_stage(next_req: Optional[RequestContext] = None, next_res: Any = None) -> None:
            return dispatch(
                index + 1,
                req if next_req is None else next_req,
                res if next_res is None else next_res,
            )

        result = stages[index](req, res, next_stage)
        if result is not None and not isinstance(result, _WRITERS) and not res.sent:
            _emit_returned(res, result)
        return None

    dispatch(0, req, res)


class ContractRouter:
    """
    Router facade that validates requests (and optionally responses) against a RouteTable.

    Build with ContractRouter.new(); a router without a table and config
    cannot validate anything, so there is no public constructor.
    """

    route_table: RouteTable
    config: RouterConfig
    blueprint: Blueprint

    def __init__(self, *args, **kwargs):
        raise TypeError("ContractRouter cannot be instantiated directly; use ContractRouter.new()")

    @classmethod
    def new(
        cls,
        route_table: Any,
        config: Optional[RouterConfig] = None,
        *,
        name: Optional[str] = None,
        import_name: Optional[str] = None,
        url_prefix: Optional[str] = None,
        blueprint: Optional[Blueprint] = None,
    ) -> "ContractRouter":
        """
        Create a router bound to a route table.

        Args:
            route_table: RouteTable or its authored dict form
            config: Enforcement settings (defaults from environment, see Config)
            name: Blueprint name, unique per Flask app (default: "contract_<n>")
            import_name: Blueprint import name (defaults to this module)
            url_prefix: Blueprint URL prefix
            blueprint: Existing Blueprint to register into instead of a new one

        Returns:
            A ContractRouter whose .blueprint is ready for app.register_blueprint()
        """
        router = cls.__new__(cls)
        router.route_table = build_route_table(route_table)
        router.config = config if config is not None else RouterConfig.from_env()
        if name is None:
            name = f"contract_{next(_router_ids)}"
        router.blueprint = blueprint if blueprint is not None else Blueprint(
            name, import_name or __name__, url_prefix=url_prefix,
        )
        router._middleware = []
        router._registered = set()
        return router

    # =========================================================================
    # Verb registration
    # =========================================================================

    def get(self, path: str, *handlers: Stage) -> Union["ContractRouter", Callable]:
        return self._register('get', path, handlers)

    def post(self, path: str, *handlers: Stage) -> Union["ContractRouter", Callable]:
        return self._register('post', path, handlers)

    def put(self, path: str, *handlers: Stage) -> Union["ContractRouter", Callable]:
        return self._register('put', path, handlers)

    def patch(self, path: str, *handlers: Stage) -> Union["ContractRouter", Callable]:
        return self._register('patch', path, handlers)

    def delete(self, path: str, *handlers: Stage) -> Union["ContractRouter", Callable]:
        return self._register('delete', path, handlers)

    def route(self, method: str, path: str, *handlers: Stage) -> Union["ContractRouter", Callable]:
        """Register by method name, e.g. router.route("get", "/users", handler)."""
        name = method.lower()
        if name not in METHODS:
            raise ValueError(f"Unsupported method '{method}'")
        return self._register(name, path, handlers)

    def _register(self, method: str, path: str, handlers: Sequence[Stage]):
        if not handlers:
            # Decorator form: @router.get("/users")
            def decorator(fn: Stage) -> Stage:
                self._register(method, path, (fn,))
                return fn
            return decorator

        if (path, method) in self._registered:
            raise ValueError(f"{method.upper()} {path} is already registered")

        stages = self._build_stages(method, path, handlers)
        self.blueprint.add_url_rule(
            flask_rule(path),
            endpoint=_endpoint_name(method, path),
            view_func=self._make_view(method, path, stages),
            methods=[method.upper()],
        )
        self._registered.add((path, method))
        return self

    def _build_stages(self, method: str, path: str, handlers: Sequence[Stage]) -> Tuple[Stage, ...]:
        description = self.route_table.lookup(path, method)
        if description is None:
            # Not part of the contract: register exactly what was given
            logger.debug(f"No contract for {method.upper()} {path}, passing through")
            return tuple(handlers)

        stages: List[Stage] = [build_request_validator(description, self.config)]
        if self.config.attach_response_validator:
            stages.append(build_response_validator(description))
        stages.extend(handlers)
        return tuple(stages)

    def _make_view(self, method: str, path: str, stages: Tuple[Stage, ...]) -> Callable:
        route = f"{method.upper()} {path}"
        contract = "validated" if self.route_table.lookup(path, method) is not None else "passthrough"

        def view(**view_args):
            # Read by the request logging middleware
            g.contract_route = route
            g.contract = contract
            req = RequestContext.from_flask(path, view_args)
            res = ResponseWriter()
            middleware = [stage for prefix, stage in self._middleware if _matches_prefix(path, prefix)]
            run_chain(middleware + list(stages), req, res)
            return res.to_flask()
        return view

    # =========================================================================
    # Mounting
    # =========================================================================

    def use(self, *handlers: Any) -> "ContractRouter":
        """
        Mount sub-routers or router-level middleware.

        Accepts an optional path prefix followed by any mix of:
        - ContractRouter / Blueprint: nested under the prefix
        - chain stages: run before every route of this router whose path
          starts with the prefix

        Middleware is not positional: it runs ahead of every matching route,
        including routes registered before the use() call. It also runs ahead
        of the request validator, so on contract routes it sees the raw
        params, query and body.

        Usage:
            api.use("/admin", admin_router)
            api.use(require_api_key)
        """
        prefix: Optional[str] = None
        if handlers and isinstance(handlers[0], str):
            prefix, handlers = handlers[0], handlers[1:]

        for handler in handlers:
            if isinstance(handler, ContractRouter):
                self.blueprint.register_blueprint(handler.blueprint, url_prefix=prefix)
            elif isinstance(handler, Blueprint):
                self.blueprint.register_blueprint(handler, url_prefix=prefix)
            elif callable(handler):
                self._middleware.append((prefix or '', handler))
            else:
                raise TypeError(f"Cannot mount {handler!r} on a ContractRouter")
        return self

    # =========================================================================
    # Introspection
    # =========================================================================

    @property
    def registered_routes(self) -> List[Tuple[str, str]]:
        """(path, method) pairs registered through this router."""
        return sorted(self._registered)

    def unregistered_routes(self) -> List[Tuple[str, str]]:
        """Contract routes that have no handler registered yet."""
        return [
            (path, method)
            for path, method, _ in self.route_table.routes()
            if (path, method) not in self._registered
        ]

    def __repr__(self) -> str:
        return f"<ContractRouter {self.blueprint.name!r} routes={len(self._registered)}>"
