"""
Flask Application Factory for contract-enforced APIs.

Wires the global middleware (request IDs, request logging, error envelope)
and registers ContractRouter blueprints:

    users = ContractRouter.new(ROUTES, name="users")
    users.get("/users/:id", get_user)

    app = create_app(users, url_prefix="/api")
"""

from typing import Optional, Union

from flask import Flask, Blueprint

from .contracts.router import ContractRouter
from .middleware import (
    setup_error_handlers,
    setup_request_id_middleware,
    setup_request_logging_middleware,
)


def create_app(
    *routers: Union[ContractRouter, Blueprint],
    url_prefix: Optional[str] = None,
    import_name: str = __name__,
) -> Flask:
    """
    Create a Flask app serving the given routers.

    Args:
        routers: ContractRouters (or plain Blueprints) to register, in order
        url_prefix: Prefix applied to every router, e.g. "/api"
        import_name: Flask import name

    Returns:
        Configured Flask application
    """
    app = Flask(import_name)

    # Request ID injection for request correlation and debugging
    setup_request_id_middleware(app)

    # Request usage logging (sampling + watchlist)
    setup_request_logging_middleware(app)

    # Standardized error envelope for HTTP and unhandled errors
    setup_error_handlers(app)

    for router in routers:
        blueprint = router.blueprint if isinstance(router, ContractRouter) else router
        if url_prefix is None:
            app.register_blueprint(blueprint)
        else:
            app.register_blueprint(blueprint, url_prefix=url_prefix)

    return app
