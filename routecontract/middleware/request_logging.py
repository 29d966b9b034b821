"""
Request logging middleware - one line per request, tagged with its contract mode.

Every logged line records which route template served the request and
whether it went through the contract pipeline:

    api_request route=GET /users/:id contract=validated status=400 ...

contract is one of:
- validated: the route is in a RouteTable, request validation ran
- passthrough: a ContractRouter route with no RouteTable entry
- none: served outside any ContractRouter (plain Blueprint, 404, ...)

Which requests are logged comes from Config (REQUEST_LOG_*): with a
watchlist only those path prefixes are logged, otherwise requests are sampled.
"""

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Optional, Tuple

from flask import Flask, g, request

from ..config import Config


logger = logging.getLogger("routecontract.request")


@dataclass(frozen=True)
class RequestLogPolicy:
    """Decides which requests get a log line."""
    sample_rate: float = 0.0
    watchlist: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_config(cls) -> "RequestLogPolicy":
        return cls(
            sample_rate=Config.REQUEST_LOG_SAMPLE_RATE,
            watchlist=tuple(Config.REQUEST_LOG_ENDPOINTS),
        )

    def should_log(self, path: str) -> bool:
        # A watchlist replaces sampling entirely
        if self.watchlist:
            return any(path.startswith(prefix) for prefix in self.watchlist)
        if self.sample_rate <= 0:
            return False
        return self.sample_rate >= 1 or random.random() < self.sample_rate


def setup_request_logging_middleware(
    app: Flask,
    policy: Optional[RequestLogPolicy] = None,
    enabled: Optional[bool] = None,
) -> None:
    """
    Set up request logging on a Flask app.

    Args:
        app: Flask application instance
        policy: Sampling/watchlist policy (default: RequestLogPolicy.from_config())
        enabled: Install the hooks at all (default: Config.REQUEST_LOG_ENABLED)
    """
    if enabled is None:
        enabled = Config.REQUEST_LOG_ENABLED
    if not enabled:
        return
    if policy is None:
        policy = RequestLogPolicy.from_config()

    @app.before_request
    def _start_timer():
        g.request_start = time.perf_counter()

    @app.after_request
    def _log_request(response):
        if not policy.should_log(request.path):
            return response

        started = g.get("request_start")
        duration_ms = round((time.perf_counter() - started) * 1000, 2) if started is not None else None
        route = g.get("contract_route")
        contract = g.get("contract", "none")

        logger.info(
            "api_request route=%s contract=%s path=%s status=%s duration_ms=%s request_id=%s",
            route or f"{request.method} -",
            contract,
            request.path,
            response.status_code,
            duration_ms,
            g.get("request_id"),
            extra={
                "event": "api_request",
                "route": route,
                "contract": contract,
                "status": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response

