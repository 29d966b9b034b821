"""
Contract API Client - route-table aware wrapper around requests.

Usage:
    from routecontract.client import ContractClient

    client = ContractClient("https://api.example.com", ROUTES)

    response = client.get("/users/:id", {"path": {"id": 7}})
    user = response.json()

    try:
        client.get("/users/:id", {"path": {"id": 999}})
    except TransportError as err:
        if client.is_error_of(err, "get", "/users/:id", 404):
            print(err.data["message"])

Non-2xx responses and network failures raise TransportError, which records
the method and path template of the call so callers can branch on
(method, path, status) without parsing the error.
"""

import logging
from typing import Any, Mapping, Optional

import requests

from ..config import Config
from ..contracts.registry import METHODS, RouteTable, build_route_table
from .request_builder import build_request_config

logger = logging.getLogger('routecontract.client')


class TransportError(requests.RequestException):
    """
    A contract call failed at the transport level.

    Attributes:
        method: Lower-case method of the call
        path: Path template the call was made with, e.g. "/users/:id"
        url: Concrete URL that was requested
        response: requests.Response, or None if no response was received
    """

    def __init__(self, method: str, path: str, url: str,
                 response: Optional[requests.Response] = None, message: Optional[str] = None):
        status = response.status_code if response is not None else None
        super().__init__(
            message or f"{method.upper()} {url} failed with status {status}",
            response=response,
            request=response.request if response is not None else None,
        )
        self.method = method
        self.path = path
        self.url = url

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None

    @property
    def data(self) -> Any:
        """Decoded JSON error body, or None if there is none."""
        if self.response is None:
            return None
        try:
            return self.response.json()
        except ValueError:
            return None


class ContractClient:
    """
    HTTP client for an API described by a RouteTable.

    Features:
    - Path placeholder substitution (/users/:id)
    - Bracket query serialization (tags[]=a&tags[]=b)
    - Rejects calls to routes missing from the table (when a table is given)
    - TransportError with (method, path, status) correlation
    """

    def __init__(
        self,
        base_url: str,
        route_table: Optional[Any] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize client.

        Args:
            base_url: Prefix for every request URL
            route_table: Optional RouteTable (or its dict form) to check calls against
            session: requests.Session to use (a new one by default)
            timeout: Request timeout in seconds. Defaults to Config.CLIENT_TIMEOUT_SECONDS.
        """
        self.base_url = base_url.rstrip('/')
        self.route_table: Optional[RouteTable] = (
            build_route_table(route_table) if route_table is not None else None
        )
        self.timeout = timeout if timeout is not None else Config.CLIENT_TIMEOUT_SECONDS

        self.session = session if session is not None else requests.Session()
        self.session.headers.update({"User-Agent": Config.CLIENT_USER_AGENT})

    # =========================================================================
    # Verb helpers
    # =========================================================================

    def get(self, path: str, config: Optional[Mapping[str, Any]] = None) -> requests.Response:
        return self.request('get', path, config)

    def post(self, path: str, config: Optional[Mapping[str, Any]] = None) -> requests.Response:
        return self.request('post', path, config)

    def put(self, path: str, config: Optional[Mapping[str, Any]] = None) -> requests.Response:
        return self.request('put', path, config)

    def patch(self, path: str, config: Optional[Mapping[str, Any]] = None) -> requests.Response:
        return self.request('patch', path, config)

    def delete(self, path: str, config: Optional[Mapping[str, Any]] = None) -> requests.Response:
        return self.request('delete', path, config)

    def request(self, method: str, path: str, config: Optional[Mapping[str, Any]] = None) -> requests.Response:
        """
        Make a request to a contract route.

        Args:
            method: One of METHODS
            path: Path template from the route table
            config: path/header/query/body plus extra requests options

        Returns:
            requests.Response with a 2xx status

        Raises:
            ValueError: If a route table is set and (path, method) is not in it
            TransportError: On non-2xx responses or network failures
        """
        method = method.lower()
        if method not in METHODS:
            raise ValueError(f"Unsupported method '{method}'")
        if self.route_table is not None and self.route_table.lookup(path, method) is None:
            raise ValueError(f"{method.upper()} {path} is not declared in the route table")

        request_config = build_request_config(method, path, config)
        request_config.setdefault('timeout', self.timeout)
        send_method = request_config.pop('method')
        url = request_config.pop('url')
        full_url = self._full_url(url)

        logger.debug(f"{send_method.upper()} {full_url}")

        try:
            response = self.session.request(send_method.upper(), full_url, **request_config)
        except requests.RequestException as e:
            raise TransportError(method, path, full_url, message=f"{method.upper()} {full_url} failed: {e}") from e

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.debug(f"{send_method.upper()} {full_url} -> {response.status_code}")
            raise TransportError(method, path, full_url, response=response) from e

        return response

    def _full_url(self, url: str) -> str:
        if url.startswith(('http://', 'https://')):
            return url
        return f"{self.base_url}/{url.lstrip('/')}"

    # =========================================================================
    # Error discrimination
    # =========================================================================

    def is_error_of(self, err: BaseException, method: str, path: str, code: int) -> bool:
        """
        Check whether err is the failure of a specific contract call.

        Args:
            err: Any exception
            method: Method of the call, e.g. "get"
            path: Path template of the call, e.g. "/users/:id"
            code: Expected response status code

        Returns:
            True if err is a TransportError for (method, path) with that status
        """
        if not isinstance(err, TransportError):
            return False

        if err.method != method.lower():
            return False

        if err.path != path:
            return False

        if err.status_code != code:
            return False

        return True

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "ContractClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
