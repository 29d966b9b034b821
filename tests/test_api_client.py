"""
Tests for ContractClient

These tests mock the requests session to avoid network access.
"""

import json
from unittest.mock import MagicMock

import pytest
import requests

from routecontract.client import ContractClient, TransportError
from routecontract.config import Config


# =============================================================================
# Fixtures
# =============================================================================

def _response(status_code, payload=None, url="https://api.example.com/users/7"):
    response = requests.Response()
    response.status_code = status_code
    response.url = url
    response.headers["Content-Type"] = "application/json"
    if payload is not None:
        response._content = json.dumps(payload).encode()
    else:
        response._content = b""
    return response


@pytest.fixture
def session():
    mock_session = MagicMock(spec=requests.Session)
    mock_session.headers = {}
    return mock_session


@pytest.fixture
def client(session, route_table):
    return ContractClient("https://api.example.com/", route_table, session=session, timeout=5)


# =============================================================================
# Request construction
# =============================================================================

class TestRequests:

    def test_get_with_path_params(self, client, session):
        session.request.return_value = _response(200, {"id": 7, "name": "John"})

        response = client.get("/users/:id", {"path": {"id": 7}})

        assert response.json() == {"id": 7, "name": "John"}
        session.request.assert_called_once_with(
            "GET",
            "https://api.example.com/users/7",
            headers=None,
            params=None,
            json=None,
            timeout=5,
        )

    def test_get_without_config(self, client, session):
        session.request.return_value = _response(200, {"users": [], "total": 0})

        client.get("/users")

        session.request.assert_called_once_with("GET", "https://api.example.com/users", timeout=5)

    def test_query_serialized_with_brackets(self, client, session):
        session.request.return_value = _response(200, {"users": [], "total": 0})

        client.get("/users", {"query": {"tags": ["a", "b"]}})

        _, kwargs = session.request.call_args
        assert kwargs["params"] == "tags[]=a&tags[]=b"

    def test_post_sends_json_body_and_headers(self, client, session):
        session.request.return_value = _response(201, {"id": 1, "name": "Ann"})

        client.post("/users", {"body": {"name": "Ann"}, "header": {"Authorization": "Bearer t"}})

        args, kwargs = session.request.call_args
        assert args == ("POST", "https://api.example.com/users")
        assert kwargs["json"] == {"name": "Ann"}
        assert kwargs["headers"] == {"Authorization": "Bearer t"}

    def test_extra_options_override_timeout(self, client, session):
        session.request.return_value = _response(200, {})

        client.get("/health", {"timeout": 1})

        _, kwargs = session.request.call_args
        assert kwargs["timeout"] == 1

    @pytest.mark.parametrize("verb", ["put", "patch", "delete"])
    def test_other_verbs(self, session, verb):
        client = ContractClient("https://api.example.com", session=session)
        session.request.return_value = _response(200, {})

        getattr(client, verb)("/things/:id", {"path": {"id": 1}})

        args, _ = session.request.call_args
        assert args == (verb.upper(), "https://api.example.com/things/1")

    def test_route_not_in_table_rejected(self, client, session):
        with pytest.raises(ValueError, match="not declared"):
            client.put("/users/:id", {"path": {"id": 1}})
        session.request.assert_not_called()

    def test_without_table_any_route_allowed(self, session):
        client = ContractClient("https://api.example.com", session=session)
        session.request.return_value = _response(200, {})

        client.get("/anything")

        session.request.assert_called_once()

    def test_default_timeout_from_config(self, session):
        client = ContractClient("https://api.example.com", session=session)
        assert client.timeout == Config.CLIENT_TIMEOUT_SECONDS

    def test_user_agent_set(self, client, session):
        assert session.headers["User-Agent"] == Config.CLIENT_USER_AGENT


# =============================================================================
# Errors
# =============================================================================

class TestTransportErrors:

    def test_http_error_raised(self, client, session):
        session.request.return_value = _response(404, {"message": "User not found"})

        with pytest.raises(TransportError) as exc_info:
            client.get("/users/:id", {"path": {"id": 999}})

        err = exc_info.value
        assert err.method == "get"
        assert err.path == "/users/:id"
        assert err.url == "https://api.example.com/users/999"
        assert err.status_code == 404
        assert err.data == {"message": "User not found"}
        assert isinstance(err.__cause__, requests.HTTPError)

    def test_network_error_wrapped(self, client, session):
        session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(TransportError) as exc_info:
            client.get("/health")

        assert exc_info.value.response is None
        assert exc_info.value.status_code is None
        assert exc_info.value.data is None

    def test_non_json_error_body(self, client, session):
        response = _response(500)
        response._content = b"<html>oops</html>"
        session.request.return_value = response

        with pytest.raises(TransportError) as exc_info:
            client.get("/health")

        assert exc_info.value.data is None


class TestIsErrorOf:

    def _error(self, client, session, status_code, path="/users/:id", config=None):
        session.request.return_value = _response(status_code, {"message": "x"})
        with pytest.raises(TransportError) as exc_info:
            client.get(path, config or {"path": {"id": 1}})
        return exc_info.value

    def test_matches_method_path_and_status(self, client, session):
        err = self._error(client, session, 404)
        assert client.is_error_of(err, "get", "/users/:id", 404)

    def test_method_case_insensitive(self, client, session):
        err = self._error(client, session, 404)
        assert client.is_error_of(err, "GET", "/users/:id", 404)

    def test_wrong_status(self, client, session):
        err = self._error(client, session, 404)
        assert not client.is_error_of(err, "get", "/users/:id", 500)

    def test_wrong_method(self, client, session):
        err = self._error(client, session, 404)
        assert not client.is_error_of(err, "delete", "/users/:id", 404)

    def test_wrong_path(self, client, session):
        err = self._error(client, session, 404)
        assert not client.is_error_of(err, "get", "/users", 404)

    def test_other_exceptions(self, client):
        assert not client.is_error_of(ValueError("x"), "get", "/users/:id", 404)
        assert not client.is_error_of(requests.HTTPError("x"), "get", "/users/:id", 404)

    def test_network_error_has_no_status(self, client, session):
        session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(TransportError) as exc_info:
            client.get("/health")
        assert not client.is_error_of(exc_info.value, "get", "/health", 500)


class TestContextManager:

    def test_closes_session(self, session):
        with ContractClient("https://api.example.com", session=session) as client:
            assert client.session is session
        session.close.assert_called_once()
