"""
Tests for the response validation stage and ContractResponseWriter.
"""

import logging

import pytest

from routecontract.contracts import (
    OUT_OF_SPEC_BODY,
    ContractResponseWriter,
    RequestContext,
    ResponseWriter,
    build_response_validator,
)


@pytest.fixture
def user_description(route_table):
    return route_table.lookup("/users/:id", "get")


@pytest.fixture
def writer(user_description):
    inner = ResponseWriter()
    return inner, ContractResponseWriter(inner, user_description, route="GET /users/:id")


class TestContractResponseWriter:

    def test_valid_body_emitted(self, writer):
        inner, res = writer
        res.status(200).json({"id": 7, "name": "John"})
        assert inner.status_code == 200
        assert inner.body == {"id": 7, "name": "John"}

    def test_body_canonicalized(self, writer):
        inner, res = writer
        res.json({"id": "7", "name": "John", "internal": "secret"})
        assert inner.body == {"id": 7, "name": "John"}

    def test_model_instance_accepted(self, writer, models):
        inner, res = writer
        res.json(models.User(id=1, name="Ann"))
        assert inner.body == {"id": 1, "name": "Ann"}

    def test_invalid_body_becomes_500(self, writer):
        inner, res = writer
        res.status(200).json({"id": "not-a-number"})
        assert inner.status_code == 500
        assert inner.body == {
            "status": "Internal server error",
            "message": "Server generated response is out of API spec",
        }

    def test_invalid_body_for_other_declared_status(self, writer):
        inner, res = writer
        res.status(404).json({"id": 7})
        assert inner.status_code == 500
        assert inner.body == OUT_OF_SPEC_BODY

    def test_undeclared_status_passes_unchanged(self, writer):
        inner, res = writer
        body = {"anything": ["goes"]}
        res.status(418).json(body)
        assert inner.status_code == 418
        assert inner.body is body

    def test_default_schema_is_not_a_fallback(self, writer):
        inner, res = writer
        # "default" declares User; 500 has no schema, so nothing is checked
        res.status(500).json({"error": "boom"})
        assert inner.status_code == 500
        assert inner.body == {"error": "boom"}

    def test_repeated_emit_rechecks(self, writer):
        inner, res = writer
        res.status(200).json({"id": 1, "name": "A"})
        res.status(200).json({"bad": True})
        assert inner.status_code == 500
        assert inner.body == OUT_OF_SPEC_BODY

    def test_state_delegates_to_inner(self, writer):
        inner, res = writer
        res.status_code = 404
        res.set_header("X-Test", "1")
        assert inner.status_code == 404
        assert res.headers == {"X-Test": "1"}
        assert res.sent is False
        res.json({"message": "gone"})
        assert res.sent is True
        assert res.body == {"message": "gone"}

    def test_violation_logged(self, writer, caplog):
        inner, res = writer
        with caplog.at_level(logging.WARNING, logger="routecontract.contracts"):
            res.status(200).json({"id": "x"})

        records = [r for r in caplog.records if getattr(r, "event", None) == "contract_violation"]
        assert len(records) == 1
        assert records[0].route == "GET /users/:id"
        assert records[0].stage == "response"


class TestBuildResponseValidator:

    def test_wraps_writer_for_rest_of_chain(self, user_description):
        validator = build_response_validator(user_description)
        req = RequestContext(method="get", path="/users/:id", request_id="req-1")
        res = ResponseWriter()
        seen = []

        validator(req, res, lambda next_req, next_res: seen.append((next_req, next_res)))

        assert len(seen) == 1
        next_req, next_res = seen[0]
        assert next_req is req
        assert isinstance(next_res, ContractResponseWriter)

        next_res.status(404).json({"message": "User not found"})
        assert res.status_code == 404
        assert res.body == {"message": "User not found"}
