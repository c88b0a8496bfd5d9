"""Tests for specgraph.runtime_expressions."""

from __future__ import annotations

from typing import Any

import pytest

from specgraph.models import RequestContext, ResponseContext, RuntimeContext
from specgraph.runtime_expressions import (
    evaluate_json_pointer,
    evaluate_link,
    evaluate_runtime_expression,
)


@pytest.fixture
def context() -> RuntimeContext:
    return RuntimeContext(
        url="https://api.example.com/users/7?expand=true",
        method="POST",
        statusCode=201,
        request=RequestContext(
            headers={"X-Request-Id": "req-1", "Accept": ["application/json", "text/plain"]},
            query={"expand": "true", "tags": ["a", "b"]},
            path={"userId": "7"},
            body={"name": "Ada", "roles": ["admin", "dev"], "a/b": 1, "m~n": 2},
        ),
        response=ResponseContext(
            headers={"Location": "/users/7", "X-Rate": 10},
            body={"id": 7, "profile": {"email": "ada@example.com", "verified": True}},
        ),
    )


class TestJsonPointer:
    """evaluate_json_pointer."""

    data: dict[str, Any] = {"a": {"b": [10, 20]}, "x/y": 1, "t~": 2, "sp ace": 3}

    @pytest.mark.parametrize(
        ("pointer", "expected"),
        [
            ("/a/b/1", 20),
            ("#/a/b/0", 10),
            ("/x~1y", 1),
            ("/t~0", 2),
            ("/sp%20ace", 3),
            ("/a/b/2", None),
            ("/a/b/-", None),
            ("/missing", None),
            ("/a/b/0/deeper", None),
            ("a", None),
        ],
    )
    def test_pointer(self, pointer: str, expected: Any) -> None:
        assert evaluate_json_pointer(self.data, pointer) == expected

    @pytest.mark.parametrize("pointer", ["", "#"])
    def test_whole_document(self, pointer: str) -> None:
        assert evaluate_json_pointer(self.data, pointer) is self.data


class TestSingleExpressions:
    """Bare expressions keep their value type."""

    def test_url_method_status(self, context: RuntimeContext) -> None:
        assert evaluate_runtime_expression("$url", context) == context.url
        assert evaluate_runtime_expression("$method", context) == "POST"
        assert evaluate_runtime_expression("$statusCode", context) == 201

    def test_request_header_case_insensitive(self, context: RuntimeContext) -> None:
        assert evaluate_runtime_expression("$request.header.x-request-id", context) == "req-1"

    def test_multi_value_header_first(self, context: RuntimeContext) -> None:
        assert evaluate_runtime_expression("$request.header.accept", context) == "application/json"

    def test_query_and_path(self, context: RuntimeContext) -> None:
        assert evaluate_runtime_expression("$request.query.expand", context) == "true"
        assert evaluate_runtime_expression("$request.query.tags", context) == "a"
        assert evaluate_runtime_expression("$request.path.userId", context) == "7"

    def test_query_and_path_case_sensitive(self, context: RuntimeContext) -> None:
        assert evaluate_runtime_expression("$request.query.EXPAND", context) is None
        assert evaluate_runtime_expression("$request.path.userid", context) is None

    def test_bodies(self, context: RuntimeContext) -> None:
        assert evaluate_runtime_expression("$request.body#/roles/1", context) == "dev"
        assert evaluate_runtime_expression("$request.body#/a~1b", context) == 1
        assert evaluate_runtime_expression("$request.body#/m~0n", context) == 2
        assert evaluate_runtime_expression("$response.body#/id", context) == 7
        assert evaluate_runtime_expression("$response.body", context) == context.response.body

    def test_response_header(self, context: RuntimeContext) -> None:
        assert evaluate_runtime_expression("$response.header.location", context) == "/users/7"

    def test_response_has_no_path(self, context: RuntimeContext) -> None:
        assert evaluate_runtime_expression("$response.path.userId", context) is None

    def test_missing_halves(self) -> None:
        bare = RuntimeContext(url="https://x", method="GET")
        assert evaluate_runtime_expression("$request.body", bare) is None
        assert evaluate_runtime_expression("$response.header.Location", bare) is None
        assert evaluate_runtime_expression("$statusCode", bare) is None

    def test_unknown_expression(self, context: RuntimeContext) -> None:
        assert evaluate_runtime_expression("$unknown", context) is None
        assert evaluate_runtime_expression("$request.cookie.id", context) is None


class TestTemplates:
    """Constants and embedded expressions."""

    def test_constant_returned_unchanged(self, context: RuntimeContext) -> None:
        assert evaluate_runtime_expression("plain-value", context) == "plain-value"

    def test_template(self, context: RuntimeContext) -> None:
        result = evaluate_runtime_expression(
            "https://api.example.com/users/{$request.path.userId}/posts", context
        )
        assert result == "https://api.example.com/users/7/posts"

    def test_multiple_segments(self, context: RuntimeContext) -> None:
        assert evaluate_runtime_expression("{$method} {$statusCode}", context) == "POST 201"

    def test_undefined_segment_becomes_empty(self, context: RuntimeContext) -> None:
        assert evaluate_runtime_expression("id={$request.query.nope}", context) == "id="

    def test_value_rendering(self, context: RuntimeContext) -> None:
        assert evaluate_runtime_expression("{$response.body#/profile/verified}", context) == "true"
        assert evaluate_runtime_expression("{$request.body#/roles}", context) == '["admin","dev"]'

    def test_context_from_aliases(self) -> None:
        ctx = RuntimeContext.model_validate({"url": "u", "method": "GET", "statusCode": 404})
        assert evaluate_runtime_expression("{$statusCode}", ctx) == "404"


class TestEvaluateLink:
    """Link Object evaluation."""

    def test_parameters_and_body(self, context: RuntimeContext) -> None:
        link = {
            "operationId": "getUser",
            "parameters": {
                "userId": "$response.body#/id",
                "source": "link",
                "page": 1,
            },
            "requestBody": {"copy": True},
        }
        assert evaluate_link(link, context) == {
            "parameters": {"userId": 7, "source": "link", "page": 1},
            "request_body": {"copy": True},
        }

    def test_request_body_expression(self, context: RuntimeContext) -> None:
        result = evaluate_link({"requestBody": "$request.body#/name"}, context)
        assert result == {"parameters": {}, "request_body": "Ada"}

    def test_empty_link(self, context: RuntimeContext) -> None:
        assert evaluate_link({}, context) == {"parameters": {}, "request_body": None}
