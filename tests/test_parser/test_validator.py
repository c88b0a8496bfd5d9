"""Tests for specgraph.parser.validator."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from specgraph.exceptions import SpecValidationError
from specgraph.parser.resolver import DocumentCache
from specgraph.parser.validator import (
    is_api_document,
    iter_path_item_operations,
    validate_operation_ids_across_documents,
    validate_servers,
    validate_spec,
)


def _doc(**extra: Any) -> dict[str, Any]:
    spec: dict[str, Any] = {
        "openapi": "3.1.0",
        "info": {"title": "T", "version": "1"},
        "paths": {},
    }
    spec.update(extra)
    return spec


class TestHeader:
    """Version, info and root-field checks."""

    def test_fixtures_are_valid(
        self, petstore_30_raw: dict[str, Any], swagger_20_raw: dict[str, Any]
    ) -> None:
        validate_spec(petstore_30_raw)
        validate_spec(swagger_20_raw)

    def test_missing_version_header(self) -> None:
        with pytest.raises(SpecValidationError, match="Unsupported or missing OpenAPI/Swagger version"):
            validate_spec({"info": {"title": "T", "version": "1"}, "paths": {}})

    def test_openapi_2_is_not_accepted(self) -> None:
        with pytest.raises(SpecValidationError):
            validate_spec(_doc(openapi="2.0"))

    def test_missing_info(self) -> None:
        spec = _doc()
        del spec["info"]
        with pytest.raises(SpecValidationError, match="'info' object"):
            validate_spec(spec)

    @pytest.mark.parametrize("field", ["title", "version"])
    def test_missing_info_field(self, field: str) -> None:
        spec = _doc()
        del spec["info"][field]
        with pytest.raises(SpecValidationError, match=f"'{field}'"):
            validate_spec(spec)

    def test_openapi3_needs_a_root_field(self) -> None:
        spec = _doc()
        del spec["paths"]
        with pytest.raises(SpecValidationError, match="'paths', 'components', or 'webhooks'"):
            validate_spec(spec)

    def test_components_only_document_is_valid(self) -> None:
        spec = _doc(components={"schemas": {"A": {"type": "string"}}})
        del spec["paths"]
        validate_spec(spec)

    def test_swagger_needs_paths(self) -> None:
        with pytest.raises(SpecValidationError, match="'paths' object"):
            validate_spec({"swagger": "2.0", "info": {"title": "T", "version": "1"}})

    def test_license_exclusivity(self) -> None:
        spec = _doc()
        spec["info"]["license"] = {"name": "MIT", "url": "https://x", "identifier": "MIT"}
        with pytest.raises(SpecValidationError, match="mutually exclusive"):
            validate_spec(spec)

    def test_non_mapping(self) -> None:
        with pytest.raises(SpecValidationError):
            validate_spec(["openapi"])

    def test_does_not_mutate(self, petstore_30_raw: dict[str, Any]) -> None:
        before = copy.deepcopy(petstore_30_raw)
        validate_spec(petstore_30_raw)
        assert petstore_30_raw == before


class TestServers:
    """Server URL template checks."""

    def test_undeclared_placeholder(self) -> None:
        with pytest.raises(SpecValidationError, match='uses variable "region"'):
            validate_servers([{"url": "https://{region}.example.com"}], "servers")

    def test_default_must_be_string(self) -> None:
        servers = [{"url": "https://{region}.example.com", "variables": {"region": {"default": 1}}}]
        with pytest.raises(SpecValidationError, match="string default"):
            validate_servers(servers, "servers")

    def test_default_must_be_in_enum(self) -> None:
        servers = [{
            "url": "https://{region}.example.com",
            "variables": {"region": {"default": "eu", "enum": ["us", "ap"]}},
        }]
        with pytest.raises(SpecValidationError, match='default "eu" is not one of'):
            validate_servers(servers, "servers")

    def test_empty_enum(self) -> None:
        servers = [{"url": "https://x", "variables": {"v": {"default": "a", "enum": []}}}]
        with pytest.raises(SpecValidationError, match="non-empty array"):
            validate_servers(servers, "servers")

    def test_duplicate_names(self) -> None:
        servers = [{"url": "https://a", "name": "prod"}, {"url": "https://b", "name": "prod"}]
        with pytest.raises(SpecValidationError, match='Server name "prod" must be unique'):
            validate_servers(servers, "servers")

    def test_valid_template(self) -> None:
        validate_servers(
            [{
                "url": "https://{region}.example.com/{version}",
                "variables": {
                    "region": {"default": "us", "enum": ["us", "eu"]},
                    "version": {"default": "v1"},
                },
            }],
            "servers",
        )

    def test_operation_servers_checked(self) -> None:
        spec = _doc(paths={
            "/a": {"get": {"servers": [{"url": "https://{x}"}], "responses": {}}},
        })
        with pytest.raises(SpecValidationError, match=r"paths\./a\.GET"):
            validate_spec(spec)


class TestPathItems:
    """Operation ids and additionalOperations."""

    def test_duplicate_operation_id(self) -> None:
        spec = _doc(paths={
            "/a": {"get": {"operationId": "dup"}},
            "/b": {"post": {"operationId": "dup"}},
        })
        with pytest.raises(SpecValidationError, match='Duplicate operationId "dup"'):
            validate_spec(spec)

    def test_additional_operation_accepted(self) -> None:
        spec = _doc(openapi="3.2.0", paths={
            "/a": {"additionalOperations": {"LINK": {"operationId": "linkA"}}},
        })
        validate_spec(spec)

    def test_additional_operation_invalid_token(self) -> None:
        spec = _doc(openapi="3.2.0", paths={
            "/a": {"additionalOperations": {"BAD METHOD": {}}},
        })
        with pytest.raises(SpecValidationError, match="not a valid HTTP method token"):
            validate_spec(spec)

    def test_additional_operation_reuses_fixed_method(self) -> None:
        spec = _doc(openapi="3.2.0", paths={"/a": {"additionalOperations": {"GET": {}}}})
        with pytest.raises(SpecValidationError, match="fixed Path Item field"):
            validate_spec(spec)

    def test_iter_path_item_operations(self) -> None:
        path_item = {
            "get": {"operationId": "a"},
            "query": {"operationId": "q"},
            "parameters": [],
            "additionalOperations": {"COPY": {"operationId": "c"}},
        }
        methods = [method for method, _ in iter_path_item_operations(path_item)]
        assert methods == ["GET", "QUERY", "COPY"]


class TestSecuritySchemes:
    """Required fields per scheme type."""

    def _with_scheme(self, scheme: dict[str, Any]) -> dict[str, Any]:
        return _doc(components={"securitySchemes": {"s": scheme}})

    def test_api_key_needs_name_and_in(self) -> None:
        with pytest.raises(SpecValidationError, match="apiKey"):
            validate_spec(self._with_scheme({"type": "apiKey", "in": "header"}))

    def test_api_key_bad_location(self) -> None:
        with pytest.raises(SpecValidationError):
            validate_spec(self._with_scheme({"type": "apiKey", "name": "k", "in": "body"}))

    def test_http_needs_scheme(self) -> None:
        with pytest.raises(SpecValidationError, match="'scheme'"):
            validate_spec(self._with_scheme({"type": "http"}))

    def test_oauth2_needs_flows(self) -> None:
        with pytest.raises(SpecValidationError, match="'flows'"):
            validate_spec(self._with_scheme({"type": "oauth2"}))

    def test_openid_connect_needs_https(self) -> None:
        scheme = {"type": "openIdConnect", "openIdConnectUrl": "http://id.example.com"}
        with pytest.raises(SpecValidationError, match="https"):
            validate_spec(self._with_scheme(scheme))

    def test_valid_schemes(self) -> None:
        validate_spec(_doc(components={"securitySchemes": {
            "key": {"type": "apiKey", "name": "k", "in": "cookie"},
            "bearer": {"type": "http", "scheme": "bearer"},
            "oidc": {"type": "openIdConnect", "openIdConnectUrl": "https://id.example.com"},
            "shared": {"$ref": "other.json#/components/securitySchemes/x"},
        }}))


class TestExamples:
    """Example Object field exclusivity."""

    @pytest.mark.parametrize(
        "example",
        [
            {"value": 1, "externalValue": "https://x"},
            {"value": 1, "dataValue": 1},
            {"serializedValue": "1", "externalValue": "https://x"},
        ],
    )
    def test_exclusive_fields(self, example: dict[str, Any]) -> None:
        spec = _doc(components={"examples": {"e": example}})
        with pytest.raises(SpecValidationError, match="mutually exclusive"):
            validate_spec(spec)

    def test_nested_media_type_examples(self) -> None:
        spec = _doc(paths={"/a": {"get": {"responses": {"200": {
            "description": "ok",
            "content": {"application/json": {"examples": {
                "bad": {"value": {}, "serializedValue": "{}"},
            }}},
        }}}}})
        with pytest.raises(SpecValidationError, match='Example "bad"'):
            validate_spec(spec)

    def test_swagger_examples_not_checked(self, swagger_20_raw: dict[str, Any]) -> None:
        swagger_20_raw["x-examples"] = {"examples": {"e": {"value": 1, "externalValue": "x"}}}
        validate_spec(swagger_20_raw)


class TestCrossDocument:
    """operationId uniqueness across every loaded document."""

    def _cache(self, *documents: dict[str, Any]) -> DocumentCache:
        cache = DocumentCache()
        for index, document in enumerate(documents):
            cache.add(f"https://example.com/{index}.json", document)
        return cache

    def test_duplicate_across_documents(self) -> None:
        cache = self._cache(
            _doc(paths={"/a": {"get": {"operationId": "same"}}}),
            _doc(paths={"/b": {"get": {"operationId": "same"}}}),
        )
        with pytest.raises(SpecValidationError) as exc_info:
            validate_operation_ids_across_documents(cache)
        message = str(exc_info.value)
        assert "https://example.com/0.json#paths./a.GET" in message
        assert "https://example.com/1.json#paths./b.GET" in message

    def test_component_path_items_and_callbacks_scanned(self) -> None:
        cache = self._cache(
            _doc(paths={"/a": {"get": {"operationId": "hook"}}}),
            _doc(components={"callbacks": {"cb": {"{$request.body#/url}": {
                "post": {"operationId": "hook"},
            }}}}),
        )
        with pytest.raises(SpecValidationError, match='"hook"'):
            validate_operation_ids_across_documents(cache)

    def test_referenced_path_item_counted_once(self) -> None:
        cache = self._cache(
            _doc(paths={"/a": {"$ref": "https://example.com/1.json#/paths/~1a"}}),
            _doc(paths={"/a": {"get": {"operationId": "only"}}}),
        )
        validate_operation_ids_across_documents(cache)

    def test_fragment_documents_ignored(self) -> None:
        cache = self._cache(
            _doc(paths={"/a": {"get": {"operationId": "x"}}}),
            {"users": {"get": {"operationId": "x"}}},
        )
        validate_operation_ids_across_documents(cache)

    def test_is_api_document(self) -> None:
        assert is_api_document({"openapi": "3.0.0"})
        assert is_api_document({"swagger": "2.0"})
        assert not is_api_document({"components": {}})
