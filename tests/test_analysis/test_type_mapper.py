"""Tests for specgraph.analysis.type_mapper."""

from __future__ import annotations

from typing import Any

import pytest

from specgraph.analysis import TypeMapper, is_data_type_interface, schema_to_type
from specgraph.models import GeneratorConfig, GeneratorOptions


@pytest.fixture
def mapper() -> TypeMapper:
    return TypeMapper(known_types=["Pet", "User", "Tree"])


class TestPrimitives:
    """Scalar schemas."""

    @pytest.mark.parametrize(
        ("schema", "expected"),
        [
            ({"type": "string"}, "string"),
            ({"type": "number", "format": "double"}, "number"),
            ({"type": "integer", "format": "int32"}, "number"),
            ({"type": "integer", "format": "int64"}, "number"),
            ({"type": "boolean"}, "boolean"),
            ({"type": "null"}, "null"),
            ({"type": "string", "format": "date-time"}, "string"),
            ({"type": "string", "format": "binary"}, "Blob"),
            ({"type": "file"}, "any"),
            ({}, "any"),
        ],
    )
    def test_default_options(self, mapper: TypeMapper, schema: dict[str, Any], expected: str) -> None:
        assert mapper.to_type(schema) == expected

    def test_date_type_option(self) -> None:
        config = GeneratorConfig(options=GeneratorOptions(date_type="Date"))
        mapper = TypeMapper(config)
        assert mapper.to_type({"type": "string", "format": "date"}) == "Date"
        assert mapper.to_type({"type": "string", "format": "date-time"}) == "Date"
        assert mapper.to_type({"type": "string", "format": "email"}) == "string"

    @pytest.mark.parametrize("int64_type", ["bigint", "string"])
    def test_int64_type_option(self, int64_type: str) -> None:
        config = GeneratorConfig(options=GeneratorOptions(int64_type=int64_type))
        assert schema_to_type({"type": "integer", "format": "int64"}, config) == int64_type

    def test_non_dict(self, mapper: TypeMapper) -> None:
        assert mapper.to_type(None) == "any"
        assert mapper.to_type(True) == "any"


class TestLiterals:
    """const and enum."""

    def test_string_enum(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"type": "string", "enum": ["a", "it's"]}) == "'a' | 'it\\'s'"

    def test_mixed_enum(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"enum": [1, True, None]}) == "1 | true | null"

    def test_const(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"const": "fixed"}) == "'fixed'"


class TestReferences:
    """$ref and $dynamicRef map to known model names."""

    def test_known_ref(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"$ref": "#/components/schemas/Pet"}) == "Pet"

    def test_ref_name_pascal_cased(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"$ref": "#/definitions/user"}) == "User"

    def test_unknown_ref(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"$ref": "#/components/schemas/Ghost"}) == "any"

    def test_dynamic_ref(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"$dynamicRef": "#/components/schemas/Tree"}) == "Tree"

    def test_array_of_refs(self, mapper: TypeMapper) -> None:
        schema = {"type": "array", "items": {"$ref": "#/components/schemas/Pet"}}
        assert mapper.to_type(schema) == "Pet[]"


class TestComposition:
    """allOf, anyOf, oneOf, not and conditionals."""

    def test_all_of(self, mapper: TypeMapper) -> None:
        schema = {"allOf": [{"$ref": "#/components/schemas/Pet"}, {"$ref": "#/components/schemas/User"}]}
        assert mapper.to_type(schema) == "Pet & User"

    def test_all_of_drops_any(self, mapper: TypeMapper) -> None:
        schema = {"allOf": [{"$ref": "#/components/schemas/Pet"}, {"description": "extra"}]}
        assert mapper.to_type(schema) == "Pet"

    def test_one_of(self, mapper: TypeMapper) -> None:
        schema = {"oneOf": [{"type": "string"}, {"type": "integer"}]}
        assert mapper.to_type(schema) == "string | number"

    def test_not(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"not": {"type": "string"}}) == "Exclude<any, string>"

    def test_if_then_else(self, mapper: TypeMapper) -> None:
        schema = {"if": {"type": "string"}, "then": {"type": "string"}, "else": {"type": "number"}}
        assert mapper.to_type(schema) == "string | number"

    def test_if_with_base_properties(self, mapper: TypeMapper) -> None:
        schema = {
            "properties": {"kind": {"type": "string"}},
            "required": ["kind"],
            "if": {"properties": {"kind": {"const": "a"}}},
            "then": {"$ref": "#/components/schemas/Pet"},
        }
        assert mapper.to_type(schema) == "{ kind: string } & (Pet | any)"

    def test_if_alone(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"if": {"type": "string"}}) == "any"


class TestArraysAndTuples:
    """Arrays, tuples and type arrays."""

    def test_array_without_items(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"type": "array"}) == "any[]"

    def test_tuple(self, mapper: TypeMapper) -> None:
        schema = {"prefixItems": [{"type": "string"}, {"type": "integer"}]}
        assert mapper.to_type(schema) == "[string, number]"

    def test_tuple_with_rest(self, mapper: TypeMapper) -> None:
        schema = {"prefixItems": [{"type": "string"}], "items": {"type": "boolean"}}
        assert mapper.to_type(schema) == "[string, ...boolean[]]"

    def test_type_array(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"type": ["string", "null"]}) == "string | null"

    def test_nullable(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"type": "string", "nullable": True}) == "string | null"

    def test_nullable_type_array_not_doubled(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"type": ["integer", "null"], "nullable": True}) == "number | null"


class TestStrings:
    """Encoded string content."""

    def test_json_content_schema(self, mapper: TypeMapper) -> None:
        schema = {
            "type": "string",
            "contentMediaType": "application/json",
            "contentSchema": {"$ref": "#/components/schemas/Pet"},
        }
        assert mapper.to_type(schema) == "string /* JSON: Pet */"

    def test_binary_content_media_type(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"type": "string", "contentMediaType": "image/png"}) == "Blob"

    def test_json_content_without_schema(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"type": "string", "contentMediaType": "application/json"}) == "string"


class TestObjects:
    """Inline object types."""

    def test_properties(self, mapper: TypeMapper) -> None:
        schema = {
            "type": "object",
            "required": ["id"],
            "properties": {"id": {"type": "integer"}, "display-name": {"type": "string"}},
        }
        assert mapper.to_type(schema) == "{ id: number; 'display-name'?: string }"

    def test_properties_without_type(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"properties": {"a": {"type": "boolean"}}}) == "{ a?: boolean }"

    def test_bare_object(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"type": "object"}) == "{ [key: string]: any }"

    def test_additional_properties_schema(self, mapper: TypeMapper) -> None:
        schema = {"type": "object", "additionalProperties": {"type": "integer"}}
        assert mapper.to_type(schema) == "{ [key: string]: number }"

    def test_additional_properties_false(self, mapper: TypeMapper) -> None:
        schema = {"type": "object", "properties": {}, "additionalProperties": False}
        assert mapper.to_type(schema) == "{}"

    def test_empty_properties(self, mapper: TypeMapper) -> None:
        assert mapper.to_type({"type": "object", "properties": {}}) == "Record<string, any>"

    def test_pattern_and_unevaluated(self, mapper: TypeMapper) -> None:
        schema = {
            "type": "object",
            "properties": {"a": {"type": "string"}},
            "patternProperties": {"^x-": {"type": "string"}},
            "unevaluatedProperties": {"type": "number"},
        }
        assert mapper.to_type(schema) == "{ a?: string; [key: string]: string | number }"

    def test_unevaluated_false(self, mapper: TypeMapper) -> None:
        schema = {"type": "object", "properties": {"a": {"type": "string"}}, "unevaluatedProperties": False}
        assert mapper.to_type(schema) == "{ a?: string }"

    def test_depth_limit(self, mapper: TypeMapper) -> None:
        schema: dict[str, Any] = {"type": "string"}
        for _ in range(20):
            schema = {"type": "array", "items": schema}
        assert mapper.to_type(schema).startswith("any")


class TestIsDataTypeInterface:
    """Model name detection."""

    @pytest.mark.parametrize("expression", ["Pet", "UserRequest"])
    def test_models(self, expression: str) -> None:
        assert is_data_type_interface(expression)

    @pytest.mark.parametrize(
        "expression",
        ["string", "Blob", "Date", "Pet[]", "Pet | null", "{ a: string }", "Record<string, any>", "void"],
    )
    def test_not_models(self, expression: str) -> None:
        assert not is_data_type_interface(expression)
