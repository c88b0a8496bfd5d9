"""Map JSON Schema nodes to type expressions for generated clients.

The expressions use TypeScript-like syntax (``string``, ``User[]``,
``'a' | 'b'``, ``{ id: number; name?: string }``) because that is what
the downstream emitters template into their output.  References resolve to
the PascalCase name of a known model; anything the mapper cannot express
becomes ``any``.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Optional

from specgraph.models import GeneratorConfig
from specgraph.naming import pascal_case

_BUILT_IN_RE = re.compile(
    r"^(any|File|Blob|string|number|boolean|object|unknown|null|undefined|Date|void|bigint)$"
)
_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_$][a-zA-Z0-9_$]*$")

MAX_DEPTH = 12


def is_data_type_interface(type_expression: str) -> bool:
    """Return ``True`` when *type_expression* names a generated model.

    Only a bare identifier that is not a built-in qualifies; arrays, tuples,
    unions, inline objects and ``Record`` types are not models.
    """
    return bool(_IDENTIFIER_RE.match(type_expression)) and not _BUILT_IN_RE.match(type_expression)


def _literal(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        escaped = value.replace("'", "\\'")
        return f"'{escaped}'"
    if isinstance(value, (int, float)):
        return str(value)
    return "any"


def _ref_type_name(ref: str, known: frozenset[str]) -> str:
    tail = ref.split("#")[-1].split("/")[-1]
    name = pascal_case(tail)
    return name if name and name in known else "any"


class TypeMapper:
    """Schema to type expression mapper bound to one config and model set.

    Args:
        config: Generation config (``options.date_type``/``int64_type``).
        known_types: Generated model names that ``$ref`` targets may map to.
    """

    def __init__(self, config: Optional[GeneratorConfig] = None, known_types: Iterable[str] = ()) -> None:
        self.config = config or GeneratorConfig()
        self.known_types = frozenset(known_types)

    def to_type(self, schema: Any, depth: int = 0) -> str:
        if not isinstance(schema, dict) or depth > MAX_DEPTH:
            return "any"
        type_expression = self._map(schema, depth)
        if schema.get("nullable") is True and not type_expression.endswith("| null"):
            return f"{type_expression} | null"
        return type_expression

    # ------------------------------------------------------------------ #
    # Composition
    # ------------------------------------------------------------------ #

    def _map(self, schema: dict[str, Any], depth: int) -> str:
        child = depth + 1
        if schema.get("type") == "file":
            return "any"
        if isinstance(schema.get("$ref"), str):
            return _ref_type_name(schema["$ref"], self.known_types)
        if isinstance(schema.get("$dynamicRef"), str):
            return _ref_type_name(schema["$dynamicRef"], self.known_types)
        if "const" in schema:
            return _literal(schema["const"])

        prefix_items = schema.get("prefixItems")
        if isinstance(prefix_items, list):
            members = [self.to_type(item, child) for item in prefix_items]
            rest = schema.get("items")
            if isinstance(rest, dict):
                members.append(f"...{self.to_type(rest, child)}[]")
            return f"[{', '.join(members)}]"

        if isinstance(schema.get("if"), dict):
            conditional = self._conditional(schema, child)
            if conditional is not None:
                return conditional

        if isinstance(schema.get("allOf"), list):
            parts = [self.to_type(member, child) for member in schema["allOf"]]
            parts = [part for part in parts if part and part != "any"]
            return " & ".join(parts) if parts else "any"

        variants = schema.get("anyOf") or schema.get("oneOf")
        if isinstance(variants, list):
            parts = [self.to_type(member, child) for member in variants]
            return " | ".join(parts) if parts else "any"

        if isinstance(schema.get("not"), dict):
            return f"Exclude<any, {self.to_type(schema['not'], child)}>"

        if isinstance(schema.get("enum"), list) and schema["enum"]:
            return " | ".join(_literal(value) for value in schema["enum"])

        declared = schema.get("type")
        if isinstance(declared, list):
            # OAS 3.1 type arrays: ["string", "null"]
            parts = [
                self._map({**schema, "type": item}, depth) if item != "null" else "null"
                for item in declared
            ]
            return " | ".join(parts) if parts else "any"
        if declared is None and isinstance(schema.get("properties"), dict):
            declared = "object"
        return self._primitive(schema, declared, child)

    def _conditional(self, schema: dict[str, Any], child: int) -> Optional[str]:
        then_type = self.to_type(schema["then"], child) if "then" in schema else "any"
        else_type = self.to_type(schema["else"], child) if "else" in schema else "any"
        if "properties" in schema or "allOf" in schema:
            base = {key: value for key, value in schema.items() if key not in ("if", "then", "else")}
            base_type = self.to_type(base, child)
            if "then" in schema or "else" in schema:
                return f"{base_type} & ({then_type} | {else_type})"
            return base_type
        if "then" in schema and "else" in schema:
            return f"{then_type} | {else_type}"
        return "any"

    # ------------------------------------------------------------------ #
    # Primitive and structural types
    # ------------------------------------------------------------------ #

    def _primitive(self, schema: dict[str, Any], declared: Any, child: int) -> str:
        options = self.config.options
        if declared == "string":
            return self._string(schema, child)
        if declared == "number":
            return "number"
        if declared == "integer":
            return options.int64_type if schema.get("format") == "int64" else "number"
        if declared == "boolean":
            return "boolean"
        if declared == "null":
            return "null"
        if declared == "array":
            items = schema.get("items")
            return f"{self.to_type(items, child) if isinstance(items, dict) else 'any'}[]"
        if declared == "object":
            return self._object(schema, child)
        return "any"

    def _string(self, schema: dict[str, Any], child: int) -> str:
        is_date = schema.get("format") in ("date", "date-time") and self.config.options.date_type == "Date"
        media_type = schema.get("contentMediaType")
        if isinstance(media_type, str):
            is_json = media_type == "application/json" or media_type.endswith("+json")
            if is_json and isinstance(schema.get("contentSchema"), dict):
                return f"string /* JSON: {self.to_type(schema['contentSchema'], child)} */"
            if not is_json:
                return "Blob"
        elif schema.get("format") == "binary":
            return "Blob"
        return "Date" if is_date else "string"

    def _object(self, schema: dict[str, Any], child: int) -> str:
        parts: list[str] = []
        properties = schema.get("properties")
        required = schema.get("required") if isinstance(schema.get("required"), list) else []
        if isinstance(properties, dict):
            for key, definition in properties.items():
                optional = "" if key in required else "?"
                name = key if _IDENTIFIER_RE.match(key) else f"'{key}'"
                parts.append(f"{name}{optional}: {self.to_type(definition, child)}")

        index_types: list[str] = []
        pattern_properties = schema.get("patternProperties")
        if isinstance(pattern_properties, dict):
            index_types.extend(self.to_type(value, child) for value in pattern_properties.values())

        allow_index = True
        unevaluated = schema.get("unevaluatedProperties")
        if unevaluated is False:
            allow_index = False
        elif isinstance(unevaluated, dict):
            index_types.append(self.to_type(unevaluated, child))

        if "additionalProperties" in schema:
            additional = schema["additionalProperties"]
            if additional is False:
                allow_index = False
            else:
                index_types.append(self.to_type(additional, child) if isinstance(additional, dict) else "any")
                allow_index = True

        if allow_index:
            if index_types:
                unique = list(dict.fromkeys(index_types))
                parts.append(f"[key: string]: {' | '.join(unique)}")
            elif not any(
                key in schema
                for key in ("properties", "patternProperties", "unevaluatedProperties", "additionalProperties")
            ):
                parts.append("[key: string]: any")

        if parts:
            return f"{{ {'; '.join(parts)} }}"
        return "Record<string, any>" if allow_index else "{}"


def schema_to_type(
    schema: Any,
    config: Optional[GeneratorConfig] = None,
    known_types: Iterable[str] = (),
) -> str:
    """Convenience wrapper around :class:`TypeMapper`.

    Example::

        schema_to_type({"type": "array", "items": {"$ref": "#/components/schemas/user"}},
                       known_types=["User"])
        # 'User[]'
    """
    return TypeMapper(config, known_types).to_type(schema)
