"""Resolve ``discriminator`` + ``oneOf``/``anyOf`` into concrete variants.

Two entry points:

* :func:`get_polymorphic_schema_options` -- ``[(tag value, resolved schema)]``
  for a polymorphic schema.
* :func:`get_discriminator_info` -- the runtime lookup table (property name,
  tag -> type name, ``defaultMapping``) emitted into generated clients.

Explicit ``mapping`` entries win.  Without one, each member's discriminator
property must carry an ``enum`` (or ``const``) whose first value becomes the
implicit tag.  Entries that cannot be resolved are skipped, never raised.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Any, Optional

from specgraph.models import DiscriminatorInfo, PolymorphicOption
from specgraph.naming import pascal_case
from specgraph.parser.resolver import ReferenceResolver, is_reference


def type_name_from_ref(ref: str) -> str:
    """Derive a PascalCase type name from a reference or schema name.

    Example::

        type_name_from_ref("#/components/schemas/cat_obj")   # 'CatObj'
        type_name_from_ref("https://example.com/weird-name.json")  # 'WeirdName'
    """
    address, _, fragment = ref.partition("#")
    target = fragment if fragment.strip("/") else address
    segments = [segment for segment in target.split("/") if segment]
    last = segments[-1] if segments else ref
    suffix = PurePosixPath(last).suffix
    if suffix.lower() in (".json", ".yaml", ".yml"):
        last = last[: -len(suffix)]
    return pascal_case(last)


def _is_schema_name(value: str) -> bool:
    return "#" not in value and "/" not in value and "." not in value


def _lookup_definition(name: str, definitions: dict[str, Any]) -> Any:
    if name in definitions:
        return definitions[name]
    for key, definition in definitions.items():
        if pascal_case(key) == name:
            return definition
    return None


def _resolve_target(
    ref: str,
    resolver: ReferenceResolver,
    definitions: dict[str, Any],
    current_doc_uri: Optional[str],
) -> Any:
    if _is_schema_name(ref):
        target = _lookup_definition(ref, definitions)
    else:
        target = resolver.resolve_reference(ref, current_doc_uri)
        if target is None:
            target = _lookup_definition(type_name_from_ref(ref), definitions)
    return resolver.resolve(target, current_doc_uri)


def _members(schema: dict[str, Any]) -> list[Any]:
    members = schema.get("oneOf") or schema.get("anyOf")
    return members if isinstance(members, list) else []


def _property_schema(
    schema: dict[str, Any], name: str, resolver: ReferenceResolver, depth: int = 5
) -> Optional[dict[str, Any]]:
    """Find property *name* on *schema* or on any of its ``allOf`` parts."""
    if depth <= 0:
        return None
    properties = schema.get("properties")
    if isinstance(properties, dict) and name in properties:
        found = resolver.resolve(properties[name])
        return found if isinstance(found, dict) else None
    for part in schema.get("allOf") or []:
        resolved = resolver.resolve(part)
        if isinstance(resolved, dict):
            found = _property_schema(resolved, name, resolver, depth - 1)
            if found is not None:
                return found
    return None


def _implicit_tag(member: dict[str, Any], property_name: str, resolver: ReferenceResolver) -> Optional[str]:
    prop = _property_schema(member, property_name, resolver)
    if prop is None:
        return None
    enum = prop.get("enum")
    if isinstance(enum, list) and enum:
        return str(enum[0])
    if "const" in prop:
        return str(prop["const"])
    return None


def _discriminator(schema: Any) -> Optional[dict[str, Any]]:
    if not isinstance(schema, dict):
        return None
    discriminator = schema.get("discriminator")
    if not isinstance(discriminator, dict) or not discriminator.get("propertyName"):
        return None
    if not _members(schema):
        return None
    return discriminator


def get_polymorphic_schema_options(
    schema: Any,
    resolver: ReferenceResolver,
    definitions: dict[str, Any],
    current_doc_uri: Optional[str] = None,
) -> list[PolymorphicOption]:
    """Return the concrete variants of a discriminated ``oneOf``/``anyOf`` schema.

    Returns an empty list when *schema* has no ``discriminator.propertyName``
    or no ``oneOf``/``anyOf`` members.
    """
    discriminator = _discriminator(schema)
    if discriminator is None:
        return []
    property_name = discriminator["propertyName"]

    mapping = discriminator.get("mapping")
    options: list[PolymorphicOption] = []
    if isinstance(mapping, dict) and mapping:
        for tag, ref in mapping.items():
            if not isinstance(ref, str):
                continue
            target = _resolve_target(ref, resolver, definitions, current_doc_uri)
            if isinstance(target, dict):
                options.append(PolymorphicOption(name=str(tag), schema=target))
        return options

    for member in _members(schema):
        resolved = resolver.resolve(member, current_doc_uri)
        if not isinstance(resolved, dict):
            continue
        tag = _implicit_tag(resolved, property_name, resolver)
        if tag is not None:
            options.append(PolymorphicOption(name=tag, schema=resolved))
    return options


def get_discriminator_info(
    schema: Any,
    resolver: ReferenceResolver,
    definitions: dict[str, Any],
    current_doc_uri: Optional[str] = None,
) -> Optional[DiscriminatorInfo]:
    """Build the runtime lookup table for a discriminated schema.

    ``mapping`` maps every tag value to a generated type name.
    ``default_mapping`` / ``default_schema`` come from an OpenAPI 3.2
    ``defaultMapping`` that resolves; otherwise they stay ``None``.
    """
    discriminator = _discriminator(schema)
    if discriminator is None:
        return None
    property_name = discriminator["propertyName"]

    table: dict[str, str] = {}
    mapping = discriminator.get("mapping")
    if isinstance(mapping, dict) and mapping:
        for tag, ref in mapping.items():
            if not isinstance(ref, str):
                continue
            if isinstance(_resolve_target(ref, resolver, definitions, current_doc_uri), dict):
                table[str(tag)] = type_name_from_ref(ref)
    else:
        for member in _members(schema):
            resolved = resolver.resolve(member, current_doc_uri)
            if not isinstance(resolved, dict):
                continue
            tag = _implicit_tag(resolved, property_name, resolver)
            if tag is None:
                continue
            ref = (member.get("$ref") or member.get("$dynamicRef")) if is_reference(member) else None
            table[tag] = type_name_from_ref(ref) if ref else pascal_case(tag)

    default_mapping = None
    default_schema = None
    default_ref = discriminator.get("defaultMapping")
    if isinstance(default_ref, str) and default_ref:
        target = _resolve_target(default_ref, resolver, definitions, current_doc_uri)
        if isinstance(target, dict):
            default_mapping = type_name_from_ref(default_ref)
            default_schema = target

    return DiscriminatorInfo(
        property_name=property_name,
        mapping=table,
        default_mapping=default_mapping,
        default_schema=default_schema,
    )
