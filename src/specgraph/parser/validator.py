"""Structural checks run once per loaded OpenAPI/Swagger document.

These are not JSON Schema validation.  They cover exactly the invariants
code generation depends on; every failure raises
:class:`~specgraph.exceptions.SpecValidationError` and aborts the run.

* version header (``swagger: "2.x"`` or ``openapi: "3.x"``), ``info.title``
  and ``info.version``, and at least one structural root field;
* ``license.url`` / ``license.identifier`` exclusivity;
* server URL templates: every ``{placeholder}`` is a declared variable,
  defaults are strings and members of the variable's ``enum``, server
  ``name`` values are unique within each server list;
* ``additionalOperations`` keys are HTTP method tokens that do not reuse a
  fixed Path Item method;
* security scheme required fields;
* Example Object field exclusivity;
* operationId uniqueness inside one document (:func:`validate_spec`) and
  across every loaded document
  (:func:`validate_operation_ids_across_documents`).
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from specgraph.exceptions import SpecValidationError
from specgraph.models import HTTPMethod

if TYPE_CHECKING:
    from specgraph.parser.resolver import DocumentCache

FIXED_METHODS = tuple(method.value for method in HTTPMethod)

# RFC 9110 token characters
_METHOD_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_TEMPLATE_VARIABLE_RE = re.compile(r"\{([^{}]+)\}")

_EXCLUSIVE_EXAMPLE_FIELDS = (
    ("value", "dataValue"),
    ("value", "serializedValue"),
    ("value", "externalValue"),
    ("serializedValue", "externalValue"),
)


def is_api_document(document: Any) -> bool:
    """Return ``True`` when *document* declares itself OpenAPI or Swagger."""
    return isinstance(document, dict) and ("openapi" in document or "swagger" in document)


def _is_ref(node: Any) -> bool:
    return isinstance(node, dict) and ("$ref" in node or "$dynamicRef" in node)


# ---------------------------------------------------------------------------
# Operation discovery
# ---------------------------------------------------------------------------


def iter_path_item_operations(path_item: dict[str, Any]) -> Iterator[tuple[str, dict[str, Any]]]:
    """Yield ``(METHOD, operation)`` for fixed and ``additionalOperations`` entries."""
    for method in FIXED_METHODS:
        operation = path_item.get(method)
        if isinstance(operation, dict):
            yield method.upper(), operation
    additional = path_item.get("additionalOperations")
    if isinstance(additional, dict):
        for method, operation in additional.items():
            if isinstance(operation, dict):
                yield str(method), operation


def _callback_operations(
    callbacks: Any, location: str
) -> Iterator[tuple[str, dict[str, Any]]]:
    if not isinstance(callbacks, dict):
        return
    for name, callback in callbacks.items():
        if not isinstance(callback, dict) or _is_ref(callback):
            continue
        for expression, path_item in callback.items():
            yield from _path_item_operations(path_item, f"{location}.{name}.{expression}")


def _path_item_operations(
    path_item: Any, location: str
) -> Iterator[tuple[str, dict[str, Any]]]:
    if not isinstance(path_item, dict) or _is_ref(path_item):
        return
    for method, operation in iter_path_item_operations(path_item):
        op_location = f"{location}.{method}"
        yield op_location, operation
        yield from _callback_operations(operation.get("callbacks"), f"{op_location}.callbacks")


def _document_operations(
    document: dict[str, Any], include_components: bool
) -> Iterator[tuple[str, dict[str, Any]]]:
    sections: list[tuple[str, Any]] = [
        ("paths", document.get("paths")),
        ("webhooks", document.get("webhooks")),
    ]
    components = document.get("components")
    if include_components and isinstance(components, dict):
        sections.append(("components.pathItems", components.get("pathItems")))
        sections.append(("components.webhooks", components.get("webhooks")))
    for section, items in sections:
        if not isinstance(items, dict):
            continue
        for key, path_item in items.items():
            yield from _path_item_operations(path_item, f"{section}.{key}")
    if include_components and isinstance(components, dict):
        yield from _callback_operations(components.get("callbacks"), "components.callbacks")


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def _check_header(spec: dict[str, Any]) -> bool:
    swagger = spec.get("swagger")
    openapi = spec.get("openapi")
    is_swagger2 = isinstance(swagger, str) and swagger.startswith("2.")
    is_openapi3 = isinstance(openapi, str) and openapi.startswith("3.")
    if not is_swagger2 and not is_openapi3:
        raise SpecValidationError(
            "Unsupported or missing OpenAPI/Swagger version. Specification must "
            "contain 'swagger: \"2.x\"' or 'openapi: \"3.x\"'."
        )

    info = spec.get("info")
    if not isinstance(info, dict):
        raise SpecValidationError("Specification must contain an 'info' object.")
    for field in ("title", "version"):
        if not info.get(field) or not isinstance(info[field], str):
            raise SpecValidationError(
                f"Specification info object must contain a required string field: '{field}'."
            )
    license_info = info.get("license")
    if isinstance(license_info, dict) and "url" in license_info and "identifier" in license_info:
        raise SpecValidationError("License 'url' and 'identifier' are mutually exclusive.")

    if is_openapi3:
        if spec.get("paths") is None and not spec.get("components") and not spec.get("webhooks"):
            raise SpecValidationError(
                "OpenAPI 3.x specification must contain at least one of: "
                "'paths', 'components', or 'webhooks'."
            )
    elif spec.get("paths") is None:
        raise SpecValidationError("Swagger 2.0 specification must contain a 'paths' object.")
    return is_openapi3


def validate_servers(servers: Any, location: str) -> None:
    """Check one server list (root, path item, or operation level)."""
    if not isinstance(servers, list):
        return
    names: set[str] = set()
    for server in servers:
        if not isinstance(server, dict):
            continue
        url = str(server.get("url", ""))
        variables = server.get("variables") or {}
        for placeholder in _TEMPLATE_VARIABLE_RE.findall(url):
            if placeholder not in variables:
                raise SpecValidationError(
                    f'Server URL "{url}" uses variable "{placeholder}" which is '
                    f"not defined in variables ({location})."
                )
        for var_name, variable in variables.items():
            variable = variable if isinstance(variable, dict) else {}
            default = variable.get("default")
            if not isinstance(default, str):
                raise SpecValidationError(
                    f'Server variable "{var_name}" must define a string default ({location}).'
                )
            enum = variable.get("enum")
            if enum is None:
                continue
            if not isinstance(enum, list) or not enum:
                raise SpecValidationError(
                    f'Server variable "{var_name}" enum must be a non-empty array ({location}).'
                )
            if default not in enum:
                raise SpecValidationError(
                    f'Server variable "{var_name}" default "{default}" is not one of '
                    f"its enum values {enum} ({location})."
                )
        name = server.get("name")
        if name is not None:
            if name in names:
                raise SpecValidationError(f'Server name "{name}" must be unique ({location}).')
            names.add(name)


def _check_path_items(spec: dict[str, Any]) -> None:
    seen_ids: dict[str, str] = {}
    for section in ("paths", "webhooks"):
        items = spec.get(section)
        if not isinstance(items, dict):
            continue
        for key, path_item in items.items():
            if not isinstance(path_item, dict) or _is_ref(path_item):
                continue
            location = f"{section}.{key}"
            validate_servers(path_item.get("servers"), location)

            additional = path_item.get("additionalOperations")
            if isinstance(additional, dict):
                for method in additional:
                    if not _METHOD_TOKEN_RE.match(str(method)):
                        raise SpecValidationError(
                            f'additionalOperations method "{method}" at {location} '
                            "is not a valid HTTP method token."
                        )
                    if str(method).lower() in FIXED_METHODS:
                        raise SpecValidationError(
                            f'additionalOperations method "{method}" at {location} '
                            "must be declared as a fixed Path Item field instead."
                        )

            for method, operation in iter_path_item_operations(path_item):
                op_location = f"{location}.{method}"
                validate_servers(operation.get("servers"), op_location)
                operation_id = operation.get("operationId")
                if not operation_id:
                    continue
                if operation_id in seen_ids:
                    raise SpecValidationError(
                        f'Duplicate operationId "{operation_id}" found at '
                        f"{seen_ids[operation_id]} and {op_location}."
                    )
                seen_ids[operation_id] = op_location


def _check_security_schemes(spec: dict[str, Any], is_openapi3: bool) -> None:
    if is_openapi3:
        components = spec.get("components")
        schemes = components.get("securitySchemes") if isinstance(components, dict) else None
    else:
        schemes = spec.get("securityDefinitions")
    if not isinstance(schemes, dict):
        return
    for name, scheme in schemes.items():
        if not isinstance(scheme, dict) or _is_ref(scheme):
            continue
        scheme_type = scheme.get("type")
        if scheme_type == "apiKey":
            if not scheme.get("name") or scheme.get("in") not in ("query", "header", "cookie"):
                raise SpecValidationError(
                    f"Security scheme \"{name}\" of type apiKey must define 'name' and "
                    "'in' (query, header or cookie)."
                )
        elif scheme_type == "http" and is_openapi3:
            if not scheme.get("scheme"):
                raise SpecValidationError(
                    f"Security scheme \"{name}\" of type http must define 'scheme'."
                )
        elif scheme_type == "oauth2" and is_openapi3:
            if not isinstance(scheme.get("flows"), dict):
                raise SpecValidationError(
                    f"Security scheme \"{name}\" of type oauth2 must define 'flows'."
                )
        elif scheme_type == "openIdConnect":
            url = scheme.get("openIdConnectUrl")
            if not isinstance(url, str) or urlsplit(url).scheme != "https":
                raise SpecValidationError(
                    f'Security scheme "{name}" openIdConnectUrl must use https.'
                )


def _check_example(name: str, example: dict[str, Any]) -> None:
    for first, second in _EXCLUSIVE_EXAMPLE_FIELDS:
        if first in example and second in example:
            raise SpecValidationError(
                f"Example \"{name}\": '{first}' and '{second}' are mutually exclusive."
            )


def _check_examples(spec: dict[str, Any]) -> None:
    seen: set[int] = set()
    stack: list[Any] = [spec]
    while stack:
        node = stack.pop()
        if isinstance(node, list):
            stack.extend(node)
            continue
        if not isinstance(node, dict) or id(node) in seen:
            continue
        seen.add(id(node))
        examples = node.get("examples")
        if isinstance(examples, dict):
            for example_name, example in examples.items():
                if isinstance(example, dict) and not _is_ref(example):
                    _check_example(str(example_name), example)
        stack.extend(node.values())


def validate_spec(spec: Any) -> None:
    """Run every single-document check against *spec*.

    Raises:
        SpecValidationError: On the first violated invariant.
    """
    if not isinstance(spec, dict):
        raise SpecValidationError("Specification must be a JSON/YAML object.")
    is_openapi3 = _check_header(spec)
    validate_servers(spec.get("servers"), "servers")
    _check_path_items(spec)
    _check_security_schemes(spec, is_openapi3)
    if is_openapi3:
        _check_examples(spec)


def validate_operation_ids_across_documents(cache: DocumentCache) -> None:
    """Assert operationIds are unique over every loaded OpenAPI/Swagger document.

    Path items, webhooks, ``components.pathItems`` and callbacks are all
    scanned; path items that are themselves references are skipped so an
    operation is counted once, in the document that defines it.

    Raises:
        SpecValidationError: Naming the duplicate id and all its locations.
    """
    locations: dict[str, list[str]] = {}
    for uri, document in cache.documents():
        if not is_api_document(document):
            continue
        for location, operation in _document_operations(document, include_components=True):
            operation_id = operation.get("operationId")
            if operation_id:
                locations.setdefault(str(operation_id), []).append(f"{uri}#{location}")
    for operation_id, found_at in locations.items():
        if len(found_at) > 1:
            raise SpecValidationError(
                f'Duplicate operationId "{operation_id}" found across OpenAPI '
                f"documents: {', '.join(found_at)}"
            )
