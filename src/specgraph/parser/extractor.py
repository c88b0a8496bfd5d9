"""Flatten ``paths`` / ``webhooks`` into :class:`~specgraph.models.ResolvedOperation` lists.

This module walks a Paths (or Webhooks) Object and builds one
:class:`~specgraph.models.ResolvedOperation` per path + method combination,
covering the fixed Path Item methods (including ``query``) and every
``additionalOperations`` entry.

Path items written as ``$ref`` are resolved first; fields written next to
the ``$ref`` override the referenced ones.  A referenced path item keeps
its *own* document URI, so its servers and nested references resolve
relative to the file it lives in.

Parameter merging follows the OpenAPI specification: path-level parameters
provide defaults, and operation-level parameters override them when they
share the same ``name`` and ``in`` values.  Swagger 2.0 parameters, bodies
and responses are converted by :mod:`specgraph.parser.normalizer`.

:func:`assign_method_names` and :func:`group_operations_by_controller` derive
the generated method and controller names.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from specgraph.models import ResolvedOperation, ServerInfo
from specgraph.naming import camel_case, normalize_security_key, pascal_case
from specgraph.parser.normalizer import (
    normalize_parameter,
    normalize_request_body,
    normalize_responses,
)
from specgraph.parser.resolver import REFERENCE_KEYS, ReferenceResolver, is_reference
from specgraph.parser.servers import resolve_servers
from specgraph.parser.validator import iter_path_item_operations

logger = logging.getLogger(__name__)


def extract_paths(
    paths: Any,
    resolver: ReferenceResolver,
    document_uri: str,
    root_servers: Optional[list[ServerInfo]] = None,
    swagger: bool = False,
    default_consumes: Optional[list[str]] = None,
    default_produces: Optional[list[str]] = None,
    is_webhook: bool = False,
) -> list[ResolvedOperation]:
    """Extract every operation from a Paths or Webhooks Object.

    Args:
        paths: The raw ``paths`` (or ``webhooks``) mapping.
        resolver: Resolver over the run's document cache.
        document_uri: Retrieval URI of the document *paths* belongs to.
        root_servers: Document-level servers inherited by operations that
            declare none.
        swagger: ``True`` for Swagger 2.0 documents.
        default_consumes: Document-level ``consumes`` (Swagger 2.0).
        default_produces: Document-level ``produces`` (Swagger 2.0).
        is_webhook: Marks the produced operations as webhooks.

    Returns:
        One :class:`~specgraph.models.ResolvedOperation` per operation, in
        document order.
    """
    if not isinstance(paths, dict):
        return []

    operations: list[ResolvedOperation] = []
    for path, raw_item in paths.items():
        path_item, item_uri = _resolve_path_item(raw_item, resolver, document_uri)
        if path_item is None:
            continue

        path_params = _resolve_list(path_item.get("parameters"), resolver, item_uri)
        path_servers = path_item.get("servers")

        for method, operation in iter_path_item_operations(path_item):
            operations.append(
                _extract_operation(
                    str(path),
                    method,
                    operation,
                    path_item,
                    path_params,
                    path_servers,
                    resolver,
                    item_uri,
                    root_servers or [],
                    swagger,
                    default_consumes or [],
                    default_produces or [],
                    is_webhook,
                )
            )
    return operations


def _resolve_path_item(
    raw_item: Any, resolver: ReferenceResolver, document_uri: str
) -> tuple[Optional[dict[str, Any]], str]:
    """Return ``(path_item, owning_document_uri)`` for a possibly referenced path item."""
    if not isinstance(raw_item, dict):
        return None, document_uri
    if not is_reference(raw_item):
        return raw_item, resolver.cache.document_uri_of(raw_item) or document_uri

    pointer = {key: raw_item[key] for key in REFERENCE_KEYS if key in raw_item}
    target = resolver.resolve(pointer, document_uri)
    if not isinstance(target, dict):
        logger.warning("Skipping unresolvable path item reference %s", pointer)
        return None, document_uri
    overrides = {k: v for k, v in raw_item.items() if k not in REFERENCE_KEYS}
    item_uri = resolver.cache.document_uri_of(target) or document_uri
    return {**target, **overrides}, item_uri


def _resolve_list(items: Any, resolver: ReferenceResolver, document_uri: str) -> list[dict[str, Any]]:
    if not isinstance(items, list):
        return []
    resolved = []
    for item in items:
        value = resolver.resolve(item, document_uri)
        if isinstance(value, dict):
            resolved.append(value)
    return resolved


def _merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    name and location (``in`` field), per the OpenAPI spec.
    """
    op_keys = {(p.get("name", ""), p.get("in", "")) for p in op_params}
    merged = [p for p in path_params if (p.get("name", ""), p.get("in", "")) not in op_keys]
    merged.extend(op_params)
    return merged


def _normalize_security(security: Any) -> Optional[list[dict[str, list[str]]]]:
    if not isinstance(security, list):
        return None
    normalized = []
    for requirement in security:
        if isinstance(requirement, dict):
            normalized.append(
                {normalize_security_key(key): list(scopes or []) for key, scopes in requirement.items()}
            )
    return normalized


def _extract_operation(
    path: str,
    method: str,
    operation: dict[str, Any],
    path_item: dict[str, Any],
    path_params: list[dict[str, Any]],
    path_servers: Any,
    resolver: ReferenceResolver,
    item_uri: str,
    root_servers: list[ServerInfo],
    swagger: bool,
    default_consumes: list[str],
    default_produces: list[str],
    is_webhook: bool,
) -> ResolvedOperation:
    op_params = _resolve_list(operation.get("parameters"), resolver, item_uri)
    merged = _merge_parameters(path_params, op_params)

    body_param = next((p for p in merged if p.get("in") == "body"), None)
    form_data = [normalize_parameter(p) for p in merged if p.get("in") == "formData"]
    parameters = [
        normalize_parameter(p) for p in merged if p.get("in") not in ("body", "formData")
    ]

    consumes = operation.get("consumes") or default_consumes
    produces = operation.get("produces") or default_produces

    request_body = resolver.resolve(
        normalize_request_body(operation, body_param, consumes), item_uri
    )
    raw_responses = operation.get("responses")
    if isinstance(raw_responses, dict):
        raw_responses = {
            code: resolver.resolve(response, item_uri) for code, response in raw_responses.items()
        }
    responses = normalize_responses(raw_responses, produces, swagger=swagger)

    own_servers = operation.get("servers") or path_servers
    servers = resolve_servers(own_servers, item_uri) if own_servers else None

    return ResolvedOperation(
        path=path,
        method=method.upper(),
        operation_id=operation.get("operationId"),
        summary=operation.get("summary") or path_item.get("summary"),
        description=operation.get("description") or path_item.get("description"),
        tags=[str(tag) for tag in operation.get("tags") or []],
        parameters=parameters,
        form_data_parameters=form_data,
        consumes=list(consumes),
        request_body=request_body if isinstance(request_body, dict) else None,
        responses=responses,
        security=_normalize_security(operation.get("security")),
        servers=servers,
        effective_servers=servers or list(root_servers),
        callbacks=operation.get("callbacks"),
        deprecated=bool(operation.get("deprecated", False)),
        external_docs=operation.get("externalDocs"),
        extensions={k: v for k, v in operation.items() if k.startswith("x-")},
        is_webhook=is_webhook,
        document_uri=item_uri,
    )


# ---------------------------------------------------------------------------
# Method and controller names
# ---------------------------------------------------------------------------


def _path_suffix(path: str) -> str:
    parts = []
    for segment in path.split("/"):
        if not segment:
            continue
        if segment.startswith("{") and segment.endswith("}"):
            parts.append(f"By{pascal_case(segment[1:-1])}")
        else:
            parts.append(pascal_case(segment))
    return "".join(parts)


def assign_method_names(
    operations: list[ResolvedOperation],
    customizer: Optional[Callable[[str], str]] = None,
) -> None:
    """Give every operation a unique ``method_name``.

    The base name is ``camelCase(operationId)`` (or ``customizer(operationId)``)
    and falls back to ``<method><PathSuffix>`` (``GET /users/{id}`` ->
    ``getUsersById``).  Repeats get a counter suffix starting at 2.
    """
    used: set[str] = set()
    for operation in operations:
        if operation.operation_id and customizer is not None:
            base = customizer(operation.operation_id)
        elif operation.operation_id:
            base = camel_case(operation.operation_id)
        else:
            base = f"{operation.method.lower()}{_path_suffix(operation.path)}"
        name = base
        counter = 1
        while name in used:
            counter += 1
            name = f"{base}{counter}"
        used.add(name)
        operation.method_name = name


def controller_name(operation: ResolvedOperation) -> str:
    """Return the controller an operation belongs to.

    First tag, else the first literal path segment, else ``Default``.
    """
    if operation.tags and operation.tags[0]:
        return pascal_case(operation.tags[0])
    for segment in operation.path.split("/"):
        if segment and not segment.startswith("{"):
            return pascal_case(segment)
    return "Default"


def group_operations_by_controller(
    operations: list[ResolvedOperation],
) -> dict[str, list[ResolvedOperation]]:
    """Group operations by :func:`controller_name`, preserving order."""
    groups: dict[str, list[ResolvedOperation]] = {}
    for operation in operations:
        groups.setdefault(controller_name(operation), []).append(operation)
    return groups
