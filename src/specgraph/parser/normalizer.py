"""Map Swagger 2.0 constructs onto the OpenAPI 3.x shape used internally.

Everything downstream of the parser (polymorphism, analysis, emitters) reads
OpenAPI 3.x structures only.  This module holds the conversions:

* ``definitions`` -> schemas, ``securityDefinitions`` -> security schemes;
* ``host`` + ``basePath`` + ``schemes`` -> a server list;
* ``in: body`` parameters -> ``requestBody``;
* ``type``/``format``/``items``/``collectionFormat`` parameters -> ``schema``
  plus ``style``/``explode``;
* response ``schema`` -> ``content`` keyed by the ``produces`` media types.

It also answers version questions (:func:`get_spec_version`,
:func:`json_schema_dialect`).
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlsplit

from specgraph.models import ServerInfo, SpecVersion
from specgraph.parser.servers import resolve_servers

OAS_3_1_DIALECT = "https://spec.openapis.org/oas/3.1/dialect/base"

DEFAULT_MEDIA_TYPE = "application/json"

_FORM_MEDIA_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

_COLLECTION_FORMATS: dict[str, tuple[str, bool]] = {
    "csv": ("form", False),
    "ssv": ("spaceDelimited", False),
    "pipes": ("pipeDelimited", False),
    "multi": ("form", True),
}

_PASSTHROUGH_PARAMETER_FIELDS = (
    "content",
    "style",
    "explode",
    "allowReserved",
    "allowEmptyValue",
    "deprecated",
    "required",
    "description",
    "example",
    "examples",
)


def is_swagger2(spec: Any) -> bool:
    return isinstance(spec, dict) and str(spec.get("swagger", "")).startswith("2.")


def get_spec_version(spec: Any) -> Optional[SpecVersion]:
    """Return which dialect *spec* declares, or ``None`` if it declares neither."""
    if not isinstance(spec, dict):
        return None
    if "openapi" in spec:
        return SpecVersion(type="openapi", version=str(spec["openapi"]))
    if "swagger" in spec:
        return SpecVersion(type="swagger", version=str(spec["swagger"]))
    return None


def json_schema_dialect(spec: Any) -> Optional[str]:
    """Return the effective ``jsonSchemaDialect``.

    OpenAPI 3.1 and 3.2 default to :data:`OAS_3_1_DIALECT`; OpenAPI 3.0 and
    Swagger 2.0 have no dialect concept and return ``None``.  An explicit
    value is returned as written.
    """
    if not isinstance(spec, dict):
        return None
    explicit = spec.get("jsonSchemaDialect")
    if isinstance(explicit, str) and explicit:
        return explicit
    version = str(spec.get("openapi", ""))
    if version.startswith(("3.1", "3.2")):
        return OAS_3_1_DIALECT
    return None


def get_definitions(spec: Any) -> dict[str, Any]:
    """Return the named schema map (``definitions`` or ``components.schemas``)."""
    if not isinstance(spec, dict):
        return {}
    definitions = spec.get("definitions")
    if isinstance(definitions, dict):
        return definitions
    components = spec.get("components")
    if isinstance(components, dict) and isinstance(components.get("schemas"), dict):
        return components["schemas"]
    return {}


def get_security_schemes(spec: Any) -> dict[str, Any]:
    """Return ``securityDefinitions`` or ``components.securitySchemes``."""
    if not isinstance(spec, dict):
        return {}
    if is_swagger2(spec):
        schemes = spec.get("securityDefinitions")
    else:
        components = spec.get("components")
        schemes = components.get("securitySchemes") if isinstance(components, dict) else None
    return schemes if isinstance(schemes, dict) else {}


# ---------------------------------------------------------------------------
# Servers
# ---------------------------------------------------------------------------


def _swagger_servers(spec: dict[str, Any], document_uri: Optional[str]) -> list[dict[str, Any]]:
    host = spec.get("host")
    base_path = spec.get("basePath") or ""
    origin = urlsplit(document_uri or "")
    if host:
        fallback = origin.scheme if origin.scheme in ("http", "https") else "https"
        schemes = spec.get("schemes") or [fallback]
        return [{"url": f"{scheme}://{host}{base_path}"} for scheme in schemes]
    if origin.scheme in ("http", "https"):
        return [{"url": f"{origin.scheme}://{origin.netloc}{base_path}"}]
    if base_path:
        return [{"url": base_path}]
    return []


def normalize_servers(spec: Any, document_uri: Optional[str] = None) -> list[ServerInfo]:
    """Return the document-level server list.

    An explicit, non-empty ``servers`` array always wins.  Swagger 2.0
    documents otherwise get one server per scheme from ``host``/``basePath``,
    the fetch origin when ``host`` is missing, just ``basePath``, or nothing.
    OpenAPI 3.x documents without servers get a single ``/`` server.
    """
    if not isinstance(spec, dict):
        return []
    explicit = spec.get("servers")
    if isinstance(explicit, list) and explicit:
        return resolve_servers(explicit, document_uri)
    if is_swagger2(spec):
        return resolve_servers(_swagger_servers(spec, document_uri), None)
    if "openapi" in spec:
        return [ServerInfo(url="/")]
    return []


# ---------------------------------------------------------------------------
# Parameters, bodies and responses
# ---------------------------------------------------------------------------


def _swagger_schema(source: dict[str, Any]) -> dict[str, Any]:
    """Build a schema from Swagger 2.0 ``type``/``format``/``items`` fields."""
    schema: dict[str, Any] = {}
    if source.get("type") == "file":
        return {"type": "string", "format": "binary"}
    for key in ("type", "format", "items", "enum", "default", "minimum", "maximum", "pattern"):
        if key in source:
            schema[key] = source[key]
    return schema


def normalize_parameter(param: dict[str, Any]) -> dict[str, Any]:
    """Return an OpenAPI 3.x Parameter Object for a (non-body) parameter.

    The schema comes from ``schema``, else from the first ``content`` entry,
    else from Swagger 2.0 ``type``/``format``/``items``.  Swagger
    ``collectionFormat`` becomes ``style``/``explode``; ``x-*`` extensions
    are carried over.
    """
    schema = param.get("schema")
    content = param.get("content")
    if isinstance(content, dict) and content:
        first = next(iter(content.values()))
        if isinstance(first, dict) and first.get("schema") is not None:
            schema = first["schema"]
    if schema is None:
        schema = _swagger_schema(param)

    normalized: dict[str, Any] = {
        "name": param.get("name", ""),
        "in": param.get("in", "query"),
        "schema": schema,
    }
    for key in _PASSTHROUGH_PARAMETER_FIELDS:
        if key in param:
            normalized[key] = param[key]

    collection_format = param.get("collectionFormat")
    if collection_format in _COLLECTION_FORMATS:
        normalized["style"], normalized["explode"] = _COLLECTION_FORMATS[collection_format]

    if normalized["in"] == "path":
        normalized["required"] = True

    for key, value in param.items():
        if key.startswith("x-"):
            normalized[key] = value
    return normalized


def normalize_request_body(
    operation: dict[str, Any],
    body_param: Optional[dict[str, Any]],
    consumes: list[str],
) -> Optional[dict[str, Any]]:
    """Return the operation's ``requestBody``, synthesising one from a body parameter."""
    request_body = operation.get("requestBody")
    if request_body is not None:
        return request_body
    if body_param is None:
        return None
    media_types = [m for m in consumes if m not in _FORM_MEDIA_TYPES] or [DEFAULT_MEDIA_TYPE]
    body: dict[str, Any] = {
        "content": {media_type: {"schema": body_param.get("schema", {})} for media_type in media_types},
    }
    if body_param.get("required") is not None:
        body["required"] = body_param["required"]
    if body_param.get("description"):
        body["description"] = body_param["description"]
    return body


def _normalize_headers(headers: Any) -> Any:
    if not isinstance(headers, dict):
        return headers
    normalized: dict[str, Any] = {}
    for name, header in headers.items():
        if isinstance(header, dict) and "schema" not in header and "content" not in header and "$ref" not in header:
            converted: dict[str, Any] = {"schema": _swagger_schema(header)}
            if header.get("description"):
                converted["description"] = header["description"]
            normalized[name] = converted
        else:
            normalized[name] = header
    return normalized


def normalize_responses(
    responses: Any, produces: list[str], swagger: bool = False
) -> dict[str, dict[str, Any]]:
    """Return responses keyed by status code string.

    For Swagger 2.0 (*swagger* true) each response ``schema`` moves under
    ``content`` for every ``produces`` media type (``application/json`` when
    none is declared) and header ``type``/``format`` become a ``schema``.
    """
    if not isinstance(responses, dict):
        return {}
    if not swagger:
        return {str(code): r for code, r in responses.items() if isinstance(r, dict)}
    media_types = produces or [DEFAULT_MEDIA_TYPE]
    normalized: dict[str, dict[str, Any]] = {}
    for code, response in responses.items():
        if not isinstance(response, dict):
            continue
        if "schema" in response and "content" not in response:
            schema = response["schema"]
            if isinstance(schema, dict) and schema.get("type") == "file":
                schema = {"type": "string", "format": "binary"}
            converted = {k: v for k, v in response.items() if k not in ("schema", "examples")}
            converted["content"] = {media_type: {"schema": schema} for media_type in media_types}
            if "headers" in response:
                converted["headers"] = _normalize_headers(response["headers"])
            normalized[str(code)] = converted
        elif "headers" in response:
            normalized[str(code)] = {**response, "headers": _normalize_headers(response["headers"])}
        else:
            normalized[str(code)] = response
    return normalized
