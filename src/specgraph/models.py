"""Canonical Pydantic models shared across all specgraph modules.

This is the single source of truth for data shapes in the project. Spec
documents themselves stay plain ``dict`` trees (they are read-only inputs and
may hold anything an OpenAPI author writes); the models here describe what
specgraph *derives* from them. The models fall into four groups:

**Configuration models** -- loaded from ``specgraph.json``/``specgraph.yaml``
or the user config directory:
    :class:`GeneratorOptions` and :class:`GeneratorConfig`.

**Parser output models** -- produced by :class:`~specgraph.parser.SpecParser`
and consumed read-only by code emitters:
    :class:`HTTPMethod`, :class:`ParameterLocation`, :class:`SpecVersion`,
    :class:`ServerVariable`, :class:`ServerInfo`, :class:`NamedSchema`,
    :class:`ResolvedOperation`, :class:`PolymorphicOption` and
    :class:`DiscriminatorInfo`.

**Runtime expression context** -- the input of
:func:`~specgraph.runtime_expressions.evaluate_runtime_expression`:
    :class:`RequestContext`, :class:`ResponseContext` and
    :class:`RuntimeContext`.

**Analyzer output models** -- one frozen :class:`ServiceMethodModel` per
operation, built by :class:`~specgraph.analysis.ServiceMethodAnalyzer`:
    :class:`ParamSerialization`, :class:`MethodParameter`,
    :class:`BodyVariant`, :class:`ResponseVariant` and
    :class:`ErrorResponseInfo`.

Configuration models that accept generator-defined extensions use
``extra="allow"`` so that unknown keys are preserved in ``model_extra``.
"""

from __future__ import annotations

import enum
from typing import Any, Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Generator Config ---


class GeneratorOptions(BaseModel):
    """Options that change how schemas are mapped to target types.

    Only ``date_type`` and ``int64_type`` are interpreted by specgraph
    itself. Every other key is kept verbatim in ``model_extra`` for the
    emitters that consume it.

    Example::

        GeneratorOptions(date_type="Date", framework="angular")
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    date_type: Literal["string", "Date"] = Field(
        default="string",
        alias="dateType",
        description="How date/date-time strings are typed: string or Date",
    )
    int64_type: Literal["number", "bigint", "string"] = Field(
        default="number",
        alias="int64Type",
        description="Target type for integer/int64 schemas",
    )
    enum_style: Literal["enum", "union"] = Field(default="union", alias="enumStyle")
    custom_headers: dict[str, str] = Field(default_factory=dict, alias="customHeaders")
    customize_method_name: Optional[Callable[[str], str]] = Field(
        default=None,
        exclude=True,
        description="Maps an operationId to a method name; set programmatically only",
    )


class GeneratorConfig(BaseModel):
    """Top-level generation config.

    Resolved by :func:`~specgraph.config.resolve_config` from CLI flags,
    environment variables, the project file and the user config file.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    input: Optional[str] = Field(
        default=None, description="URL or file path of the root OpenAPI document"
    )
    output: Optional[str] = None
    client_name: Optional[str] = Field(default=None, alias="clientName")
    options: GeneratorOptions = Field(default_factory=GeneratorOptions)


# --- Parser Output Models ---


class HTTPMethod(str, enum.Enum):
    """Fixed HTTP methods recognised as Path Item fields.

    Any other method token must be declared under ``additionalOperations``.
    """

    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"
    QUERY = "query"


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    QUERY = "query"
    QUERYSTRING = "querystring"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"


class SpecVersion(BaseModel):
    """Which dialect a document declares and at which version."""

    type: Literal["openapi", "swagger"]
    version: str


class ServerVariable(BaseModel):
    """A placeholder of a server URL template."""

    model_config = ConfigDict(extra="allow")

    default: Optional[str] = None
    enum: Optional[list[str]] = None
    description: Optional[str] = None


class ServerInfo(BaseModel):
    """A server entry with its ``url`` already resolved against the fetch location.

    ``x-*`` extensions written on the Server Object are preserved in
    ``model_extra``.
    """

    model_config = ConfigDict(extra="allow")

    url: str
    description: Optional[str] = None
    name: Optional[str] = None
    variables: Optional[dict[str, ServerVariable]] = None


class NamedSchema(BaseModel):
    """A top-level schema with its generated type name."""

    name: str
    definition: Any


class ResolvedOperation(BaseModel):
    """One HTTP operation (method + path) after reference expansion.

    Parameters, request body and responses keep the OpenAPI 3.x Object shape
    (Swagger 2.0 constructs are already converted). ``servers`` holds the
    operation's own servers (operation level first, then path-item level)
    and is ``None`` when it inherits the document servers;
    ``effective_servers`` is always the list a client should use.
    """

    path: str
    method: str = Field(description="Upper-case HTTP method token")
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    parameters: list[dict[str, Any]] = Field(default_factory=list)
    form_data_parameters: list[dict[str, Any]] = Field(
        default_factory=list, description="Swagger 2.0 formData parameters"
    )
    consumes: list[str] = Field(default_factory=list)
    request_body: Optional[dict[str, Any]] = None
    responses: dict[str, dict[str, Any]] = Field(default_factory=dict)
    security: Optional[list[dict[str, list[str]]]] = None
    servers: Optional[list[ServerInfo]] = None
    effective_servers: list[ServerInfo] = Field(default_factory=list)
    callbacks: Optional[dict[str, Any]] = None
    deprecated: bool = False
    external_docs: Optional[dict[str, Any]] = None
    extensions: dict[str, Any] = Field(default_factory=dict)
    is_webhook: bool = False
    method_name: Optional[str] = None
    document_uri: Optional[str] = Field(
        default=None, description="URI of the document the path item came from"
    )


class PolymorphicOption(BaseModel):
    """One discriminator tag value and the schema it selects."""

    name: str
    schema_: dict[str, Any] = Field(alias="schema")

    model_config = {"populate_by_name": True}


class DiscriminatorInfo(BaseModel):
    """Runtime lookup table emitted next to a polymorphic model.

    ``mapping`` maps tag values to generated type names. ``default_mapping``
    names the variant to fall back to when no tag matches.
    """

    property_name: str
    mapping: dict[str, str] = Field(default_factory=dict)
    default_mapping: Optional[str] = None
    default_schema: Optional[dict[str, Any]] = None


# --- Runtime Expression Context ---


class RequestContext(BaseModel):
    """The request half of a runtime expression context."""

    headers: dict[str, Any] = Field(default_factory=dict)
    query: dict[str, Any] = Field(default_factory=dict)
    path: dict[str, Any] = Field(default_factory=dict)
    body: Any = None


class ResponseContext(BaseModel):
    """The response half of a runtime expression context."""

    headers: dict[str, Any] = Field(default_factory=dict)
    body: Any = None


class RuntimeContext(BaseModel):
    """Everything a Link's runtime expressions may read."""

    url: str = ""
    method: str = ""
    status_code: Optional[int] = Field(default=None, alias="statusCode")
    request: Optional[RequestContext] = None
    response: Optional[ResponseContext] = None

    model_config = {"populate_by_name": True}


# --- Analyzer Output Models ---

BodyKind = Literal[
    "json", "json-lines", "xml", "multipart", "urlencoded", "raw", "form-data"
]

ResponseSerialization = Literal[
    "json", "json-seq", "json-lines", "sse", "multipart", "xml", "text", "blob"
]


class ParamSerialization(BaseModel):
    """How one parameter is written into the URL, headers or cookies."""

    model_config = ConfigDict(frozen=True)

    param_name: str = Field(description="Identifier used in the generated signature")
    original_name: str = Field(description="Name on the wire")
    location: ParameterLocation
    style: Optional[str] = None
    explode: bool = False
    allow_reserved: bool = False
    serialization_link: Optional[Literal["json"]] = None
    content_type: Optional[str] = Field(
        default=None, description="Media type of a content-based parameter"
    )


class MethodParameter(BaseModel):
    """One argument of the generated method signature."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    required: bool = False
    deprecated: bool = False
    description: Optional[str] = None


class BodyVariant(BaseModel):
    """Request body classification and the config its encoder needs."""

    model_config = ConfigDict(frozen=True)

    kind: BodyKind
    param_name: str
    media_type: Optional[str] = None
    type: str = "any"
    root_name: Optional[str] = None
    config: Optional[dict[str, Any]] = None
    mappings: list[str] = Field(default_factory=list)


class ResponseVariant(BaseModel):
    """One declared success content type and how to decode it."""

    model_config = ConfigDict(frozen=True)

    media_type: str
    status_code: Optional[str] = None
    type: str = "any"
    serialization: ResponseSerialization = "json"
    is_default: bool = False
    item_type: Optional[str] = None
    sse_mode: Optional[Literal["data", "event"]] = None
    xml_config: Optional[dict[str, Any]] = None
    decoding_config: Optional[dict[str, Any]] = None


class ErrorResponseInfo(BaseModel):
    """A non-2xx response reduced to the type its body is read as."""

    model_config = ConfigDict(frozen=True)

    code: str
    type: Literal["string", "Blob", "void"]
    description: Optional[str] = None
    model_type: Optional[str] = Field(
        default=None, description="Generated type of a JSON error payload"
    )


class ServiceMethodModel(BaseModel):
    """Generation-ready semantic model of a single operation.

    Emitters template directly off these fields; nothing here needs to be
    re-derived from the document.
    """

    model_config = ConfigDict(frozen=True)

    method_name: str
    http_method: str
    url_template: str
    operation_id: Optional[str] = None
    docs: str = ""
    is_deprecated: bool = False
    parameters: list[MethodParameter] = Field(default_factory=list)
    response_type: str = "any"
    response_serialization: ResponseSerialization = "json"
    response_xml_config: Optional[dict[str, Any]] = None
    response_decoding_config: Optional[dict[str, Any]] = None
    response_variants: list[ResponseVariant] = Field(default_factory=list)
    sse_mode: Optional[Literal["data", "event"]] = None
    request_encoding_config: Optional[dict[str, Any]] = None
    error_responses: list[ErrorResponseInfo] = Field(default_factory=list)
    path_params: list[ParamSerialization] = Field(default_factory=list)
    query_params: list[ParamSerialization] = Field(default_factory=list)
    header_params: list[ParamSerialization] = Field(default_factory=list)
    cookie_params: list[ParamSerialization] = Field(default_factory=list)
    body: Optional[BodyVariant] = None
    security: list[dict[str, list[str]]] = Field(default_factory=list)
    extensions: dict[str, Any] = Field(default_factory=dict)
    has_servers: bool = False
    base_path: Optional[str] = None
