"""Derive a :class:`~specgraph.models.ServiceMethodModel` from one operation.

The analyzer answers every question a client emitter would otherwise have
to re-derive from the document: which parameters go where and how they are
serialized, how the request body is encoded, which response content types
exist and how each is decoded, which error payloads are read as what, and
the sanitized documentation block for the generated method.

All schema walks (XML config, encoding and decoding trees) are bounded by
``MAX_CONFIG_DEPTH``; an unresolvable subtree contributes an empty config.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Optional

from specgraph.analysis import media_types
from specgraph.analysis.type_mapper import TypeMapper, is_data_type_interface
from specgraph.models import (
    BodyVariant,
    ErrorResponseInfo,
    GeneratorConfig,
    MethodParameter,
    ParameterLocation,
    ParamSerialization,
    ResolvedOperation,
    ResponseVariant,
    ServiceMethodModel,
)
from specgraph.naming import camel_case, normalize_security_key, sanitize_comment
from specgraph.parser.servers import substitute_server_variables
from specgraph.parser.spec_parser import SpecParser

logger = logging.getLogger(__name__)

MAX_CONFIG_DEPTH = 5

RESERVED_HEADERS = frozenset({"accept", "content-type", "authorization"})

_SUCCESS_CODE_RE = re.compile(r"^2\d\d$")
_NULL_OR_ARRAY_RE = re.compile(r"\[\]| \| null")

_BUCKETS = {
    ParameterLocation.PATH: "path",
    ParameterLocation.QUERY: "query",
    ParameterLocation.QUERYSTRING: "query",
    ParameterLocation.HEADER: "header",
    ParameterLocation.COOKIE: "cookie",
}


class ServiceMethodAnalyzer:
    """Build generation-ready method models for a parsed document.

    Args:
        config: Generation config; ``options.date_type`` and
            ``options.int64_type`` affect the derived type expressions.
        parser: The :class:`~specgraph.parser.SpecParser` the operations
            came from.  Used to resolve references and to look up models.

    Example::

        analyzer = ServiceMethodAnalyzer(parser.config, parser)
        for op in parser.operations:
            model = analyzer.analyze(op)
    """

    def __init__(self, config: Optional[GeneratorConfig], parser: SpecParser) -> None:
        self.config = config or parser.config
        self.parser = parser
        self._types = TypeMapper(self.config, [schema.name for schema in parser.schemas])
        self._definitions = {schema.name: schema.definition for schema in parser.schemas}

    def analyze(self, operation: ResolvedOperation) -> Optional[ServiceMethodModel]:
        """Return the semantic model of *operation*.

        Returns ``None`` when the operation never received a method name.
        """
        if not operation.method_name:
            logger.debug("Skipping %s %s without a method name", operation.method, operation.path)
            return None
        uri = operation.document_uri

        variants, success_codes = self._analyze_responses(operation, uri)
        default_variant = next((v for v in variants if v.is_default), None)

        buckets = self._bucket_parameters(operation, uri)
        parameters = self._method_parameters(operation, uri)
        body = self._analyze_body(operation, parameters, uri)

        base_path = self._base_path(operation)
        return ServiceMethodModel(
            method_name=operation.method_name,
            http_method=operation.method.upper(),
            url_template=operation.path,
            operation_id=operation.operation_id,
            docs=self._docs(operation),
            is_deprecated=operation.deprecated,
            parameters=parameters,
            response_type=default_variant.type if default_variant else "any",
            response_serialization=default_variant.serialization if default_variant else "json",
            response_xml_config=default_variant.xml_config if default_variant else None,
            response_decoding_config=default_variant.decoding_config if default_variant else None,
            response_variants=variants,
            sse_mode=next((v.sse_mode for v in variants if v.sse_mode), None),
            request_encoding_config=self._request_encoding_config(operation, body, uri),
            error_responses=self._analyze_errors(operation, success_codes, uri),
            path_params=buckets["path"],
            query_params=buckets["query"],
            header_params=buckets["header"],
            cookie_params=buckets["cookie"],
            body=body,
            security=self._effective_security(operation),
            extensions=dict(operation.extensions),
            has_servers=base_path is not None,
            base_path=base_path,
        )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _resolve(self, node: Any, uri: Optional[str]) -> Optional[dict[str, Any]]:
        resolved = self.parser.resolve(node, uri)
        return resolved if isinstance(resolved, dict) else None

    def _type_of(self, schema: Any) -> str:
        return self._types.to_type(schema) if schema is not None else "any"

    # ------------------------------------------------------------------ #
    # Parameters
    # ------------------------------------------------------------------ #

    @staticmethod
    def _is_reserved_header(param: dict[str, Any]) -> bool:
        return param.get("in") == "header" and str(param.get("name", "")).lower() in RESERVED_HEADERS

    def _parameter_schema(self, param: dict[str, Any]) -> Any:
        content = param.get("content")
        if isinstance(content, dict) and content:
            first = next(iter(content.values()))
            if isinstance(first, dict) and first.get("schema") is not None:
                return first["schema"]
        return param.get("schema")

    def _is_json_parameter(self, param: dict[str, Any], uri: Optional[str]) -> bool:
        content = param.get("content")
        if isinstance(content, dict) and content:
            return any("json" in key or "*/*" in key for key in content)
        schema = self._resolve(param.get("schema"), uri)
        media_type = schema.get("contentMediaType") if schema else None
        return isinstance(media_type, str) and "json" in media_type

    def _bucket_parameters(
        self, operation: ResolvedOperation, uri: Optional[str]
    ) -> dict[str, list[ParamSerialization]]:
        buckets: dict[str, list[ParamSerialization]] = {"path": [], "query": [], "header": [], "cookie": []}
        for param in operation.parameters:
            if self._is_reserved_header(param):
                continue
            try:
                location = ParameterLocation(param.get("in"))
            except ValueError:
                logger.warning("Ignoring parameter %r with unknown location %r", param.get("name"), param.get("in"))
                continue

            style = param.get("style")
            effective_style = style or (
                "form" if location in (ParameterLocation.QUERY, ParameterLocation.COOKIE) else "simple"
            )
            explode = param.get("explode")
            if explode is None:
                explode = effective_style == "form"

            content = param.get("content")
            has_content = isinstance(content, dict) and bool(content)
            name = camel_case(str(param.get("name", "")))
            buckets[_BUCKETS[location]].append(
                ParamSerialization(
                    param_name=f"{name}Serialized" if has_content else name,
                    original_name=str(param.get("name", "")),
                    location=location,
                    style=style,
                    explode=bool(explode),
                    allow_reserved=bool(param.get("allowReserved", False)),
                    serialization_link="json" if self._is_json_parameter(param, uri) else None,
                    content_type=next(iter(content)) if has_content else None,
                )
            )
        return buckets

    def _method_parameters(self, operation: ResolvedOperation, uri: Optional[str]) -> list[MethodParameter]:
        parameters: list[MethodParameter] = []
        for param in operation.parameters + operation.form_data_parameters:
            if self._is_reserved_header(param):
                continue
            parameters.append(
                MethodParameter(
                    name=camel_case(str(param.get("name", ""))),
                    type=self._type_of(self._parameter_schema(param)),
                    required=bool(param.get("required", False)),
                    deprecated=bool(param.get("deprecated", False)),
                    description=sanitize_comment(param.get("description")) or None,
                )
            )

        body_parameter = self._body_parameter(operation, uri)
        if body_parameter is not None:
            parameters.append(body_parameter)

        # sorted() is stable: required first, document order otherwise
        return sorted(parameters, key=lambda p: not p.required)

    def _body_parameter(self, operation: ResolvedOperation, uri: Optional[str]) -> Optional[MethodParameter]:
        request_body = operation.request_body
        if request_body is None:
            return None
        required = bool(request_body.get("required", False))
        description = sanitize_comment(request_body.get("description")) or None
        content = request_body.get("content")
        media_type = media_types.pick_request_media_type(content) if isinstance(content, dict) else None
        entry = self._resolve(content[media_type], uri) if media_type else None
        if entry is None:
            return MethodParameter(name="body", type="unknown", required=required, description=description)

        schema = entry.get("schema")
        item_schema = entry.get("itemSchema")
        if schema is None and item_schema is None:
            if media_types.is_multipart(media_type):
                body_type = "FormData | any[] | any"
            elif media_types.is_text(media_type):
                body_type = "string"
            else:
                body_type = "Blob"
            return MethodParameter(name="body", type=body_type, required=required, description=description)

        body_type = self._type_of(schema if schema is not None else item_schema)
        if schema is None:
            body_type = f"({body_type})[]"

        raw_type = _NULL_OR_ARRAY_RE.sub("", body_type)
        definition = self._definitions.get(raw_type)
        if isinstance(definition, dict) and _needs_request_type(definition):
            body_type = body_type.replace(raw_type, f"{raw_type}Request")
        name = camel_case(raw_type) if is_data_type_interface(raw_type) else "body"
        return MethodParameter(name=name, type=body_type, required=required, description=description)

    # ------------------------------------------------------------------ #
    # Request body
    # ------------------------------------------------------------------ #

    def _analyze_body(
        self,
        operation: ResolvedOperation,
        parameters: list[MethodParameter],
        uri: Optional[str],
    ) -> Optional[BodyVariant]:
        if operation.form_data_parameters:
            multipart = "multipart/form-data" in operation.consumes
            return BodyVariant(
                kind="form-data",
                param_name="formData" if multipart else "formBody",
                media_type="multipart/form-data" if multipart else media_types.URLENCODED,
                mappings=[str(p.get("name", "")) for p in operation.form_data_parameters],
            )

        request_body = operation.request_body
        if request_body is None:
            return None
        non_body = {camel_case(str(p.get("name", ""))) for p in operation.parameters}
        body_param = next((p for p in parameters if p.name not in non_body), None)
        param_name = body_param.name if body_param else "body"
        body_type = body_param.type if body_param else "any"

        content = request_body.get("content")
        media_type = media_types.pick_request_media_type(content) if isinstance(content, dict) else None
        if media_type is None:
            return BodyVariant(kind="raw", param_name=param_name, type=body_type)
        entry = self._resolve(content[media_type], uri) or {}
        schema = entry.get("schema")
        item_schema = entry.get("itemSchema")
        resolved_schema = self._resolve(schema, uri)

        kind = media_types.request_body_kind(media_type, schema is None and item_schema is not None)
        if kind == "raw":
            if media_types.is_text(media_type):
                return BodyVariant(kind="raw", param_name=param_name, media_type=media_type, type="string")
            if resolved_schema is None or _is_binary_schema(resolved_schema):
                return BodyVariant(kind="raw", param_name=param_name, media_type=media_type, type="Blob")
            kind = "json"

        if kind == "xml":
            xml = resolved_schema.get("xml") if resolved_schema else None
            return BodyVariant(
                kind="xml",
                param_name=param_name,
                media_type=media_type,
                type=body_type,
                root_name=xml.get("name") if isinstance(xml, dict) and xml.get("name") else "root",
                config=self._xml_config(schema, uri, MAX_CONFIG_DEPTH),
            )
        if kind == "multipart":
            return BodyVariant(
                kind="multipart",
                param_name=param_name,
                media_type=media_type,
                type=body_type,
                config=self._multipart_config(media_type, entry, resolved_schema, uri),
            )
        if kind == "urlencoded":
            return BodyVariant(
                kind="urlencoded",
                param_name=param_name,
                media_type=media_type,
                type=body_type,
                config=self._urlencoded_config(entry, resolved_schema, uri),
            )
        return BodyVariant(kind=kind, param_name=param_name, media_type=media_type, type=body_type)

    def _multipart_config(
        self,
        media_type: str,
        entry: dict[str, Any],
        schema: Optional[dict[str, Any]],
        uri: Optional[str],
    ) -> dict[str, Any]:
        config: dict[str, Any] = {"mediaType": media_type}
        if isinstance(entry.get("encoding"), dict):
            config["encoding"] = {k: dict(v) for k, v in entry["encoding"].items() if isinstance(v, dict)}
        if isinstance(entry.get("prefixEncoding"), list):
            config["prefixEncoding"] = [dict(v) if isinstance(v, dict) else {} for v in entry["prefixEncoding"]]
        if isinstance(entry.get("itemEncoding"), dict):
            config["itemEncoding"] = dict(entry["itemEncoding"])

        if schema is not None:
            properties = schema.get("properties")
            if isinstance(properties, dict):
                encoding = config.setdefault("encoding", {})
                for name, prop_schema in properties.items():
                    encoding[name] = self._enrich_encoding(prop_schema, encoding.get(name), uri)

            items = schema.get("items")
            if schema.get("type") == "array" or items is not None or "prefixItems" in schema:
                prefix_items = schema.get("prefixItems")
                if isinstance(items, list):
                    # tuple arrays carry their positions in items
                    prefix_items = items
                if isinstance(prefix_items, list):
                    prefix = config.setdefault("prefixEncoding", [])
                    for index, item_schema in enumerate(prefix_items):
                        current = prefix[index] if index < len(prefix) else None
                        enriched = self._enrich_encoding(item_schema, current, uri)
                        if index < len(prefix):
                            prefix[index] = enriched
                        else:
                            prefix.append(enriched)
                if isinstance(items, dict):
                    config["itemEncoding"] = self._enrich_encoding(items, config.get("itemEncoding"), uri)

        if (
            media_types.essence(media_type) == "multipart/form-data"
            and "encoding" in config
            and "prefixEncoding" not in config
            and "itemEncoding" not in config
        ):
            return config["encoding"]
        return config

    def _urlencoded_config(
        self, entry: dict[str, Any], schema: Optional[dict[str, Any]], uri: Optional[str]
    ) -> dict[str, Any]:
        encoding = entry.get("encoding")
        config = {k: dict(v) for k, v in encoding.items() if isinstance(v, dict)} if isinstance(encoding, dict) else {}
        properties = schema.get("properties") if schema else None
        if isinstance(properties, dict):
            for name, prop_schema in properties.items():
                enriched = self._enrich_encoding(prop_schema, config.get(name), uri)
                if enriched:
                    config[name] = enriched
        return config

    def _enrich_encoding(
        self, prop_schema: Any, encoding: Optional[dict[str, Any]], uri: Optional[str]
    ) -> dict[str, Any]:
        """Fill in an Encoding Object from the property schema it describes.

        Explicit fields already on *encoding* always win.
        """
        result = dict(encoding or {})
        resolved = self._resolve(prop_schema, uri)
        if resolved is None:
            return result
        if "contentType" not in result and resolved.get("type") in ("object", "array"):
            result["contentType"] = "application/json"
        content_encoding = resolved.get("contentEncoding")
        if content_encoding:
            headers = dict(result.get("headers") or {})
            if not any(name.lower() == "content-transfer-encoding" for name in headers):
                headers["Content-Transfer-Encoding"] = content_encoding
            result["headers"] = headers
        return result

    def _request_encoding_config(
        self, operation: ResolvedOperation, body: Optional[BodyVariant], uri: Optional[str]
    ) -> Optional[dict[str, Any]]:
        if body is None or body.kind not in ("json", "urlencoded") or body.media_type is None:
            return None
        content = (operation.request_body or {}).get("content") or {}
        entry = self._resolve(content.get(body.media_type), uri)
        if entry is None or entry.get("schema") is None:
            return None
        return self._encoding_config(entry["schema"], uri, MAX_CONFIG_DEPTH) or None

    # ------------------------------------------------------------------ #
    # Responses
    # ------------------------------------------------------------------ #

    def _success_codes(self, responses: dict[str, Any]) -> list[str]:
        codes = [code for code in responses if _SUCCESS_CODE_RE.match(code)]
        if codes:
            return codes
        for fallback in ("2XX", "default"):
            if fallback in responses:
                return [fallback]
        return []

    def _analyze_responses(
        self, operation: ResolvedOperation, uri: Optional[str]
    ) -> tuple[list[ResponseVariant], list[str]]:
        responses = operation.responses
        success_codes = self._success_codes(responses)
        variants: list[ResponseVariant] = []
        seen: set[str] = set()
        for code in success_codes:
            response = self._resolve(responses[code], uri) or {}
            content = response.get("content")
            if not isinstance(content, dict):
                continue
            for media_type, raw_entry in content.items():
                if media_type in seen:
                    continue
                seen.add(media_type)
                entry = self._resolve(raw_entry, uri) or {}
                variants.append(self._response_variant(code, media_type, entry, uri))

        if not variants and success_codes:
            variants.append(
                ResponseVariant(
                    media_type="",
                    status_code=success_codes[0],
                    type="void" if "204" in success_codes else "any",
                    is_default=True,
                )
            )
            return variants, success_codes

        default_index = next(
            (i for i, v in enumerate(variants) if media_types.essence(v.media_type) == "application/json"),
            0,
        )
        if variants:
            variants[default_index] = variants[default_index].model_copy(update={"is_default": True})
        return variants, success_codes

    def _sequence_item(self, entry: dict[str, Any], uri: Optional[str]) -> Any:
        if entry.get("itemSchema") is not None:
            return entry["itemSchema"]
        schema = entry.get("schema")
        resolved = self._resolve(schema, uri)
        if resolved is not None and resolved.get("type") == "array" and isinstance(resolved.get("items"), dict):
            return resolved["items"]
        return schema

    def _response_variant(
        self, code: str, media_type: str, entry: dict[str, Any], uri: Optional[str]
    ) -> ResponseVariant:
        serialization = media_types.response_serialization(media_type)
        schema = entry.get("schema")

        if serialization in ("json-seq", "json-lines", "sse", "multipart"):
            item_schema = self._sequence_item(entry, uri)
            item_type = self._type_of(item_schema)
            sse_mode = None
            if serialization == "sse":
                item = self._resolve(item_schema, uri) or {}
                properties = item.get("properties") if isinstance(item.get("properties"), dict) else {}
                sse_mode = "event" if "data" in properties and "event" in properties else "data"
            return ResponseVariant(
                media_type=media_type,
                status_code=code,
                type=f"({item_type})[]",
                serialization=serialization,
                item_type=item_type,
                sse_mode=sse_mode,
            )
        if serialization == "json":
            decoding = self._decoding_config(schema, uri, MAX_CONFIG_DEPTH) if schema is not None else {}
            return ResponseVariant(
                media_type=media_type,
                status_code=code,
                type=self._type_of(schema),
                serialization="json",
                decoding_config=decoding or None,
            )
        if serialization == "xml":
            return ResponseVariant(
                media_type=media_type,
                status_code=code,
                type=self._type_of(schema),
                serialization="xml",
                xml_config=self._xml_config(schema, uri, MAX_CONFIG_DEPTH),
            )
        if serialization == "text":
            return ResponseVariant(media_type=media_type, status_code=code, type="string", serialization="text")
        return ResponseVariant(media_type=media_type, status_code=code, type="Blob", serialization="blob")

    def _analyze_errors(
        self, operation: ResolvedOperation, success_codes: list[str], uri: Optional[str]
    ) -> list[ErrorResponseInfo]:
        errors: list[ErrorResponseInfo] = []
        for code, raw_response in operation.responses.items():
            if code in success_codes or _SUCCESS_CODE_RE.match(code) or code == "2XX":
                continue
            response = self._resolve(raw_response, uri) or {}
            content = response.get("content")
            error_type = "void"
            model_type = None
            if isinstance(content, dict) and content:
                json_key = next(
                    (k for k in content if media_types.is_json(k) or media_types.is_wildcard(k)), None
                )
                if json_key is not None:
                    error_type = "string"
                    entry = self._resolve(content[json_key], uri) or {}
                    if entry.get("schema") is not None:
                        model_type = self._type_of(entry["schema"])
                elif any(media_types.is_xml(k) or media_types.is_text(k) for k in content):
                    error_type = "string"
                else:
                    error_type = "Blob"
            errors.append(
                ErrorResponseInfo(
                    code=code,
                    type=error_type,
                    description=sanitize_comment(response.get("description")) or None,
                    model_type=model_type,
                )
            )
        return errors

    # ------------------------------------------------------------------ #
    # Config trees
    # ------------------------------------------------------------------ #

    def _xml_config(self, schema: Any, uri: Optional[str], depth: int) -> dict[str, Any]:
        if schema is None or depth <= 0:
            return {}
        resolved = self._resolve(schema, uri)
        if resolved is None:
            return {}

        xml = resolved.get("xml") if isinstance(resolved.get("xml"), dict) else {}
        config: dict[str, Any] = {}
        if xml.get("name"):
            config["name"] = xml["name"]
        if xml.get("attribute"):
            config["attribute"] = True
        if xml.get("wrapped"):
            config["wrapped"] = True
        if xml.get("prefix"):
            config["prefix"] = xml["prefix"]
        if xml.get("namespace"):
            config["namespace"] = xml["namespace"]

        is_ref = isinstance(schema, dict) and ("$ref" in schema or "$dynamicRef" in schema)
        if xml.get("nodeType"):
            config["nodeType"] = xml["nodeType"]
        elif xml.get("wrapped"):
            config["nodeType"] = "element"
        elif is_ref or resolved.get("type") == "array":
            config["nodeType"] = "none"
        else:
            config["nodeType"] = "element"

        if resolved.get("type") == "array" and isinstance(resolved.get("items"), dict):
            config["items"] = self._xml_config(resolved["items"], uri, depth - 1)
        if isinstance(resolved.get("prefixItems"), list):
            config["prefixItems"] = [self._xml_config(item, uri, depth - 1) for item in resolved["prefixItems"]]

        properties = resolved.get("properties")
        if isinstance(properties, dict):
            config["properties"] = {}
            for name, prop_schema in properties.items():
                prop_config = self._xml_config(prop_schema, uri, depth - 1)
                if prop_config:
                    config["properties"][name] = prop_config

        if isinstance(resolved.get("allOf"), list):
            for sub_schema in resolved["allOf"]:
                sub_config = self._xml_config(sub_schema, uri, depth - 1)
                if sub_config.get("properties"):
                    config["properties"] = {**config.get("properties", {}), **sub_config["properties"]}
        return config

    def _nested_config(
        self,
        resolved: dict[str, Any],
        uri: Optional[str],
        depth: int,
        build: Callable[[Any, Optional[str], int], dict[str, Any]],
    ) -> dict[str, Any]:
        config: dict[str, Any] = {}
        if resolved.get("type") == "array" and isinstance(resolved.get("items"), dict):
            item_config = build(resolved["items"], uri, depth - 1)
            if item_config:
                config["items"] = item_config

        properties = resolved.get("properties")
        if isinstance(properties, dict):
            prop_configs = {}
            for name, prop_schema in properties.items():
                prop_config = build(prop_schema, uri, depth - 1)
                if prop_config:
                    prop_configs[name] = prop_config
            if prop_configs:
                config["properties"] = prop_configs

        if isinstance(resolved.get("allOf"), list):
            for sub_schema in resolved["allOf"]:
                sub_config = build(sub_schema, uri, depth - 1)
                if sub_config.get("properties"):
                    config["properties"] = {**config.get("properties", {}), **sub_config["properties"]}
        return config

    def _decoding_config(self, schema: Any, uri: Optional[str], depth: int) -> dict[str, Any]:
        """Mark string fields whose content is an encoded JSON or XML document."""
        if schema is None or depth <= 0:
            return {}
        resolved = self._resolve(schema, uri)
        if resolved is None:
            return {}
        if resolved.get("type") == "string" and resolved.get("contentSchema") is not None:
            media_type = resolved.get("contentMediaType")
            if isinstance(media_type, str) and "xml" in media_type:
                return {
                    "decode": "xml",
                    "xmlConfig": self._xml_config(resolved["contentSchema"], uri, MAX_CONFIG_DEPTH),
                }
            return {"decode": True}
        return self._nested_config(resolved, uri, depth, self._decoding_config)

    def _encoding_config(self, schema: Any, uri: Optional[str], depth: int) -> dict[str, Any]:
        """Mark string fields that must be sent as serialized JSON."""
        if schema is None or depth <= 0:
            return {}
        resolved = self._resolve(schema, uri)
        if resolved is None:
            return {}
        media_type = resolved.get("contentMediaType")
        if resolved.get("type") == "string" and isinstance(media_type, str) and "json" in media_type:
            return {"encode": True}
        return self._nested_config(resolved, uri, depth, self._encoding_config)

    # ------------------------------------------------------------------ #
    # Security, servers, docs
    # ------------------------------------------------------------------ #

    def _effective_security(self, operation: ResolvedOperation) -> list[dict[str, list[str]]]:
        if operation.security is not None:
            return operation.security
        requirements = self.parser.spec.get("security")
        if not isinstance(requirements, list):
            return []
        return [
            {normalize_security_key(key): list(scopes or []) for key, scopes in requirement.items()}
            for requirement in requirements
            if isinstance(requirement, dict)
        ]

    @staticmethod
    def _base_path(operation: ResolvedOperation) -> Optional[str]:
        if not operation.servers:
            return None
        return substitute_server_variables(operation.servers[0])

    def _docs(self, operation: ResolvedOperation) -> str:
        summary = operation.summary or ""
        description = operation.description or ""
        text = summary or description or f"Performs a {operation.method.upper()} request to {operation.path}."
        if summary and description:
            text += f"\n\n{description}"
        lines = [sanitize_comment(text)]

        external_docs = operation.external_docs
        if isinstance(external_docs, dict) and external_docs.get("url"):
            see = f"@see {external_docs['url']} {sanitize_comment(external_docs.get('description'))}"
            lines.append(see.rstrip())
        if operation.deprecated:
            lines.append("@deprecated")
        if operation.tags:
            lines.append(f"@tags {', '.join(operation.tags)}")
        for server in operation.servers or []:
            lines.append(f"@server {json.dumps(server.model_dump(mode='json', exclude_none=True))}")
        if operation.security is not None:
            lines.append(f"@security {json.dumps(operation.security, default=str)}")
        for key, value in operation.extensions.items():
            if value is True:
                lines.append(f"@{key}")
            else:
                lines.append(f"@{key} {json.dumps(value, default=str)}")
        return "\n\n".join(lines)


def _needs_request_type(definition: dict[str, Any]) -> bool:
    """Models with readOnly/writeOnly properties get a separate ``<Name>Request`` type."""
    properties = definition.get("properties")
    if not isinstance(properties, dict):
        return False
    return any(
        isinstance(prop, dict) and (prop.get("readOnly") or prop.get("writeOnly"))
        for prop in properties.values()
    )


def _is_binary_schema(schema: dict[str, Any]) -> bool:
    return schema.get("type") == "string" and (
        schema.get("format") == "binary" or "contentEncoding" in schema or "contentMediaType" in schema
    )
