"""The :class:`SpecParser` façade.

A :class:`SpecParser` owns one normalized document together with the
resolver over its document cache, and exposes the read-only views code
emitters consume: servers, operations, webhooks, schemas, security schemes
and links.

Use :meth:`SpecParser.create` to load a document from disk or the network
(all referenced documents are pre-loaded), or construct a parser directly
from an already-parsed ``dict``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from specgraph.exceptions import SpecValidationError
from specgraph.models import (
    DiscriminatorInfo,
    GeneratorConfig,
    NamedSchema,
    PolymorphicOption,
    ResolvedOperation,
    SpecVersion,
)
from specgraph.naming import pascal_case
from specgraph.parser.extractor import (
    assign_method_names,
    extract_paths,
    group_operations_by_controller,
)
from specgraph.parser.loader import DocumentLoader, document_base_uri
from specgraph.parser.normalizer import (
    get_definitions,
    get_security_schemes,
    get_spec_version,
    is_swagger2,
    json_schema_dialect,
    normalize_servers,
)
from specgraph.parser.polymorphism import (
    get_discriminator_info,
    get_polymorphic_schema_options,
)
from specgraph.parser.resolver import DocumentCache, ReferenceResolver, warn_duplicate_schema_names
from specgraph.parser.validator import validate_spec

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_URI = "file://entry-spec.json"


class SpecParser:
    """Normalized, resolved view of one OpenAPI/Swagger document.

    Construction validates the document, indexes it (unless a populated
    cache is supplied), extracts operations from ``paths`` and ``webhooks``
    and asserts that operationIds are unique once every path-item ``$ref``
    is expanded.

    Args:
        spec: The parsed root document.
        config: Generation config; defaults to :class:`GeneratorConfig()`.
        cache: Document cache from :class:`~specgraph.parser.loader.DocumentLoader`.
            When omitted, a cache holding only *spec* is built.
        document_uri: Retrieval URI of *spec*.

    Raises:
        SpecValidationError: If the document is structurally invalid or two
            operations share an operationId.

    Example::

        parser = SpecParser({"openapi": "3.1.0", "info": {...}, "paths": {...}})
        for op in parser.operations:
            print(op.method, op.path, op.method_name)
    """

    def __init__(
        self,
        spec: dict[str, Any],
        config: Optional[GeneratorConfig] = None,
        cache: Optional[DocumentCache] = None,
        document_uri: str = DEFAULT_DOCUMENT_URI,
    ) -> None:
        validate_spec(spec)

        self.spec = spec
        self.config = config or GeneratorConfig()
        self.document_uri = document_uri

        if cache is None:
            cache = DocumentCache()
            base_uri = document_base_uri(spec, document_uri)
            cache.add(document_uri, spec, base_uri)
            cache.index_schema_ids(spec, base_uri, document_uri)
        self._cache = cache
        self._resolver = ReferenceResolver(cache, document_uri)
        warn_duplicate_schema_names(cache)

        self.schemas: list[NamedSchema] = [
            NamedSchema(name=pascal_case(name), definition=definition)
            for name, definition in self.get_definitions().items()
        ]
        self.servers = normalize_servers(spec, document_uri)

        swagger = is_swagger2(spec)
        extract_options: dict[str, Any] = {
            "resolver": self._resolver,
            "document_uri": document_uri,
            "root_servers": self.servers,
            "swagger": swagger,
            "default_consumes": spec.get("consumes") if swagger else None,
            "default_produces": spec.get("produces") if swagger else None,
        }
        self.operations: list[ResolvedOperation] = extract_paths(spec.get("paths"), **extract_options)
        self.webhooks: list[ResolvedOperation] = extract_paths(
            spec.get("webhooks"), is_webhook=True, **extract_options
        )
        self._assert_unique_operation_ids()
        assign_method_names(
            self.operations + self.webhooks,
            self.config.options.customize_method_name,
        )

        self.security: dict[str, Any] = self.get_security_schemes()
        self.links: dict[str, Any] = self.get_links()

    @classmethod
    async def create(
        cls,
        input_path: str,
        config: Optional[GeneratorConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> SpecParser:
        """Load *input_path* and every document it references, then build a parser.

        Raises:
            SpecLoadError: If any document cannot be read, fetched, or parsed.
            SpecValidationError: If validation fails.
        """
        loaded = await DocumentLoader(client=client).load(input_path)
        return cls(loaded.spec, config, loaded.cache, loaded.document_uri)

    # ------------------------------------------------------------------ #
    # Invariants
    # ------------------------------------------------------------------ #

    def _assert_unique_operation_ids(self) -> None:
        seen: dict[str, ResolvedOperation] = {}
        for operation in self.operations + self.webhooks:
            if not operation.operation_id:
                continue
            previous = seen.get(operation.operation_id)
            if previous is not None:
                raise SpecValidationError(
                    f'Duplicate operationId "{operation.operation_id}" found after '
                    f"resolving references: {previous.method} {previous.path} and "
                    f"{operation.method} {operation.path}"
                )
            seen[operation.operation_id] = operation

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    @property
    def cache(self) -> DocumentCache:
        return self._cache

    @property
    def resolver(self) -> ReferenceResolver:
        return self._resolver

    @property
    def json_schema_dialect(self) -> Optional[str]:
        return json_schema_dialect(self.spec)

    def get_definitions(self) -> dict[str, Any]:
        return get_definitions(self.spec)

    def get_definition(self, name: str) -> Any:
        return self.get_definitions().get(name)

    def get_security_schemes(self) -> dict[str, Any]:
        """Return security schemes with ``$ref`` entries resolved."""
        schemes = {}
        for name, scheme in get_security_schemes(self.spec).items():
            resolved = self._resolver.resolve(scheme)
            if isinstance(resolved, dict):
                schemes[name] = resolved
        return schemes

    def get_links(self) -> dict[str, Any]:
        """Return ``components.links``; referenced links that fail to resolve are omitted."""
        components = self.spec.get("components")
        links = components.get("links") if isinstance(components, dict) else None
        if not isinstance(links, dict):
            return {}
        resolved_links = {}
        for name, link in links.items():
            resolved = self._resolver.resolve(link)
            if isinstance(resolved, dict):
                resolved_links[name] = resolved
        return resolved_links

    def controllers(self) -> dict[str, list[ResolvedOperation]]:
        """Group :attr:`operations` by controller name."""
        return group_operations_by_controller(self.operations)

    def find_operation(self, operation_id: str) -> Optional[ResolvedOperation]:
        for operation in self.operations + self.webhooks:
            if operation.operation_id == operation_id:
                return operation
        return None

    # ------------------------------------------------------------------ #
    # Resolution
    # ------------------------------------------------------------------ #

    def resolve(self, node: Any, current_doc_uri: Optional[str] = None) -> Any:
        return self._resolver.resolve(node, current_doc_uri)

    def resolve_reference(self, ref: str, current_doc_uri: Optional[str] = None) -> Any:
        return self._resolver.resolve_reference(ref, current_doc_uri)

    def get_polymorphic_schema_options(
        self, schema: Any, current_doc_uri: Optional[str] = None
    ) -> list[PolymorphicOption]:
        return get_polymorphic_schema_options(
            schema, self._resolver, self.get_definitions(), current_doc_uri
        )

    def get_discriminator_info(
        self, schema: Any, current_doc_uri: Optional[str] = None
    ) -> Optional[DiscriminatorInfo]:
        return get_discriminator_info(
            schema, self._resolver, self.get_definitions(), current_doc_uri
        )

    # ------------------------------------------------------------------ #
    # Version
    # ------------------------------------------------------------------ #

    def get_spec_version(self) -> Optional[SpecVersion]:
        return get_spec_version(self.spec)

    def is_valid_spec(self) -> bool:
        version = self.get_spec_version()
        if version is None:
            return False
        prefix = "2." if version.type == "swagger" else "3."
        return version.version.startswith(prefix)
