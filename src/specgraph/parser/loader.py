"""Load OpenAPI documents and every document they reference.

This module handles all I/O for fetching raw OpenAPI documents and converting
them into Python dictionaries.  It supports JSON and YAML with extension-based
detection and content sniffing as a fallback.

The main entry point is :class:`DocumentLoader`, whose async
:meth:`~DocumentLoader.load` reads the root document, then discovers and
fetches every transitively referenced document (``$ref``, ``$dynamicRef`` and
Link ``operationRef`` targets) into a fresh
:class:`~specgraph.parser.resolver.DocumentCache`.  Documents found on the same
discovery level are fetched concurrently; each absolute URI is fetched at most
once.  When everything is loaded, each OpenAPI/Swagger document is validated
and operationIds are checked for uniqueness across documents.

Other public helpers:

* :func:`to_document_uri` -- absolute ``file://`` URI for local paths.
* :func:`document_base_uri` -- ``$self`` if declared, else the retrieval URI.
* :func:`parse_content` -- JSON/YAML parsing with one uniform error message.
* :func:`load_document` -- synchronous single-document load (no reference
  graph) for quick inspection.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Optional
from urllib.parse import urldefrag, urljoin, urlsplit
from urllib.request import url2pathname

import httpx
import yaml

from specgraph.exceptions import SpecLoadError
from specgraph.parser.resolver import DocumentCache, find_refs
from specgraph.parser.validator import (
    is_api_document,
    validate_operation_ids_across_documents,
    validate_spec,
)

logger = logging.getLogger(__name__)

_HTTP_PREFIXES = ("http://", "https://")
_FETCHABLE_SCHEMES = frozenset({"http", "https", "file"})
_DISCOVERY_KEYS = ("$ref", "$dynamicRef", "operationRef")


@dataclass
class LoadedSpec:
    """Result of :meth:`DocumentLoader.load`.

    Attributes:
        spec: The root document.
        document_uri: Absolute URI the root document was retrieved from.
        cache: Every loaded document, keyed by absolute URI.
    """

    spec: dict[str, Any]
    document_uri: str
    cache: DocumentCache


def is_url(value: str) -> bool:
    """Return ``True`` for ``http(s)://`` locations."""
    return value.startswith(_HTTP_PREFIXES)


def to_document_uri(input_path: str) -> str:
    """Return the absolute URI a document is identified by.

    URLs (``http``, ``https``, ``file``) are returned unchanged; local paths
    become absolute ``file://`` URIs.
    """
    if urlsplit(input_path).scheme in _FETCHABLE_SCHEMES:
        return input_path
    return Path(input_path).resolve().as_uri()


def _uri_to_path(uri: str) -> Path:
    if uri.startswith("file:"):
        return Path(url2pathname(urlsplit(uri).path))
    return Path(uri)


def document_base_uri(spec: Any, retrieval_uri: str) -> str:
    """Return the URI relative references inside *spec* resolve against.

    An OpenAPI 3.2 ``$self`` field wins (resolved against the retrieval URI
    when relative); otherwise the retrieval URI is the base.  Server URLs
    never use this value, they always resolve against the retrieval URI.
    """
    if isinstance(spec, dict):
        self_uri = spec.get("$self")
        if isinstance(self_uri, str) and self_uri:
            return urldefrag(urljoin(retrieval_uri, self_uri)).url
    return retrieval_uri


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _format_hint(uri: str) -> str:
    suffix = PurePosixPath(urlsplit(uri).path).suffix.lower()
    if suffix in (".yaml", ".yml"):
        return "yaml"
    if suffix == ".json":
        return "json"
    return "" if suffix else "none"


def _parse(content: str, uri: str) -> dict[str, Any]:
    hint = _format_hint(uri)
    if hint == "yaml" or (hint == "none" and content.lstrip().startswith("openapi:")):
        result = yaml.safe_load(content)
    elif hint == "json":
        result = json.loads(content)
    else:
        try:
            result = json.loads(content)
        except json.JSONDecodeError:
            result = yaml.safe_load(content)

    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise ValueError(f"document must be a JSON/YAML object (got {kind})")
    return result


def parse_content(content: str, uri: str) -> dict[str, Any]:
    """Parse a document body as JSON or YAML.

    ``.yaml``/``.yml`` locations (and extension-less content starting with
    ``openapi:``) are read as YAML, ``.json`` locations as JSON; anything
    else is tried as JSON first and YAML second.

    Args:
        content: The raw document text.
        uri: Where the text came from; drives format detection and appears
            in the error message.

    Returns:
        The parsed document.

    Raises:
        SpecLoadError: ``Failed to parse content from <uri>. Error: <message>``
            for every parser failure.
    """
    try:
        return _parse(content, uri)
    except Exception as exc:
        raise SpecLoadError(f"Failed to parse content from {uri}. Error: {exc}") from exc


# ---------------------------------------------------------------------------
# Multi-document loading
# ---------------------------------------------------------------------------


class DocumentLoader:
    """Fetch a root document and everything it references.

    Args:
        client: Optional :class:`httpx.AsyncClient` used for remote
            documents.  When omitted, a client is created for the duration
            of each :meth:`load` call.
        timeout: Timeout in seconds for a client created by the loader.

    Example::

        loaded = asyncio.run(DocumentLoader().load("specs/main.yaml"))
        loaded.cache.documents()
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0) -> None:
        self._client = client
        self._timeout = timeout

    async def load(self, input_path: str) -> LoadedSpec:
        """Load *input_path* and its reference graph, then validate it.

        Raises:
            SpecLoadError: If any document cannot be read, fetched, or parsed.
            SpecValidationError: If a document fails structural validation.
        """
        root_uri = to_document_uri(input_path)
        cache = DocumentCache()

        owns_client = self._client is None
        if owns_client:
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        try:
            await self._load_graph(root_uri, cache)
        finally:
            if owns_client and self._client is not None:
                await self._client.aclose()
                self._client = None

        for _uri, document in cache.documents():
            if is_api_document(document):
                validate_spec(document)
        validate_operation_ids_across_documents(cache)

        return LoadedSpec(spec=cache[root_uri], document_uri=root_uri, cache=cache)

    async def fetch_content(self, uri: str) -> str:
        """Return the raw text stored at *uri* (``http(s)``, ``file:`` or a path).

        Raises:
            SpecLoadError: On a missing file, an unsuccessful HTTP status, or
                any transport/read failure.
        """
        if is_url(uri):
            client = self._client or httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
            try:
                response = await client.get(uri)
            except httpx.RequestError as exc:
                raise SpecLoadError(f"Failed to fetch spec from {uri}: {exc}") from exc
            finally:
                if client is not self._client:
                    await client.aclose()
            if not response.is_success:
                raise SpecLoadError(f"Failed to fetch spec from {uri}: {response.reason_phrase}")
            return response.text

        path = _uri_to_path(uri)
        if not path.is_file():
            raise SpecLoadError(f"Input file not found at {path}")
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SpecLoadError(f'Failed to read content from "{uri}": {exc}') from exc

    async def _load_graph(self, root_uri: str, cache: DocumentCache) -> None:
        requested: set[str] = set()
        pending = [root_uri]
        while pending:
            batch = []
            for uri in pending:
                if uri in requested or uri in cache:
                    continue
                requested.add(uri)
                batch.append(uri)
            # Every fetch in the batch settles before the client can be closed.
            results = await asyncio.gather(
                *(self._load_one(uri, cache) for uri in batch), return_exceptions=True
            )
            failures = [result for result in results if isinstance(result, BaseException)]
            if failures:
                raise failures[0]
            pending = [uri for uris in results for uri in uris]

    async def _load_one(self, uri: str, cache: DocumentCache) -> list[str]:
        content = await self.fetch_content(uri)
        document = parse_content(content, uri)
        base_uri = document_base_uri(document, uri)
        cache.add(uri, document, base_uri)
        cache.index_schema_ids(document, base_uri, uri)
        logger.debug("Loaded %s", uri)
        return self._external_targets(document, base_uri, cache)

    @staticmethod
    def _external_targets(document: Any, base_uri: str, cache: DocumentCache) -> list[str]:
        targets: list[str] = []
        for ref in find_refs(document, _DISCOVERY_KEYS):
            address = ref.split("#", 1)[0]
            if not address:
                continue
            try:
                target = urldefrag(urljoin(base_uri, address)).url
                scheme = urlsplit(target).scheme
            except ValueError as exc:
                logger.warning("Skipping unresolvable reference '%s': %s", ref, exc)
                continue
            if target in cache:
                continue
            if scheme not in _FETCHABLE_SCHEMES:
                logger.warning("Skipping reference '%s' with unsupported scheme", ref)
                continue
            targets.append(target)
        return targets


# ---------------------------------------------------------------------------
# Single-document loading
# ---------------------------------------------------------------------------


def load_document(source: str) -> dict[str, Any]:
    """Load one document from a URL, file path, or stdin (``'-'``).

    Unlike :class:`DocumentLoader` this does not follow references and does
    not validate.

    Raises:
        SpecLoadError: If the source cannot be read, fetched, or parsed.
    """
    if source == "-":
        content = sys.stdin.read()
        if not content.strip():
            raise SpecLoadError("No input received from stdin")
        return parse_content(content, "stdin")

    if is_url(source):
        try:
            response = httpx.get(source, timeout=30.0, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SpecLoadError(
                f"Failed to fetch spec from {source}: {exc.response.reason_phrase}"
            ) from exc
        except httpx.RequestError as exc:
            raise SpecLoadError(f"Failed to fetch spec from {source}: {exc}") from exc
        return parse_content(response.text, source)

    path = Path(source)
    if not path.is_file():
        raise SpecLoadError(f"Input file not found at {path}")
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecLoadError(f'Failed to read content from "{source}": {exc}') from exc
    return parse_content(content, source)
