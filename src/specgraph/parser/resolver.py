"""Resolve ``$ref`` / ``$dynamicRef`` pointers across a set of loaded documents.

OpenAPI descriptions are frequently split over several files
(``main.json`` referencing ``./schemas.json#/components/schemas/User``) and
JSON Schema 2020-12 adds ``$id``, ``$anchor`` and ``$dynamicAnchor`` as further
ways to name a target.  This module keeps all of that in one
:class:`DocumentCache` that is built once per run and passed explicitly to a
:class:`ReferenceResolver`; no module-level state is involved, so separate
runs in the same process never see each other's documents.

Resolution never raises.  A reference that cannot be followed (missing
document, missing pointer segment, unknown anchor, cycle) logs a warning and
yields ``None`` so callers can fall back to a permissive default.

Public API:

* :class:`DocumentCache` -- documents keyed by absolute URI plus the per-node
  base-URI / document-URI index.
* :func:`find_refs` -- collect every reference string inside a node.
* :func:`is_reference` -- ``True`` for ``{"$ref": ...}`` / ``{"$dynamicRef": ...}``.
* :class:`ReferenceResolver` -- ``resolve(node)`` and ``resolve_reference(ref)``.
* :func:`warn_duplicate_schema_names` -- cross-document schema-name collisions.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional
from urllib.parse import unquote, urldefrag, urljoin

from specgraph.naming import normalize_schema_name

logger = logging.getLogger(__name__)

REFERENCE_KEYS = ("$ref", "$dynamicRef")


def is_reference(node: Any) -> bool:
    """Return ``True`` when *node* is a Reference Object of either kind."""
    return isinstance(node, dict) and any(
        isinstance(node.get(key), str) for key in REFERENCE_KEYS
    )


def _reference_of(node: dict[str, Any]) -> tuple[str, bool]:
    """Return ``(pointer, is_dynamic)`` for a node accepted by :func:`is_reference`."""
    ref = node.get("$ref")
    if isinstance(ref, str):
        return ref, False
    return node["$dynamicRef"], True


def find_refs(node: Any, keys: tuple[str, ...] = REFERENCE_KEYS) -> list[str]:
    """Collect every reference string found anywhere inside *node*.

    Args:
        node: Any JSON-compatible value.
        keys: Object keys whose string values count as references.  The
            loader adds ``"operationRef"`` so Link targets are pre-loaded.

    Returns:
        Reference strings in discovery order, without duplicates.
    """
    found: dict[str, None] = {}
    seen: set[int] = set()
    stack: list[Any] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, list):
            stack.extend(reversed(current))
            continue
        if not isinstance(current, dict) or id(current) in seen:
            continue
        seen.add(id(current))
        for key in keys:
            value = current.get(key)
            if isinstance(value, str):
                found.setdefault(value, None)
        stack.extend(reversed(list(current.values())))
    return list(found)


def _unescape(token: str) -> str:
    """Decode one JSON Pointer token (RFC 6901)."""
    return token.replace("~1", "/").replace("~0", "~")


class DocumentCache:
    """All documents of one run, keyed by absolute URI.

    Besides whole documents the cache holds entries for every ``$id``
    (``https://example.com/schemas/user``) and ``$anchor``
    (``<base>#name``) found by :meth:`index_schema_ids`, so a reference to
    any of those names is a plain dictionary lookup.

    The cache also remembers, for every indexed node, which base URI is in
    effect at that node and which document it came from.  Path items
    reached through a cross-document ``$ref`` use this to resolve their own
    relative references against *their* document instead of the
    referrer's.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}
        self._documents: dict[str, Any] = {}
        self._dynamic_anchors: dict[str, Any] = {}
        self._base_uris: dict[int, str] = {}
        self._document_uris: dict[int, str] = {}

    def __contains__(self, uri: object) -> bool:
        return uri in self._entries

    def __getitem__(self, uri: str) -> Any:
        return self._entries[uri]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, uri: str, default: Any = None) -> Any:
        return self._entries.get(uri, default)

    def add(self, uri: str, document: Any, *aliases: str) -> None:
        """Store a whole document under *uri* and any alias URIs (e.g. ``$self``)."""
        self._documents[uri] = document
        self._entries[uri] = document
        for alias in aliases:
            if alias and alias != uri:
                self._entries.setdefault(alias, document)

    def documents(self) -> list[tuple[str, Any]]:
        """Return ``(uri, document)`` for every loaded document, aliases excluded."""
        return list(self._documents.items())

    def base_uri_of(self, node: Any) -> Optional[str]:
        return self._base_uris.get(id(node))

    def document_uri_of(self, node: Any) -> Optional[str]:
        return self._document_uris.get(id(node))

    def dynamic_anchor(self, key: str) -> Any:
        return self._dynamic_anchors.get(key)

    def index_schema_ids(self, document: Any, base_uri: str, document_uri: str) -> None:
        """Record ``$id`` / ``$anchor`` / ``$dynamicAnchor`` names inside *document*.

        Every dict reached gets its effective base URI and owning document
        URI recorded.  ``$id`` values are resolved against the enclosing
        base and become both a new cache entry and the base for everything
        below them.
        """
        seen: set[int] = set()
        stack: list[tuple[Any, str]] = [(document, urldefrag(base_uri).url)]
        while stack:
            node, base = stack.pop()
            if isinstance(node, list):
                stack.extend((item, base) for item in node)
                continue
            if not isinstance(node, dict) or id(node) in seen:
                continue
            seen.add(id(node))

            schema_id = node.get("$id")
            if isinstance(schema_id, str) and schema_id:
                base = urldefrag(urljoin(base, schema_id)).url
                self._entries.setdefault(base, node)
            self._base_uris.setdefault(id(node), base)
            self._document_uris.setdefault(id(node), document_uri)

            anchor = node.get("$anchor")
            if isinstance(anchor, str) and anchor:
                self._entries.setdefault(f"{base}#{anchor}", node)
            dynamic_anchor = node.get("$dynamicAnchor")
            if isinstance(dynamic_anchor, str) and dynamic_anchor:
                key = f"{base}#{dynamic_anchor}"
                self._entries.setdefault(key, node)
                self._dynamic_anchors.setdefault(key, node)

            stack.extend((value, base) for value in node.values())


class ReferenceResolver:
    """Follow references through a :class:`DocumentCache`.

    Chains (``A -> B -> C``) are followed until a non-reference node is
    reached.  A chain that revisits a target is reported as circular and
    resolves to ``None``.

    Sibling keys written next to a ``$ref`` (``summary``, ``description``
    and anything else) are applied to a shallow copy of the target, so the
    cached document is never mutated.

    Args:
        cache: The populated document cache.
        entry_uri: Absolute URI of the entry document; used as the base for
            nodes that were never indexed.
    """

    def __init__(self, cache: DocumentCache, entry_uri: str) -> None:
        self._cache = cache
        self._entry_uri = entry_uri
        entry = cache.get(entry_uri)
        self._entry_base = cache.base_uri_of(entry) or urldefrag(entry_uri).url

    @property
    def cache(self) -> DocumentCache:
        return self._cache

    def base_uri_for(self, node: Any, current_doc_uri: Optional[str] = None) -> str:
        """Return the base URI relative references inside *node* resolve against."""
        base = self._cache.base_uri_of(node)
        if base:
            return base
        if current_doc_uri:
            document = self._cache.get(urldefrag(current_doc_uri).url)
            return self._cache.base_uri_of(document) or current_doc_uri
        return self._entry_base

    def resolve(self, node: Any, current_doc_uri: Optional[str] = None) -> Any:
        """Return the value *node* stands for.

        Non-reference values are returned unchanged (the very same object).
        References are followed transitively; ``None`` means the target could
        not be found.
        """
        if not is_reference(node):
            return node
        base = self.base_uri_for(node, current_doc_uri)
        return self._follow(node, base, frozenset(), (self._entry_base,))

    def resolve_reference(self, ref: str, current_doc_uri: Optional[str] = None) -> Any:
        """Resolve a raw reference string such as ``other.json#/components/schemas/X``.

        Args:
            ref: URI with an optional JSON Pointer or anchor fragment.
            current_doc_uri: Document the reference is written in; defaults
                to the entry document.
        """
        base = self.base_uri_for(None, current_doc_uri)
        return self._follow({"$ref": ref}, base, frozenset(), (self._entry_base,))

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _follow(
        self,
        node: dict[str, Any],
        base: str,
        seen: frozenset[str],
        scopes: tuple[str, ...],
    ) -> Any:
        ref, dynamic = _reference_of(node)
        address, _, fragment = ref.partition("#")
        fragment = unquote(fragment)
        target_uri = urldefrag(urljoin(base, address)).url if address else urldefrag(base).url
        key = f"{target_uri}#{fragment}"

        if key in seen:
            logger.warning("Circular reference detected while resolving '%s'", ref)
            return None
        seen = seen | {key}
        scopes = scopes if target_uri in scopes else scopes + (target_uri,)

        target = None
        if dynamic and fragment and not fragment.startswith("/"):
            target = self._dynamic_lookup(fragment, scopes)
        if target is None:
            target = self._locate(ref, target_uri, fragment, address)
        if target is None:
            return None

        if is_reference(target):
            target_base = self._cache.base_uri_of(target) or target_uri
            target = self._follow(target, target_base, seen, scopes)
            if target is None:
                return None

        siblings = {k: v for k, v in node.items() if k not in REFERENCE_KEYS}
        if siblings and isinstance(target, dict):
            merged = dict(target)
            merged.update(siblings)
            return merged
        return target

    def _dynamic_lookup(self, anchor: str, scopes: tuple[str, ...]) -> Any:
        # Outermost dynamic scope wins.
        for scope in scopes:
            target = self._cache.dynamic_anchor(f"{scope}#{anchor}")
            if target is not None:
                return target
        return None

    def _locate(self, ref: str, target_uri: str, fragment: str, address: str) -> Any:
        if fragment and not fragment.startswith("/"):
            target = self._cache.get(f"{target_uri}#{fragment}")
            if target is None:
                logger.warning("Unresolved anchor reference '%s' in %s", ref, target_uri)
            return target

        document = self._cache.get(target_uri)
        if document is None:
            if address:
                logger.warning(
                    "Unresolved external file reference '%s' (resolved to %s)",
                    ref,
                    target_uri,
                )
            else:
                logger.warning("Unresolved reference '%s': no document at %s", ref, target_uri)
            return None
        return self._walk_pointer(document, fragment, ref, target_uri)

    @staticmethod
    def _walk_pointer(document: Any, fragment: str, ref: str, uri: str) -> Any:
        current = document
        if not fragment:
            return current
        for raw_part in fragment.split("/")[1:]:
            part = _unescape(raw_part)
            if isinstance(current, dict) and part in current:
                current = current[part]
            elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
                current = current[int(part)]
            else:
                logger.warning(
                    'Failed to resolve reference part "%s" in path "%s" within file %s',
                    part,
                    ref,
                    uri,
                )
                return None
        return current


def _schema_names(document: Any) -> list[str]:
    if not isinstance(document, dict):
        return []
    schemas = document.get("definitions")
    if not isinstance(schemas, dict):
        components = document.get("components")
        schemas = components.get("schemas") if isinstance(components, dict) else None
    return list(schemas) if isinstance(schemas, dict) else []


def warn_duplicate_schema_names(cache: DocumentCache) -> list[str]:
    """Warn about schemas that would collide once names are normalised.

    ``UserModel`` in one document and ``user_model`` in another both become
    the same generated type.  Both stay accessible; the collision is only
    reported.

    Returns:
        The colliding names as found, in discovery order.
    """
    first_seen: dict[str, tuple[str, str]] = {}
    duplicates: list[str] = []
    for uri, document in cache.documents():
        for name in _schema_names(document):
            normalized = normalize_schema_name(name)
            previous = first_seen.get(normalized)
            if previous is None:
                first_seen[normalized] = (name, uri)
                continue
            if previous == (name, uri):
                continue
            logger.warning(
                'Duplicate schema name "%s" in %s (already defined as "%s" in %s)',
                name,
                uri,
                previous[0],
                previous[1],
            )
            duplicates.append(name)
    return duplicates
