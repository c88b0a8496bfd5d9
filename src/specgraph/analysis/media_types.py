"""Media type families used to classify request and response bodies."""

from __future__ import annotations

from typing import Any, Optional

from specgraph.models import BodyKind, ResponseSerialization

JSON_LINES_TYPES = frozenset({"application/jsonl", "application/x-ndjson", "application/json-lines"})
JSON_SEQ_TYPES = frozenset({"application/json-seq"})
EVENT_STREAM = "text/event-stream"
MULTIPART_MIXED = "multipart/mixed"
URLENCODED = "application/x-www-form-urlencoded"


def essence(media_type: str) -> str:
    """Lower-cased type/subtype without parameters (``; charset=utf-8``)."""
    return media_type.split(";", 1)[0].strip().lower()


def is_wildcard(media_type: str) -> bool:
    return "*" in essence(media_type)


def is_json_seq(media_type: str) -> bool:
    value = essence(media_type)
    return value in JSON_SEQ_TYPES or value.endswith("+json-seq")


def is_json_lines(media_type: str) -> bool:
    return essence(media_type) in JSON_LINES_TYPES


def is_sequential(media_type: str) -> bool:
    """``True`` for media types that carry a stream of same-shaped items."""
    value = essence(media_type)
    return (
        is_json_lines(value)
        or is_json_seq(value)
        or value in (EVENT_STREAM, MULTIPART_MIXED)
    )


def is_json(media_type: str) -> bool:
    """``application/json`` and any ``+json`` structured-syntax variant."""
    value = essence(media_type)
    return value == "application/json" or value.endswith("+json")


def is_xml(media_type: str) -> bool:
    value = essence(media_type)
    return value in ("application/xml", "text/xml") or value.endswith("+xml")


def is_multipart(media_type: str) -> bool:
    return essence(media_type).startswith("multipart/")


def is_urlencoded(media_type: str) -> bool:
    return essence(media_type) == URLENCODED


def is_text(media_type: str) -> bool:
    return essence(media_type).startswith("text/")


_REQUEST_PRIORITY = (
    lambda m: is_json(m) or is_json_lines(m) or is_json_seq(m),
    is_xml,
    is_multipart,
    is_urlencoded,
    is_text,
)


def pick_request_media_type(content: dict[str, Any]) -> Optional[str]:
    """Choose the request media type a generated client sends.

    Exact media types beat wildcards; within each group JSON wins, then
    XML, multipart, urlencoded, text, and finally whatever came first.
    """
    keys = [key for key in content if isinstance(key, str)]
    if not keys:
        return None
    exact = [key for key in keys if not is_wildcard(key)]
    candidates = exact or keys
    for matches in _REQUEST_PRIORITY:
        for key in candidates:
            if matches(key):
                return key
    return candidates[0]


def request_body_kind(media_type: str, has_item_schema: bool) -> BodyKind:
    """Classify a request media type (before schema inspection)."""
    if is_json(media_type) or is_wildcard(media_type):
        return "json-lines" if has_item_schema else "json"
    if is_json_lines(media_type) or is_json_seq(media_type):
        return "json-lines"
    if is_xml(media_type):
        return "xml"
    if is_multipart(media_type):
        return "multipart"
    if is_urlencoded(media_type):
        return "urlencoded"
    return "raw"


def response_serialization(media_type: str) -> ResponseSerialization:
    """Classify a response media type into a decoding strategy."""
    value = essence(media_type)
    if is_json_seq(value):
        return "json-seq"
    if is_json_lines(value):
        return "json-lines"
    if value == EVENT_STREAM:
        return "sse"
    if value == MULTIPART_MIXED:
        return "multipart"
    if is_json(value) or is_wildcard(value):
        return "json"
    # text/xml must be checked before the generic text/* family
    if is_xml(value):
        return "xml"
    if is_text(value):
        return "text"
    return "blob"
