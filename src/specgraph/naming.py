"""Identifier casing and comment sanitizing helpers.

Generated identifiers (method names, controller names, fallback schema names)
and documentation strings all pass through these helpers so every consumer
sees the same spelling.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Casing
# ---------------------------------------------------------------------------

_NON_WORD_RE = re.compile(r"[^a-zA-Z0-9\s_-]")
_EDGE_SEPARATORS_RE = re.compile(r"^[_-]+|[-_]+$")
_LOWER_UPPER_RE = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_RE = re.compile(r"([A-Z])([A-Z][a-z])")
_SEPARATORS_RE = re.compile(r"[_-]+")
_SPACES_RE = re.compile(r"\s+")


def _split_words(value: str) -> str:
    """Lower-case *value* and separate its words with single spaces."""
    if not value:
        return ""
    result = _NON_WORD_RE.sub(" ", value)
    result = _EDGE_SEPARATORS_RE.sub("", result)
    result = _LOWER_UPPER_RE.sub(r"\1 \2", result)
    result = _ACRONYM_RE.sub(r"\1 \2", result)
    result = _SEPARATORS_RE.sub(" ", result)
    result = _SPACES_RE.sub(" ", result)
    return result.strip().lower()


def camel_case(value: str) -> str:
    """Convert *value* to ``camelCase`` (``"get-user_by id"`` -> ``"getUserById"``)."""
    words = _split_words(value)
    return re.sub(r"\s(.)", lambda m: m.group(1).upper(), words)


def pascal_case(value: str) -> str:
    """Convert *value* to ``PascalCase`` (``"weird-name"`` -> ``"WeirdName"``)."""
    words = _split_words(value)
    return re.sub(r"(^|\s)(.)", lambda m: m.group(2).upper(), words)


def normalize_schema_name(name: str) -> str:
    """Collapse a schema name for collision checks (``UserModel`` == ``user_model``)."""
    return re.sub(r"[^a-z0-9]", "", name.lower())


def normalize_security_key(key: str) -> str:
    """Reduce a security requirement key to its simple scheme name.

    Keys written as URIs or JSON pointers
    (``other.json#/components/securitySchemes/ApiKey``) map to their final
    segment; plain names are returned unchanged.
    """
    without_query = key.split("?", 1)[0]
    target = without_query.split("#", 1)[1] if "#" in without_query else without_query
    parts = [part for part in target.split("/") if part]
    return parts[-1] if parts else key


# ---------------------------------------------------------------------------
# Comment sanitizing
# ---------------------------------------------------------------------------

_SCRIPT_RE = re.compile(r"<script\b[^>]*>[\s\S]*?</script>", re.IGNORECASE)
_DANGEROUS_TAG_RE = re.compile(r"</?(iframe|object|embed|form)\b[^>]*>", re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(
    r"\s+on[a-z]+\s*=\s*(?:'[^']*'|\"[^\"]*\")", re.IGNORECASE
)
_JAVASCRIPT_URI_RE = re.compile(
    r"\b(href|src)\s*=\s*(?:'javascript:[^']*'|\"javascript:[^\"]*\")",
    re.IGNORECASE,
)


def sanitize_comment(text: str | None) -> str:
    """Make description text safe to embed in a generated doc comment.

    Strips ``<script>`` blocks, ``iframe``/``object``/``embed``/``form``
    tags, inline ``on*`` event handlers and ``javascript:`` links, then
    escapes ``*/`` so the text cannot close the surrounding comment.
    """
    if not text:
        return ""
    clean = _SCRIPT_RE.sub("", text)
    clean = _DANGEROUS_TAG_RE.sub("", clean)
    clean = _EVENT_HANDLER_RE.sub("", clean)
    clean = _JAVASCRIPT_URI_RE.sub("", clean)
    clean = clean.replace("*/", "*\\/")
    return clean.strip()
