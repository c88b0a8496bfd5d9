"""Evaluate OpenAPI runtime expressions (``$request.*``, ``$response.*``, ``$url``...).

Runtime expressions drive Links and Callbacks: they pull values out of the
HTTP exchange that just happened.  Everything here is a pure function over a
:class:`~specgraph.models.RuntimeContext`; nothing raises on bad input.
Unknown forms, missing headers and absent request/response halves all
evaluate to ``None``.

Supported forms:

* ``$url``, ``$method``, ``$statusCode``
* ``$request.header.<name>`` (case-insensitive), ``$request.query.<name>``
  and ``$request.path.<name>`` (case-sensitive)
* ``$request.body`` and ``$request.body#<json-pointer>``
* the same ``$response.*`` forms, except ``path``
* templates such as ``"https://x/{$request.path.id}"``; a segment that
  evaluates to ``None`` is substituted with the empty string.
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping, Optional
from urllib.parse import unquote

from specgraph.models import RuntimeContext

_TEMPLATE_RE = re.compile(r"\{([^}]+)\}")
_INDEX_RE = re.compile(r"^\d+$")


def evaluate_json_pointer(data: Any, pointer: str) -> Any:
    """Resolve an RFC 6901 JSON Pointer against *data*.

    ``""`` and ``"#"`` return *data* itself; a leading ``#`` is stripped.
    Returns ``None`` for any segment that does not exist, including
    non-numeric or out-of-range indexes into arrays.
    """
    if pointer in ("", "#"):
        return data
    if pointer.startswith("#"):
        pointer = pointer[1:]
    if not pointer.startswith("/"):
        return None

    current = data
    for raw_token in pointer.split("/")[1:]:
        token = unquote(raw_token).replace("~1", "/").replace("~0", "~")
        if isinstance(current, list):
            if not _INDEX_RE.match(token):
                return None
            index = int(token)
            if index >= len(current):
                return None
            current = current[index]
        elif isinstance(current, dict):
            if token not in current:
                return None
            current = current[token]
        else:
            return None
    return current


def _first(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _header(headers: Mapping[str, Any], name: str) -> Any:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return _first(value)
    return None


def _body(body: Any, part: str) -> Any:
    if part == "body":
        return body
    if part.startswith("body#"):
        return evaluate_json_pointer(body, part[len("body#"):])
    return None


def _evaluate_single(expression: str, context: RuntimeContext) -> Any:
    if expression == "$url":
        return context.url
    if expression == "$method":
        return context.method
    if expression == "$statusCode":
        return context.status_code

    if expression.startswith("$request."):
        request = context.request
        if request is None:
            return None
        part = expression[len("$request."):]
        if part.startswith("header."):
            return _header(request.headers, part[len("header."):])
        if part.startswith("query."):
            return _first(request.query.get(part[len("query."):]))
        if part.startswith("path."):
            return request.path.get(part[len("path."):])
        return _body(request.body, part)

    if expression.startswith("$response."):
        response = context.response
        if response is None:
            return None
        part = expression[len("$response."):]
        if part.startswith("header."):
            return _header(response.headers, part[len("header."):])
        return _body(response.body, part)

    return None


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def evaluate_runtime_expression(expression: str, context: RuntimeContext) -> Any:
    """Evaluate *expression* against *context*.

    A bare expression (``$request.query.id``) returns the referenced value
    with its type preserved.  A string without ``{`` is a constant and is
    returned unchanged.  Anything else is a template: every ``{inner}`` is
    evaluated on its own and substituted as text.

    Example::

        ctx = RuntimeContext(url="https://x/users/7", method="GET", status_code=200)
        evaluate_runtime_expression("$statusCode", ctx)  # 200
        evaluate_runtime_expression("{$method} {$url}", ctx)  # 'GET https://x/users/7'
    """
    has_braces = "{" in expression and "}" in expression
    if expression.startswith("$") and not has_braces:
        return _evaluate_single(expression, context)
    if "{" not in expression:
        return expression
    return _TEMPLATE_RE.sub(
        lambda match: _to_text(_evaluate_single(match.group(1).strip(), context)),
        expression,
    )


def evaluate_link(link: Mapping[str, Any], context: RuntimeContext) -> dict[str, Any]:
    """Evaluate a Link Object's ``parameters`` and ``requestBody``.

    String values are runtime expressions; any other value is a constant.

    Returns:
        ``{"parameters": {...}, "request_body": value-or-None}``
    """

    def _value(raw: Any) -> Any:
        return evaluate_runtime_expression(raw, context) if isinstance(raw, str) else raw

    parameters = link.get("parameters")
    evaluated: dict[str, Any] = {}
    if isinstance(parameters, dict):
        evaluated = {name: _value(raw) for name, raw in parameters.items()}

    request_body: Optional[Any] = None
    if "requestBody" in link:
        request_body = _value(link["requestBody"])
    return {"parameters": evaluated, "request_body": request_body}
