"""Resolve server URLs and substitute server variables.

Server URLs may be relative (``v1/api``, ``/root/api``).  They are resolved
against the location the document was *retrieved* from, never against its
``$self`` identity.  Relative URLs in documents read from the local file
system are kept as written, since a ``file:`` origin is not a usable API
host.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional
from urllib.parse import urljoin, urlsplit

from specgraph.exceptions import SpecValidationError
from specgraph.models import ServerInfo

_VARIABLE_RE = re.compile(r"\{([^{}]+)\}")


def resolve_server_url(url: str, base_uri: Optional[str]) -> str:
    """Resolve a possibly relative server *url* against *base_uri*.

    Example::

        resolve_server_url("v1/api", "https://example.com/docs/openapi.json")
        # 'https://example.com/docs/v1/api'
        resolve_server_url("/root/api", "https://example.com/docs/openapi.json")
        # 'https://example.com/root/api'
    """
    if not base_uri or urlsplit(url).scheme:
        return url
    if urlsplit(base_uri).scheme not in ("http", "https"):
        return url
    # Leading template variables ("{scheme}://...") are not paths.
    if url.startswith("{"):
        return url
    return urljoin(base_uri, url)


def resolve_servers(servers: Any, base_uri: Optional[str]) -> list[ServerInfo]:
    """Turn a raw ``servers`` array into :class:`ServerInfo` models with resolved URLs."""
    if not isinstance(servers, list):
        return []
    resolved: list[ServerInfo] = []
    for server in servers:
        if not isinstance(server, dict) or not isinstance(server.get("url"), str):
            continue
        data = dict(server)
        data["url"] = resolve_server_url(server["url"], base_uri)
        resolved.append(ServerInfo.model_validate(data))
    return resolved


def substitute_server_variables(
    server: ServerInfo, values: Optional[Mapping[str, str]] = None
) -> str:
    """Expand ``{name}`` placeholders in *server*'s URL.

    Each variable takes its value from *values* when supplied, else its
    ``default``.  Placeholders without a variable entry are left in place.

    Raises:
        SpecValidationError: If a value is not a member of the variable's
            ``enum``.
    """
    values = values or {}
    variables = server.variables or {}

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        variable = variables.get(name)
        if variable is None:
            return match.group(0)
        value = values.get(name, variable.default)
        if value is None:
            return match.group(0)
        if variable.enum is not None and value not in variable.enum:
            raise SpecValidationError(
                f'Value "{value}" for server variable "{name}" is not one of {variable.enum}.'
            )
        return str(value)

    return _VARIABLE_RE.sub(_replace, server.url)
